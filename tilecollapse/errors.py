"""Exception types raised by the solver and its setup code."""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from tilecollapse.solver.engine import SolveResult


class TileCollapseError(Exception):
    """Base class for all errors raised by tilecollapse."""


class ConfigurationError(TileCollapseError, ValueError):
    """Raised when the module set cannot be turned into a valid catalog.

    Covers unknown contact types, duplicate names, empty prototype lists,
    bad grid dimensions and malformed module-set documents. Always fatal
    to setup: an incomplete module state is never produced.
    """


class UnsolvableError(TileCollapseError):
    """Raised when a run ends in the FAILED phase.

    Some pivot exhausted every candidate state. The grid attached to
    ``result`` is left partially collapsed and must not be materialized.
    """

    def __init__(self, message: str, result: SolveResult | None = None) -> None:
        super().__init__(message)
        self.result = result


class InvariantViolationError(TileCollapseError, RuntimeError):
    """Raised when solver bookkeeping is inconsistent.

    This occurs when a cell domain is empty outside a tracked propagation
    wave, or when a rollback restores no cell at all.
    """
