"""Propagate-or-rollback Wave Function Collapse engine.

The engine repeatedly picks the undecided cell with the fewest candidates
(the pivot), tries its candidates one at a time, and propagates each choice
through the grid:

1. Selecting: scan cells row-major, pick the first with the smallest domain
   larger than one. No such cell means the grid is solved.
2. Propagating: collapse the pivot to one untried candidate and remove,
   wave by wave, every neighbor state that has no compatible partner left.
3. If a wave empties some domain, every cell it touched is restored from
   its rollback cache and the next candidate is tried. When the pivot runs
   out of candidates the whole run fails; earlier pivots are never revisited.

Usage:
    engine = PropagationEngine(Grid(rows, cols, catalog), random.Random(7))
    result = engine.run()
    if result.solved:
        for row in result.grid.states(): ...

Propagation and rollback both run from explicit work queues, so deep waves
do not grow the Python stack.
"""

from __future__ import annotations

import logging
from collections import deque
from dataclasses import dataclass
from enum import Enum, auto

import numpy as np

from tilecollapse import config
from tilecollapse.errors import InvariantViolationError, UnsolvableError
from tilecollapse.modules.catalog import ModuleCatalog
from tilecollapse.modules.contacts import Direction
from tilecollapse.types import CellHandle, GridPos
from tilecollapse.util import rng
from tilecollapse.util.rng import RNG

from .grid import Cell, Grid

logger = logging.getLogger(__name__)

_rng = rng.get(config.SOLVER_RNG_DOMAIN)


class SolverPhase(Enum):
    SELECTING = auto()
    PROPAGATING = auto()
    SOLVED = auto()
    FAILED = auto()


_TERMINAL_PHASES = frozenset({SolverPhase.SOLVED, SolverPhase.FAILED})


@dataclass
class SolveResult:
    """Outcome of one engine run.

    Attributes:
        phase: SOLVED or FAILED.
        grid: The grid the engine ran on. Partially collapsed when FAILED.
        decisions: Number of pivots chosen.
        attempts: Number of candidate states tried across all pivots.
        rollbacks: Number of failed waves that were undone.
        failed_at: Position of the pivot that ran out of candidates.
        reason: Human-readable failure reason.
    """

    phase: SolverPhase
    grid: Grid
    decisions: int = 0
    attempts: int = 0
    rollbacks: int = 0
    failed_at: GridPos | None = None
    reason: str | None = None

    @property
    def solved(self) -> bool:
        return self.phase is SolverPhase.SOLVED

    def require_solved(self) -> Grid:
        """Return the grid, or raise UnsolvableError if the run failed."""
        if not self.solved:
            raise UnsolvableError(
                f"Grid is unsolvable: {self.reason} (pivot {self.failed_at})", self
            )
        return self.grid


class PropagationEngine:
    """Single-use solver state machine over one grid.

    Args:
        grid: Freshly initialized grid to collapse in place.
        rng: Source for drawing untried candidates. Defaults to the
            ``config.SOLVER_RNG_DOMAIN`` stream.
        max_decisions: Optional cap on pivot decisions. Reaching it fails the run.
    """

    def __init__(
        self,
        grid: Grid,
        rng: RNG | None = None,
        *,
        max_decisions: int | None = config.DEFAULT_MAX_DECISIONS,
    ) -> None:
        self.grid = grid
        self.catalog: ModuleCatalog = grid.catalog
        self.rng: RNG = rng if rng is not None else _rng
        self.max_decisions = max_decisions

        self.phase = SolverPhase.SELECTING
        self.decisions = 0
        self.attempts = 0
        self.rollbacks = 0
        self.failed_at: GridPos | None = None
        self.reason: str | None = None

        # Cells that received a snapshot during the current wave
        self._touched: list[CellHandle] = []

    # -------------------------------------------------------------------------
    # Selection
    # -------------------------------------------------------------------------

    def select_pivot(self) -> Cell | None:
        """Return the first undecided cell with the smallest domain.

        Raises:
            InvariantViolationError: If any cell has an empty domain.
        """
        pivot: Cell | None = None
        for cell in self.grid:
            size = len(cell.domain)
            if size == 0:
                raise InvariantViolationError(
                    f"Cell {cell.position} has an empty domain outside propagation"
                )
            if size > 1 and (pivot is None or size < len(pivot.domain)):
                pivot = cell
        return pivot

    # -------------------------------------------------------------------------
    # Assignment
    # -------------------------------------------------------------------------

    def try_select_state(self, pivot: Cell) -> bool:
        """Collapse ``pivot`` to some candidate whose wave succeeds.

        Returns:
            True once a candidate propagates cleanly, False if none does.
        """
        untried = list(pivot.domain)
        while untried:
            self._touched.clear()
            # A failed wave consumes the pivot's entry, so record it again
            if pivot.record_snapshot(pivot.handle):
                self._touched.append(pivot.handle)

            candidate = self.rng.choice(untried)
            self.attempts += 1
            pivot.domain = [candidate]

            if self.propagate(pivot, pivot):
                self._commit(pivot)
                logger.debug(f"Pivot {pivot.position} collapsed to {candidate}")
                return True

            untried.remove(candidate)
            logger.debug(
                f"Pivot {pivot.position}: {candidate} failed, "
                f"{len(untried)} candidates left"
            )
        return False

    def _commit(self, origin: Cell) -> None:
        """Drop the snapshots a successful wave left behind."""
        for handle in self._touched:
            self.grid.cell_by_handle(handle).discard_snapshot(origin.handle)
        self._touched.clear()

    # -------------------------------------------------------------------------
    # Propagation
    # -------------------------------------------------------------------------

    def propagate(self, from_cell: Cell, origin: Cell) -> bool:
        """Spread the constraints of ``from_cell`` through the grid.

        Cells are processed breadth-first. Each processed cell constrains all
        of its neighbors; neighbors that lost candidates are queued in turn.

        Returns:
            True if every domain stayed non-empty. False after rolling back
            the wave when some domain emptied.
        """
        queue = deque([from_cell.handle])
        queued = {from_cell.handle}

        while queue:
            handle = queue.popleft()
            queued.discard(handle)
            cell = self.grid.cell_by_handle(handle)

            shrunk: list[CellHandle] = []
            for neighbor in self.grid.neighbors_of(cell):
                removed = self.constrain(neighbor, cell, origin)
                if not neighbor.domain:
                    logger.debug(
                        f"No candidates left at {neighbor.position} "
                        f"(origin {origin.position}), rolling back"
                    )
                    self.rollback(cell, origin)
                    return False
                if removed:
                    shrunk.append(neighbor.handle)

            for neighbor_handle in shrunk:
                if neighbor_handle not in queued:
                    queue.append(neighbor_handle)
                    queued.add(neighbor_handle)

        return True

    def constrain(self, cell: Cell, other: Cell, origin: Cell) -> int:
        """Remove states of ``cell`` with no compatible partner in ``other``.

        The first time a decision touches ``cell``, its domain is recorded
        under ``origin``; later touches keep that first snapshot.

        Returns:
            Number of states removed. An empty resulting domain means failure.
        """
        if cell.record_snapshot(origin.handle):
            self._touched.append(cell.handle)
        if not cell.domain:
            return 0

        direction = Direction.between(cell.position, other.position)
        table = self.catalog.compatibility(direction)
        ours = self.catalog.indices_of(cell.domain)
        theirs = self.catalog.indices_of(other.domain)
        keep: np.ndarray = table[np.ix_(ours, theirs)].any(axis=1)

        removed = len(cell.domain) - int(np.count_nonzero(keep))
        if removed:
            cell.domain = [
                state for state, kept in zip(cell.domain, keep, strict=True) if kept
            ]
        return removed

    # -------------------------------------------------------------------------
    # Rollback
    # -------------------------------------------------------------------------

    def rollback(self, from_cell: Cell, origin: Cell) -> int:
        """Restore every cell the ``origin`` decision touched.

        Walks outward from ``from_cell``. Cells holding a snapshot for
        ``origin`` are restored and their neighbors visited; cells without
        one end that branch. Touched cells form one connected region around
        the origin, so the walk reaches all of them.

        Returns:
            Number of cells restored.

        Raises:
            InvariantViolationError: If no cell held a snapshot for ``origin``.
        """
        restored = 0
        pending = deque([from_cell.handle])
        visited = {from_cell.handle}

        while pending:
            handle = pending.popleft()
            cell = self.grid.cell_by_handle(handle)
            if cell.restore(origin.handle):
                restored += 1
            elif handle != from_cell.handle:
                continue

            for position in cell.neighbors:
                neighbor_handle = self.grid.handle_of(position)
                if neighbor_handle not in visited:
                    visited.add(neighbor_handle)
                    pending.append(neighbor_handle)

        if restored == 0:
            raise InvariantViolationError(
                f"Rollback from {from_cell.position} found no snapshot for "
                f"origin {origin.position}"
            )

        self.rollbacks += 1
        logger.debug(f"Rolled back {restored} cells for origin {origin.position}")
        return restored

    # -------------------------------------------------------------------------
    # Run loop
    # -------------------------------------------------------------------------

    @property
    def finished(self) -> bool:
        return self.phase in _TERMINAL_PHASES

    def step(self) -> SolverPhase:
        """Make one pivot decision and return the resulting phase."""
        if self.finished:
            return self.phase

        self.phase = SolverPhase.SELECTING
        pivot = self.select_pivot()
        if pivot is None:
            self._finish_solved()
            return self.phase

        if self.max_decisions is not None and self.decisions >= self.max_decisions:
            self._fail(pivot, "decision budget exhausted")
            return self.phase

        self.phase = SolverPhase.PROPAGATING
        self.decisions += 1
        if self.try_select_state(pivot):
            self.phase = SolverPhase.SELECTING
        else:
            self._fail(pivot, "every candidate state failed to propagate")
        return self.phase

    def run(self) -> SolveResult:
        """Step until the grid is solved or the engine fails."""
        while not self.finished:
            self.step()

        if self.phase is SolverPhase.SOLVED:
            logger.info(
                f"Solved {self.grid.rows}x{self.grid.cols} grid: "
                f"{self.decisions} decisions, {self.attempts} attempts, "
                f"{self.rollbacks} rollbacks"
            )
        else:
            logger.warning(
                f"Failed {self.grid.rows}x{self.grid.cols} grid at {self.failed_at}: "
                f"{self.reason}"
            )
        return self.result()

    def result(self) -> SolveResult:
        return SolveResult(
            phase=self.phase,
            grid=self.grid,
            decisions=self.decisions,
            attempts=self.attempts,
            rollbacks=self.rollbacks,
            failed_at=self.failed_at,
            reason=self.reason,
        )

    def _finish_solved(self) -> None:
        # Cells that started with a single candidate were never propagated
        conflict = self._find_conflict()
        if conflict is not None:
            self._fail(self.grid.cell(conflict), "initial domains are inconsistent")
            return
        self.phase = SolverPhase.SOLVED

    def _find_conflict(self) -> GridPos | None:
        for cell in self.grid:
            state = cell.domain[0]
            for neighbor in self.grid.neighbors_of(cell):
                direction = Direction.between(cell.position, neighbor.position)
                if not state.connects_to(neighbor.domain[0], direction):
                    return cell.position
        return None

    def _fail(self, pivot: Cell, reason: str) -> None:
        self.phase = SolverPhase.FAILED
        self.failed_at = pivot.position
        self.reason = reason


def solve(
    rows: int,
    cols: int,
    catalog: ModuleCatalog,
    rng: RNG | None = None,
    *,
    max_decisions: int | None = config.DEFAULT_MAX_DECISIONS,
) -> Grid:
    """Build a grid, run the engine, and return the solved grid.

    Raises:
        UnsolvableError: If the run fails. The exception carries the result.
    """
    grid = Grid(rows, cols, catalog)
    engine = PropagationEngine(grid, rng, max_decisions=max_decisions)
    return engine.run().require_solved()
