"""Handing a solved grid to whatever places the modules.

The solver never instantiates anything itself. Once a run is SOLVED, each
cell becomes a Placement record and is passed to a caller-supplied placer
(a scene builder, a tile map writer, a test double, ...).

Cell (row, col) is placed at local position (row * cell_size, 0, col * cell_size)
and turned by -rotation degrees about the vertical axis, which matches
engines where positive yaw turns clockwise seen from above.
"""

from __future__ import annotations

from collections.abc import Iterator
from dataclasses import dataclass
from typing import Protocol

from tilecollapse import config
from tilecollapse.errors import UnsolvableError
from tilecollapse.modules.catalog import ModuleState
from tilecollapse.solver.engine import SolveResult
from tilecollapse.types import GridPos, LocalPosition


@dataclass(frozen=True)
class Placement:
    """A finalized cell ready to be instantiated.

    Attributes:
        position: (row, col) of the cell.
        state: The single module state chosen for the cell.
        local_position: Offset of the module inside its parent, in world units.
        yaw: Rotation about the vertical axis in degrees.
    """

    position: GridPos
    state: ModuleState
    local_position: LocalPosition
    yaw: float


class ModulePlacer(Protocol):
    """Anything that can put a module into the world."""

    def place(self, placement: Placement) -> None: ...


def iter_placements(
    result: SolveResult, cell_size: float = config.DEFAULT_CELL_SIZE
) -> Iterator[Placement]:
    """Yield one Placement per cell in row-major order.

    Raises:
        UnsolvableError: If the run did not reach SOLVED.
    """
    grid = result.require_solved()
    for cell in grid:
        row, col = cell.position
        state = cell.state
        yield Placement(
            position=cell.position,
            state=state,
            local_position=(row * cell_size, 0.0, col * cell_size),
            yaw=float(-state.rotation),
        )


def materialize(
    result: SolveResult,
    placer: ModulePlacer,
    cell_size: float = config.DEFAULT_CELL_SIZE,
) -> int:
    """Pass every placement of a solved run to ``placer``.

    Returns:
        Number of modules placed.

    Raises:
        UnsolvableError: If the run did not reach SOLVED. Nothing is placed.
    """
    if not result.solved:
        raise UnsolvableError(
            f"Refusing to materialize a failed run: {result.reason}", result
        )

    count = 0
    for placement in iter_placements(result, cell_size):
        placer.place(placement)
        count += 1
    return count
