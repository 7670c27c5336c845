"""Grid and cell domain model.

The grid owns every cell. Cells know their neighbors only by position and
look them up through the grid, so there are no cell-to-cell references.

Each cell carries a rollback cache keyed by the handle of the pivot whose
decision first touched it. The cache holds the cell's domain as it was
immediately before that decision, which is what a failed wave restores.
"""

from __future__ import annotations

from collections.abc import Iterator

import numpy as np

from tilecollapse.errors import ConfigurationError, InvariantViolationError
from tilecollapse.modules.catalog import ModuleCatalog, ModuleState
from tilecollapse.modules.contacts import Direction
from tilecollapse.types import CellHandle, GridPos


class Cell:
    """One grid position and its remaining candidate states.

    Attributes:
        position: (row, col) in the grid.
        handle: Flat index, row * cols + col.
        domain: Remaining candidates in catalog order. Shrinks during a wave
            and is restored from the rollback cache if the wave fails.
        neighbors: In-bounds adjacent positions in N, E, S, W order.
    """

    __slots__ = ("position", "handle", "domain", "neighbors", "_rollback_cache")

    def __init__(
        self,
        position: GridPos,
        handle: CellHandle,
        domain: list[ModuleState],
        neighbors: tuple[GridPos, ...],
    ) -> None:
        self.position = position
        self.handle = handle
        self.domain = domain
        self.neighbors = neighbors
        self._rollback_cache: dict[CellHandle, tuple[ModuleState, ...]] = {}

    @property
    def is_collapsed(self) -> bool:
        return len(self.domain) == 1

    @property
    def state(self) -> ModuleState:
        """The single remaining state.

        Raises:
            InvariantViolationError: If the cell is not collapsed.
        """
        if not self.is_collapsed:
            raise InvariantViolationError(
                f"Cell {self.position} has {len(self.domain)} candidates, expected 1"
            )
        return self.domain[0]

    # -------------------------------------------------------------------------
    # Rollback cache
    # -------------------------------------------------------------------------

    def record_snapshot(self, origin: CellHandle) -> bool:
        """Store the current domain under ``origin`` unless one is stored.

        Returns:
            True if a snapshot was recorded, False if one already existed.
        """
        if origin in self._rollback_cache:
            return False
        self._rollback_cache[origin] = tuple(self.domain)
        return True

    def has_snapshot(self, origin: CellHandle) -> bool:
        return origin in self._rollback_cache

    def snapshot(self, origin: CellHandle) -> tuple[ModuleState, ...] | None:
        return self._rollback_cache.get(origin)

    def restore(self, origin: CellHandle) -> bool:
        """Restore the domain stored under ``origin`` and drop the entry."""
        saved = self._rollback_cache.pop(origin, None)
        if saved is None:
            return False
        self.domain = list(saved)
        return True

    def discard_snapshot(self, origin: CellHandle) -> None:
        self._rollback_cache.pop(origin, None)

    @property
    def cached_origins(self) -> tuple[CellHandle, ...]:
        return tuple(self._rollback_cache)

    def __repr__(self) -> str:
        return f"Cell({self.position}, {len(self.domain)} candidates)"


class Grid:
    """Rows x cols matrix of cells, all starting from the full catalog."""

    def __init__(self, rows: int, cols: int, catalog: ModuleCatalog) -> None:
        if rows < 1 or cols < 1:
            raise ConfigurationError(
                f"Grid dimensions must be positive, got {rows}x{cols}"
            )
        self.rows = rows
        self.cols = cols
        self.catalog = catalog

        self._cells: list[Cell] = []
        for row in range(rows):
            for col in range(cols):
                position = (row, col)
                neighbors = tuple(
                    pos
                    for pos in (d.step(position) for d in Direction)
                    if self.in_bounds(pos)
                )
                # Each cell gets its own list; shared lists would leak removals
                self._cells.append(
                    Cell(position, self.handle_of(position), list(catalog), neighbors)
                )

    def in_bounds(self, position: GridPos) -> bool:
        row, col = position
        return 0 <= row < self.rows and 0 <= col < self.cols

    def handle_of(self, position: GridPos) -> CellHandle:
        row, col = position
        return row * self.cols + col

    def cell(self, position: GridPos) -> Cell:
        if not self.in_bounds(position):
            raise IndexError(f"Position {position} is outside {self.rows}x{self.cols}")
        return self._cells[self.handle_of(position)]

    def cell_by_handle(self, handle: CellHandle) -> Cell:
        return self._cells[handle]

    def __getitem__(self, position: GridPos) -> Cell:
        return self.cell(position)

    def neighbors_of(self, cell: Cell) -> Iterator[Cell]:
        for position in cell.neighbors:
            yield self._cells[self.handle_of(position)]

    def __iter__(self) -> Iterator[Cell]:
        """Iterate cells in row-major order."""
        return iter(self._cells)

    def __len__(self) -> int:
        return len(self._cells)

    def unsolved_cells(self) -> list[Cell]:
        return [cell for cell in self._cells if len(cell.domain) > 1]

    @property
    def is_solved(self) -> bool:
        return all(cell.is_collapsed for cell in self._cells)

    def states(self) -> list[list[ModuleState]]:
        """Chosen state per cell as rows of columns.

        Raises:
            InvariantViolationError: If any cell is not collapsed.
        """
        return [
            [self._cells[row * self.cols + col].state for col in range(self.cols)]
            for row in range(self.rows)
        ]

    def to_array(self) -> np.ndarray:
        """Catalog index of each collapsed cell, -1 where undecided."""
        result = np.full((self.rows, self.cols), -1, dtype=np.int32)
        for cell in self._cells:
            if cell.is_collapsed:
                result[cell.position] = self.catalog.index_of(cell.domain[0])
        return result

    def domain_sizes(self) -> np.ndarray:
        sizes = np.fromiter(
            (len(cell.domain) for cell in self._cells),
            dtype=np.int32,
            count=len(self._cells),
        )
        return sizes.reshape(self.rows, self.cols)

    def __repr__(self) -> str:
        return f"Grid({self.rows}x{self.cols}, catalog={len(self.catalog)})"
