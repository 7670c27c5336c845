from __future__ import annotations

from collections.abc import Sequence
from typing import Any, TypeVar

from tilecollapse.modules import (
    ContactRegistry,
    Direction,
    ModuleCatalog,
    ModulePrototype,
    ModuleState,
    build_catalog,
)
from tilecollapse.placement import Placement
from tilecollapse.solver import Grid

T = TypeVar("T")


def road_registry() -> ContactRegistry:
    """Road and grass edges that refuse each other."""
    registry = ContactRegistry()
    registry.define("grass", forbidden=["road"])
    registry.define("road", forbidden=["grass"])
    return registry


def road_prototypes() -> list[ModulePrototype]:
    """Road tiles whose rotations cover all 16 road/grass edge combinations.

    Any set of constraints from already-decided neighbors can be met, so a
    run over this set never needs a rollback.
    """
    return [
        ModulePrototype("field", "grass", "grass", "grass", "grass"),
        ModulePrototype("dead_end", "road", "grass", "grass", "grass"),
        ModulePrototype("straight", "road", "grass", "road", "grass"),
        ModulePrototype("corner", "road", "road", "grass", "grass"),
        ModulePrototype("tee", "road", "road", "road", "grass"),
        ModulePrototype("cross", "road", "road", "road", "road"),
    ]


def road_catalog() -> ModuleCatalog:
    return build_catalog(road_prototypes(), road_registry())


def socket_catalog() -> ModuleCatalog:
    """Modules with a single "plug" side that must face another plug.

    "wall" refuses both walls and plugs, so every solved pair of adjacent
    cells meets plug-to-plug. Most pivot choices fail and get rolled back.
    """
    registry = ContactRegistry()
    registry.define("plug")
    registry.define("wall", forbidden=["wall", "plug"])
    return build_catalog(
        [ModulePrototype("socket", "wall", "plug", "wall", "wall")], registry
    )


def state_named(catalog: ModuleCatalog, name: str) -> ModuleState:
    """Look up a state by its "prototype@rotation" name."""
    for state in catalog:
        if state.name == name:
            return state
    raise KeyError(name)


class FirstChoice:
    """Deterministic stand-in for Random that always picks the first item."""

    def __init__(self) -> None:
        self.calls = 0

    def choice(self, seq: Sequence[T]) -> T:
        self.calls += 1
        return seq[0]


class RecordingPlacer:
    """ModulePlacer that stores every placement it receives."""

    def __init__(self) -> None:
        self.placements: list[Placement] = []

    def place(self, placement: Placement) -> None:
        self.placements.append(placement)


def assert_adjacency_satisfied(grid: Grid) -> None:
    """Every pair of adjacent solved cells has matching facing contacts."""
    for cell in grid:
        for neighbor in grid.neighbors_of(cell):
            direction = Direction.between(cell.position, neighbor.position)
            ours = cell.state.contact(direction)
            theirs = neighbor.state.contact(direction.opposite)
            assert ours.matches(theirs), (
                f"Invalid adjacency at {cell.position}->{direction.name}->"
                f"{neighbor.position}: {cell.state} ({ours.contact_type}) vs "
                f"{neighbor.state} ({theirs.contact_type})"
            )


def module_set_document(**overrides: Any) -> dict[str, Any]:
    """A small valid module-set document; top-level keys can be overridden."""
    document: dict[str, Any] = {
        "grid": {"rows": 4, "cols": 6, "cell_size": 2.5},
        "contacts": [
            {"type": "grass", "forbidden": ["road"]},
            {"type": "road", "forbidden": ["grass"]},
        ],
        "modules": [
            {"name": "field", "forward": "grass", "right": "grass",
             "back": "grass", "left": "grass"},
            {"name": "straight", "forward": "road", "right": "grass",
             "back": "road", "left": "grass"},
        ],
    }  # fmt: skip
    document.update(overrides)
    return document
