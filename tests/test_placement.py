"""Tests for turning solved runs into placements."""

from __future__ import annotations

import random

import pytest

from tests.helpers import RecordingPlacer, road_catalog, socket_catalog
from tilecollapse.errors import UnsolvableError
from tilecollapse.modules import ContactRegistry, ModulePrototype, build_catalog
from tilecollapse.placement import Placement, iter_placements, materialize
from tilecollapse.solver import Grid, PropagationEngine


def failed_result():
    registry = ContactRegistry()
    registry.define("x", forbidden=["x"])
    catalog = build_catalog([ModulePrototype("block", "x", "x", "x", "x")], registry)
    return PropagationEngine(Grid(2, 2, catalog), random.Random(1)).run()


class TestIterPlacements:
    """Tests for placement records."""

    def test_one_placement_per_cell_in_row_major_order(self) -> None:
        result = PropagationEngine(Grid(2, 3, road_catalog()), random.Random(3)).run()

        placements = list(iter_placements(result))

        assert [p.position for p in placements] == [
            (0, 0),
            (0, 1),
            (0, 2),
            (1, 0),
            (1, 1),
            (1, 2),
        ]
        for placement in placements:
            assert placement.state is result.grid[placement.position].state

    def test_local_position_scales_with_cell_size(self) -> None:
        result = PropagationEngine(Grid(2, 3, road_catalog()), random.Random(3)).run()

        placements = {p.position: p for p in iter_placements(result, cell_size=2.0)}

        assert placements[(0, 0)].local_position == (0.0, 0.0, 0.0)
        assert placements[(1, 2)].local_position == (2.0, 0.0, 4.0)

    def test_yaw_is_negated_rotation(self) -> None:
        result = PropagationEngine(Grid(2, 1, socket_catalog()), random.Random(5)).run()

        yaws = {p.position: p.yaw for p in iter_placements(result)}

        # socket@0 then socket@180
        assert yaws == {(0, 0): 0.0, (1, 0): -180.0}

    def test_failed_run_raises(self) -> None:
        with pytest.raises(UnsolvableError):
            list(iter_placements(failed_result()))


class TestMaterialize:
    """Tests for handing placements to a placer."""

    def test_every_cell_reaches_the_placer(self) -> None:
        result = PropagationEngine(Grid(3, 3, road_catalog()), random.Random(8)).run()
        placer = RecordingPlacer()

        count = materialize(result, placer, cell_size=1.5)

        assert count == 9
        assert len(placer.placements) == 9
        assert all(isinstance(p, Placement) for p in placer.placements)
        assert placer.placements[-1].local_position == (3.0, 0.0, 3.0)

    def test_failed_run_places_nothing(self) -> None:
        placer = RecordingPlacer()

        with pytest.raises(UnsolvableError, match="Refusing to materialize"):
            materialize(failed_result(), placer)

        assert placer.placements == []
