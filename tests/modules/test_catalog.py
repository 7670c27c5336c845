"""Tests for prototype expansion and the module state catalog."""

from __future__ import annotations

import numpy as np
import pytest

from tests.helpers import road_catalog, road_prototypes, road_registry, state_named
from tilecollapse.errors import ConfigurationError
from tilecollapse.modules.catalog import (
    ROTATIONS,
    ModuleCatalog,
    ModulePrototype,
    ModuleState,
    build_catalog,
    expand,
)
from tilecollapse.modules.contacts import ContactRegistry, Direction


def lettered_registry() -> ContactRegistry:
    registry = ContactRegistry()
    for name in ("f", "r", "b", "l"):
        registry.define(name)
    return registry


LETTERED = ModulePrototype("lettered", forward="f", right="r", back="b", left="l")


def contact_names(state: ModuleState) -> tuple[str, ...]:
    return tuple(
        state.contact(direction).contact_type
        for direction in (
            Direction.NORTH,
            Direction.EAST,
            Direction.SOUTH,
            Direction.WEST,
        )
    )


# =============================================================================
# Expansion
# =============================================================================


class TestExpand:
    """Tests for expanding one prototype into four rotations."""

    def test_produces_four_rotations_in_order(self) -> None:
        states = expand(LETTERED, lettered_registry())

        assert len(states) == 4
        assert [state.rotation for state in states] == list(ROTATIONS)
        assert all(state.prototype is LETTERED for state in states)

    def test_rotation_shifts_local_contacts(self) -> None:
        """Rotation i puts local slot (i + j) mod 4 on the j-th clockwise side."""
        states = expand(LETTERED, lettered_registry())

        # (NORTH, EAST, SOUTH, WEST)
        assert contact_names(states[0]) == ("f", "r", "b", "l")
        assert contact_names(states[1]) == ("r", "b", "l", "f")
        assert contact_names(states[2]) == ("b", "l", "f", "r")
        assert contact_names(states[3]) == ("l", "f", "r", "b")

    def test_contacts_are_registry_rules(self) -> None:
        registry = lettered_registry()
        state = expand(LETTERED, registry)[0]

        assert state.contact(Direction.NORTH) is registry.get("f")

    def test_unknown_contact_type_fails(self) -> None:
        registry = ContactRegistry()
        registry.define("f")

        with pytest.raises(ConfigurationError, match="Unknown contact type 'r'"):
            expand(LETTERED, registry)

    def test_contacts_mapping_is_read_only(self) -> None:
        state = expand(LETTERED, lettered_registry())[0]

        with pytest.raises(TypeError):
            contacts = state.contacts
            contacts[Direction.NORTH] = contacts[Direction.EAST]  # type: ignore[index]


# =============================================================================
# Module States
# =============================================================================


class TestModuleState:
    """Tests for module state identity and connection checks."""

    def test_identity_is_prototype_and_rotation(self) -> None:
        first = expand(LETTERED, lettered_registry())
        second = expand(LETTERED, lettered_registry())

        assert first[1] == second[1]
        assert hash(first[1]) == hash(second[1])
        assert first[0] != first[1]

    def test_name(self) -> None:
        state = expand(LETTERED, lettered_registry())[3]
        assert state.name == "lettered@270"
        assert str(state) == "lettered@270"

    def test_connects_to_checks_facing_contacts(self) -> None:
        catalog = road_catalog()
        # straight@0 has road north/south, grass east/west
        straight = state_named(catalog, "straight@0")
        cross = state_named(catalog, "cross@0")
        field = state_named(catalog, "field@0")

        assert straight.connects_to(cross, Direction.NORTH)
        assert not straight.connects_to(cross, Direction.EAST)
        assert straight.connects_to(field, Direction.EAST)
        assert not straight.connects_to(field, Direction.SOUTH)


# =============================================================================
# Catalog
# =============================================================================


class TestBuildCatalog:
    """Tests for building the full catalog from prototypes."""

    def test_prototype_then_rotation_order(self) -> None:
        catalog = road_catalog()
        names = [state.name for state in catalog]

        assert len(catalog) == 4 * len(road_prototypes())
        assert names[:5] == [
            "field@0",
            "field@90",
            "field@180",
            "field@270",
            "dead_end@0",
        ]
        assert catalog.prototypes == tuple(road_prototypes())

    def test_index_of_matches_position(self) -> None:
        catalog = road_catalog()
        for i, state in enumerate(catalog):
            assert catalog.index_of(state) == i
        assert list(catalog.indices_of(catalog[2:4])) == [2, 3]

    def test_indexing_and_slicing(self) -> None:
        catalog = road_catalog()

        assert isinstance(catalog[0], ModuleState)
        assert catalog[-1].name == "cross@270"
        assert catalog[1:3] == (catalog[1], catalog[2])

    def test_empty_prototype_list_rejected(self) -> None:
        with pytest.raises(ConfigurationError, match="At least one"):
            build_catalog([], road_registry())

    def test_duplicate_prototype_name_rejected(self) -> None:
        prototypes = road_prototypes()
        prototypes.append(ModulePrototype("field", "road", "road", "road", "road"))

        with pytest.raises(ConfigurationError, match="'field' is defined twice"):
            build_catalog(prototypes, road_registry())

    def test_duplicate_state_rejected(self) -> None:
        states = expand(LETTERED, lettered_registry())

        with pytest.raises(ConfigurationError, match="appears twice"):
            ModuleCatalog([*states, states[0]])

    def test_unknown_contact_fails_whole_build(self) -> None:
        lava = ModulePrototype("lava", "lava", "road", "road", "road")
        prototypes = [*road_prototypes(), lava]

        with pytest.raises(ConfigurationError):
            build_catalog(prototypes, road_registry())


class TestCompatibilityTables:
    """Tests for the precomputed per-direction adjacency tables."""

    @pytest.mark.parametrize("direction", list(Direction))
    def test_table_agrees_with_connects_to(self, direction: Direction) -> None:
        catalog = road_catalog()
        table = catalog.compatibility(direction)

        assert table.shape == (len(catalog), len(catalog))
        assert table.dtype == np.bool_
        for i, state in enumerate(catalog):
            for j, other in enumerate(catalog):
                assert table[i, j] == state.connects_to(other, direction)

    def test_opposite_tables_are_transposes(self) -> None:
        catalog = road_catalog()
        north = catalog.compatibility(Direction.NORTH)
        south = catalog.compatibility(Direction.SOUTH)

        assert np.array_equal(north, south.T)

    def test_tables_are_read_only(self) -> None:
        table = road_catalog().compatibility(Direction.EAST)
        with pytest.raises(ValueError):
            table[0, 0] = not table[0, 0]
