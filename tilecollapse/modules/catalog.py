"""Module prototypes, their rotations, and the catalog every cell starts from.

A prototype names the contact type on each of its local sides (forward,
right, back, left). Rotating it by quarter turns changes which local side
faces each absolute map direction, so every prototype expands into four
module states:

    rotation   NORTH    EAST     SOUTH    WEST
    0          forward  right    back     left
    90         right    back     left     forward
    180        back     left     forward  right
    270        left     forward  right    back

Performance:
    The catalog precomputes, per direction, a boolean table
    ``compat[d][i, j]`` telling whether state i may sit next to state j
    when j lies in direction d from i. Constraint propagation then
    becomes a numpy fancy-index plus ``any`` instead of a Python double
    loop over contact rules.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable, Iterator, Mapping, Sequence
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import overload

import numpy as np

from tilecollapse.errors import ConfigurationError
from tilecollapse.types import Rotation

from .contacts import CLOCKWISE, ContactRegistry, ContactRule, Direction, matches

logger = logging.getLogger(__name__)

ROTATIONS: tuple[Rotation, ...] = (0, 90, 180, 270)


@dataclass(frozen=True)
class ModulePrototype:
    """A module template with one contact type name per local side.

    Attributes:
        name: Unique prototype name.
        forward: Contact type on the local forward side.
        right: Contact type on the local right side.
        back: Contact type on the local back side.
        left: Contact type on the local left side.
    """

    name: str
    forward: str
    right: str
    back: str
    left: str

    @property
    def local_contacts(self) -> tuple[str, str, str, str]:
        """Contact names in clockwise local order, starting at forward."""
        return (self.forward, self.right, self.back, self.left)


@dataclass(frozen=True)
class ModuleState:
    """One rotation of a prototype with contacts keyed by map direction.

    Equality and hashing use (prototype, rotation) only.
    """

    prototype: ModulePrototype
    rotation: Rotation
    contacts: Mapping[Direction, ContactRule] = field(
        default_factory=dict, compare=False, repr=False
    )

    @property
    def name(self) -> str:
        return f"{self.prototype.name}@{self.rotation}"

    def contact(self, direction: Direction) -> ContactRule:
        return self.contacts[direction]

    def connects_to(self, other: ModuleState, direction: Direction) -> bool:
        """True if ``other`` may sit one step in ``direction`` from this state."""
        return matches(self.contacts[direction], other.contacts[direction.opposite])

    def __str__(self) -> str:
        return self.name


def expand(
    prototype: ModulePrototype, registry: ContactRegistry
) -> tuple[ModuleState, ...]:
    """Build the four rotations of ``prototype``.

    Raises:
        ConfigurationError: If a side names an unregistered contact type.
    """
    rules = [registry.get(name) for name in prototype.local_contacts]

    states: list[ModuleState] = []
    for turn, rotation in enumerate(ROTATIONS):
        contacts = {
            direction: rules[(turn + offset) % len(rules)]
            for offset, direction in enumerate(CLOCKWISE)
        }
        states.append(ModuleState(prototype, rotation, MappingProxyType(contacts)))
    return tuple(states)


class ModuleCatalog(Sequence[ModuleState]):
    """Ordered, immutable set of module states plus adjacency tables.

    Order is prototype order then rotation order, and is the order every
    cell's initial domain is copied in.
    """

    def __init__(self, states: Iterable[ModuleState]) -> None:
        self._states: tuple[ModuleState, ...] = tuple(states)
        self._index: dict[ModuleState, int] = {}
        for i, state in enumerate(self._states):
            if state in self._index:
                raise ConfigurationError(f"Module state {state} appears twice")
            self._index[state] = i

        self._compat = self._precompute_compatibility()

    def _precompute_compatibility(self) -> dict[Direction, np.ndarray]:
        """Build one (n, n) boolean table per direction.

        Rules are first numbered so the pairwise ``matches`` check runs once
        per distinct pair of contact rules instead of once per state pair.
        """
        rule_ids: dict[ContactRule, int] = {}
        per_direction: dict[Direction, np.ndarray] = {}
        for direction in Direction:
            ids = [
                rule_ids.setdefault(state.contacts[direction], len(rule_ids))
                for state in self._states
            ]
            per_direction[direction] = np.array(ids, dtype=np.intp)

        rules = list(rule_ids)
        rule_compat = np.array(
            [[matches(a, b) for b in rules] for a in rules], dtype=bool
        ).reshape(len(rules), len(rules))

        tables: dict[Direction, np.ndarray] = {}
        for direction in Direction:
            ours = per_direction[direction]
            theirs = per_direction[direction.opposite]
            table = rule_compat[np.ix_(ours, theirs)]
            table.setflags(write=False)
            tables[direction] = table
        return tables

    def compatibility(self, direction: Direction) -> np.ndarray:
        """Return the read-only table ``compat[i, j]`` for ``direction``."""
        return self._compat[direction]

    def index_of(self, state: ModuleState) -> int:
        return self._index[state]

    def indices_of(self, states: Sequence[ModuleState]) -> np.ndarray:
        return np.fromiter(
            (self._index[state] for state in states), dtype=np.intp, count=len(states)
        )

    @property
    def prototypes(self) -> tuple[ModulePrototype, ...]:
        return tuple(dict.fromkeys(state.prototype for state in self._states))

    @overload
    def __getitem__(self, index: int) -> ModuleState: ...

    @overload
    def __getitem__(self, index: slice) -> tuple[ModuleState, ...]: ...

    def __getitem__(
        self, index: int | slice
    ) -> ModuleState | tuple[ModuleState, ...]:
        return self._states[index]

    def __len__(self) -> int:
        return len(self._states)

    def __iter__(self) -> Iterator[ModuleState]:
        return iter(self._states)

    def __contains__(self, state: object) -> bool:
        return state in self._index

    def __repr__(self) -> str:
        return f"ModuleCatalog({len(self._states)} states)"


def build_catalog(
    prototypes: Iterable[ModulePrototype], registry: ContactRegistry
) -> ModuleCatalog:
    """Expand every prototype and concatenate the results in order.

    Raises:
        ConfigurationError: On an empty prototype list, a duplicate prototype
            name, or an unknown contact type.
    """
    prototypes = list(prototypes)
    if not prototypes:
        raise ConfigurationError("At least one module prototype is required")

    seen: set[str] = set()
    states: list[ModuleState] = []
    for prototype in prototypes:
        if prototype.name in seen:
            raise ConfigurationError(
                f"Module prototype '{prototype.name}' is defined twice"
            )
        seen.add(prototype.name)
        states.extend(expand(prototype, registry))

    catalog = ModuleCatalog(states)
    logger.debug(
        f"Built catalog: {len(prototypes)} prototypes -> {len(catalog)} states"
    )
    return catalog
