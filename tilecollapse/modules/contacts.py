"""Contact types and the directions they face.

A contact is the edge type on one side of a module ("road", "grass", ...).
Each contact type lists the types it refuses to connect to. Two edges can
touch only if neither side refuses the other, so the relation is checked
both ways rather than assumed symmetric.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable, Iterator
from dataclasses import dataclass, field
from enum import Enum

from tilecollapse.errors import ConfigurationError
from tilecollapse.types import DirectionVector, GridPos

logger = logging.getLogger(__name__)


class Direction(Enum):
    """Unit steps on the grid lattice, declared in clockwise order from north.

    A vector (a, b) moves grid position (row, col) to (row + a, col + b).
    """

    NORTH = (0, 1)
    EAST = (1, 0)
    SOUTH = (0, -1)
    WEST = (-1, 0)

    @property
    def vector(self) -> DirectionVector:
        return self.value

    @property
    def opposite(self) -> Direction:
        dx, dy = self.value
        return Direction((-dx, -dy))

    def step(self, position: GridPos) -> GridPos:
        """Return the position one step from ``position`` in this direction."""
        dx, dy = self.value
        return position[0] + dx, position[1] + dy

    @classmethod
    def between(cls, origin: GridPos, target: GridPos) -> Direction:
        """Return the direction pointing from ``origin`` to adjacent ``target``.

        Raises:
            ValueError: If the two positions are not orthogonal neighbors.
        """
        offset = (target[0] - origin[0], target[1] - origin[1])
        try:
            return cls(offset)
        except ValueError:
            raise ValueError(f"{origin} and {target} are not adjacent") from None


# Clockwise order used when rotating prototypes.
CLOCKWISE: tuple[Direction, ...] = tuple(Direction)


@dataclass(frozen=True)
class ContactRule:
    """A named contact type and the types it will not connect to.

    Attributes:
        contact_type: Name of this contact type.
        forbidden: Contact type names this type refuses to touch.
    """

    contact_type: str
    forbidden: frozenset[str] = field(default_factory=frozenset)

    def matches(self, other: ContactRule) -> bool:
        """Return True if this contact and ``other`` may share an edge."""
        return matches(self, other)


def matches(a: ContactRule, b: ContactRule) -> bool:
    """Return True iff neither contact forbids the other's type."""
    return b.contact_type not in a.forbidden and a.contact_type not in b.forbidden


class ContactRegistry:
    """Lookup table of contact rules by type name.

    Built once from configuration and read-only afterwards. The catalog
    builder resolves every prototype slot through ``get``, so an unknown
    name fails setup instead of producing a partial module state.
    """

    def __init__(self, rules: Iterable[ContactRule] = ()) -> None:
        self._rules: dict[str, ContactRule] = {}
        for rule in rules:
            self.register(rule)

    def register(self, rule: ContactRule) -> ContactRule:
        if rule.contact_type in self._rules:
            raise ConfigurationError(
                f"Contact type '{rule.contact_type}' is registered twice"
            )
        self._rules[rule.contact_type] = rule
        return rule

    def define(self, contact_type: str, forbidden: Iterable[str] = ()) -> ContactRule:
        """Create and register a rule in one call."""
        return self.register(ContactRule(contact_type, frozenset(forbidden)))

    def get(self, contact_type: str) -> ContactRule:
        """Return the rule for ``contact_type``.

        Raises:
            ConfigurationError: If no rule with that name is registered.
        """
        try:
            return self._rules[contact_type]
        except KeyError:
            raise ConfigurationError(
                f"Unknown contact type '{contact_type}'"
            ) from None

    def validate(self) -> None:
        """Log forbidden names that are not themselves registered."""
        for rule in self._rules.values():
            for name in sorted(rule.forbidden.difference(self._rules)):
                logger.warning(
                    f"Contact type '{rule.contact_type}' forbids unregistered "
                    f"type '{name}'"
                )

    def __contains__(self, contact_type: object) -> bool:
        return contact_type in self._rules

    def __iter__(self) -> Iterator[ContactRule]:
        return iter(self._rules.values())

    def __len__(self) -> int:
        return len(self._rules)
