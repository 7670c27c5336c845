"""Contact rules, module prototypes and the module state catalog.

- ContactRule / ContactRegistry: named edge types and what they refuse
- ModulePrototype / ModuleState: templates and their four rotations
- ModuleCatalog / build_catalog: ordered states with adjacency tables
- ModuleSet / load_module_set: module sets read from plain data or JSON
"""

from .catalog import (
    ROTATIONS,
    ModuleCatalog,
    ModulePrototype,
    ModuleState,
    build_catalog,
    expand,
)
from .contacts import CLOCKWISE, ContactRegistry, ContactRule, Direction, matches
from .loader import ModuleSet, load_module_set, parse_module_set

__all__ = [
    "CLOCKWISE",
    "ROTATIONS",
    "ContactRegistry",
    "ContactRule",
    "Direction",
    "ModuleCatalog",
    "ModulePrototype",
    "ModuleSet",
    "ModuleState",
    "build_catalog",
    "expand",
    "load_module_set",
    "matches",
    "parse_module_set",
]
