"""Wave Function Collapse for rotated modules on a rectangular grid.

Typical flow:

    module_set = load_module_set("modules.json")
    engine = PropagationEngine(module_set.create_grid(), random.Random(7))
    result = engine.run()
    materialize(result, placer, module_set.cell_size)
"""

from .errors import (
    ConfigurationError,
    InvariantViolationError,
    TileCollapseError,
    UnsolvableError,
)
from .modules import (
    ContactRegistry,
    ContactRule,
    Direction,
    ModuleCatalog,
    ModulePrototype,
    ModuleSet,
    ModuleState,
    build_catalog,
    load_module_set,
    parse_module_set,
)
from .placement import ModulePlacer, Placement, iter_placements, materialize
from .solver import Cell, Grid, PropagationEngine, SolveResult, SolverPhase, solve

__version__ = "0.1.0"

__all__ = [
    "Cell",
    "ConfigurationError",
    "ContactRegistry",
    "ContactRule",
    "Direction",
    "Grid",
    "InvariantViolationError",
    "ModuleCatalog",
    "ModulePlacer",
    "ModulePrototype",
    "ModuleSet",
    "ModuleState",
    "Placement",
    "PropagationEngine",
    "SolveResult",
    "SolverPhase",
    "TileCollapseError",
    "UnsolvableError",
    "build_catalog",
    "iter_placements",
    "load_module_set",
    "materialize",
    "parse_module_set",
    "solve",
]
