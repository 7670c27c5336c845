"""
Configuration constants.

Centralizes the default values used by the solver, the module-set loader
and the placement boundary.
"""

from tilecollapse.types import RandomSeed

# =============================================================================
# GENERAL
# =============================================================================

# RANDOM_SEED = None
RANDOM_SEED: RandomSeed = "tilecollapse"

# =============================================================================
# GRID
# =============================================================================

# Used when a module-set document omits the grid section.
DEFAULT_GRID_ROWS = 5
DEFAULT_GRID_COLS = 5

# Length of one side of a square cell in world units.
DEFAULT_CELL_SIZE = 1.0

# =============================================================================
# SOLVER
# =============================================================================

# RNG stream used to draw untried candidates at a pivot.
SOLVER_RNG_DOMAIN = "solver.candidates"

# Maximum number of pivot decisions per run. None = unlimited.
DEFAULT_MAX_DECISIONS: int | None = None
