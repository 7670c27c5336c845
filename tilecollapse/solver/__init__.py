"""Grid model and propagation engine.

- Grid / Cell: the cells, their candidate domains and rollback caches
- PropagationEngine: selection, propagation and rollback over one grid
- solve: one-call helper that raises UnsolvableError on failure
"""

from .engine import PropagationEngine, SolverPhase, SolveResult, solve
from .grid import Cell, Grid

__all__ = [
    "Cell",
    "Grid",
    "PropagationEngine",
    "SolverPhase",
    "SolveResult",
    "solve",
]
