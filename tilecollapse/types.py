from __future__ import annotations

from typing import Literal, TypeAlias

# =============================================================================
# GRID TYPES
# =============================================================================

GridCoord: TypeAlias = int  # Always integer cell index

# Grid positions are (row, col). Direction vectors add to them component-wise.
GridPos: TypeAlias = tuple[GridCoord, GridCoord]  # Example: (2, 3) = row 2, col 3

# Flat cell index: row * cols + col. Used as the rollback cache key.
CellHandle: TypeAlias = int

UnitStep: TypeAlias = Literal[-1, 0, 1]
DirectionVector: TypeAlias = tuple[UnitStep, UnitStep]  # Example: (0, 1) = north

# =============================================================================
# MODULE TYPES
# =============================================================================

# Quarter-turn rotation in degrees, counter-clockwise seen from above.
Rotation: TypeAlias = Literal[0, 90, 180, 270]

# Local position of a placed module: (x, 0.0, z) in world units.
LocalPosition: TypeAlias = tuple[float, float, float]

# =============================================================================
# RANDOMNESS
# =============================================================================

RandomSeed = int | str | None
