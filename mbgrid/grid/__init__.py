"""
Block descriptions and per-level working storage.

This module provides tools for:
- The block table (dimensions, ghost depths, BCs, initial state)
- Per-level node, face BC and state buffers of one block
- Multigrid level derivation and node generation
"""

from .blocks import (
    FlowState,
    BoundingBox,
    BlockDescriptor,
    BlockTable,
)

from .level import (
    GridLevel,
    BlockWork,
)

from .coarsening import (
    level_dimensions,
    build_levels,
    generate_cartesian_nodes,
    set_streamed_nodes,
    coarse_from_fine,
    extrapolate_ghost_nodes,
)

__all__ = [
    # Blocks
    'FlowState',
    'BoundingBox',
    'BlockDescriptor',
    'BlockTable',
    # Levels
    'GridLevel',
    'BlockWork',
    # Coarsening
    'level_dimensions',
    'build_levels',
    'generate_cartesian_nodes',
    'set_streamed_nodes',
    'coarse_from_fine',
    'extrapolate_ghost_nodes',
]
