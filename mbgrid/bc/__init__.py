"""
Face boundary conditions.

This module provides:
- The BC vocabulary and per-face descriptor storage
- The 48-entry orientation table for face-to-face connections

The resolvers live in mbgrid.bc.direct (direct blocks description) and
mbgrid.bc.connectivity (ICEM topology).
"""

from .descriptors import (
    BCKind,
    BC_TOKENS,
    BC_DTYPE,
    INFLOW_KINDS,
    PlainBC,
    AdjacentBC,
    InflowBC,
    BoundaryCondition,
    FaceBCArray,
    parse_bc_kind,
    make_bc,
)

from .orientation import (
    AxisMap,
    Orientation,
    ORIENTATIONS,
    N_ORIENTATIONS,
    decode_orientation,
    axis_pairs,
)

__all__ = [
    # Descriptors
    'BCKind',
    'BC_TOKENS',
    'BC_DTYPE',
    'INFLOW_KINDS',
    'PlainBC',
    'AdjacentBC',
    'InflowBC',
    'BoundaryCondition',
    'FaceBCArray',
    'parse_bc_kind',
    'make_bc',
    # Orientation
    'AxisMap',
    'Orientation',
    'ORIENTATIONS',
    'N_ORIENTATIONS',
    'decode_orientation',
    'axis_pairs',
]
