"""
Multiblock structured mesh, boundary condition and initial condition generator.

Builds per-block, per-multigrid-level node coordinates, face boundary
conditions and uniform initial flow states for a block-structured
finite-volume solver, from either a direct description of Cartesian
blocks or an ICEM CFD multiblock export.
"""

from .utils.logging import setup_logging
from .errors import (
    MeshGenError,
    InputFormatError,
    MissingFileError,
    OrientationError,
    UnknownBCError,
    TopologyError,
    CoarseningError,
    CrossReferenceError,
    BoundaryCoverageError,
)
from .config import RunConfig, load_yaml
from .pipeline import MeshPipeline, RunSummary, process_block, run

__version__ = "0.1.0"

__all__ = [
    'setup_logging',
    'MeshGenError',
    'InputFormatError',
    'MissingFileError',
    'OrientationError',
    'UnknownBCError',
    'TopologyError',
    'CoarseningError',
    'CrossReferenceError',
    'BoundaryCoverageError',
    'RunConfig',
    'load_yaml',
    'MeshPipeline',
    'RunSummary',
    'process_block',
    'run',
]
