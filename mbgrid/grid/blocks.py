"""
Block Descriptor Table.

Static per-block metadata shared read-only by every pipeline stage:
cell counts, ghost depths, the six face BCs, the Cartesian bounding box
(direct blocks input) and the uniform initial flow state.
"""

from dataclasses import dataclass, field
from typing import Iterator, List, Optional, Sequence, Tuple

import numpy as np

from ..bc.descriptors import AdjacentBC, BoundaryCondition
from ..constants import FACE_NAMES, N_FACES, N_FLOW_VARS
from ..errors import CrossReferenceError, InputFormatError


@dataclass
class FlowState:
    """Primitive variables of a uniform initial state."""
    
    species: np.ndarray          # (Ns,) partial densities
    velocity: np.ndarray         # (3,) vx, vy, vz
    pressure: float = 0.0
    density: float = 0.0
    gamma: float = 0.0           # ratio of specific heats
    
    @classmethod
    def zeros(cls, n_species: int) -> 'FlowState':
        return cls(species=np.zeros(n_species), velocity=np.zeros(3))
    
    @classmethod
    def from_values(cls, values: Sequence[float], n_species: int) -> 'FlowState':
        """Build from [r_1..r_Ns, vx, vy, vz, p, d, g]."""
        values = np.asarray(values, dtype=np.float64)
        expected = n_species + N_FLOW_VARS
        if values.shape != (expected,):
            raise InputFormatError(
                f"initial state needs {expected} values (Ns={n_species}), got {values.size}"
            )
        return cls(
            species=values[:n_species].copy(),
            velocity=values[n_species:n_species + 3].copy(),
            pressure=float(values[n_species + 3]),
            density=float(values[n_species + 4]),
            gamma=float(values[n_species + 5]),
        )
    
    @property
    def n_species(self) -> int:
        return self.species.shape[0]
    
    @property
    def nvar(self) -> int:
        return self.n_species + N_FLOW_VARS
    
    def to_vector(self) -> np.ndarray:
        """Flatten to [r_1..r_Ns, vx, vy, vz, p, d, g]."""
        return np.concatenate([
            self.species, self.velocity,
            [self.pressure, self.density, self.gamma],
        ])


@dataclass
class BoundingBox:
    """Axis-aligned extent of a Cartesian block."""
    
    lower: np.ndarray   # (3,) xmin, ymin, zmin
    upper: np.ndarray   # (3,) xmax, ymax, zmax
    
    def spacing(self, dims: Sequence[int]) -> np.ndarray:
        """Level-1 node spacing (Di, Dj, Dk)."""
        return (self.upper - self.lower) / np.asarray(dims, dtype=np.float64)


@dataclass
class BlockDescriptor:
    """Static description of one block."""
    
    block_id: int
    dims: Tuple[int, int, int]
    ghost: Tuple[int, int, int, int, int, int]
    state: FlowState
    bcs: List[Optional[BoundaryCondition]] = field(
        default_factory=lambda: [None] * N_FACES
    )
    bbox: Optional[BoundingBox] = None
    
    def __post_init__(self):
        self.dims = tuple(int(n) for n in self.dims)
        self.ghost = tuple(int(g) for g in self.ghost)
        if len(self.dims) != 3 or min(self.dims) < 1:
            raise InputFormatError(
                f"block {self.block_id}: cell counts must be three positive integers, got {self.dims}"
            )
        if len(self.ghost) != N_FACES or min(self.ghost) < 0:
            raise InputFormatError(
                f"block {self.block_id}: ghost depths must be six non-negative integers, got {self.ghost}"
            )
    
    @property
    def Ni(self) -> int:
        return self.dims[0]
    
    @property
    def Nj(self) -> int:
        return self.dims[1]
    
    @property
    def Nk(self) -> int:
        return self.dims[2]


class BlockTable:
    """Ordered table of block descriptors addressed by 1-based block id."""
    
    def __init__(self, n_species: int, blocks: Optional[Sequence[BlockDescriptor]] = None):
        self.n_species = n_species
        self._blocks: List[BlockDescriptor] = []
        for desc in blocks or []:
            self.add(desc)
    
    def add(self, desc: BlockDescriptor) -> None:
        if desc.block_id != len(self._blocks) + 1:
            raise InputFormatError(
                f"block ids must be contiguous from 1: expected {len(self._blocks) + 1}, got {desc.block_id}"
            )
        if desc.state.n_species != self.n_species:
            raise CrossReferenceError(
                f"block {desc.block_id}: initial state has {desc.state.n_species} species, "
                f"species file has {self.n_species}"
            )
        self._blocks.append(desc)
    
    def __getitem__(self, block_id: int) -> BlockDescriptor:
        if not 1 <= block_id <= len(self._blocks):
            raise CrossReferenceError(
                f"block {block_id} is not defined (table holds {len(self._blocks)} blocks)"
            )
        return self._blocks[block_id - 1]
    
    def __len__(self) -> int:
        return len(self._blocks)
    
    def __iter__(self) -> Iterator[BlockDescriptor]:
        return iter(self._blocks)
    
    def validate_adjacency(self) -> None:
        """Check every adjacent face BC targets a defined block."""
        for desc in self._blocks:
            for face, bc in enumerate(desc.bcs):
                if isinstance(bc, AdjacentBC) and not 1 <= bc.block <= len(self._blocks):
                    raise CrossReferenceError(
                        f"block {desc.block_id} face {FACE_NAMES[face]} is adjacent to "
                        f"undefined block {bc.block}"
                    )
