"""
Per-level working storage of the block currently being generated.

A GridLevel holds the node coordinates, the three face BC arrays and the
initial state of one block at one multigrid level. BlockWork groups the
levels of one block; it is owned by a single pipeline step at a time and
dropped once its contents are staged to scratch storage.

Index Convention (N cells along an axis, ghost depths g_lo/g_hi):
    - cells:  interior 1..N, ghosts 1-g_lo..0 and N+1..N+g_hi
    - nodes:  interior 0..N, ghosts -g_lo..-1 and N+1..N+g_hi
    - faces:  face f between cells f and f+1
"""

from dataclasses import dataclass, field
from typing import Dict, List, Optional, Sequence, Tuple

import numpy as np

from ..bc.descriptors import BCKind, FaceBCArray
from ..constants import FACE_NAMES, face_axis, face_is_max
from ..errors import BoundaryCoverageError

Range = Tuple[int, int]


@dataclass
class GridLevel:
    """One block at one multigrid level."""
    
    block_id: int
    level: int
    dims: Tuple[int, int, int]
    ghost: Tuple[int, int, int, int, int, int]
    nodes: Optional[np.ndarray] = None
    faces: Optional[List[FaceBCArray]] = None
    state: Optional[np.ndarray] = None      # (nvar,) uniform primitive vector
    dt: Optional[np.ndarray] = None         # per-cell timestep placeholder
    
    @property
    def Ni(self) -> int:
        return self.dims[0]
    
    @property
    def Nj(self) -> int:
        return self.dims[1]
    
    @property
    def Nk(self) -> int:
        return self.dims[2]
    
    @property
    def node_origin(self) -> Tuple[int, int, int]:
        g = self.ghost
        return (-g[0], -g[2], -g[4])
    
    @property
    def node_shape(self) -> Tuple[int, int, int]:
        g = self.ghost
        return tuple(self.dims[a] + 1 + g[2 * a] + g[2 * a + 1] for a in range(3))
    
    @property
    def cell_shape(self) -> Tuple[int, int, int]:
        g = self.ghost
        return tuple(self.dims[a] + g[2 * a] + g[2 * a + 1] for a in range(3))
    
    def allocate_nodes(self) -> np.ndarray:
        self.nodes = np.zeros(self.node_shape + (3,), dtype=np.float64)
        return self.nodes
    
    def allocate_faces(self) -> List[FaceBCArray]:
        self.faces = [FaceBCArray(a, self.dims, self.ghost) for a in range(3)]
        return self.faces
    
    def node(self, i: int, j: int, k: int) -> np.ndarray:
        """Coordinates of node (i, j, k) in solver indexing."""
        o = self.node_origin
        if min(i - o[0], j - o[1], k - o[2]) < 0:
            raise IndexError(f"node {(i, j, k)} outside ghost layers of block {self.block_id}")
        return self.nodes[i - o[0], j - o[1], k - o[2]]
    
    def set_state(self, state_vector: np.ndarray) -> None:
        """Impose a uniform initial state and reset the timestep placeholder."""
        self.state = np.asarray(state_vector, dtype=np.float64).copy()
        self.dt = np.zeros(self.cell_shape, dtype=np.float64)
    
    def state_field(self) -> np.ndarray:
        """Per-cell primitive field, shape cell_shape + (nvar,)."""
        return np.broadcast_to(self.state, self.cell_shape + self.state.shape)
    
    def bc_window(self, face: int,
                  transverse: Optional[Dict[int, Range]] = None) -> Tuple[Range, Range, Range]:
        """
        Inclusive face-index window receiving the BC of one block face.
        
        Along the normal the window holds max(ghost, 1) faces: 1-d..0 on
        the min side, N..N+d-1 on the max side. Transverse axes cover the
        interior cells unless overridden.
        """
        axis = face_axis(face)
        n = self.dims[axis]
        depth = max(self.ghost[face], 1)
        ranges = []
        for a in range(3):
            if a == axis:
                ranges.append((n, n + depth - 1) if face_is_max(face) else (1 - depth, 0))
            elif transverse is not None and a in transverse:
                ranges.append(transverse[a])
            else:
                ranges.append((1, self.dims[a]))
        return tuple(ranges)
    
    def unresolved(self) -> Dict[str, int]:
        """Number of boundary faces still UNSET, per block face."""
        missing = {}
        for face in range(6):
            kinds = self.faces[face_axis(face)].kinds(self.bc_window(face))
            count = int(np.count_nonzero(kinds == BCKind.UNSET))
            if count:
                missing[FACE_NAMES[face]] = count
        return missing
    
    def check_coverage(self) -> None:
        missing = self.unresolved()
        if missing:
            detail = ', '.join(f"{name}: {count}" for name, count in missing.items())
            raise BoundaryCoverageError(
                f"boundary faces without boundary condition ({detail})",
                block=self.block_id, level=self.level,
            )


@dataclass
class BlockWork:
    """Working buffer of one block over all multigrid levels."""
    
    block_id: int
    levels: List[GridLevel] = field(default_factory=list)
    
    @property
    def n_levels(self) -> int:
        return len(self.levels)
    
    def level(self, level: int) -> GridLevel:
        """Level by 1-based multigrid index."""
        return self.levels[level - 1]
    
    def __iter__(self):
        return iter(self.levels)
