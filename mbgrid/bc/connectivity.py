"""
Boundary conditions from an ICEM topology description.

A block's topology is a list of face-to-face connections and a list of
boundary patches. Both address a rectangular patch of a block face with
an index box of level-1 node indices (1-based, one axis constant at 1 or
N+1). Resolution runs per multigrid level:

Connection Mapping (level L, factor 2^(L-1)):
- Frame axis g pairs local axis A[g] with neighbor axis B[g]; the
  relative sign is the product of the two token signs
- In-face cell p of the local patch (p = 1 .. patch width):
    same sign:     neighbor cell m0' + p
    opposite sign: neighbor cell m1' + 1 - p
  where m0', m1' are the neighbor box node limits on B[g] divided by the
  level factor
- Normal: ghost layer m counts into the neighbor from its face, i.e.
  cell m on a min-side neighbor face and N'_L + 1 - m on a max-side one

Box limits must stay aligned with coarse nodes: a limit not divisible by
the level factor is a topology error.
"""

from dataclasses import dataclass, field
from typing import List, Optional, Sequence, Tuple

import numpy as np
from loguru import logger

from ..constants import AXES, face_index, level_factor
from ..errors import OrientationError, TopologyError, located
from ..grid.blocks import BlockTable
from ..grid.coarsening import level_dimensions
from ..grid.level import BlockWork, GridLevel, Range
from .descriptors import AdjacentBC, BoundaryCondition
from .direct import window_coordinates
from .orientation import Orientation, axis_pairs


@dataclass(frozen=True)
class IndexBox:
    """Inclusive box of level-1 node indices (1-based)."""
    
    lower: Tuple[int, int, int]
    upper: Tuple[int, int, int]
    
    @classmethod
    def from_values(cls, values: Sequence[int]) -> 'IndexBox':
        """Box from (i0, j0, k0, i1, j1, k1); limits may come in either order."""
        if len(values) != 6:
            raise TopologyError(f"index box needs 6 integers, got {list(values)}")
        a, b = values[:3], values[3:]
        return cls(lower=tuple(min(p, q) for p, q in zip(a, b)),
                   upper=tuple(max(p, q) for p, q in zip(a, b)))
    
    def constant_axes(self) -> List[int]:
        return [a for a in range(3) if self.lower[a] == self.upper[a]]
    
    def __str__(self) -> str:
        return f"{self.lower}-{self.upper}"


@dataclass(frozen=True)
class FacePatch:
    """One side of a connection: block, index box and orientation token."""
    
    block: int
    box: IndexBox
    orientation: Orientation


@dataclass(frozen=True)
class Connection:
    local: FacePatch
    neighbor: FacePatch


@dataclass(frozen=True)
class BoundaryPatch:
    """Non-adjacent BC applied to a patch of a block face."""
    
    box: IndexBox
    bc: BoundaryCondition
    label: str = ''


@dataclass
class BlockTopology:
    """Parsed topology section of one block."""
    
    block_id: int
    connections: List[Connection] = field(default_factory=list)
    boundaries: List[BoundaryPatch] = field(default_factory=list)
    state_files: List[str] = field(default_factory=list)


def patch_side(box: IndexBox, dims: Sequence[int], block_id: int,
               normal: Optional[int] = None) -> Tuple[int, bool]:
    """
    Face normal axis and side of an index box.
    
    Parameters
    ----------
    box : IndexBox
    dims : (Ni, Nj, Nk)
        Level-1 cell counts of the block owning the box.
    block_id : int
    normal : int, optional
        Normal axis announced by an orientation token.
        
    Returns
    -------
    (axis, is_max)
    """
    constant = box.constant_axes()
    if normal is None:
        if len(constant) != 1:
            raise TopologyError(
                f"index box {box} of block {block_id} does not describe a single block face"
            )
        normal = constant[0]
    elif normal not in constant:
        raise OrientationError(
            f"orientation normal {AXES[normal]} of block {block_id} is not constant "
            f"over index box {box}"
        )
    node = box.lower[normal]
    if node == 1:
        return normal, False
    if node == dims[normal] + 1:
        return normal, True
    raise TopologyError(
        f"index box {box} lies inside block {block_id} "
        f"({AXES[normal]} = {node}, face nodes are 1 and {dims[normal] + 1})"
    )


def patch_span(box: IndexBox, axis: int, level: int, block_id: int) -> Tuple[int, int]:
    """
    Zero-based node limits of a box along an in-face axis at one level.
    
    The patch covers cells m0+1 .. m1 of that level.
    """
    factor = level_factor(level)
    lo, hi = box.lower[axis] - 1, box.upper[axis] - 1
    if lo % factor or hi % factor:
        raise TopologyError(
            f"index box {box} of block {block_id} is not aligned with the nodes of "
            f"level {level} along {AXES[axis]}"
        )
    m0, m1 = lo // factor, hi // factor
    if m1 <= m0:
        raise TopologyError(
            f"index box {box} of block {block_id} has no cell along in-face axis {AXES[axis]}"
        )
    return m0, m1


def resolve_connection(grid: GridLevel, connection: Connection, table: BlockTable) -> int:
    """
    Write the adjacent BC of one connection on one level.
    
    Returns
    -------
    int
        Number of face descriptors written.
    """
    with located(grid.block_id, grid.level):
        normal, window, index = connection_window(grid, connection, table)
        bc = AdjacentBC(block=connection.neighbor.block)
        return grid.faces[normal].assign(window, bc, index)


def connection_window(grid: GridLevel, connection: Connection,
                      table: BlockTable) -> Tuple[int, Tuple[Range, Range, Range], np.ndarray]:
    """
    Face window of a connection on one level and its neighbor cell indices.
    
    Returns
    -------
    normal : int
        Local axis normal to the shared face.
    window : 3 x (first, last)
        Inclusive face-index window of the local face array.
    index : ndarray, shape window + (3,)
        Neighbor cell index triple of every face in the window.
    """
    local, neighbor = connection.local, connection.neighbor
    if local.block != grid.block_id:
        raise TopologyError(
            f"connection listed under block {grid.block_id} starts from block {local.block}"
        )
    dims1 = table[local.block].dims
    neighbor_dims1 = table[neighbor.block].dims
    neighbor_dims = level_dimensions(neighbor_dims1, grid.level, neighbor.block)[-1]
    
    pairs = axis_pairs(local.orientation, neighbor.orientation)
    normal, neighbor_normal, _ = pairs[2]
    is_max = patch_side(local.box, dims1, local.block, normal)[1]
    neighbor_max = patch_side(neighbor.box, neighbor_dims1, neighbor.block, neighbor_normal)[1]
    
    spans = {}
    transverse = {}
    for axis, neighbor_axis, sign in pairs[:2]:
        m0, m1 = patch_span(local.box, axis, grid.level, local.block)
        n0, n1 = patch_span(neighbor.box, neighbor_axis, grid.level, neighbor.block)
        if m1 - m0 != n1 - n0:
            raise TopologyError(
                f"connection of block {local.block} {local.box} to block {neighbor.block} "
                f"{neighbor.box}: patch widths differ along {AXES[axis]}/{AXES[neighbor_axis]}"
            )
        spans[axis] = (m0, n0, n1)
        transverse[axis] = (m0 + 1, m1)
    
    window = grid.bc_window(face_index(normal, is_max), transverse)
    coords = window_coordinates(window)
    index = np.empty_like(coords)
    for axis, neighbor_axis, sign in pairs[:2]:
        m0, n0, n1 = spans[axis]
        p = coords[..., axis] - m0
        index[..., neighbor_axis] = n0 + p if sign > 0 else n1 + 1 - p
    
    f = coords[..., normal]
    layer = f - grid.dims[normal] + 1 if is_max else 1 - f
    n_normal = neighbor_dims[neighbor_normal]
    index[..., neighbor_normal] = n_normal + 1 - layer if neighbor_max else layer
    return normal, window, index


def resolve_boundary(grid: GridLevel, patch: BoundaryPatch, table: BlockTable) -> int:
    """Write the BC of one boundary patch on one level."""
    dims1 = table[grid.block_id].dims
    with located(grid.block_id, grid.level):
        normal, is_max = patch_side(patch.box, dims1, grid.block_id)
        transverse = {}
        for axis in range(3):
            if axis != normal:
                m0, m1 = patch_span(patch.box, axis, grid.level, grid.block_id)
                transverse[axis] = (m0 + 1, m1)
        window = grid.bc_window(face_index(normal, is_max), transverse)
        return grid.faces[normal].assign(window, patch.bc)


def resolve_topology(work: BlockWork, topology: BlockTopology, table: BlockTable) -> int:
    """
    Resolve every connection and boundary patch of a block on all levels.
    
    Returns
    -------
    int
        Number of face descriptors written over all levels.
    """
    written = 0
    for grid in work:
        for connection in topology.connections:
            written += resolve_connection(grid, connection, table)
        for patch in topology.boundaries:
            written += resolve_boundary(grid, patch, table)
        logger.debug(
            f"  Block {work.block_id} level {grid.level}: {len(topology.connections)} connections, "
            f"{len(topology.boundaries)} boundary patches"
        )
    return written
