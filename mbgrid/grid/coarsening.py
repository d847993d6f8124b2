"""
Multigrid Level Builder.

Derives the coarse levels of a block from level 1 by factor-2
agglomeration:

Coarsening Rules:
- Cell counts: N_L = N_{L-1} / 2 on every axis, exact (odd counts are fatal)
- Ghost depths: inherited unchanged
- Interior nodes: node_L(i, j, k) = node_{L-1}(2i, 2j, 2k)
- Ghost nodes: recomputed per level from the level's own interior
  (Cartesian blocks: level-1 spacing times 2^(L-1); streamed blocks:
  linear extrapolation of the boundary spacing)

Design: Numba kernels for the node loops, Python driver for the levels.
"""

from typing import List, Sequence, Tuple

import numpy as np
from numba import njit, prange

from ..constants import AXES, level_factor
from ..errors import CoarseningError
from .blocks import BlockDescriptor, BoundingBox
from .level import BlockWork, GridLevel


def level_dimensions(dims: Sequence[int], n_levels: int,
                     block_id: int) -> List[Tuple[int, int, int]]:
    """
    Cell counts of every multigrid level.
    
    Parameters
    ----------
    dims : (Ni, Nj, Nk)
        Level-1 cell counts.
    n_levels : int
        Number of multigrid levels Nl.
    block_id : int
        Block id, reported on failure.
        
    Returns
    -------
    list of (Ni, Nj, Nk)
        Entry L-1 holds the counts of level L.
        
    Raises
    ------
    CoarseningError
        If a count is odd at the level being halved.
    """
    levels = [tuple(int(n) for n in dims)]
    for level in range(2, n_levels + 1):
        prev = levels[-1]
        for axis, n in enumerate(prev):
            if n % 2 != 0:
                raise CoarseningError(block=block_id, level=level, axis=AXES[axis], count=n)
        levels.append(tuple(n // 2 for n in prev))
    return levels


@njit(cache=True, parallel=True)
def coarsen_nodes(nodes_f: np.ndarray, origin_f: Tuple[int, int, int],
                  nodes_c: np.ndarray, origin_c: Tuple[int, int, int],
                  dims_c: Tuple[int, int, int]) -> None:
    """
    Copy interior coarse nodes from every other fine node.
    
    Parameters
    ----------
    nodes_f : ndarray, shape (nI_f, nJ_f, nK_f, 3)
        Fine level nodes including ghosts.
    origin_f : (int, int, int)
        Solver index of nodes_f[0, 0, 0].
    nodes_c : ndarray, shape (nI_c, nJ_c, nK_c, 3)
        Coarse level nodes, interior overwritten in place.
    origin_c : (int, int, int)
        Solver index of nodes_c[0, 0, 0].
    dims_c : (int, int, int)
        Coarse cell counts.
    """
    for k in prange(dims_c[2] + 1):
        for j in range(dims_c[1] + 1):
            for i in range(dims_c[0] + 1):
                for c in range(3):
                    nodes_c[i - origin_c[0], j - origin_c[1], k - origin_c[2], c] = \
                        nodes_f[2 * i - origin_f[0], 2 * j - origin_f[1], 2 * k - origin_f[2], c]


@njit(cache=True, parallel=True)
def cartesian_nodes(lower: np.ndarray, spacing: np.ndarray, factor: int,
                    origin: Tuple[int, int, int], nodes: np.ndarray) -> None:
    """
    Fill a uniform Cartesian node array, ghosts included.
    
    Node (i, j, k) sits at lower + (i, j, k) * factor * spacing, with
    spacing the level-1 node spacing and factor = 2^(L-1).
    """
    nI, nJ, nK = nodes.shape[0], nodes.shape[1], nodes.shape[2]
    for a in prange(nI):
        i = (a + origin[0]) * factor
        for b in range(nJ):
            j = (b + origin[1]) * factor
            for c in range(nK):
                k = (c + origin[2]) * factor
                nodes[a, b, c, 0] = lower[0] + i * spacing[0]
                nodes[a, b, c, 1] = lower[1] + j * spacing[1]
                nodes[a, b, c, 2] = lower[2] + k * spacing[2]


def extrapolate_ghost_nodes(nodes: np.ndarray, origin: Sequence[int],
                            dims: Sequence[int]) -> None:
    """
    Fill ghost nodes by linear extrapolation of the boundary spacing.
    
    Axes are swept in order i, j, k over the full extent of the array, so
    edge and corner ghosts are extrapolated from ghosts of earlier sweeps.
    """
    for axis in range(3):
        view = np.moveaxis(nodes, axis, 0)
        lo = -origin[axis]
        hi = lo + dims[axis]
        for m in range(1, lo + 1):
            view[lo - m] = view[lo] + m * (view[lo] - view[lo + 1])
        for m in range(1, view.shape[0] - hi):
            view[hi + m] = view[hi] + m * (view[hi] - view[hi - 1])


def build_levels(desc: BlockDescriptor, n_levels: int,
                 nodes: bool = True, faces: bool = True) -> BlockWork:
    """
    Allocate the working buffer of a block over all multigrid levels.
    
    Raises CoarseningError before anything is allocated if a level cannot
    be derived.
    """
    dims = level_dimensions(desc.dims, n_levels, desc.block_id)
    work = BlockWork(block_id=desc.block_id)
    for level, level_dims in enumerate(dims, start=1):
        grid = GridLevel(block_id=desc.block_id, level=level,
                         dims=level_dims, ghost=desc.ghost)
        if nodes:
            grid.allocate_nodes()
        if faces:
            grid.allocate_faces()
        work.levels.append(grid)
    return work


def generate_cartesian_nodes(work: BlockWork, bbox: BoundingBox) -> None:
    """Nodes of every level of a direct-blocks Cartesian block."""
    fine = work.level(1)
    spacing = bbox.spacing(fine.dims)
    lower = np.ascontiguousarray(bbox.lower, dtype=np.float64)
    for grid in work:
        cartesian_nodes(lower, spacing, level_factor(grid.level),
                        grid.node_origin, grid.nodes)
        if grid.level > 1:
            coarse_from_fine(work.level(grid.level - 1), grid)


def set_streamed_nodes(work: BlockWork, interior: np.ndarray) -> None:
    """
    Nodes of every level from level-1 interior coordinates read from file.
    
    Parameters
    ----------
    interior : ndarray, shape (Ni+1, Nj+1, Nk+1, 3)
        Level-1 interior nodes.
    """
    fine = work.level(1)
    o = fine.node_origin
    n = interior.shape
    fine.nodes[-o[0]:-o[0] + n[0], -o[1]:-o[1] + n[1], -o[2]:-o[2] + n[2]] = interior
    extrapolate_ghost_nodes(fine.nodes, o, fine.dims)
    for grid in work.levels[1:]:
        coarse_from_fine(work.level(grid.level - 1), grid)
        extrapolate_ghost_nodes(grid.nodes, grid.node_origin, grid.dims)


def coarse_from_fine(fine: GridLevel, coarse: GridLevel) -> None:
    """Stride-2 copy of the interior nodes of one level into the next."""
    coarsen_nodes(fine.nodes, fine.node_origin, coarse.nodes,
                  coarse.node_origin, coarse.dims)
