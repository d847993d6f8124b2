"""
Boundary conditions of the direct blocks description.

Every face of a Cartesian block carries one BC from the blocks file.
Adjacent blocks are assumed to share the same axis orientation, so the
neighbor index only wraps the face-normal component:

    min side face f (f <= 0):  neighbor cell N'_L + f
    max side face f (f >= N):  neighbor cell f + 1 - N_L

Transverse components pass through. The offset triple read with the
adjacent BC is added unchanged at every level.
"""

from typing import Sequence, Tuple

import numpy as np
from loguru import logger

from ..constants import FACE_NAMES, face_axis, face_is_max
from ..errors import InputFormatError, located
from ..grid.blocks import BlockTable
from ..grid.coarsening import level_dimensions
from ..grid.level import BlockWork
from .descriptors import AdjacentBC

Range = Tuple[int, int]


def window_coordinates(window: Sequence[Range]) -> np.ndarray:
    """Solver indices of every face of a window, shape window + (3,)."""
    axes = [np.arange(first, last + 1, dtype=np.int32) for first, last in window]
    return np.stack(np.meshgrid(*axes, indexing='ij'), axis=-1)


def direct_adjacent_index(window: Sequence[Range], axis: int, is_max: bool,
                          n_local: int, n_neighbor: int,
                          offset: Sequence[int] = (0, 0, 0)) -> np.ndarray:
    """
    Neighbor cell indices of an adjacent face window.
    
    Parameters
    ----------
    window : 3 x (first, last)
        Face window from GridLevel.bc_window.
    axis : int
        Axis normal to the face.
    is_max : bool
        True for the +i/+j/+k face.
    n_local, n_neighbor : int
        Cell counts along `axis` of the block and its neighbor at this level.
    offset : (di, dj, dk)
        Constant offset added to every index.
        
    Returns
    -------
    ndarray, shape window + (3,)
    """
    index = window_coordinates(window)
    f = index[..., axis]
    index[..., axis] = f + 1 - n_local if is_max else n_neighbor + f
    index += np.asarray(offset, dtype=np.int32)
    return index


def resolve_direct_bcs(work: BlockWork, table: BlockTable) -> int:
    """
    Write the six face BCs of a direct-blocks block on every level.
    
    Returns
    -------
    int
        Number of face descriptors written.
    """
    desc = table[work.block_id]
    written = 0
    for grid in work:
        with located(desc.block_id, grid.level):
            for face in range(6):
                bc = desc.bcs[face]
                if bc is None:
                    raise InputFormatError(
                        f"block {desc.block_id} face {FACE_NAMES[face]} has no boundary condition"
                    )
                axis = face_axis(face)
                window = grid.bc_window(face)
                if isinstance(bc, AdjacentBC):
                    neighbor_dims = level_dimensions(table[bc.block].dims, grid.level, bc.block)[-1]
                    index = direct_adjacent_index(window, axis, face_is_max(face),
                                                  grid.dims[axis], neighbor_dims[axis], bc.index)
                    written += grid.faces[axis].assign(window, bc, index)
                else:
                    written += grid.faces[axis].assign(window, bc)
        logger.debug(f"  Block {desc.block_id} level {grid.level}: face BCs set")
    return written
