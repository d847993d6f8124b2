"""
Face Boundary Condition Descriptors.

A face BC is a tagged union over the BC kinds:

    - PlainBC:    extrapolation, reflective, periodic (no payload)
    - AdjacentBC: neighbor block id + cell index triple in the neighbor
    - InflowBC:   inflow type 1/2 + row of the inflow state table

Per-cell storage uses one numpy structured array per face direction
(FaceBCArray), with the kind tag selecting which fields are meaningful.
Kind 0 (UNSET) marks a face that no resolver has written.

Face Array Convention (axis normal to the face, N cells, ghosts g_lo/g_hi):
    - along the axis: faces -g_lo .. N+g_hi, face f between cells f and f+1
    - transverse:     cells 1-g_lo .. N+g_hi
"""

from dataclasses import dataclass
from enum import IntEnum
from typing import ClassVar, Optional, Sequence, Tuple, Union

import numpy as np

from ..errors import BoundaryCoverageError, UnknownBCError


class BCKind(IntEnum):
    """Boundary condition kinds; the name is the 3-character input token."""
    
    UNSET = 0
    EXT = 1    # extrapolation
    REF = 2    # reflective (inviscid wall, symmetry)
    PER = 3    # periodic
    ADJ = 4    # adjacent block
    IN1 = 5    # inflow type 1
    IN2 = 6    # inflow type 2


INFLOW_KINDS = (BCKind.IN1, BCKind.IN2)

# Tokens accepted in input files
BC_TOKENS = tuple(kind.name for kind in BCKind if kind != BCKind.UNSET)

BC_DTYPE = np.dtype([
    ('kind', np.int8),
    ('block', np.int32),
    ('index', np.int32, (3,)),
    ('inflow', np.int32),
])


@dataclass(frozen=True)
class PlainBC:
    """BC without payload."""
    
    kind: BCKind


@dataclass(frozen=True)
class AdjacentBC:
    """
    Connection to a neighboring block.
    
    In the block table `index` is an offset added to every neighbor index
    computed for the face; on a resolved face cell it is the neighbor's
    cell index triple (i, j, k).
    """
    
    block: int
    index: Tuple[int, int, int] = (0, 0, 0)
    kind: ClassVar[BCKind] = BCKind.ADJ


@dataclass(frozen=True)
class InflowBC:
    """Inflow BC referencing a row of the inflow state table."""
    
    kind: BCKind
    inflow: int


BoundaryCondition = Union[PlainBC, AdjacentBC, InflowBC]


def parse_bc_kind(token: str) -> BCKind:
    """Map an input token (e.g. 'ADJ') to its BCKind."""
    key = token.strip().upper()
    if key not in BC_TOKENS:
        raise UnknownBCError(
            f"unknown boundary condition '{token}', expected one of {', '.join(BC_TOKENS)}"
        )
    return BCKind[key]


def make_bc(kind: BCKind, payload: Sequence[int] = ()) -> BoundaryCondition:
    """
    Build a descriptor from a kind and its integer payload.
    
    ADJ takes (block[, di, dj, dk]); IN1/IN2 take (inflow,); other kinds
    ignore the payload.
    """
    if kind == BCKind.ADJ:
        if len(payload) < 1:
            raise UnknownBCError("adjacent boundary condition without target block")
        offset = tuple(int(v) for v in payload[1:4])
        offset = offset + (0,) * (3 - len(offset))
        return AdjacentBC(block=int(payload[0]), index=offset)
    if kind in INFLOW_KINDS:
        if len(payload) < 1:
            raise UnknownBCError(f"{kind.name} boundary condition without inflow index")
        return InflowBC(kind=kind, inflow=int(payload[0]))
    if kind == BCKind.UNSET:
        raise UnknownBCError("UNSET is not an assignable boundary condition")
    return PlainBC(kind=kind)


Range = Tuple[int, int]


class FaceBCArray:
    """
    BC descriptors of all faces normal to one axis of a block level.
    
    Indices are solver indices (ghost cells negative), translated to the
    zero-based storage through `origin`.
    """
    
    def __init__(self, axis: int, dims: Sequence[int], ghost: Sequence[int]):
        self.axis = axis
        lo, hi = [], []
        for a in range(3):
            g_lo, g_hi = ghost[2 * a], ghost[2 * a + 1]
            if a == axis:
                lo.append(-g_lo)
                hi.append(dims[a] + g_hi)
            else:
                lo.append(1 - g_lo)
                hi.append(dims[a] + g_hi)
        self.origin = tuple(lo)
        self.upper = tuple(hi)
        shape = tuple(h - l + 1 for l, h in zip(lo, hi))
        self.data = np.zeros(shape, dtype=BC_DTYPE)
    
    @classmethod
    def from_data(cls, axis: int, origin: Sequence[int], data: np.ndarray) -> 'FaceBCArray':
        """Wrap an existing structured array (e.g. reloaded from scratch)."""
        obj = cls.__new__(cls)
        obj.axis = axis
        obj.origin = tuple(int(o) for o in origin)
        obj.upper = tuple(o + n - 1 for o, n in zip(obj.origin, data.shape))
        obj.data = data
        return obj
    
    @property
    def shape(self) -> Tuple[int, int, int]:
        return self.data.shape
    
    def _slices(self, ranges: Sequence[Range]) -> Tuple[slice, slice, slice]:
        slices = []
        for a, (first, last) in enumerate(ranges):
            if first < self.origin[a] or last > self.upper[a]:
                raise IndexError(
                    f"window {first}..{last} outside face array bounds "
                    f"{self.origin[a]}..{self.upper[a]} on axis {a}"
                )
            slices.append(slice(first - self.origin[a], last - self.origin[a] + 1))
        return tuple(slices)
    
    def assign(self, ranges: Sequence[Range], bc: BoundaryCondition,
               index: Optional[np.ndarray] = None) -> int:
        """
        Write `bc` into every face of an inclusive index window.
        
        Parameters
        ----------
        ranges : 3 x (first, last)
            Inclusive solver-index window, axis order (i, j, k).
        bc : BoundaryCondition
            Descriptor to write.
        index : ndarray, shape window + (3,), optional
            Per-face neighbor cell indices for AdjacentBC; bc.index is
            broadcast when omitted.
            
        Returns
        -------
        int
            Number of faces written.
        """
        view = self.view(ranges)
        if view.size == 0:
            return 0
        if np.any(view['kind'] != BCKind.UNSET):
            raise BoundaryCoverageError(
                f"boundary faces {list(ranges)} normal to axis {'ijk'[self.axis]} assigned twice"
            )
        view['kind'] = int(bc.kind)
        if isinstance(bc, AdjacentBC):
            view['block'] = bc.block
            view['index'] = bc.index if index is None else index
        elif isinstance(bc, InflowBC):
            view['inflow'] = bc.inflow
        return view.size
    
    def view(self, ranges: Sequence[Range]) -> np.ndarray:
        """Structured records over a window (a view, not a copy)."""
        return self.data[self._slices(ranges)]
    
    def kinds(self, ranges: Sequence[Range]) -> np.ndarray:
        """Kind codes over a window."""
        return self.view(ranges)['kind']
    
    def __getitem__(self, ijk: Sequence[int]) -> Optional[BoundaryCondition]:
        i, j, k = (int(v) - o for v, o in zip(ijk, self.origin))
        if min(i, j, k) < 0:
            raise IndexError(f"face {tuple(ijk)} below face array origin {self.origin}")
        rec = self.data[i, j, k]
        kind = BCKind(int(rec['kind']))
        if kind == BCKind.UNSET:
            return None
        if kind == BCKind.ADJ:
            return AdjacentBC(block=int(rec['block']),
                              index=tuple(int(v) for v in rec['index']))
        if kind in INFLOW_KINDS:
            return InflowBC(kind=kind, inflow=int(rec['inflow']))
        return PlainBC(kind=kind)
