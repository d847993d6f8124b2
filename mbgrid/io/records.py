"""
Per-Block Output Records.

Every output file is a sequence of Fortran unformatted records: a 4-byte
byte count, the payload, the same byte count. All values are little
endian; arrays are written in Fortran order.

Record Layout:
    mesh  (.geo): [gc(6)] [Ni Nj Nk] [nodes: x, y, z per node, i fastest]
    bc    (.bco): [gc(6) Ni Nj Nk], then per face direction i, j, k:
                  [kind] [block] [index, 3 per face] [inflow]
    state (.itc): [gc(6) Ni Nj Nk nvar] [dt per cell] [state, nvar per cell]
"""

import struct
from pathlib import Path
from typing import BinaryIO, List, NamedTuple, Tuple, Union

import numpy as np

from ..bc.descriptors import BC_DTYPE, FaceBCArray
from ..errors import InputFormatError
from ..grid.level import GridLevel

PathLike = Union[str, Path]

INT = np.dtype('<i4')
REAL = np.dtype('<f8')


class MeshRecord(NamedTuple):
    """Contents of a mesh file."""
    
    ghost: Tuple[int, ...]
    dims: Tuple[int, int, int]
    nodes: np.ndarray       # (nI, nJ, nK, 3) including ghost nodes


class BCRecord(NamedTuple):
    """Contents of a BC file."""
    
    ghost: Tuple[int, ...]
    dims: Tuple[int, int, int]
    faces: List[FaceBCArray]


class StateRecord(NamedTuple):
    """Contents of an initial-state file."""
    
    ghost: Tuple[int, ...]
    dims: Tuple[int, int, int]
    dt: np.ndarray          # cell_shape
    state: np.ndarray       # cell_shape + (nvar,)


def output_name(basename: str, suffix: str, block: int, level: int) -> str:
    """File name of one block and level, e.g. 'mesh.b001.l01.geo'."""
    return f"{basename}.b{block:03d}.l{level:02d}{suffix}"


def _write_record(f: BinaryIO, payload: bytes) -> None:
    marker = struct.pack('<i', len(payload))
    f.write(marker)
    f.write(payload)
    f.write(marker)


def _read_record(f: BinaryIO) -> bytes:
    head = f.read(4)
    if len(head) != 4:
        raise InputFormatError(f"unexpected end of record file {getattr(f, 'name', '')}")
    size = struct.unpack('<i', head)[0]
    payload = f.read(size)
    tail = f.read(4)
    if len(payload) != size or len(tail) != 4 or struct.unpack('<i', tail)[0] != size:
        raise InputFormatError(f"corrupt record in {getattr(f, 'name', '')}")
    return payload


def _ints(*values) -> bytes:
    return np.asarray(values, dtype=INT).tobytes()


def _fortran(array: np.ndarray, dtype: np.dtype) -> bytes:
    return np.asarray(array, dtype=dtype).tobytes(order='F')


def _from_fortran(payload: bytes, dtype: np.dtype, shape: Tuple[int, ...]) -> np.ndarray:
    flat = np.frombuffer(payload, dtype=dtype)
    if flat.size != int(np.prod(shape)):
        raise InputFormatError(f"record holds {flat.size} values, expected shape {shape}")
    return flat.reshape(shape, order='F').astype(dtype.newbyteorder('='))


def _header(f: BinaryIO, n: int) -> Tuple[int, ...]:
    values = np.frombuffer(_read_record(f), dtype=INT)
    if values.size != n:
        raise InputFormatError(f"header record holds {values.size} integers, expected {n}")
    return tuple(int(v) for v in values)


# =============================================================================
# Mesh
# =============================================================================

def write_mesh(path: PathLike, grid: GridLevel) -> None:
    """Write the nodes of one block level, ghost nodes included."""
    with open(path, 'wb') as f:
        _write_record(f, _ints(*grid.ghost))
        _write_record(f, _ints(*grid.dims))
        # Component index fastest, then i, j, k
        _write_record(f, _fortran(np.moveaxis(grid.nodes, -1, 0), REAL))


def read_mesh(path: PathLike) -> MeshRecord:
    with open(path, 'rb') as f:
        ghost = _header(f, 6)
        dims = _header(f, 3)
        shape = tuple(dims[a] + 1 + ghost[2 * a] + ghost[2 * a + 1] for a in range(3))
        nodes = _from_fortran(_read_record(f), REAL, (3,) + shape)
    return MeshRecord(ghost=ghost, dims=dims, nodes=np.moveaxis(nodes, 0, -1))


# =============================================================================
# Boundary conditions
# =============================================================================

def write_bc(path: PathLike, grid: GridLevel) -> None:
    """Write the three face BC arrays of one block level."""
    with open(path, 'wb') as f:
        _write_record(f, _ints(*grid.ghost, *grid.dims))
        for face_array in grid.faces:
            data = face_array.data
            _write_record(f, _fortran(data['kind'], INT))
            _write_record(f, _fortran(data['block'], INT))
            _write_record(f, _fortran(np.moveaxis(data['index'], -1, 0), INT))
            _write_record(f, _fortran(data['inflow'], INT))


def read_bc(path: PathLike) -> BCRecord:
    with open(path, 'rb') as f:
        header = _header(f, 9)
        ghost, dims = header[:6], header[6:]
        faces = []
        for axis in range(3):
            face_array = FaceBCArray(axis, dims, ghost)
            shape = face_array.shape
            data = np.zeros(shape, dtype=BC_DTYPE)
            data['kind'] = _from_fortran(_read_record(f), INT, shape)
            data['block'] = _from_fortran(_read_record(f), INT, shape)
            data['index'] = np.moveaxis(_from_fortran(_read_record(f), INT, (3,) + shape), 0, -1)
            data['inflow'] = _from_fortran(_read_record(f), INT, shape)
            face_array.data = data
            faces.append(face_array)
    return BCRecord(ghost=ghost, dims=dims, faces=faces)


# =============================================================================
# Initial state
# =============================================================================

def write_state(path: PathLike, grid: GridLevel) -> None:
    """Write the timestep placeholder and the initial state of one block level."""
    nvar = grid.state.shape[0]
    with open(path, 'wb') as f:
        _write_record(f, _ints(*grid.ghost, *grid.dims, nvar))
        _write_record(f, _fortran(grid.dt, REAL))
        # Variable index fastest
        _write_record(f, _fortran(np.moveaxis(grid.state_field(), -1, 0), REAL))


def read_state(path: PathLike) -> StateRecord:
    with open(path, 'rb') as f:
        header = _header(f, 10)
        ghost, dims, nvar = header[:6], header[6:9], header[9]
        shape = tuple(dims[a] + ghost[2 * a] + ghost[2 * a + 1] for a in range(3))
        dt = _from_fortran(_read_record(f), REAL, shape)
        state = _from_fortran(_read_record(f), REAL, (nvar,) + shape)
    return StateRecord(ghost=ghost, dims=dims, dt=dt, state=np.moveaxis(state, 0, -1))
