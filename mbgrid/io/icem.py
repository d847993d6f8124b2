"""
ICEM CFD multiblock import.

Geometry (<base>.geo):
    A header line containing 'domain' and the node counts of the domain,
    followed by one 'x y z' line per node, i fastest. Several domains
    follow each other in one file.

Topology (<base>.topo):
    '# Connectivity for domain.<id>' sections with pairs of face records
        <label> domain.<id><token>\\tf i0 j0 k0 i1 j1 k1
    (current block first, connected block second), and
    '# Boundary conditions and/or properties for domain.<id>' sections with
        <label> <KIND>[ <inflow>]\\tf i0 j0 k0 i1 j1 k1
        <label>\\tb ...          (label containing BLK: <label>.itc state file)
    '\\te' and '\\tv' records are skipped; any other line ends a section.

Domain ids are local to each file; blocks are numbered globally by
adding the domain count of all previous files.
"""

import re
from pathlib import Path
from typing import Callable, Iterator, List, Sequence, Tuple, Union

import numpy as np
from loguru import logger

from ..bc.connectivity import BlockTopology, BoundaryPatch, Connection, FacePatch, IndexBox
from ..bc.descriptors import BC_TOKENS, BCKind, make_bc
from ..bc.orientation import decode_orientation
from ..constants import GEO_SUFFIX, GHOST_SUFFIX, N_FACES, N_FLOW_VARS, TOPO_SUFFIX
from ..errors import InputFormatError, MissingFileError, TopologyError, UnknownBCError, located
from ..grid.blocks import FlowState

PathLike = Union[str, Path]

CONNECTIVITY_HEADER = '# Connectivity for domain.'
BOUNDARY_HEADER = '# Boundary conditions and/or properties for domain.'

FACE_RECORD = '\tf'
BLOCK_RECORD = '\tb'
SKIPPED_RECORDS = ('\te', '\tv')

_DOMAIN_RE = re.compile(r'domain\.(\d+)')


def _require(path: Path, purpose: str) -> Path:
    if not path.exists():
        raise MissingFileError(path, purpose)
    return path


# =============================================================================
# Geometry
# =============================================================================

def _parse_domain_header(line: str, path: Path) -> Tuple[int, int, int]:
    """Cell counts from a geometry header line (node counts minus one)."""
    tokens = line.split()
    try:
        counts = [int(t) for t in tokens[1:4]]
    except ValueError:
        counts = []
    if len(counts) != 3 or min(counts) < 2:
        raise InputFormatError(f"{path}: invalid domain header '{line.strip()}'")
    return tuple(n - 1 for n in counts)


def read_domain_dims(geo_path: PathLike) -> List[Tuple[int, int, int]]:
    """Cell counts of every domain of a geometry file, in file order."""
    geo_path = _require(Path(geo_path), "ICEM geometry")
    dims = []
    with open(geo_path, 'r') as f:
        for line in f:
            if 'domain' in line:
                dims.append(_parse_domain_header(line, geo_path))
    return dims


def iter_domains(geo_path: PathLike) -> Iterator[Tuple[Tuple[int, int, int], np.ndarray]]:
    """
    Stream the domains of a geometry file one at a time.
    
    Yields
    ------
    dims : (Ni, Nj, Nk)
    nodes : ndarray, shape (Ni+1, Nj+1, Nk+1, 3)
        Interior node coordinates.
    """
    geo_path = _require(Path(geo_path), "ICEM geometry")
    with open(geo_path, 'r') as f:
        for line in f:
            if 'domain' not in line:
                continue
            dims = _parse_domain_header(line, geo_path)
            n_nodes = (dims[0] + 1) * (dims[1] + 1) * (dims[2] + 1)
            coords = np.empty((n_nodes, 3), dtype=np.float64)
            for n in range(n_nodes):
                values = f.readline().split()
                if len(values) < 3:
                    raise InputFormatError(
                        f"{geo_path}: domain with {n_nodes} nodes ends after {n} coordinates"
                    )
                coords[n] = [float(v) for v in values[:3]]
            # File order is i fastest
            nodes = coords.reshape(dims[2] + 1, dims[1] + 1, dims[0] + 1, 3).transpose(2, 1, 0, 3)
            yield dims, np.ascontiguousarray(nodes)


# =============================================================================
# Companion files
# =============================================================================

def ghost_file_name(block_id: int) -> str:
    return f"BLK{block_id}{GHOST_SUFFIX}"


def read_ghost_file(path: PathLike) -> Tuple[int, ...]:
    """Six ghost-cell depths (-i, +i, -j, +j, -k, +k)."""
    path = _require(Path(path), "ghost cells")
    with open(path, 'r') as f:
        tokens = f.read().split()
    try:
        ghost = tuple(int(t) for t in tokens[:N_FACES])
    except ValueError:
        raise InputFormatError(f"{path}: ghost depths must be integers") from None
    if len(ghost) != N_FACES or min(ghost) < 0:
        raise InputFormatError(f"{path}: six non-negative ghost depths expected, got {ghost}")
    return ghost


def read_state_file(path: PathLike, n_species: int) -> FlowState:
    """Initial state: Ns species values, then vx, vy, vz, p, d, g."""
    path = _require(Path(path), "initial state")
    with open(path, 'r') as f:
        tokens = f.read().split()
    n_values = n_species + N_FLOW_VARS
    if len(tokens) < n_values:
        raise InputFormatError(f"{path}: {n_values} values expected, got {len(tokens)}")
    try:
        values = [float(t.replace('d', 'e').replace('D', 'E')) for t in tokens[:n_values]]
    except ValueError:
        raise InputFormatError(f"{path}: initial state values must be numbers") from None
    return FlowState.from_values(values, n_species)


# =============================================================================
# Topology splicing
# =============================================================================

def _record_type(line: str) -> str:
    for marker in (FACE_RECORD, BLOCK_RECORD) + SKIPPED_RECORDS:
        if marker in line:
            return marker
    return ''


def _section_block(line: str, header: str, offset: int) -> int:
    m = _DOMAIN_RE.search(line, line.index(header) + len(header) - len('domain.'))
    if m is None:
        raise TopologyError(f"section header without domain id: '{line.strip()}'")
    return int(m.group(1)) + offset


def renumber(line: str, offset: int) -> str:
    """Shift the first 'domain.<id>' of a record by a block offset."""
    return _DOMAIN_RE.sub(lambda m: f"domain.{int(m.group(1)) + offset}", line, count=1)


def splice_topology(topo_path: PathLike, offset: int,
                    sink: Callable[[int], Callable[[Sequence[str]], None]]) -> int:
    """
    Split a topology file into per-block sections with global block ids.
    
    Parameters
    ----------
    topo_path : str or Path
        Topology file of one ICEM export.
    offset : int
        Number of blocks in all previous files.
    sink : callable
        sink(block_id) returns a writer taking a list of lines.
        
    Returns
    -------
    int
        Number of sections copied.
    """
    topo_path = _require(Path(topo_path), "ICEM topology")
    with open(topo_path, 'r') as f:
        lines = f.read().splitlines()
    
    n_sections = 0
    pos = 0
    while pos < len(lines):
        line = lines[pos]
        pos += 1
        if CONNECTIVITY_HEADER in line:
            block = _section_block(line, CONNECTIVITY_HEADER, offset)
            out = [f"{CONNECTIVITY_HEADER}{block}"]
            while pos < len(lines):
                record = _record_type(lines[pos])
                if record == FACE_RECORD:
                    if pos + 1 >= len(lines):
                        raise TopologyError(
                            f"{topo_path}:{pos + 1}: connectivity record without connected face"
                        )
                    out.append(renumber(lines[pos], offset))
                    out.append(renumber(lines[pos + 1], offset))
                    pos += 2
                elif record:
                    pos += 1
                else:
                    break
        elif BOUNDARY_HEADER in line:
            block = _section_block(line, BOUNDARY_HEADER, offset)
            out = [f"{BOUNDARY_HEADER}{block}"]
            while pos < len(lines):
                record = _record_type(lines[pos])
                if record in (FACE_RECORD, BLOCK_RECORD):
                    out.append(lines[pos].rstrip())
                    pos += 1
                elif record:
                    pos += 1
                else:
                    break
        else:
            continue
        out.append('')
        sink(block)(out)
        n_sections += 1
    return n_sections


# =============================================================================
# Topology parsing
# =============================================================================

def _split_face_record(line: str) -> Tuple[str, IndexBox]:
    head, _, box = line.rpartition(FACE_RECORD)
    try:
        values = [int(v) for v in box.split()[:6]]
    except ValueError:
        raise TopologyError(f"invalid index box in record '{line.strip()}'") from None
    return head, IndexBox.from_values(values)


def parse_face_patch(line: str) -> FacePatch:
    """One side of a connectivity record."""
    head, box = _split_face_record(line)
    m = _DOMAIN_RE.search(head)
    if m is None:
        raise TopologyError(f"connectivity record without domain id: '{line.strip()}'")
    orientation = decode_orientation(head[m.end():])
    return FacePatch(block=int(m.group(1)), box=box, orientation=orientation)


def parse_boundary_record(line: str) -> BoundaryPatch:
    """
    Boundary-tag record: the first BC token before the box selects the
    kind; inflow kinds take their index from the text that follows it.
    """
    head, box = _split_face_record(line)
    tokens = head.split()
    for pos, token in enumerate(tokens):
        if token.upper() in BC_TOKENS:
            kind = BCKind[token.upper()]
            break
    else:
        raise UnknownBCError(
            f"no boundary condition among {', '.join(BC_TOKENS)} in record '{line.strip()}'"
        )
    if kind == BCKind.ADJ:
        raise TopologyError(
            f"adjacent faces must be given as connectivity records: '{line.strip()}'"
        )
    try:
        payload = [int(t) for t in tokens[pos + 1:pos + 2]]
    except ValueError:
        raise InputFormatError(f"invalid inflow index in record '{line.strip()}'") from None
    label = ' '.join(tokens[:pos])
    return BoundaryPatch(box=box, bc=make_bc(kind, payload), label=label)


def parse_block_topology(lines: Sequence[str], block_id: int) -> BlockTopology:
    """
    Parse the spliced topology sections of one block.
    
    Connectivity records must start from `block_id`; '\\tb' records whose
    label contains BLK name the block's initial-state file.
    """
    topology = BlockTopology(block_id=block_id)
    section = None
    pos = 0
    while pos < len(lines):
        line = lines[pos]
        pos += 1
        if CONNECTIVITY_HEADER in line:
            section = CONNECTIVITY_HEADER
            continue
        if BOUNDARY_HEADER in line:
            section = BOUNDARY_HEADER
            continue
        record = _record_type(line)
        if not record or section is None:
            section = None
            continue
        if section == CONNECTIVITY_HEADER and record == FACE_RECORD:
            if pos >= len(lines):
                raise TopologyError(f"block {block_id}: connectivity record without connected face")
            with located(block_id):
                local = parse_face_patch(line)
                neighbor = parse_face_patch(lines[pos])
            pos += 1
            if local.block != block_id:
                raise TopologyError(
                    f"connectivity record of domain.{local.block} found in section of block {block_id}"
                )
            topology.connections.append(Connection(local=local, neighbor=neighbor))
            logger.debug(
                f"  Block {block_id}: {local.box} '{local.orientation}' -> "
                f"block {neighbor.block} {neighbor.box} '{neighbor.orientation}'"
            )
        elif section == BOUNDARY_HEADER and record == FACE_RECORD:
            with located(block_id):
                topology.boundaries.append(parse_boundary_record(line))
        elif section == BOUNDARY_HEADER and record == BLOCK_RECORD:
            label = line.split('\t')[0].strip()
            if 'BLK' in label:
                topology.state_files.append(label + '.itc')
    return topology


def icem_paths(directory: PathLike, base: str) -> Tuple[Path, Path]:
    """Geometry and topology files of one ICEM export."""
    directory = Path(directory)
    return directory / f"{base}{GEO_SUFFIX}", directory / f"{base}{TOPO_SUFFIX}"
