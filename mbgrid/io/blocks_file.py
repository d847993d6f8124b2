"""
Direct Blocks Description Reader.

File layout (one value group per line):

    <title>
    <title>
    Ns
    Nb
    per block:
        <comment>
        g(-i) g(+i) g(-j) g(+j) g(-k) g(+k)
        Ni Nj Nk
        xmin ymin zmin
        xmax ymax zmax
        6 x  KIND [n [di dj dk]]      faces -i, +i, -j, +j, -k, +k
        Ns x species value
        vx, vy, vz, p, d, g           one per line
"""

from pathlib import Path
from typing import List, Union

import numpy as np
from loguru import logger

from ..bc.descriptors import make_bc, parse_bc_kind
from ..constants import FACE_NAMES, N_FACES, N_FLOW_VARS
from ..errors import CrossReferenceError, InputFormatError, MissingFileError
from ..grid.blocks import BlockDescriptor, BlockTable, BoundingBox, FlowState


class _LineReader:
    """Sequential reader over the lines of a text input file."""
    
    def __init__(self, path: Path):
        self.path = path
        with open(path, 'r') as f:
            self._lines = f.read().splitlines()
        self._pos = 0
    
    @property
    def line_number(self) -> int:
        return self._pos
    
    def next_line(self) -> str:
        if self._pos >= len(self._lines):
            raise InputFormatError(f"{self.path}: unexpected end of file after line {self._pos}")
        line = self._lines[self._pos]
        self._pos += 1
        return line
    
    def tokens(self) -> List[str]:
        return self.next_line().split()
    
    def _values(self, n: int, kind, what: str) -> list:
        tokens = self.tokens()
        if len(tokens) < n:
            raise InputFormatError(
                f"{self.path}:{self._pos}: expected {n} values for {what}, got {len(tokens)}"
            )
        try:
            return [kind(t) for t in tokens[:n]]
        except ValueError:
            raise InputFormatError(
                f"{self.path}:{self._pos}: invalid {what}: '{' '.join(tokens[:n])}'"
            ) from None
    
    def ints(self, n: int, what: str) -> List[int]:
        return self._values(n, int, what)
    
    def floats(self, n: int, what: str) -> List[float]:
        return self._values(n, lambda t: float(t.replace('d', 'e').replace('D', 'E')), what)


def load_blocks_file(path: Union[str, Path], n_species: int) -> BlockTable:
    """
    Read the direct blocks description.
    
    Parameters
    ----------
    path : str or Path
        Blocks file.
    n_species : int
        Species count from the species file; the file's own count must match.
        
    Returns
    -------
    BlockTable
        Blocks with bounding boxes, face BCs and uniform initial states.
    """
    path = Path(path)
    if not path.exists():
        raise MissingFileError(path, "blocks")
    reader = _LineReader(path)
    reader.next_line()
    reader.next_line()
    
    file_species = reader.ints(1, "species count")[0]
    if file_species != n_species:
        raise CrossReferenceError(
            f"{path}: {file_species} species declared, species file has {n_species}"
        )
    n_blocks = reader.ints(1, "block count")[0]
    if n_blocks < 1:
        raise InputFormatError(f"{path}: block count must be positive, got {n_blocks}")
    
    table = BlockTable(n_species)
    for block_id in range(1, n_blocks + 1):
        reader.next_line()
        ghost = reader.ints(N_FACES, f"ghost depths of block {block_id}")
        dims = reader.ints(3, f"cell counts of block {block_id}")
        lower = reader.floats(3, f"lower corner of block {block_id}")
        upper = reader.floats(3, f"upper corner of block {block_id}")
        
        bcs = []
        for face in range(N_FACES):
            tokens = reader.tokens()
            if not tokens:
                raise InputFormatError(
                    f"{path}:{reader.line_number}: missing BC of block {block_id} face {FACE_NAMES[face]}"
                )
            kind = parse_bc_kind(tokens[0])
            try:
                payload = [int(t) for t in tokens[1:5]]
            except ValueError:
                raise InputFormatError(
                    f"{path}:{reader.line_number}: invalid BC payload '{' '.join(tokens[1:])}'"
                ) from None
            bcs.append(make_bc(kind, payload))
        
        values = [reader.floats(1, f"initial state of block {block_id}")[0]
                  for _ in range(n_species + N_FLOW_VARS)]
        
        desc = BlockDescriptor(
            block_id=block_id,
            dims=tuple(dims),
            ghost=tuple(ghost),
            state=FlowState.from_values(values, n_species),
            bcs=bcs,
            bbox=BoundingBox(lower=np.array(lower), upper=np.array(upper)),
        )
        table.add(desc)
        logger.debug(f"  Block {block_id}: {dims[0]}x{dims[1]}x{dims[2]} cells, ghosts {ghost}")
    
    table.validate_adjacency()
    logger.info(f"Read {n_blocks} blocks from {path}")
    return table
