"""
Input readers, scratch storage and output records.
"""

from .species import read_species_count

from .blocks_file import load_blocks_file

from .icem import (
    read_domain_dims,
    iter_domains,
    read_ghost_file,
    read_state_file,
    ghost_file_name,
    splice_topology,
    parse_block_topology,
    parse_face_patch,
    parse_boundary_record,
    icem_paths,
)

from .scratch import (
    ScratchStore,
    ScratchArena,
    DEFAULT_SPOOL_BYTES,
)

from .records import (
    MeshRecord,
    BCRecord,
    StateRecord,
    output_name,
    write_mesh,
    read_mesh,
    write_bc,
    read_bc,
    write_state,
    read_state,
)

__all__ = [
    'read_species_count',
    'load_blocks_file',
    # ICEM
    'read_domain_dims',
    'iter_domains',
    'read_ghost_file',
    'read_state_file',
    'ghost_file_name',
    'splice_topology',
    'parse_block_topology',
    'parse_face_patch',
    'parse_boundary_record',
    'icem_paths',
    # Scratch
    'ScratchStore',
    'ScratchArena',
    'DEFAULT_SPOOL_BYTES',
    # Records
    'MeshRecord',
    'BCRecord',
    'StateRecord',
    'output_name',
    'write_mesh',
    'read_mesh',
    'write_bc',
    'read_bc',
    'write_state',
    'read_state',
]
