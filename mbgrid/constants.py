"""
Global constants for the multiblock mesh generator.

Face and axis conventions shared by the block table, the BC resolvers
and the record writers.
"""

# Logical axes of a structured block
AXES = ('i', 'j', 'k')
AXIS_INDEX = {'i': 0, 'j': 1, 'k': 2}

# Face order used for ghost depths and face BCs: (-i, +i, -j, +j, -k, +k)
N_FACES = 6
FACE_NAMES = ('-i', '+i', '-j', '+j', '-k', '+k')

# Primitive variables after the species concentrations: vx, vy, vz, p, d, g
N_FLOW_VARS = 6

# Output file suffixes
MESH_SUFFIX = '.geo'
BC_SUFFIX = '.bco'
INIT_SUFFIX = '.itc'

# ICEM input suffixes
GEO_SUFFIX = '.geo'
TOPO_SUFFIX = '.topo'
GHOST_SUFFIX = '.gc'


def face_axis(face: int) -> int:
    """Axis (0, 1, 2) normal to face 0..5."""
    return face // 2


def face_is_max(face: int) -> bool:
    """True for the +i, +j, +k faces."""
    return face % 2 == 1


def face_index(axis: int, is_max: bool) -> int:
    """Face number 0..5 for an axis and side."""
    return 2 * axis + (1 if is_max else 0)


def level_factor(level: int) -> int:
    """Coarsening factor 2^(L-1) of a 1-based multigrid level."""
    return 2 ** (level - 1)
