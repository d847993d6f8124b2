"""
Relative orientation of two connected block faces.

An orientation token has three (sign, axis-letter) groups, e.g. ' i j k',
'-j i-k'. Group g states which local axis, with which sign, runs along
axis g of the shared face frame; group 3 is the axis normal to the face.
Both sides of a connection carry their own token, so pairing group g of
the two tokens gives the local-to-neighbor axis map.

The vocabulary is the 48 signed permutations of (i, j, k), enumerated
once into a lookup table keyed by ((sign, axis), (sign, axis), (sign, axis)),
and indexed a second time by token text with whitespace removed.
"""

import itertools
from dataclasses import dataclass
from types import MappingProxyType
from typing import Iterator, List, Mapping, Tuple

from ..constants import AXES
from ..errors import OrientationError


@dataclass(frozen=True)
class AxisMap:
    """One token group: a local axis and its sign in the face frame."""
    
    axis: int
    sign: int
    
    @property
    def letter(self) -> str:
        return AXES[self.axis]
    
    def __str__(self) -> str:
        return ('-' if self.sign < 0 else ' ') + self.letter


@dataclass(frozen=True)
class Orientation:
    """Signed axis permutation decoded from an orientation token."""
    
    maps: Tuple[AxisMap, AxisMap, AxisMap]
    
    @property
    def token(self) -> str:
        """Canonical 6-character token, e.g. ' i j k'."""
        return ''.join(str(m) for m in self.maps)
    
    @property
    def normal(self) -> AxisMap:
        """Local axis normal to the shared face."""
        return self.maps[2]
    
    @property
    def in_face(self) -> Tuple[AxisMap, AxisMap]:
        return self.maps[0], self.maps[1]
    
    def __str__(self) -> str:
        return self.token


OrientationKey = Tuple[Tuple[int, int], Tuple[int, int], Tuple[int, int]]


def _build_table() -> Mapping[OrientationKey, Orientation]:
    table = {}
    for perm in itertools.permutations(range(3)):
        for signs in itertools.product((-1, 1), repeat=3):
            key = tuple(zip(signs, perm))
            table[key] = Orientation(
                maps=tuple(AxisMap(axis=a, sign=s) for s, a in key)
            )
    return MappingProxyType(table)


ORIENTATIONS = _build_table()
N_ORIENTATIONS = len(ORIENTATIONS)  # 48


def _spellings(orientation: Orientation) -> Iterator[str]:
    """Whitespace-free spellings of a token; '+' is optional on positive groups."""
    choices = [('-',) if m.sign < 0 else ('', '+') for m in orientation.maps]
    for signs in itertools.product(*choices):
        yield ''.join(s + m.letter for s, m in zip(signs, orientation.maps))


# Compact token text -> table entry
TOKENS: Mapping[str, Orientation] = MappingProxyType({
    spelling: orientation
    for orientation in ORIENTATIONS.values()
    for spelling in _spellings(orientation)
})


def decode_orientation(token: str) -> Orientation:
    """
    Decode an orientation token.
    
    Parameters
    ----------
    token : str
        Token text such as ' i j k' or '-k-i j'; whitespace between
        groups is not significant.
        
    Returns
    -------
    Orientation
        Entry of the 48-orientation table.
        
    Raises
    ------
    OrientationError
        If the token is not a signed permutation of (i, j, k).
    """
    try:
        return TOKENS[''.join(token.split())]
    except KeyError:
        raise OrientationError(f"unknown orientation token '{token}'") from None


def axis_pairs(local: Orientation, neighbor: Orientation) -> List[Tuple[int, int, int]]:
    """
    Pair local and neighbor axes through the shared face frame.
    
    Returns
    -------
    list of (local_axis, neighbor_axis, relative_sign)
        One entry per frame axis; the last entry is the face normal.
    """
    return [
        (lm.axis, nm.axis, lm.sign * nm.sign)
        for lm, nm in zip(local.maps, neighbor.maps)
    ]
