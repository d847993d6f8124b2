"""
Exception hierarchy for mesh, boundary and initial condition generation.

Every detected problem is a configuration error: nothing is retried and
no partial output is valid after one is raised.
"""

from contextlib import contextmanager
from typing import Iterator, Optional


class MeshGenError(Exception):
    """Base class for all generator errors."""
    pass


class InputFormatError(MeshGenError):
    """Malformed or unknown content in an input file."""
    pass


class MissingFileError(InputFormatError, FileNotFoundError):
    """A required input or companion file does not exist."""

    def __init__(self, path, purpose: str = "input"):
        self.path = path
        self.purpose = purpose
        super().__init__(f"{purpose} file not found: {path}")


class OrientationError(InputFormatError):
    """Orientation token outside the 48-entry vocabulary."""
    pass


class UnknownBCError(InputFormatError):
    """Boundary condition token outside the BC vocabulary."""
    pass


class TopologyError(InputFormatError):
    """Inconsistent connectivity or boundary record."""
    pass


class CoarseningError(MeshGenError):
    """Cell count that cannot be halved for the requested multigrid level."""

    def __init__(self, block: int, level: int, axis: str, count: int):
        self.block = block
        self.level = level
        self.axis = axis
        self.count = count
        super().__init__(
            f"number of grid levels is not consistent with the number of cells: "
            f"impossible to compute grid level {level} of block {block}, "
            f"inconsistent direction {axis}, N{axis}={count} at level {level - 1}"
        )


class CrossReferenceError(MeshGenError):
    """Two inputs disagree (species count, adjacent block id, ...)."""
    pass


class BoundaryCoverageError(MeshGenError):
    """A boundary face cell left unassigned or assigned twice."""

    def __init__(self, message: str, block: Optional[int] = None,
                 level: Optional[int] = None):
        self.message = message
        self.block = block
        self.level = level
        where = []
        if block is not None:
            where.append(f"block {block}")
        if level is not None:
            where.append(f"level {level}")
        suffix = f" ({', '.join(where)})" if where else ""
        super().__init__(message + suffix)


# Errors raised while resolving one record, before its block and level are known
_LOCATED = (OrientationError, UnknownBCError, TopologyError, BoundaryCoverageError)


def locate(exc: MeshGenError, block: int, level: Optional[int] = None) -> MeshGenError:
    """Copy of a record error naming the block (and grid level) it was raised for."""
    if isinstance(exc, BoundaryCoverageError):
        return BoundaryCoverageError(exc.message, block=block, level=level)
    where = f"block {block}" if level is None else f"block {block} level {level}"
    return type(exc)(f"{where}: {exc}")


@contextmanager
def located(block: int, level: Optional[int] = None) -> Iterator[None]:
    """Re-raise record errors of the enclosed code with their block and level."""
    try:
        yield
    except _LOCATED as exc:
        raise locate(exc, block, level) from exc
