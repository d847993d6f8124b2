"""Species count of the gas model."""

from pathlib import Path
from typing import Union

from ..errors import InputFormatError, MissingFileError


def read_species_count(path: Union[str, Path]) -> int:
    """
    Number of species Ns, read from the first non-blank line.
    
    Raises
    ------
    MissingFileError
        If the file does not exist.
    InputFormatError
        If the line does not start with a positive integer.
    """
    path = Path(path)
    if not path.exists():
        raise MissingFileError(path, "species")
    with open(path, 'r') as f:
        for line in f:
            tokens = line.split()
            if not tokens:
                continue
            try:
                n_species = int(tokens[0])
            except ValueError:
                raise InputFormatError(
                    f"{path}: species count expected, got '{tokens[0]}'"
                ) from None
            if n_species < 1:
                raise InputFormatError(f"{path}: species count must be positive, got {n_species}")
            return n_species
    raise InputFormatError(f"{path}: no species count found")
