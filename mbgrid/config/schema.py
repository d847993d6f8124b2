"""
Configuration schema for the multiblock generator.

Dataclass-based configuration that can be loaded from YAML or constructed programmatically.
"""

from dataclasses import dataclass, field, asdict
from pathlib import Path
from typing import List, Optional

from ..errors import InputFormatError
from ..io.scratch import DEFAULT_SPOOL_BYTES

INPUT_TYPES = ('blocks', 'icemcfd')


@dataclass
class InputConfig:
    """Input files, resolved against `directory`."""
    
    directory: str = "."
    species_file: str = "species.dat"
    type: str = "blocks"            # "blocks" (direct description) or "icemcfd"
    blocks_file: str = "blocks.dat"
    icem_files: List[str] = field(default_factory=list)   # base names, .geo/.topo appended
    
    def path(self, name: str) -> Path:
        return Path(self.directory) / name


@dataclass
class GridConfig:
    """Multigrid settings."""
    
    levels: int = 1


@dataclass
class OutputConfig:
    """Output directory and file basenames."""
    
    directory: str = "output"
    mesh: str = "mesh"      # .geo files
    bc: str = "bc"          # .bco files
    init: str = "init"      # .itc files


@dataclass
class ScratchConfig:
    """Temporary per-block storage."""
    
    directory: Optional[str] = None   # system temp dir when unset
    spool_bytes: int = DEFAULT_SPOOL_BYTES


@dataclass
class LoggingConfig:
    level: str = "INFO"
    show_time: bool = True
    file: Optional[str] = None


@dataclass
class RunConfig:
    """Complete generator configuration."""
    
    input: InputConfig = field(default_factory=InputConfig)
    grid: GridConfig = field(default_factory=GridConfig)
    output: OutputConfig = field(default_factory=OutputConfig)
    scratch: ScratchConfig = field(default_factory=ScratchConfig)
    logging: LoggingConfig = field(default_factory=LoggingConfig)
    
    def validate(self) -> 'RunConfig':
        if self.input.type not in INPUT_TYPES:
            raise InputFormatError(
                f"unknown input type '{self.input.type}', expected one of {', '.join(INPUT_TYPES)}"
            )
        if not isinstance(self.grid.levels, int) or self.grid.levels < 1:
            raise InputFormatError(f"number of grid levels must be >= 1, got {self.grid.levels}")
        if self.input.type == 'icemcfd' and not self.input.icem_files:
            raise InputFormatError("icemcfd input needs at least one entry in input.icem_files")
        return self
    
    def to_dict(self) -> dict:
        """Convert to nested dictionary."""
        return asdict(self)
