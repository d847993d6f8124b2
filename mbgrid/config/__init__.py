"""
Configuration module for the multiblock generator.

Provides YAML-based configuration with dataclass schema.
"""

from .schema import (
    RunConfig,
    InputConfig,
    GridConfig,
    OutputConfig,
    ScratchConfig,
    LoggingConfig,
    INPUT_TYPES,
)

from .loader import (
    load_yaml,
    from_dict,
    apply_cli_overrides,
    save_yaml,
)

__all__ = [
    # Schema classes
    'RunConfig',
    'InputConfig',
    'GridConfig',
    'OutputConfig',
    'ScratchConfig',
    'LoggingConfig',
    'INPUT_TYPES',
    # Loader functions
    'load_yaml',
    'from_dict',
    'apply_cli_overrides',
    'save_yaml',
]
