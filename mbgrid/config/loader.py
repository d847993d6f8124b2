"""
YAML configuration loader with validation.
"""

import yaml
from pathlib import Path
from typing import Dict, Any, Union
from dataclasses import fields, is_dataclass

from ..errors import MissingFileError
from .schema import (
    RunConfig, InputConfig, GridConfig, OutputConfig, ScratchConfig, LoggingConfig,
)

_SECTIONS = {
    'input': InputConfig,
    'grid': GridConfig,
    'output': OutputConfig,
    'scratch': ScratchConfig,
    'logging': LoggingConfig,
}


def _coerce_type(value, field_type):
    """Coerce numeric strings (e.g. "3", "8e6") to the expected field type."""
    if field_type == int and isinstance(value, str):
        try:
            return int(float(value))
        except ValueError:
            return value
    if field_type == float and isinstance(value, str):
        try:
            return float(value)
        except ValueError:
            return value
    return value


def _dict_to_dataclass(cls, data: dict):
    """Convert a dictionary to a dataclass instance, skipping unknown keys."""
    if not is_dataclass(cls):
        return data
    
    field_types = {f.name: f.type for f in fields(cls)}
    kwargs = {}
    for key, value in data.items():
        if key not in field_types:
            continue
        kwargs[key] = _coerce_type(value, field_types[key])
    
    return cls(**kwargs)


def load_yaml(path: Union[str, Path]) -> RunConfig:
    """
    Load the generator configuration from a YAML file.
    
    Args:
        path: Path to YAML configuration file
        
    Returns:
        Validated RunConfig
        
    Raises:
        MissingFileError: If config file doesn't exist
        yaml.YAMLError: If YAML is invalid
    """
    path = Path(path)
    if not path.exists():
        raise MissingFileError(path, "configuration")
    
    with open(path) as f:
        data = yaml.safe_load(f)
    
    if data is None:
        data = {}
    
    return from_dict(data)


def from_dict(data: Dict[str, Any]) -> RunConfig:
    """
    Create a RunConfig from a dictionary.
    
    Missing sections and keys keep their defaults.
    """
    config_dict = {}
    for name, cls in _SECTIONS.items():
        section = data.get(name)
        if isinstance(section, dict):
            config_dict[name] = _dict_to_dataclass(cls, section)
    
    return RunConfig(**config_dict).validate()


def apply_cli_overrides(config: RunConfig, args) -> RunConfig:
    """
    Apply command-line argument overrides to a configuration.
    
    Only overrides values that were explicitly set (not None).
    
    Args:
        config: Base configuration
        args: argparse.Namespace with CLI arguments
        
    Returns:
        Updated RunConfig
    """
    config_dict = config.to_dict()
    
    cli_mapping = {
        'levels': ('grid', 'levels'),
        'input_dir': ('input', 'directory'),
        'output_dir': ('output', 'directory'),
        'scratch_dir': ('scratch', 'directory'),
        'log_level': ('logging', 'level'),
        'log_file': ('logging', 'file'),
    }
    
    for cli_name, config_path in cli_mapping.items():
        if hasattr(args, cli_name):
            value = getattr(args, cli_name)
            if value is not None:
                target = config_dict
                for key in config_path[:-1]:
                    target = target[key]
                target[config_path[-1]] = value
    
    return from_dict(config_dict)


def save_yaml(config: RunConfig, path: Union[str, Path]) -> None:
    """Save configuration to a YAML file."""
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    
    with open(path, 'w') as f:
        yaml.dump(config.to_dict(), f, default_flow_style=False, sort_keys=False)
