"""
Command line entry point.

Usage:
    mbgrid case.yaml
    mbgrid case.yaml --levels 3 --output-dir out --log-level DEBUG
    python -m mbgrid case.yaml
"""

import argparse
import sys
from typing import Optional, Sequence

import yaml
from loguru import logger

from .config import apply_cli_overrides, load_yaml
from .errors import MeshGenError
from .pipeline import MeshPipeline
from .utils.logging import setup_logging


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="mbgrid",
        description="Generate multiblock meshes, boundary conditions and initial conditions"
    )
    parser.add_argument("config", help="Path to YAML configuration file")
    parser.add_argument("--levels", "-l", type=int, default=None,
                        help="Number of multigrid levels (overrides grid.levels)")
    parser.add_argument("--input-dir", "-i", type=str, default=None,
                        help="Directory of the input files (overrides input.directory)")
    parser.add_argument("--output-dir", "-o", type=str, default=None,
                        help="Output directory (overrides output.directory)")
    parser.add_argument("--scratch-dir", type=str, default=None,
                        help="Directory for scratch files spilled to disk")
    parser.add_argument("--log-level", type=str, default=None,
                        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
                        help="Console logging level (overrides logging.level)")
    parser.add_argument("--log-file", type=str, default=None,
                        help="Also write a DEBUG log of the run to this file")
    return parser


def main(argv: Optional[Sequence[str]] = None) -> int:
    """Main entry point; returns the process exit status."""
    args = build_parser().parse_args(argv)
    try:
        config = apply_cli_overrides(load_yaml(args.config), args)
        setup_logging(config.logging.level, config.logging.show_time, config.logging.file)
        MeshPipeline(config).run()
    except (MeshGenError, yaml.YAMLError) as exc:
        logger.error(f"{type(exc).__name__}: {exc}")
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
