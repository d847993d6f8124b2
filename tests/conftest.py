"""
Shared pytest fixtures for the test suite.

Input decks (species file, direct blocks file, ICEM exports with their
companion files) are written into tmp_path so every test starts from a
clean directory.
"""

from pathlib import Path
from typing import List, Sequence

import numpy as np
import pytest

from mbgrid.config import from_dict


# =============================================================================
# Species and direct blocks decks
# =============================================================================

# [r_1, vx, vy, vz, p, d, g] for Ns = 1
STATE_1 = [1.0, 10.0, 0.0, 0.0, 1.0e5, 1.2, 1.4]
STATE_2 = [1.0, 0.0, 5.0, 0.0, 2.0e5, 2.4, 1.4]


def write_species(directory: Path, n_species: int = 1) -> Path:
    path = directory / "species.dat"
    path.write_text(f"\n{n_species}   number of species\n")
    return path


def blocks_file_text(blocks: Sequence[dict], n_species: int = 1) -> str:
    """Direct blocks description for a list of block dicts."""
    lines = ["multiblock test case", "two header lines", str(n_species), str(len(blocks))]
    for b, blk in enumerate(blocks, start=1):
        lines.append(f"block {b}")
        lines.append(" ".join(str(g) for g in blk['ghost']))
        lines.append(" ".join(str(n) for n in blk['dims']))
        lines.append(" ".join(repr(float(v)) for v in blk['lower']))
        lines.append(" ".join(repr(float(v)) for v in blk['upper']))
        lines.extend(blk['bcs'])
        lines.extend(repr(float(v)) for v in blk['state'])
    return "\n".join(lines) + "\n"


def two_blocks(dims=(4, 4, 2)) -> List[dict]:
    """Two boxes side by side along x, joined on block 1 +i / block 2 -i."""
    return [
        dict(ghost=(2, 2, 1, 1, 1, 0), dims=dims,
             lower=(0.0, 0.0, 0.0), upper=(1.0, 1.0, 0.5),
             bcs=['IN1 1', 'ADJ 2', 'REF', 'REF', 'PER', 'PER'], state=STATE_1),
        dict(ghost=(2, 2, 2, 2, 1, 1), dims=dims,
             lower=(1.0, 0.0, 0.0), upper=(2.0, 1.0, 0.5),
             bcs=['ADJ 1', 'EXT', 'REF', 'REF', 'PER', 'PER'], state=STATE_2),
    ]


def run_config(directory: Path, levels: int = 2, **input_section):
    data = {
        'input': dict(directory=str(directory), species_file="species.dat", **input_section),
        'grid': {'levels': levels},
        'output': {'directory': str(directory / "out")},
    }
    return from_dict(data)


@pytest.fixture
def direct_deck(tmp_path):
    """Directory holding species.dat and a two-block blocks.dat."""
    write_species(tmp_path)
    (tmp_path / "blocks.dat").write_text(blocks_file_text(two_blocks()))
    return tmp_path


@pytest.fixture
def direct_config(direct_deck):
    return run_config(direct_deck, levels=2, type='blocks', blocks_file="blocks.dat")


# =============================================================================
# ICEM CFD exports
# =============================================================================

def box_nodes(lower: Sequence[float], upper: Sequence[float],
              n_nodes: Sequence[int]) -> np.ndarray:
    """Uniform nodes of a box, shape (ni, nj, nk, 3)."""
    axes = [np.linspace(lo, hi, n) for lo, hi, n in zip(lower, upper, n_nodes)]
    return np.stack(np.meshgrid(*axes, indexing='ij'), axis=-1)


def geo_text(domains: Sequence[np.ndarray], first_id: int = 1) -> str:
    """ICEM geometry text, i fastest within each domain."""
    lines = []
    for n, nodes in enumerate(domains, start=first_id):
        ni, nj, nk = nodes.shape[:3]
        lines.append(f"domain.{n} {ni} {nj} {nk}")
        for k in range(nk):
            for j in range(nj):
                for i in range(ni):
                    x, y, z = nodes[i, j, k]
                    lines.append(f"{x:.10e} {y:.10e} {z:.10e}")
    return "\n".join(lines) + "\n"


ICEM_TOPO = (
    "# Connectivity for domain.1\n"
    "c12 domain.1 j k i\tf 5 1 1 5 5 5\n"
    "c12 domain.2 j k i\tf 1 1 1 1 5 5\n"
    "\n"
    "# Connectivity for domain.2\n"
    "c21 domain.2 j k i\tf 1 1 1 1 5 5\n"
    "c21 domain.1 j k i\tf 5 1 1 5 5 5\n"
    "\n"
    "# Boundary conditions and/or properties for domain.1\n"
    "inlet IN1 1\tf 1 1 1 1 5 5\n"
    "bottom REF\tf 1 1 1 5 1 5\n"
    "top REF\tf 1 5 1 5 5 5\n"
    "back PER\tf 1 1 1 5 5 1\n"
    "front PER\tf 1 1 5 5 5 5\n"
    "edge\te 1 1 1 5 1 1\n"
    "BLK1\tb\n"
    "\n"
    "# Boundary conditions and/or properties for domain.2\n"
    "outlet EXT\tf 5 1 1 5 5 5\n"
    "bottom REF\tf 1 1 1 5 1 5\n"
    "top REF\tf 1 5 1 5 5 5\n"
    "back PER\tf 1 1 1 5 5 1\n"
    "front PER\tf 1 1 5 5 5 5\n"
    "corner\tv 1 1 1\n"
)

ITC_1 = [1.0, 5.0, 0.0, 0.0, 1.0e5, 1.2, 1.4]


def icem_domains() -> List[np.ndarray]:
    return [
        box_nodes((0.0, 0.0, 0.0), (1.0, 1.0, 1.0), (5, 5, 5)),
        box_nodes((1.0, 0.0, 0.0), (2.0, 1.0, 1.0), (5, 5, 5)),
    ]


@pytest.fixture
def icem_deck(tmp_path):
    """Directory holding a two-domain ICEM export and its companion files."""
    write_species(tmp_path)
    (tmp_path / "part.geo").write_text(geo_text(icem_domains()))
    (tmp_path / "part.topo").write_text(ICEM_TOPO)
    (tmp_path / "BLK1.gc").write_text("2 2 2 2 1 1\n")
    (tmp_path / "BLK2.gc").write_text("1 1 1 1 1 1\n")
    (tmp_path / "BLK1.itc").write_text("\n".join(repr(v) for v in ITC_1) + "\n")
    return tmp_path


@pytest.fixture
def icem_config(icem_deck):
    return run_config(icem_deck, levels=2, type='icemcfd', icem_files=['part'])


# =============================================================================
# Factory fixtures
# =============================================================================

@pytest.fixture
def deck_states():
    """Initial states written by the decks: block 1, block 2, BLK1.itc."""
    return STATE_1, STATE_2, ITC_1


@pytest.fixture
def block_specs():
    """Factory of the two-block description, dims selectable."""
    return two_blocks


@pytest.fixture
def write_blocks(tmp_path):
    """Write species.dat and blocks.dat for a list of block dicts."""
    def _write(blocks, n_species: int = 1, file_species: int = None) -> Path:
        write_species(tmp_path, n_species)
        path = tmp_path / "blocks.dat"
        declared = n_species if file_species is None else file_species
        path.write_text(blocks_file_text(blocks, declared))
        return path
    return _write


@pytest.fixture
def write_geo(tmp_path):
    """Write an ICEM geometry file from a list of node arrays."""
    def _write(domains, name: str = "part", first_id: int = 1) -> Path:
        path = tmp_path / f"{name}.geo"
        path.write_text(geo_text(domains, first_id))
        return path
    return _write


@pytest.fixture
def make_box_nodes():
    return box_nodes


@pytest.fixture
def make_run_config():
    return run_config
