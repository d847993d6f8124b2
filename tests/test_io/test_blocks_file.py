"""
Tests for the direct blocks description and species readers.
"""

import numpy as np
import pytest

from mbgrid.bc.descriptors import AdjacentBC, BCKind, InflowBC, PlainBC
from mbgrid.errors import CrossReferenceError, InputFormatError, MissingFileError, UnknownBCError
from mbgrid.io.blocks_file import load_blocks_file
from mbgrid.io.species import read_species_count


class TestSpecies:
    
    def test_first_non_blank_line(self, tmp_path):
        path = tmp_path / "species.dat"
        path.write_text("\n\n  3  species\nN2 O2 NO\n")
        assert read_species_count(path) == 3
    
    def test_missing(self, tmp_path):
        with pytest.raises(MissingFileError):
            read_species_count(tmp_path / "species.dat")
    
    @pytest.mark.parametrize("text", ["", "\n\n", "three\n", "0\n"])
    def test_invalid(self, tmp_path, text):
        path = tmp_path / "species.dat"
        path.write_text(text)
        with pytest.raises(InputFormatError):
            read_species_count(path)


class TestBlocksFile:
    
    def test_two_blocks(self, write_blocks, block_specs, deck_states):
        table = load_blocks_file(write_blocks(block_specs()), n_species=1)
        assert len(table) == 2
        first, second = table[1], table[2]
        assert first.dims == (4, 4, 2)
        assert first.ghost == (2, 2, 1, 1, 1, 0)
        np.testing.assert_array_equal(first.bbox.lower, [0.0, 0.0, 0.0])
        np.testing.assert_array_equal(second.bbox.upper, [2.0, 1.0, 0.5])
        assert first.bcs[0] == InflowBC(BCKind.IN1, 1)
        assert first.bcs[1] == AdjacentBC(block=2)
        assert second.bcs[0] == AdjacentBC(block=1)
        assert second.bcs[1] == PlainBC(BCKind.EXT)
        state_1, state_2, _ = deck_states
        np.testing.assert_array_equal(first.state.to_vector(), state_1)
        np.testing.assert_array_equal(second.state.to_vector(), state_2)
    
    def test_adjacent_offset(self, write_blocks, block_specs):
        blocks = block_specs()
        blocks[0]['bcs'][1] = 'ADJ 2 0 1 -1'
        table = load_blocks_file(write_blocks(blocks), n_species=1)
        assert table[1].bcs[1] == AdjacentBC(block=2, index=(0, 1, -1))
    
    def test_fortran_exponent(self, write_blocks, block_specs):
        path = write_blocks(block_specs())
        text = path.read_text().replace("100000.0", "1.0d5")
        path.write_text(text)
        assert load_blocks_file(path, n_species=1)[1].state.pressure == 1.0e5
    
    def test_species_mismatch(self, write_blocks, block_specs):
        path = write_blocks(block_specs(), n_species=1, file_species=2)
        with pytest.raises(CrossReferenceError):
            load_blocks_file(path, n_species=1)
    
    def test_unknown_bc(self, write_blocks, block_specs):
        blocks = block_specs()
        blocks[1]['bcs'][2] = 'WAL'
        with pytest.raises(UnknownBCError):
            load_blocks_file(write_blocks(blocks), n_species=1)
    
    def test_adjacent_to_missing_block(self, write_blocks, block_specs):
        blocks = block_specs()
        blocks[1]['bcs'][0] = 'ADJ 9'
        with pytest.raises(CrossReferenceError):
            load_blocks_file(write_blocks(blocks), n_species=1)
    
    def test_truncated(self, write_blocks, block_specs):
        path = write_blocks(block_specs())
        lines = path.read_text().splitlines()
        path.write_text("\n".join(lines[:-3]) + "\n")
        with pytest.raises(InputFormatError, match="unexpected end"):
            load_blocks_file(path, n_species=1)
    
    def test_missing(self, tmp_path):
        with pytest.raises(MissingFileError):
            load_blocks_file(tmp_path / "blocks.dat", n_species=1)
