"""
Tests for the ICEM CFD geometry and topology readers.
"""

import numpy as np
import pytest

from mbgrid.bc.descriptors import BCKind, InflowBC, PlainBC
from mbgrid.errors import (
    InputFormatError,
    MissingFileError,
    OrientationError,
    TopologyError,
    UnknownBCError,
)
from mbgrid.io.icem import (
    ghost_file_name,
    icem_paths,
    iter_domains,
    parse_block_topology,
    parse_boundary_record,
    parse_face_patch,
    read_domain_dims,
    read_ghost_file,
    read_state_file,
    renumber,
    splice_topology,
)


def collect_sections(topo_path, offset):
    """Run the splicer into a dict of per-block line lists."""
    sections = {}
    
    def sink(block):
        return sections.setdefault(block, []).extend
    
    count = splice_topology(topo_path, offset, sink)
    return count, sections


class TestGeometry:
    
    def test_domain_dims(self, write_geo, make_box_nodes):
        path = write_geo([make_box_nodes((0, 0, 0), (1, 1, 1), (5, 3, 2)),
                          make_box_nodes((1, 0, 0), (2, 1, 1), (3, 3, 3))])
        assert read_domain_dims(path) == [(4, 2, 1), (2, 2, 2)]
    
    def test_nodes_i_fastest(self, write_geo, make_box_nodes):
        nodes = make_box_nodes((0, 0, 0), (4, 2, 1), (5, 3, 2))
        nodes = nodes + 0.01 * np.random.default_rng(2).random(nodes.shape)
        path = write_geo([nodes, nodes + 10.0])
        domains = list(iter_domains(path))
        assert len(domains) == 2
        dims, interior = domains[0]
        assert dims == (4, 2, 1)
        np.testing.assert_allclose(interior, nodes, rtol=1e-9)
        np.testing.assert_allclose(domains[1][1], nodes + 10.0, rtol=1e-9)
    
    def test_truncated_domain(self, write_geo, make_box_nodes):
        path = write_geo([make_box_nodes((0, 0, 0), (1, 1, 1), (3, 3, 3))])
        lines = path.read_text().splitlines()
        path.write_text("\n".join(lines[:-2]) + "\n")
        with pytest.raises(InputFormatError):
            list(iter_domains(path))
    
    def test_bad_header(self, tmp_path):
        path = tmp_path / "part.geo"
        path.write_text("domain.1 5 x 5\n")
        with pytest.raises(InputFormatError):
            read_domain_dims(path)
    
    def test_missing(self, tmp_path):
        with pytest.raises(MissingFileError):
            read_domain_dims(tmp_path / "part.geo")
    
    def test_paths(self, tmp_path):
        geo, topo = icem_paths(tmp_path, "wing")
        assert geo == tmp_path / "wing.geo"
        assert topo == tmp_path / "wing.topo"


class TestCompanions:
    
    def test_ghost_file(self, tmp_path):
        assert ghost_file_name(12) == "BLK12.gc"
        path = tmp_path / "BLK1.gc"
        path.write_text("2 2\n1 1\n0 3\n")
        assert read_ghost_file(path) == (2, 2, 1, 1, 0, 3)
    
    def test_ghost_file_missing(self, tmp_path):
        with pytest.raises(MissingFileError, match="BLK4.gc"):
            read_ghost_file(tmp_path / ghost_file_name(4))
    
    def test_ghost_file_short(self, tmp_path):
        path = tmp_path / "BLK1.gc"
        path.write_text("2 2 1\n")
        with pytest.raises(InputFormatError):
            read_ghost_file(path)
    
    def test_state_file(self, tmp_path):
        path = tmp_path / "BLK1.itc"
        path.write_text("0.3\n0.7\n1.0\n0.0\n0.0\n1.0d5\n1.2\n1.4\n")
        state = read_state_file(path, n_species=2)
        np.testing.assert_array_equal(state.to_vector(), [0.3, 0.7, 1.0, 0.0, 0.0, 1e5, 1.2, 1.4])
    
    def test_state_file_short(self, tmp_path):
        path = tmp_path / "BLK1.itc"
        path.write_text("0.3\n1.0\n")
        with pytest.raises(InputFormatError):
            read_state_file(path, n_species=1)


class TestSplice:
    
    def test_sections_per_block(self, icem_deck):
        count, sections = collect_sections(icem_deck / "part.topo", offset=0)
        assert count == 4
        assert sorted(sections) == [1, 2]
        block_1 = sections[1]
        assert block_1[0] == "# Connectivity for domain.1"
        assert block_1[1] == "c12 domain.1 j k i\tf 5 1 1 5 5 5"
        # '\te' records are dropped, '\tb' records kept
        assert not any('\te' in line for line in block_1)
        assert "BLK1\tb" in block_1
    
    def test_renumbering(self, icem_deck):
        _, sections = collect_sections(icem_deck / "part.topo", offset=3)
        assert sorted(sections) == [4, 5]
        assert sections[4][0] == "# Connectivity for domain.4"
        assert sections[4][1] == "c12 domain.4 j k i\tf 5 1 1 5 5 5"
        assert sections[4][2] == "c12 domain.5 j k i\tf 1 1 1 1 5 5"
    
    def test_renumber(self):
        assert renumber("x domain.2-i j k\tf 1 1 1 1 1 1", 10) == "x domain.12-i j k\tf 1 1 1 1 1 1"
    
    def test_other_line_ends_section(self, tmp_path):
        path = tmp_path / "part.topo"
        path.write_text(
            "# Boundary conditions and/or properties for domain.1\n"
            "a EXT\tf 1 1 1 1 5 5\n"
            "# some comment\n"
            "b REF\tf 5 1 1 5 5 5\n"
        )
        _, sections = collect_sections(path, 0)
        assert sections[1] == [
            "# Boundary conditions and/or properties for domain.1",
            "a EXT\tf 1 1 1 1 5 5",
            "",
        ]
    
    def test_unpaired_connection(self, tmp_path):
        path = tmp_path / "part.topo"
        path.write_text("# Connectivity for domain.1\nc domain.1 j k i\tf 5 1 1 5 5 5\n")
        with pytest.raises(TopologyError):
            collect_sections(path, 0)


class TestRecords:
    
    def test_face_patch(self):
        side = parse_face_patch("c12 domain.7-k i-j\tf 1 1 1 5 1 3")
        assert side.block == 7
        assert side.orientation.token == '-k i-j'
        assert side.box.lower == (1, 1, 1)
        assert side.box.upper == (5, 1, 3)
    
    def test_face_patch_unknown_token(self):
        with pytest.raises(OrientationError):
            parse_face_patch("c12 domain.1 i i k\tf 1 1 1 5 5 1")
    
    def test_plain_boundary(self):
        record = parse_boundary_record("top wall REF\tf 1 5 1 5 5 5")
        assert record.bc == PlainBC(BCKind.REF)
        assert record.label == "top wall"
    
    def test_inflow_boundary(self):
        record = parse_boundary_record("inlet IN2 3\tf 1 1 1 1 5 5")
        assert record.bc == InflowBC(BCKind.IN2, 3)
    
    def test_unknown_boundary(self):
        with pytest.raises(UnknownBCError):
            parse_boundary_record("wall WALL\tf 1 1 1 1 5 5")
    
    def test_adjacent_boundary_rejected(self):
        with pytest.raises(TopologyError):
            parse_boundary_record("joint ADJ 2\tf 1 1 1 1 5 5")
    
    def test_bad_box(self):
        with pytest.raises(TopologyError):
            parse_boundary_record("inlet EXT\tf 1 1 one 1 5 5")


class TestBlockTopology:
    
    def test_parse(self, icem_deck):
        _, sections = collect_sections(icem_deck / "part.topo", offset=0)
        topology = parse_block_topology(sections[1], block_id=1)
        assert len(topology.connections) == 1
        conn = topology.connections[0]
        assert conn.local.block == 1 and conn.neighbor.block == 2
        assert [p.bc.kind for p in topology.boundaries] == [
            BCKind.IN1, BCKind.REF, BCKind.REF, BCKind.PER, BCKind.PER,
        ]
        assert topology.boundaries[0].bc == InflowBC(BCKind.IN1, 1)
        assert topology.state_files == ["BLK1.itc"]
        
        topology = parse_block_topology(sections[2], block_id=2)
        assert topology.connections[0].neighbor.block == 1
        assert topology.state_files == []
    
    def test_foreign_connection(self, icem_deck):
        _, sections = collect_sections(icem_deck / "part.topo", offset=0)
        with pytest.raises(TopologyError):
            parse_block_topology(sections[1], block_id=2)
    
    def test_empty(self):
        topology = parse_block_topology([], block_id=3)
        assert topology.connections == [] and topology.boundaries == []
    
    def test_record_errors_name_block(self):
        lines = [
            "# Connectivity for domain.3",
            "c domain.3 i i k\tf 1 1 1 5 5 1",
            "c domain.4 i j k\tf 1 1 5 5 5 5",
        ]
        with pytest.raises(OrientationError, match="^block 3: unknown orientation token"):
            parse_block_topology(lines, block_id=3)
        
        lines = [
            "# Boundary conditions and/or properties for domain.3",
            "wall WALL\tf 1 1 1 1 5 5",
        ]
        with pytest.raises(UnknownBCError, match="^block 3: no boundary condition"):
            parse_block_topology(lines, block_id=3)
