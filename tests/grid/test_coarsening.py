"""
Tests for the multigrid level builder.

Tests cover:
1. Dimensions: N_L = N_{L-1} / 2, odd counts rejected with block/level/axis
2. Allocation: node, cell and face array shapes including ghosts
3. Cartesian nodes: analytic interior and ghosts at every level
4. Streamed nodes: interior copied, ghosts linearly extrapolated
5. Multi-level consistency: coarse interior node == fine node (2i, 2j, 2k)
"""

import numpy as np
import pytest

from mbgrid.errors import CoarseningError
from mbgrid.grid.blocks import BlockDescriptor, BoundingBox, FlowState
from mbgrid.grid.coarsening import (
    build_levels,
    extrapolate_ghost_nodes,
    generate_cartesian_nodes,
    level_dimensions,
    set_streamed_nodes,
)


def make_block(dims=(8, 4, 4), ghost=(2, 2, 1, 1, 1, 0), block_id=1):
    return BlockDescriptor(block_id=block_id, dims=dims, ghost=ghost,
                           state=FlowState.zeros(1),
                           bbox=BoundingBox(lower=np.array([0.0, -1.0, 2.0]),
                                            upper=np.array([4.0, 1.0, 3.0])))


def affine_nodes(desc, level, matrix, shift):
    """Nodes x = M @ (2^(L-1) * ijk) + b over the full ghost range of a level."""
    work = build_levels(desc, level, faces=False)
    grid = work.level(level)
    o = grid.node_origin
    idx = np.stack(np.meshgrid(*[np.arange(o[a], o[a] + grid.node_shape[a]) for a in range(3)],
                               indexing='ij'), axis=-1)
    return (idx * 2 ** (level - 1)) @ matrix.T + shift


class TestLevelDimensions:
    """Tests for cell-count halving."""
    
    def test_halving(self):
        """Each level halves every count."""
        assert level_dimensions((8, 4, 2), 2, 1) == [(8, 4, 2), (4, 2, 1)]
    
    def test_single_level(self):
        """One level accepts odd counts."""
        assert level_dimensions((3, 5, 7), 1, 1) == [(3, 5, 7)]
    
    def test_odd_count_rejected(self):
        """Odd count at the level being halved names block, level and axis."""
        with pytest.raises(CoarseningError) as info:
            level_dimensions((8, 6, 4), 3, block_id=5)
        err = info.value
        assert err.block == 5
        assert err.level == 3
        assert err.axis == 'j'
        assert err.count == 3
        assert "level 3" in str(err) and "block 5" in str(err)


class TestBuildLevels:
    """Tests for per-level buffer allocation."""
    
    def test_shapes(self):
        """Node and face arrays include the ghost layers of every level."""
        work = build_levels(make_block(), 2)
        assert work.n_levels == 2
        fine, coarse = work.level(1), work.level(2)
        assert fine.dims == (8, 4, 4)
        assert coarse.dims == (4, 2, 2)
        assert coarse.ghost == fine.ghost
        assert fine.nodes.shape == (8 + 1 + 4, 4 + 1 + 2, 4 + 1 + 1, 3)
        assert coarse.nodes.shape == (4 + 1 + 4, 2 + 1 + 2, 2 + 1 + 1, 3)
        # i faces: -2..10 along i, cells 0..5 along j, 0..4 along k
        assert fine.faces[0].shape == (13, 6, 5)
    
    def test_odd_counts_fail_before_allocation(self):
        with pytest.raises(CoarseningError):
            build_levels(make_block(dims=(8, 5, 4)), 2)
    
    def test_optional_buffers(self):
        work = build_levels(make_block(), 2, nodes=False)
        assert all(grid.nodes is None for grid in work)
        assert all(grid.faces is not None for grid in work)


class TestCartesianNodes:
    """Tests for nodes generated from a bounding box."""
    
    def test_interior_corners(self):
        desc = make_block()
        work = build_levels(desc, 3)
        generate_cartesian_nodes(work, desc.bbox)
        for grid in work:
            np.testing.assert_allclose(grid.node(0, 0, 0), desc.bbox.lower)
            np.testing.assert_allclose(grid.node(*grid.dims), desc.bbox.upper)
    
    def test_ghost_nodes_scale_with_level(self):
        """Ghost node spacing is the level-1 spacing times 2^(L-1)."""
        desc = make_block()
        work = build_levels(desc, 2)
        generate_cartesian_nodes(work, desc.bbox)
        spacing = desc.bbox.spacing(desc.dims)
        for grid in work:
            factor = 2 ** (grid.level - 1)
            expected = desc.bbox.lower - np.array([2, 1, 1]) * factor * spacing
            np.testing.assert_allclose(grid.node(-2, -1, -1), expected)
            ni, nj, nk = grid.dims
            expected = desc.bbox.upper + np.array([2, 1, 0]) * factor * spacing
            np.testing.assert_allclose(grid.node(ni + 2, nj + 1, nk), expected)
    
    def test_coarse_interior_is_fine_stride(self):
        """Coarse interior nodes equal every other fine node exactly."""
        desc = make_block()
        work = build_levels(desc, 3)
        generate_cartesian_nodes(work, desc.bbox)
        for fine, coarse in zip(work.levels[:-1], work.levels[1:]):
            ni, nj, nk = coarse.dims
            for i in range(ni + 1):
                for j in range(nj + 1):
                    for k in range(nk + 1):
                        np.testing.assert_array_equal(coarse.node(i, j, k),
                                                      fine.node(2 * i, 2 * j, 2 * k))


class TestStreamedNodes:
    """Tests for nodes read from a geometry stream."""
    
    @pytest.fixture
    def affine(self):
        matrix = np.array([[1.0, 0.2, 0.0],
                           [0.1, 0.5, 0.0],
                           [0.0, 0.3, 0.25]])
        shift = np.array([1.0, 2.0, -1.0])
        return matrix, shift
    
    def test_interior_copied(self, affine):
        desc = make_block()
        work = build_levels(desc, 1, faces=False)
        interior = np.random.default_rng(0).random((9, 5, 5, 3))
        set_streamed_nodes(work, interior)
        grid = work.level(1)
        for i, j, k in [(0, 0, 0), (8, 4, 4), (3, 2, 1)]:
            np.testing.assert_array_equal(grid.node(i, j, k), interior[i, j, k])
    
    def test_ghosts_reproduce_affine_mapping(self, affine):
        """Linear extrapolation is exact for an affine grid, corners included."""
        matrix, shift = affine
        desc = make_block()
        expected = [affine_nodes(desc, level, matrix, shift) for level in (1, 2)]
        work = build_levels(desc, 2, faces=False)
        g = desc.ghost
        interior = expected[0][g[0]:g[0] + 9, g[2]:g[2] + 5, g[4]:g[4] + 5]
        set_streamed_nodes(work, interior)
        for grid, nodes in zip(work, expected):
            np.testing.assert_allclose(grid.nodes, nodes, atol=1e-12)
    
    def test_extrapolation_from_boundary_spacing(self):
        """Ghost node m sits m boundary spacings beyond the face."""
        nodes = np.zeros((7, 1, 1, 3))
        origin = (-2, 0, 0)
        x = np.array([0.0, 1.0, 3.0, 6.0])
        nodes[2:6, 0, 0, 0] = x
        extrapolate_ghost_nodes(nodes, origin, (3, 0, 0))
        np.testing.assert_allclose(nodes[:, 0, 0, 0], [-2.0, -1.0, 0.0, 1.0, 3.0, 6.0, 9.0])
