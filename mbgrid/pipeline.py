"""
Staged Per-Block Pipeline.

Blocks are generated one at a time so that only one block's levels are
resident in memory:

    1. Stage:  build all levels of block b (nodes, face BCs, initial
               state), write them to scratch stores keyed by (kind, b, l),
               drop the working buffer, move to block b+1.
    2. Emit:   for every block and level, reload the staged arrays and
               write the final mesh, BC and initial-state records.

Direct blocks input stages each block in one step. ICEM input needs two
passes over the inputs: geometry is streamed first, then the topology is
spliced into per-block sections and the BCs and states are resolved.
Scratch stores live for one run and are released when it ends.
"""

from dataclasses import dataclass, field
from pathlib import Path
from typing import Callable, List, Optional, Sequence

from loguru import logger

from .bc.connectivity import BlockTopology, resolve_topology
from .bc.descriptors import FaceBCArray
from .bc.direct import resolve_direct_bcs
from .config.schema import RunConfig
from .constants import BC_SUFFIX, INIT_SUFFIX, MESH_SUFFIX
from .grid.blocks import BlockDescriptor, BlockTable, FlowState
from .grid.coarsening import build_levels, generate_cartesian_nodes, level_dimensions, set_streamed_nodes
from .grid.level import BlockWork, GridLevel
from .io.blocks_file import load_blocks_file
from .io.icem import (
    ghost_file_name, icem_paths, iter_domains, parse_block_topology, read_domain_dims,
    read_ghost_file, read_state_file, splice_topology,
)
from .io.records import output_name, write_bc, write_mesh, write_state
from .io.scratch import ScratchArena
from .io.species import read_species_count


@dataclass
class RunSummary:
    """What a run produced."""
    
    n_blocks: int
    n_levels: int
    outputs: List[Path] = field(default_factory=list)


def process_block(work: BlockWork, desc: BlockDescriptor, table: BlockTable,
                  topology: Optional[BlockTopology] = None,
                  state: Optional[FlowState] = None) -> BlockWork:
    """
    Resolve face BCs and impose the initial state on every level of a block.
    
    Parameters
    ----------
    work : BlockWork
        Working buffer of the block, face arrays allocated and empty.
    desc : BlockDescriptor
        The block's table entry. It is only read.
    table : BlockTable
        All blocks, for neighbor dimensions.
    topology : BlockTopology, optional
        ICEM connectivity of the block; the direct resolver is used when None.
    state : FlowState, optional
        Uniform initial state; the table entry's state when None.
        
    Returns
    -------
    BlockWork
        The same buffer, ready to be staged.
    """
    if topology is None:
        resolve_direct_bcs(work, table)
    else:
        resolve_topology(work, topology, table)
    vector = (desc.state if state is None else state).to_vector()
    for grid in work:
        grid.check_coverage()
        grid.set_state(vector)
    return work


def stage_block(work: BlockWork, arena: ScratchArena, nodes: bool = True,
                bcs: bool = True, state: bool = True) -> None:
    """Write the levels of a block to scratch and rewind the stores."""
    b = work.block_id
    for grid in work:
        if nodes:
            store = arena.store('mesh', b, grid.level)
            store.write_array(grid.nodes)
            store.rewind()
        if bcs:
            store = arena.store('bc', b, grid.level)
            for face_array in grid.faces:
                store.write_array(face_array.data)
            store.rewind()
        if state:
            store = arena.store('state', b, grid.level)
            store.write_array(grid.state)
            store.rewind()


def restore_level(arena: ScratchArena, desc: BlockDescriptor, level: int,
                  dims: Sequence[int]) -> GridLevel:
    """Reload one staged level and release its scratch stores."""
    b = desc.block_id
    grid = GridLevel(block_id=b, level=level, dims=tuple(dims), ghost=desc.ghost)
    grid.nodes = arena.store('mesh', b, level).read_array()
    
    store = arena.store('bc', b, level)
    faces = []
    for axis in range(3):
        face_array = FaceBCArray(axis, grid.dims, grid.ghost)
        face_array.data = store.read_array()
        faces.append(face_array)
    grid.faces = faces
    
    grid.set_state(arena.store('state', b, level).read_array())
    for kind in ('mesh', 'bc', 'state'):
        arena.release(kind, b, level)
    return grid


class MeshPipeline:
    """
    Generates the per-block, per-level mesh, BC and initial-state files.
    
    Example
    -------
    >>> summary = MeshPipeline(load_yaml("case.yaml")).run()
    """
    
    def __init__(self, config: RunConfig):
        self.config = config.validate()
    
    @property
    def n_levels(self) -> int:
        return self.config.grid.levels
    
    def run(self) -> RunSummary:
        cfg = self.config
        species_path = cfg.input.path(cfg.input.species_file)
        n_species = read_species_count(species_path)
        
        logger.info(f"{'='*60}")
        logger.info("Multiblock mesh generation")
        logger.info(f"{'='*60}")
        logger.info(f"Input type:     {cfg.input.type}")
        logger.info(f"Species file:   {species_path} (Ns = {n_species})")
        logger.info(f"Grid levels:    {self.n_levels}")
        
        output_dir = Path(cfg.output.directory)
        output_dir.mkdir(parents=True, exist_ok=True)
        
        with ScratchArena(cfg.scratch.spool_bytes, cfg.scratch.directory) as arena:
            if cfg.input.type == 'blocks':
                table = self._stage_direct(n_species, arena)
            else:
                table = self._stage_icem(n_species, arena)
            outputs = self._emit(table, arena, output_dir)
        
        logger.info(f"Blocks:         {len(table)}")
        logger.info(f"Output files:   {len(outputs)} in {output_dir}")
        for path in outputs:
            logger.debug(f"  {path}")
        return RunSummary(n_blocks=len(table), n_levels=self.n_levels, outputs=outputs)
    
    def _check_levels(self, table: BlockTable) -> None:
        """Fail on any block that cannot be coarsened before anything is generated."""
        for desc in table:
            level_dimensions(desc.dims, self.n_levels, desc.block_id)
    
    # =========================================================================
    # Direct blocks description
    # =========================================================================
    
    def _stage_direct(self, n_species: int, arena: ScratchArena) -> BlockTable:
        cfg = self.config.input
        blocks_path = cfg.path(cfg.blocks_file)
        logger.info(f"Blocks file:    {blocks_path}")
        table = load_blocks_file(blocks_path, n_species)
        self._check_levels(table)
        
        for desc in table:
            logger.info(f"Block {desc.block_id} of {len(table)}: "
                        f"{desc.Ni} x {desc.Nj} x {desc.Nk} cells")
            work = build_levels(desc, self.n_levels)
            generate_cartesian_nodes(work, desc.bbox)
            process_block(work, desc, table)
            stage_block(work, arena)
        return table
    
    # =========================================================================
    # ICEM CFD import
    # =========================================================================
    
    def _stage_icem(self, n_species: int, arena: ScratchArena) -> BlockTable:
        cfg = self.config.input
        directory = Path(cfg.directory)
        files = [icem_paths(directory, base) for base in cfg.icem_files]
        
        # Domain sizes and ghost depths
        table = BlockTable(n_species)
        counts = []
        for geo_path, _ in files:
            logger.info(f"ICEM geometry:  {geo_path}")
            domains = read_domain_dims(geo_path)
            counts.append(len(domains))
            for dims in domains:
                b = len(table) + 1
                ghost = read_ghost_file(directory / ghost_file_name(b))
                logger.info(f"  Block {b}: {dims[0]} x {dims[1]} x {dims[2]} cells, ghost cells {ghost}")
                table.add(BlockDescriptor(block_id=b, dims=dims, ghost=ghost,
                                          state=FlowState.zeros(n_species)))
        self._check_levels(table)
        
        # Nodes, one domain at a time
        logger.info("Reading mesh from icemcfd files")
        b = 0
        for geo_path, _ in files:
            for dims, interior in iter_domains(geo_path):
                b += 1
                logger.info(f"Block {b} of {len(table)}: mesh")
                work = build_levels(table[b], self.n_levels, faces=False)
                set_streamed_nodes(work, interior)
                stage_block(work, arena, bcs=False, state=False)
        
        # Topology, split into per-block sections with global ids
        logger.info("Reading boundary and initial conditions from icemcfd files")
        offset = 0
        for (_, topo_path), count in zip(files, counts):
            logger.info(f"ICEM topology:  {topo_path}")
            splice_topology(topo_path, offset, self._topology_sink(table, arena))
            offset += count
        
        for desc in table:
            store = arena.store('topology', desc.block_id)
            store.rewind()
            topology = parse_block_topology(store.read_lines(), desc.block_id)
            arena.release('topology', desc.block_id)
            
            state = desc.state
            for name in topology.state_files:
                state = read_state_file(directory / name, n_species)
                logger.info(f"  Block {desc.block_id}: initial state from {name}")
            if not topology.state_files:
                logger.warning(f"  Block {desc.block_id}: no initial state file, zero state imposed")
            
            logger.info(f"Block {desc.block_id} of {len(table)}: boundary and initial conditions")
            work = build_levels(desc, self.n_levels, nodes=False)
            process_block(work, desc, table, topology, state)
            stage_block(work, arena, nodes=False)
        return table
    
    @staticmethod
    def _topology_sink(table: BlockTable,
                       arena: ScratchArena) -> Callable[[int], Callable[[Sequence[str]], None]]:
        def sink(block: int):
            table[block]  # unknown ids raise CrossReferenceError
            return arena.store('topology', block).write_lines
        return sink
    
    # =========================================================================
    # Output
    # =========================================================================
    
    def _emit(self, table: BlockTable, arena: ScratchArena, output_dir: Path) -> List[Path]:
        out = self.config.output
        outputs = []
        for desc in table:
            dims = level_dimensions(desc.dims, self.n_levels, desc.block_id)
            for level, level_dims in enumerate(dims, start=1):
                grid = restore_level(arena, desc, level, level_dims)
                b = desc.block_id
                mesh_path = output_dir / output_name(out.mesh, MESH_SUFFIX, b, level)
                bc_path = output_dir / output_name(out.bc, BC_SUFFIX, b, level)
                init_path = output_dir / output_name(out.init, INIT_SUFFIX, b, level)
                write_mesh(mesh_path, grid)
                write_bc(bc_path, grid)
                write_state(init_path, grid)
                outputs.extend([mesh_path, bc_path, init_path])
            logger.info(f"Block {desc.block_id}: {len(dims)} levels written")
        return outputs


def run(config: RunConfig) -> RunSummary:
    """Generate all output files described by a configuration."""
    return MeshPipeline(config).run()
