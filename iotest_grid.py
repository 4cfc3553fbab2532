"""
iotest_grid.py

Process grid mapping and partition planning.

Ranks are laid out row-major on a proc_rows x proc_cols grid. Each rank
owns one (rows x cols) block of every dataset:

  strong scaling: block = global extent / grid shape, file extent = global extent
  weak scaling:   block = global extent,              file extent = global extent * grid shape

In both modes the block of the rank at grid (r, c) starts at
(r * block_rows, c * block_cols).
"""
from dataclasses import dataclass

from iotest_config import SlowestDimension


@dataclass(frozen=True)
class GridCoord:
    row: int
    col: int


@dataclass(frozen=True)
class Selection:
    """Hyperslab: start offset and count along each dimension."""
    offset: tuple
    count: tuple

    def slices(self):
        return tuple(slice(o, o + n) for o, n in zip(self.offset, self.count))

    @property
    def size(self):
        n = 1
        for c in self.count:
            n *= c
        return n


def grid_coord(rank, proc_cols):
    return GridCoord(rank // proc_cols, rank % proc_cols)


def local_extent(config):
    if config.strong_scaling:
        return config.rows // config.proc_rows, config.cols // config.proc_cols
    return config.rows, config.cols


@dataclass(frozen=True)
class Partition:
    coord: GridCoord
    my_rows: int
    my_cols: int
    file_rows: int
    file_cols: int
    steps: int
    rank: int

    @property
    def row_offset(self):
        return self.coord.row * self.my_rows

    @property
    def col_offset(self):
        return self.coord.col * self.my_cols

    @property
    def file_shape(self):
        if self.rank == 3:
            return (self.steps, self.file_rows, self.file_cols)
        return (self.file_rows, self.file_cols)

    @property
    def memory_shape(self):
        if self.rank == 3:
            return (1, self.my_rows, self.my_cols)
        return (self.my_rows, self.my_cols)

    @property
    def chunk_shape(self):
        return self.memory_shape

    def memory_selection(self):
        return Selection((0,) * len(self.memory_shape), self.memory_shape)

    def file_selection(self, step=0):
        if self.rank == 3:
            return Selection((step, self.row_offset, self.col_offset), (1, self.my_rows, self.my_cols))
        return Selection((self.row_offset, self.col_offset), (self.my_rows, self.my_cols))


def plan(config, rank):
    """Partition owned by MPI rank `rank` under `config`."""
    coord = grid_coord(rank, config.proc_cols)
    my_rows, my_cols = local_extent(config)
    if config.strong_scaling:
        file_rows, file_cols = config.rows, config.cols
    else:
        file_rows, file_cols = config.rows * config.proc_rows, config.cols * config.proc_cols
    return Partition(coord, my_rows, my_cols, file_rows, file_cols, config.steps, config.rank)


def transfer_order(config):
    """(step, array) pairs in issue order; the slowest dimension varies in the outer loop."""
    if config.slowest_dimension is SlowestDimension.ARRAY:
        for array in range(config.arrays):
            for step in range(config.steps):
                yield step, array
    else:
        for step in range(config.steps):
            for array in range(config.arrays):
                yield step, array
