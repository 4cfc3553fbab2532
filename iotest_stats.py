"""
iotest_stats.py

Per-rank timings, their MIN/MAX reduction onto rank 0, and the derived
throughput rates.

Rates use the per-rank byte volume. The slowest rank (largest time) gives
the minimum rate and the fastest rank (smallest time) the maximum rate.
"""
import math
from dataclasses import astuple, dataclass

import numpy as np

ELEMENT_SIZE = np.dtype(np.float64).itemsize
MIB = 1024 * 1024


@dataclass
class TimingRecord:
    write_phase: float = 0.0
    create_time: float = 0.0
    write_time: float = 0.0
    read_phase: float = 0.0
    read_time: float = 0.0

    def as_array(self):
        return np.array(astuple(self), dtype=np.float64)

    @classmethod
    def from_array(cls, values):
        return cls(*(float(v) for v in values))


@dataclass(frozen=True)
class Rates:
    write_min: float
    write_max: float
    read_min: float
    read_max: float


@dataclass(frozen=True)
class Aggregated:
    min: TimingRecord
    max: TimingRecord
    byte_count: float
    wall_time: float = 0.0
    file_size: int = 0

    @property
    def rates(self):
        return rates(self.byte_count, self.min, self.max)


def byte_count(config, partition):
    """Bytes moved by one rank in one phase."""
    return float(config.steps) * config.arrays * partition.my_rows * partition.my_cols * ELEMENT_SIZE


def mib_rate(nbytes, seconds):
    if seconds <= 0.0:
        return math.inf
    return nbytes / (MIB * seconds)


def rates(nbytes, tmin, tmax):
    return Rates(
        write_min=mib_rate(nbytes, tmax.write_time),
        write_max=mib_rate(nbytes, tmin.write_time),
        read_min=mib_rate(nbytes, tmax.read_time),
        read_max=mib_rate(nbytes, tmin.read_time),
    )


def reduce_timings(comm, record, root=0):
    """MIN and MAX of every timing field over all ranks.

    Collective: every rank must call it. Returns (min, max) TimingRecords
    on `root` and None elsewhere.
    """
    values = record.as_array()
    lo = comm.reduce_min(values, root=root)
    hi = comm.reduce_max(values, root=root)
    if comm.rank != root:
        return None
    return TimingRecord.from_array(lo), TimingRecord.from_array(hi)
