import time
from dataclasses import replace

import numpy as np
import pytest

from iotest_config import Configuration


class FakeComm:
    """Stand-in for iotest_comm.Coordinator in a single process.

    `peers` holds the arrays the other ranks would contribute to a reduction.
    """

    def __init__(self, rank=0, size=1, peers=None):
        self.rank = rank
        self.size = size
        self.peers = [np.asarray(p, dtype=np.float64) for p in (peers or [])]
        self.mpi_comm = None
        self.barriers = 0
        self.broadcasts = []

    def broadcast(self, obj, root=0):
        self.broadcasts.append(obj)
        return obj

    def barrier(self):
        self.barriers += 1

    def _gather(self, values):
        return np.vstack([np.asarray(values, dtype=np.float64)] + self.peers)

    def reduce_min(self, values, root=0):
        if self.rank != root:
            return None
        return self._gather(values).min(axis=0)

    def reduce_max(self, values, root=0):
        if self.rank != root:
            return None
        return self._gather(values).max(axis=0)

    def wtime(self):
        return time.perf_counter()

    def abort(self, code=1):
        raise SystemExit(code)


@pytest.fixture
def comm():
    return FakeComm()


@pytest.fixture
def small_config(tmp_path):
    """1x1 grid, 2 steps x 3 arrays of 10x10, files under tmp_path."""
    return Configuration(
        steps=2, arrays=3, rows=10, cols=10,
        hdf5_file=str(tmp_path / "iotest.h5"),
        csv_file=str(tmp_path / "iotest.csv"),
    )


@pytest.fixture
def make_config(small_config):
    def make(**kw):
        return replace(small_config, **kw)
    return make
