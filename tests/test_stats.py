import math

import numpy as np
import pytest

from conftest import FakeComm
from iotest_config import Configuration, Scaling
from iotest_grid import plan
from iotest_stats import MIB, Aggregated, TimingRecord, byte_count, mib_rate, rates, reduce_timings


def test_byte_count_uses_local_extent():
    strong = Configuration(steps=2, arrays=3, rows=20, cols=20, proc_rows=2, proc_cols=2, scaling=Scaling.STRONG)
    assert byte_count(strong, plan(strong, 0)) == 2 * 3 * 10 * 10 * 8


def test_byte_count_weak_scenario_c():
    weak = Configuration(steps=1, arrays=1, rows=10, cols=10, proc_rows=2, proc_cols=2, scaling=Scaling.WEAK)
    p = plan(weak, 3)
    assert p.file_shape == (20, 20)
    assert byte_count(weak, p) == 10 * 10 * 8


def test_min_rate_comes_from_max_time():
    nbytes = 4 * 5 * 100 * 200 * 8
    tmin = TimingRecord(write_time=1.0, read_time=0.5)
    tmax = TimingRecord(write_time=4.0, read_time=2.0)
    r = rates(nbytes, tmin, tmax)
    assert r.write_min == nbytes / (1024 * 1024 * 4.0)
    assert r.write_max == nbytes / (1024 * 1024 * 1.0)
    assert r.read_min == nbytes / (1024 * 1024 * 2.0)
    assert r.read_max == nbytes / (1024 * 1024 * 0.5)
    assert r.write_min <= r.write_max
    assert r.read_min <= r.read_max


def test_mib_rate():
    assert mib_rate(MIB, 1.0) == 1.0
    assert mib_rate(3 * MIB, 0.5) == 6.0
    assert mib_rate(MIB, 0.0) == math.inf


def test_reduce_on_root():
    comm = FakeComm(peers=[[3.0, 0.1, 2.0, 9.0, 1.0], [1.0, 0.3, 0.5, 4.0, 2.0]])
    record = TimingRecord(2.0, 0.2, 1.0, 5.0, 3.0)
    lo, hi = reduce_timings(comm, record)
    assert lo == TimingRecord(1.0, 0.1, 0.5, 4.0, 1.0)
    assert hi == TimingRecord(3.0, 0.3, 2.0, 9.0, 3.0)


def test_reduce_returns_none_off_root():
    assert reduce_timings(FakeComm(rank=1, size=2), TimingRecord()) is None


def test_reduced_min_not_above_max():
    rng = np.random.default_rng(7)
    peers = list(rng.random((6, 5)))
    lo, hi = reduce_timings(FakeComm(size=7, peers=peers), TimingRecord(*rng.random(5)))
    for a, b in zip(lo.as_array(), hi.as_array()):
        assert a <= b


def test_aggregated_rates():
    stats = Aggregated(min=TimingRecord(write_time=1.0, read_time=1.0),
                       max=TimingRecord(write_time=2.0, read_time=4.0),
                       byte_count=8 * MIB)
    assert stats.rates.write_min == pytest.approx(4.0)
    assert stats.rates.write_max == pytest.approx(8.0)
    assert stats.rates.read_min == pytest.approx(2.0)
