"""
iotest_monitor.py

Process resource usage per phase, taken from psutil snapshots at the
phase boundaries (no sampling thread, so the timed phases stay
single-threaded). Per-rank deltas are MAX-reduced onto rank 0.

Dependencies:
    pip install psutil
"""
import contextlib
import os

import numpy as np
import psutil

COUNTERS = ("rss", "cpu_time", "read_bytes", "write_bytes")


class PhaseMonitor:
    def __init__(self, pid=None):
        self.proc = psutil.Process(pid or os.getpid())
        self.phases = {}

    def snapshot(self):
        cpu = self.proc.cpu_times()
        sample = {
            "rss": self.proc.memory_info().rss,
            "cpu_time": cpu.user + cpu.system,
            "read_bytes": 0,
            "write_bytes": 0,
        }
        # io_counters is not available on every platform
        if hasattr(self.proc, "io_counters"):
            io = self.proc.io_counters()
            sample["read_bytes"] = io.read_bytes
            sample["write_bytes"] = io.write_bytes
        return sample

    @contextlib.contextmanager
    def phase(self, name):
        before = self.snapshot()
        yield
        after = self.snapshot()
        self.phases[name] = {
            "rss": max(before["rss"], after["rss"]),
            "cpu_time": after["cpu_time"] - before["cpu_time"],
            "read_bytes": after["read_bytes"] - before["read_bytes"],
            "write_bytes": after["write_bytes"] - before["write_bytes"],
        }

    def as_array(self, names):
        return np.array([self.phases.get(n, {}).get(c, 0) for n in names for c in COUNTERS],
                        dtype=np.float64)


def reduce_usage(comm, monitor, names, root=0):
    """Largest value of each counter over all ranks, per phase. None on non-root ranks."""
    hi = comm.reduce_max(monitor.as_array(names), root=root)
    if comm.rank != root:
        return None
    hi = hi.reshape(len(names), len(COUNTERS))
    return {name: dict(zip(COUNTERS, (float(v) for v in row))) for name, row in zip(names, hi)}
