"""
iotest_comm.py

Thin wrapper around an mpi4py communicator exposing only the calls the
tester needs. Engines take any object with the same methods, so they can
run against a stand-in communicator.
"""
import numpy as np
from mpi4py import MPI


class Coordinator:
    def __init__(self, comm=None):
        self.comm = comm if comm is not None else MPI.COMM_WORLD
        self.rank = self.comm.rank
        self.size = self.comm.size

    @property
    def mpi_comm(self):
        """Communicator handed to the h5py mpio driver."""
        return self.comm

    def broadcast(self, obj, root=0):
        return self.comm.bcast(obj, root=root)

    def barrier(self):
        self.comm.Barrier()

    def _reduce(self, values, op, root):
        send = np.ascontiguousarray(values, dtype=np.float64)
        recv = np.zeros_like(send) if self.rank == root else None
        self.comm.Reduce(send, recv, op=op, root=root)
        return recv

    def reduce_min(self, values, root=0):
        """Element-wise minimum over all ranks; None on non-root ranks."""
        return self._reduce(values, MPI.MIN, root)

    def reduce_max(self, values, root=0):
        """Element-wise maximum over all ranks; None on non-root ranks."""
        return self._reduce(values, MPI.MAX, root)

    def wtime(self):
        return MPI.Wtime()

    def abort(self, code=1):
        self.comm.Abort(code)
