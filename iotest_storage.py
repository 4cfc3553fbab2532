"""
iotest_storage.py

h5py side of the tester: how the container is opened, how datasets are
laid out, and which transfer mode is used.

Dependencies:
    pip install h5py numpy
    (NOTE: h5py must be built with MPI support to use driver='mpio')
"""
import contextlib
import logging

import h5py

from iotest_config import LibverBound
from iotest_errors import ConfigError, ShapeMismatchError, StorageError

logger = logging.getLogger(__name__)

DTYPE = "f8"

# symbolic bound -> (h5py libver string, oldest HDF5 release that knows it)
LIBVER_TABLE = {
    LibverBound.EARLIEST: ("earliest", (1, 8, 0)),
    LibverBound.V18: ("v108", (1, 10, 0)),
    LibverBound.V110: ("v110", (1, 12, 0)),
    LibverBound.V112: ("v112", (1, 13, 0)),
    LibverBound.LATEST: ("latest", (1, 8, 0)),
}

_H5PY_ERRORS = (OSError, KeyError, ValueError)


@contextlib.contextmanager
def storage_op(operation):
    """Re-raise any h5py failure inside the block as StorageError(operation)."""
    try:
        yield
    except _H5PY_ERRORS as e:
        raise StorageError(operation, e) from e


def hdf5_version():
    return h5py.version.hdf5_version_tuple[:3]


def resolve_libver(bound, version=None):
    """h5py libver string for `bound`, falling back to 'latest' if the library is too old."""
    version = hdf5_version() if version is None else tuple(version)
    name, since = LIBVER_TABLE[bound]
    if version < since:
        logger.warning("libver bound '%s' needs HDF5 %s or newer (have %s), using 'latest'",
                       bound.value, ".".join(map(str, since)), ".".join(map(str, version)))
        return "latest"
    return name


def mpi_enabled():
    return bool(h5py.get_config().mpi)


class Storage:
    """File access options shared by the write and read tests."""

    def __init__(self, config, mpi_comm=None, size=1):
        self.config = config
        self.libver = (resolve_libver(config.libver_bound_low),
                       resolve_libver(config.libver_bound_high))
        self.mpi_comm = None
        if mpi_comm is not None:
            if mpi_enabled():
                self.mpi_comm = mpi_comm
            elif size > 1:
                raise ConfigError("h5py was built without MPI support; run with a single process "
                                  "or install a parallel h5py")
            else:
                logger.warning("h5py was built without MPI support, falling back to serial file "
                               "access (mpi-io=%s has no effect)", config.mpi_io.value)

    @property
    def parallel(self):
        return self.mpi_comm is not None

    def file_kwargs(self):
        kw = {"libver": self.libver}
        if self.parallel:
            kw["driver"] = "mpio"
            kw["comm"] = self.mpi_comm
        if self.config.alignment_increment > 1:
            kw["alignment_threshold"] = self.config.alignment_threshold
            kw["alignment_interval"] = self.config.alignment_increment
        return kw

    def create_file(self, path):
        with storage_op(f"create file '{path}'"):
            return h5py.File(path, "w", **self.file_kwargs())

    def open_file(self, path):
        with storage_op(f"open file '{path}'"):
            return h5py.File(path, "r", **self.file_kwargs())

    def create_dataset(self, h5f, name, partition):
        kw = {"shape": partition.file_shape, "dtype": DTYPE}
        if self.config.chunked:
            kw["chunks"] = partition.chunk_shape
        if not self.config.fill:
            kw["fill_time"] = "never"
        with storage_op(f"create dataset '{name}'"):
            return h5f.create_dataset(name, **kw)

    def open_dataset(self, h5f, name, partition):
        with storage_op(f"open dataset '{name}'"):
            dset = h5f[name]
        if dset.shape != partition.file_shape:
            raise ShapeMismatchError(name, partition.file_shape, dset.shape)
        return dset

    def transfer(self, dset):
        """Context in which transfers on `dset` use the configured MPI-IO mode."""
        if self.parallel and self.config.collective:
            return dset.collective
        return contextlib.nullcontext()


def dataset_name(array):
    return f"array={array}"


def file_size(path):
    """Size of an HDF5 file as reported by the library."""
    with storage_op(f"query size of '{path}'"):
        with h5py.File(path, "r") as h5f:
            return h5f.id.get_filesize()
