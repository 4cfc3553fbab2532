"""
iotest_write.py

Write test: create the container and one dataset per array, then write
this rank's block steps x arrays times.

Two intervals are measured:
  create time - opening the file and creating all datasets (metadata only)
  write time  - the sum of the data transfer calls alone
"""
import logging

import numpy as np
from tqdm import tqdm

from iotest_grid import transfer_order
from iotest_storage import DTYPE, dataset_name, storage_op

logger = logging.getLogger(__name__)


def pattern(partition):
    """Write buffer of a rank: every element holds its global row-major index in the file."""
    rows = np.arange(partition.row_offset, partition.row_offset + partition.my_rows, dtype=np.float64)
    cols = np.arange(partition.col_offset, partition.col_offset + partition.my_cols, dtype=np.float64)
    block = np.add.outer(rows * partition.file_cols, cols)
    return np.ascontiguousarray(block.reshape(partition.memory_shape), dtype=DTYPE)


def write_test(config, partition, storage, comm, progress=False):
    """Run the write test on this rank. Returns (create_time, write_time) in seconds."""
    wbuf = pattern(partition)

    create_time = -comm.wtime()
    h5f = storage.create_file(config.hdf5_file)
    dsets = [storage.create_dataset(h5f, dataset_name(a), partition) for a in range(config.arrays)]
    create_time += comm.wtime()
    logger.debug("created %d dataset(s) of shape %s in %.3fs", len(dsets), partition.file_shape, create_time)

    msel = partition.memory_selection().slices()
    write_time = 0.0
    pbar = tqdm(total=config.steps * config.arrays, desc="Writing", disable=not progress)
    for step, array in transfer_order(config):
        dset = dsets[array]
        fsel = partition.file_selection(step).slices()
        with storage.transfer(dset), storage_op(f"write step {step} of '{dset.name}'"):
            t0 = comm.wtime()
            dset.write_direct(wbuf, source_sel=msel, dest_sel=fsel)
            write_time += comm.wtime() - t0
        pbar.update(1)
    pbar.close()

    # not reached on failure: the job is aborted and a collective close would block
    with storage_op(f"close '{config.hdf5_file}'"):
        h5f.close()
    return create_time, write_time
