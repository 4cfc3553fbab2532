"""
iotest_read.py

Read test: reopen the container written by the write test and read this
rank's block back steps x arrays times. Only the read calls are timed;
opening the file is part of the read phase but not reported separately.
"""
import logging

import numpy as np
from tqdm import tqdm

from iotest_errors import VerificationError
from iotest_grid import transfer_order
from iotest_storage import DTYPE, dataset_name, storage_op
from iotest_write import pattern

logger = logging.getLogger(__name__)


def read_test(config, partition, storage, comm, verify=False, progress=False):
    """Run the read test on this rank. Returns the read time in seconds."""
    rbuf = np.empty(partition.memory_shape, dtype=DTYPE)
    expected = pattern(partition) if verify else None

    h5f = storage.open_file(config.hdf5_file)
    dsets = [storage.open_dataset(h5f, dataset_name(a), partition) for a in range(config.arrays)]

    msel = partition.memory_selection().slices()
    read_time = 0.0
    pbar = tqdm(total=config.steps * config.arrays, desc="Reading", disable=not progress)
    for step, array in transfer_order(config):
        dset = dsets[array]
        fsel = partition.file_selection(step).slices()
        with storage.transfer(dset), storage_op(f"read step {step} of '{dset.name}'"):
            t0 = comm.wtime()
            dset.read_direct(rbuf, source_sel=fsel, dest_sel=msel)
            read_time += comm.wtime() - t0
        if expected is not None:
            mismatches = int(np.count_nonzero(rbuf != expected))
            if mismatches:
                raise VerificationError(dset.name, step, mismatches)
        pbar.update(1)
    pbar.close()

    with storage_op(f"close '{config.hdf5_file}'"):
        h5f.close()
    if verify:
        logger.info("verified %d block(s) of %d element(s)", config.steps * config.arrays, partition.memory_selection().size)
    return read_time
