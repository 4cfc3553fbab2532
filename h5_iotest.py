#!/usr/bin/env python3
"""
h5_iotest.py

MPI-parallel HDF5 I/O tester: every rank writes its block of a set of
2-D or 3-D datasets into one shared file, then reads it back. Rank 0
reduces the per-rank timings (MIN/MAX over ranks) and reports wall time,
file size, phase/create/transfer times and MiB/s rates.

Usage:
    mpirun -n 4 python h5_iotest.py hdf5_iotest.ini --json results.json

Dependencies:
    pip install mpi4py h5py numpy psutil tqdm
    (NOTE: h5py must be built with MPI support to use driver='mpio')
"""
import argparse
import contextlib
import logging

from iotest_comm import Coordinator
from iotest_config import CONFIG_FILE, load_config, validate
from iotest_errors import ConfigError, IoTestError
from iotest_grid import plan
from iotest_monitor import PhaseMonitor, reduce_usage
from iotest_read import read_test
from iotest_report import print_config, print_report, write_csv, write_json
from iotest_stats import Aggregated, TimingRecord, byte_count, reduce_timings
from iotest_storage import Storage, file_size, hdf5_version
from iotest_write import write_test

logger = logging.getLogger("h5_iotest")

PHASES = ("write", "read")


def parse_args(argv=None):
    p = argparse.ArgumentParser(description="Parallel HDF5 write/read throughput tester.")
    p.add_argument("config", nargs="?", default=CONFIG_FILE, help="INI configuration file")
    p.add_argument("--json", help="Also write results as JSON to this path (rank 0 writes)")
    p.add_argument("--verify", action="store_true", help="Check that every block read matches what was written")
    p.add_argument("--monitor", action="store_true", help="Report per-phase CPU/RAM/IO usage (MAX over ranks)")
    p.add_argument("--progress", action="store_true", help="Show a progress bar on rank 0")
    p.add_argument("--log-level", default="INFO", choices=["DEBUG", "INFO", "WARNING", "ERROR"],
                   help="Logging level")
    return p.parse_args(argv)


def setup_logging(rank, level):
    level = getattr(logging, level)
    # info from rank 0 only, warnings and errors from every rank
    if rank != 0:
        level = max(level, logging.WARNING)
    logging.basicConfig(level=level, format=f"[rank {rank}] %(levelname)s %(name)s: %(message)s")


def load_and_broadcast(comm, path):
    """Rank 0 loads and validates the configuration; every rank gets it, or None on error."""
    config = None
    if comm.rank == 0:
        try:
            config = validate(load_config(path), comm.size)
        except ConfigError as e:
            logger.error("%s", e)
    return comm.broadcast(config, root=0)


def _phase(monitor, name):
    if monitor is None:
        return contextlib.nullcontext()
    return monitor.phase(name)


def run(config, comm, args, wall_start):
    """Run both tests. Returns the Aggregated statistics on rank 0, None elsewhere."""
    rank = comm.rank
    partition = plan(config, rank)
    storage = Storage(config, comm.mpi_comm, comm.size)
    monitor = PhaseMonitor() if args.monitor else None
    progress = args.progress and rank == 0
    timings = TimingRecord()

    if rank == 0:
        print_config(config, args.config, storage.libver, hdf5_version())
    logger.debug("grid=(%d,%d) block=%dx%d file=%s", partition.coord.row, partition.coord.col,
                 partition.my_rows, partition.my_cols, partition.file_shape)

    comm.barrier()

    timings.write_phase = -comm.wtime()
    with _phase(monitor, "write"):
        timings.create_time, timings.write_time = write_test(config, partition, storage, comm, progress)
    timings.write_phase += comm.wtime()

    comm.barrier()

    timings.read_phase = -comm.wtime()
    with _phase(monitor, "read"):
        timings.read_time = read_test(config, partition, storage, comm, args.verify, progress)
    timings.read_phase += comm.wtime()

    comm.barrier()

    wall_time = comm.wtime() - wall_start
    fsize = file_size(config.hdf5_file) if rank == 0 else 0

    reduced = reduce_timings(comm, timings)
    usage = reduce_usage(comm, monitor, PHASES) if monitor is not None else None
    if reduced is None:
        return None

    stats = Aggregated(min=reduced[0], max=reduced[1], byte_count=byte_count(config, partition),
                       wall_time=wall_time, file_size=fsize)
    print_report(stats, usage)
    write_csv(config.csv_file, config, stats)
    logger.info("results written to %s", config.csv_file)
    if args.json:
        write_json(args.json, config, stats, comm.size, usage)
        logger.info("results written to %s", args.json)
    return stats


def main(argv=None):
    args = parse_args(argv)
    comm = Coordinator()
    setup_logging(comm.rank, args.log_level)
    wall_start = comm.wtime()

    config = load_and_broadcast(comm, args.config)
    if config is None:
        return 1

    try:
        run(config, comm, args, wall_start)
    except ConfigError as e:
        # raised identically on every rank before any I/O
        logger.error("%s", e)
        return 1
    except IoTestError as e:
        logger.critical("aborting: %s", e)
        comm.abort(1)
        return 1
    except Exception:
        logger.exception("aborting on unexpected error")
        comm.abort(1)
        return 1
    return 0


def cli():
    raise SystemExit(main())


if __name__ == "__main__":
    cli()
