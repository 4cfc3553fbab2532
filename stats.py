#!/usr/bin/env python3
"""
stats.py

Summarize one or more CSV files written by h5_iotest.py, one line per run,
with the write/read rate ranges recomputed from the recorded times.

Usage:
    python stats.py run_1x1.csv run_2x2.csv run_4x4.csv
"""
import argparse
import csv
import os
import sys

from iotest_config import Configuration, Scaling
from iotest_grid import plan
from iotest_report import human
from iotest_stats import byte_count, mib_rate


def parse_args(argv=None):
    p = argparse.ArgumentParser(description="Summarize h5_iotest CSV results.")
    p.add_argument("csv", nargs="+", help="result CSV file(s)")
    return p.parse_args(argv)


def load_rows(path):
    with open(path, newline="", encoding="utf-8") as fh:
        return list(csv.DictReader(fh))


def summarize(row):
    config = Configuration(
        steps=int(row["steps"]), arrays=int(row["arrays"]),
        rows=int(row["rows"]), cols=int(row["cols"]),
        proc_rows=int(row["proc-rows"]), proc_cols=int(row["proc-cols"]),
        scaling=Scaling(row["scaling"]),
    )
    nbytes = byte_count(config, plan(config, 0))
    return {
        "grid": f"{config.proc_rows}x{config.proc_cols}",
        "scaling": config.scaling.value,
        "mpi_io": row["mpi-io"],
        "layout": row["layout"],
        "volume": nbytes,
        "fsize": float(row["fsize [B]"]),
        "write_min": mib_rate(nbytes, float(row["write-max [s]"])),
        "write_max": mib_rate(nbytes, float(row["write-min [s]"])),
        "read_min": mib_rate(nbytes, float(row["read-max [s]"])),
        "read_max": mib_rate(nbytes, float(row["read-min [s]"])),
    }


def main(argv=None):
    args = parse_args(argv)
    status = 0
    for path in args.csv:
        if not os.path.exists(path):
            print(f"Error: {path} does not exist", file=sys.stderr)
            status = 1
            continue
        for row in load_rows(path):
            s = summarize(row)
            print(f"{path}: grid={s['grid']} {s['scaling']} {s['mpi_io']} {s['layout']}, "
                  f"per-rank={human(s['volume'])}, file={human(s['fsize'])}, "
                  f"write={s['write_min']:.2f}..{s['write_max']:.2f} MiB/s, "
                  f"read={s['read_min']:.2f}..{s['read_max']:.2f} MiB/s")
    return status


if __name__ == "__main__":
    sys.exit(main())
