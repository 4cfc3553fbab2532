"""
iotest_report.py

Console report, single-row CSV and optional JSON document written by
rank 0. The CSV column order is relied upon by downstream tooling.
"""
import csv
import json
import os
import sys

from iotest_config import as_row

CSV_HEADER = [
    "steps", "arrays", "rows", "cols", "scaling", "proc-rows", "proc-cols",
    "slowdim", "rank", "alignment-increment", "alignment-threshold",
    "layout", "fill", "mpi-io", "wall [s]", "fsize [B]",
    "write-phase-min [s]", "write-phase-max [s]",
    "creat-min [s]", "creat-max [s]",
    "write-min [s]", "write-max [s]",
    "read-phase-min [s]", "read-phase-max [s]",
    "read-min [s]", "read-max [s]",
]


def human(n):
    for u in ['B', 'KB', 'MB', 'GB', 'TB']:
        if abs(n) < 1024.0 or u == 'TB':
            return f"{n:3.1f}{u}"
        n /= 1024.0


def print_config(config, source, libver=None, hdf5_version=None, out=None):
    out = sys.stdout if out is None else out
    if hdf5_version is not None and libver is not None:
        print("\nHDF5 library version %s[low=%s,high=%s]" % (
            ".".join(map(str, hdf5_version)), libver[0], libver[1]), file=out)
    print(f"Config loaded from '{source}':\n\tsteps={config.steps}, arrays={config.arrays}, "
          f"rows={config.rows}, columns={config.cols}, scaling={config.scaling.value}", file=out)
    print(f"\tproc-grid={config.proc_rows}x{config.proc_cols}, "
          f"slowest-dimension={config.slowest_dimension.value}, rank={config.rank}", file=out)
    print(f"\talignment-increment={config.alignment_increment}, "
          f"alignment-threshold={config.alignment_threshold}", file=out)
    print(f"\tlayout={config.layout.value}, fill={config.fill_values.value}, "
          f"mpi-io={config.mpi_io.value}", file=out)


def _pair(label, lo, hi):
    return f"{label}_{lo:.2f}\n\t\t\t^{hi:.2f}"


def print_report(stats, usage=None, out=None):
    out = sys.stdout if out is None else out
    tmin, tmax, r = stats.min, stats.max, stats.rates
    lines = [
        "",
        f"Wall clock [s]:\t\t{stats.wall_time:.2f}",
        f"File size [B]:\t\t{stats.file_size:.0f}",
        "---------------------------------------------",
        "Measurement:\t\t_MIN (over MPI ranks)",
        "\t\t\t^MAX (over MPI ranks)",
        "---------------------------------------------",
        _pair("Write phase [s]:\t", tmin.write_phase, tmax.write_phase),
        _pair("Create time [s]:\t", tmin.create_time, tmax.create_time),
        _pair("Write time [s]:\t\t", tmin.write_time, tmax.write_time),
        _pair("Write rate [MiB/s]:\t", r.write_min, r.write_max),
        _pair("Read phase [s]:\t\t", tmin.read_phase, tmax.read_phase),
        _pair("Read time [s]:\t\t", tmin.read_time, tmax.read_time),
        _pair("Read rate [MiB/s]:\t", r.read_min, r.read_max),
    ]
    if usage:
        lines.append("---------------------------------------------")
        lines.append("Resource usage:\t\t^MAX (over MPI ranks)")
        for phase, u in usage.items():
            lines.append(f"  {phase}:\trss={human(u['rss'])}, cpu={u['cpu_time']:.2f}s, "
                         f"read={human(u['read_bytes'])}, written={human(u['write_bytes'])}")
    print("\n".join(lines), file=out)


def csv_row(config, stats):
    c = as_row(config)
    tmin, tmax = stats.min, stats.max
    return [
        c["steps"], c["arrays"], c["rows"], c["cols"], c["scaling"],
        c["proc_rows"], c["proc_cols"], c["slowest_dimension"], c["rank"],
        c["alignment_increment"], c["alignment_threshold"],
        c["layout"], c["fill_values"], c["mpi_io"],
        f"{stats.wall_time:.2f}", f"{stats.file_size:.0f}",
        f"{tmin.write_phase:.2f}", f"{tmax.write_phase:.2f}",
        f"{tmin.create_time:.2f}", f"{tmax.create_time:.2f}",
        f"{tmin.write_time:.2f}", f"{tmax.write_time:.2f}",
        f"{tmin.read_phase:.2f}", f"{tmax.read_phase:.2f}",
        f"{tmin.read_time:.2f}", f"{tmax.read_time:.2f}",
    ]


def write_csv(path, config, stats):
    with open(path, "w", newline="", encoding="utf-8") as fo:
        writer = csv.writer(fo, lineterminator="\n")
        writer.writerow(CSV_HEADER)
        writer.writerow(csv_row(config, stats))


def write_json(path, config, stats, size, usage=None):
    r = stats.rates
    out = {
        "file": config.hdf5_file,
        "ranks": size,
        "config": as_row(config),
        "wall_time": stats.wall_time,
        "file_size": stats.file_size,
        "byte_count": stats.byte_count,
        "min": vars(stats.min),
        "max": vars(stats.max),
        "rates_mib_s": vars(r),
    }
    if usage:
        out["usage"] = usage
    dir_name = os.path.dirname(path)
    if dir_name:
        os.makedirs(dir_name, exist_ok=True)
    with open(path, "w") as fo:
        json.dump(out, fo, indent=2)
