"""
iotest_config.py

Configuration record of the HDF5 I/O tester.

The record is read from an INI file on rank 0, validated there, and then
broadcast to all ranks. After the broadcast it is never modified.

Example INI (all keys live in the DEFAULT section):

    [DEFAULT]
    steps = 20
    arrays = 500
    rows = 100
    columns = 200
    process-rows = 1
    process-columns = 1
    scaling = weak
    dataset-rank = 2
    slowest-dimension = step
    layout = contiguous
    mpi-io = independent
    hdf5-file = hdf5_iotest.h5
    csv-file = hdf5_iotest.csv
"""
import configparser
import enum
import logging
import os
from dataclasses import dataclass, fields

from iotest_errors import ConfigError

logger = logging.getLogger(__name__)

CONFIG_FILE = "hdf5_iotest.ini"


class Scaling(enum.Enum):
    STRONG = "strong"
    WEAK = "weak"


class SlowestDimension(enum.Enum):
    STEP = "step"
    ARRAY = "array"


class Layout(enum.Enum):
    CONTIGUOUS = "contiguous"
    CHUNKED = "chunked"


class FillValues(enum.Enum):
    TRUE = "true"
    FALSE = "false"


class MpiIo(enum.Enum):
    COLLECTIVE = "collective"
    INDEPENDENT = "independent"


class LibverBound(enum.Enum):
    EARLIEST = "earliest"
    V18 = "v18"
    V110 = "v110"
    V112 = "v112"
    LATEST = "latest"

    @property
    def order(self):
        return list(LibverBound).index(self)


@dataclass(frozen=True)
class Configuration:
    steps: int = 20
    arrays: int = 500
    rows: int = 100
    cols: int = 200
    proc_rows: int = 1
    proc_cols: int = 1
    scaling: Scaling = Scaling.WEAK
    rank: int = 2
    slowest_dimension: SlowestDimension = SlowestDimension.STEP
    alignment_increment: int = 1
    alignment_threshold: int = 0
    layout: Layout = Layout.CONTIGUOUS
    fill_values: FillValues = FillValues.FALSE
    mpi_io: MpiIo = MpiIo.INDEPENDENT
    libver_bound_low: LibverBound = LibverBound.EARLIEST
    libver_bound_high: LibverBound = LibverBound.LATEST
    hdf5_file: str = "hdf5_iotest.h5"
    csv_file: str = "hdf5_iotest.csv"

    @property
    def strong_scaling(self):
        return self.scaling is Scaling.STRONG

    @property
    def collective(self):
        return self.mpi_io is MpiIo.COLLECTIVE

    @property
    def chunked(self):
        return self.layout is Layout.CHUNKED

    @property
    def fill(self):
        return self.fill_values is FillValues.TRUE


# INI key -> (Configuration field, converter)
_KEYS = {
    "steps": ("steps", int),
    "arrays": ("arrays", int),
    "rows": ("rows", int),
    "columns": ("cols", int),
    "process-rows": ("proc_rows", int),
    "process-columns": ("proc_cols", int),
    "scaling": ("scaling", Scaling),
    "dataset-rank": ("rank", int),
    "slowest-dimension": ("slowest_dimension", SlowestDimension),
    "alignment-increment": ("alignment_increment", int),
    "alignment-threshold": ("alignment_threshold", int),
    "layout": ("layout", Layout),
    "fill-values": ("fill_values", FillValues),
    "mpi-io": ("mpi_io", MpiIo),
    "libver-bound-low": ("libver_bound_low", LibverBound),
    "libver-bound-high": ("libver_bound_high", LibverBound),
    "hdf5-file": ("hdf5_file", str),
    "csv-file": ("csv_file", str),
}


def _convert(key, raw, conv):
    raw = raw.strip()
    if conv is str:
        if not raw:
            raise ConfigError(f"'{key}' must not be empty")
        return raw
    if conv is int:
        try:
            return int(raw)
        except ValueError:
            raise ConfigError(f"'{key}' expects an integer, got '{raw}'") from None
    try:
        return conv(raw.lower())
    except ValueError:
        choices = ", ".join(m.value for m in conv)
        raise ConfigError(f"'{key}' must be one of {choices}, got '{raw}'") from None


def parse_config(text):
    """Build a Configuration from INI text. Keys missing from the text keep their defaults."""
    parser = configparser.ConfigParser(interpolation=None)
    try:
        parser.read_string(text)
    except configparser.Error as e:
        raise ConfigError(f"malformed configuration: {e}") from e

    values = {}
    for key, raw in parser.defaults().items():
        if key not in _KEYS:
            logger.warning("ignoring unknown configuration key '%s'", key)
            continue
        name, conv = _KEYS[key]
        values[name] = _convert(key, raw, conv)
    return Configuration(**values)


def load_config(path=CONFIG_FILE):
    if not os.path.exists(path):
        raise ConfigError(f"Can't load '{path}'")
    try:
        with open(path, encoding="utf-8") as fh:
            text = fh.read()
    except (OSError, UnicodeDecodeError) as e:
        raise ConfigError(f"Can't load '{path}': {e}") from e
    return parse_config(text)


def validate(config, size):
    """Check a configuration against the number of MPI processes.

    Raises ConfigError on the first problem found.
    """
    for name in ("steps", "arrays", "rows", "cols", "proc_rows", "proc_cols"):
        if getattr(config, name) < 1:
            raise ConfigError(f"{name} must be positive, got {getattr(config, name)}")
    if config.rank not in (2, 3):
        raise ConfigError(f"dataset-rank must be 2 or 3, got {config.rank}")
    if config.proc_rows * config.proc_cols != size:
        raise ConfigError(
            f"process grid {config.proc_rows}x{config.proc_cols} does not match "
            f"the number of MPI processes ({size})")
    if config.strong_scaling:
        if config.rows % config.proc_rows:
            raise ConfigError(f"strong scaling: rows ({config.rows}) not divisible by process-rows ({config.proc_rows})")
        if config.cols % config.proc_cols:
            raise ConfigError(f"strong scaling: columns ({config.cols}) not divisible by process-columns ({config.proc_cols})")
    if config.alignment_increment < 1:
        raise ConfigError(f"alignment-increment must be at least 1, got {config.alignment_increment}")
    if config.alignment_threshold < 0:
        raise ConfigError(f"alignment-threshold must not be negative, got {config.alignment_threshold}")
    if config.libver_bound_low.order > config.libver_bound_high.order:
        raise ConfigError(
            f"libver-bound-low ({config.libver_bound_low.value}) is newer than "
            f"libver-bound-high ({config.libver_bound_high.value})")
    return config


def as_row(config):
    """Field values in report order, enumerations as their INI strings."""
    row = {}
    for f in fields(config):
        value = getattr(config, f.name)
        row[f.name] = value.value if isinstance(value, enum.Enum) else value
    return row
