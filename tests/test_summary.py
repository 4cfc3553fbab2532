import pytest

import stats
from iotest_config import Configuration, Scaling
from iotest_report import write_csv
from iotest_stats import Aggregated, TimingRecord


def _write(path, **kw):
    config = Configuration(steps=1, arrays=1, rows=1024, cols=128, **kw)
    result = Aggregated(min=TimingRecord(write_time=0.5, read_time=0.25),
                        max=TimingRecord(write_time=1.0, read_time=0.5),
                        byte_count=0.0, wall_time=3.0, file_size=2 ** 20)
    write_csv(str(path), config, result)


def test_summarize_strong(tmp_path):
    path = tmp_path / "strong.csv"
    _write(path, proc_rows=2, proc_cols=1, scaling=Scaling.STRONG)
    s = stats.summarize(stats.load_rows(str(path))[0])
    # 512 x 128 doubles per rank = 0.5 MiB
    assert s["volume"] == 512 * 128 * 8
    assert s["write_min"] == pytest.approx(0.5)
    assert s["write_max"] == pytest.approx(1.0)
    assert s["read_min"] == pytest.approx(1.0)
    assert s["read_max"] == pytest.approx(2.0)
    assert s["grid"] == "2x1"


def test_main(tmp_path, capsys):
    path = tmp_path / "weak.csv"
    _write(path)
    assert stats.main([str(path)]) == 0
    out = capsys.readouterr().out
    assert "grid=1x1 weak independent contiguous" in out
    assert "per-rank=1.0MB" in out


def test_main_missing_file(tmp_path, capsys):
    assert stats.main([str(tmp_path / "nope.csv")]) == 1
    assert "does not exist" in capsys.readouterr().err
