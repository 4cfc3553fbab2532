import h5py
import numpy as np
import pytest

from iotest_config import FillValues, Layout, MpiIo, Scaling, SlowestDimension
from iotest_errors import ShapeMismatchError, VerificationError
from iotest_grid import plan
from iotest_read import read_test
from iotest_storage import Storage, dataset_name
from iotest_write import pattern, write_test


def test_scenario_a(make_config, comm):
    config = make_config(steps=1, arrays=1, rows=10, cols=10, scaling=Scaling.STRONG)
    partition = plan(config, 0)
    storage = Storage(config)

    create_time, write_time = write_test(config, partition, storage, comm)
    assert create_time >= 0.0
    assert write_time >= 0.0

    with h5py.File(config.hdf5_file, "r") as h5f:
        assert list(h5f) == ["array=0"]
        data = h5f["array=0"][...]
    assert data.shape == (10, 10)
    assert np.array_equal(data, np.arange(100, dtype=np.float64).reshape(10, 10))

    read_time = read_test(config, partition, storage, comm, verify=True)
    assert read_time >= 0.0


@pytest.mark.parametrize("rank", [2, 3])
@pytest.mark.parametrize("layout", list(Layout))
@pytest.mark.parametrize("fill", list(FillValues))
@pytest.mark.parametrize("slowdim", list(SlowestDimension))
def test_round_trip(make_config, comm, rank, layout, fill, slowdim):
    config = make_config(rank=rank, layout=layout, fill_values=fill, slowest_dimension=slowdim,
                         mpi_io=MpiIo.COLLECTIVE)
    partition = plan(config, 0)
    storage = Storage(config)
    write_test(config, partition, storage, comm)

    with h5py.File(config.hdf5_file, "r") as h5f:
        assert sorted(h5f) == [dataset_name(a) for a in range(config.arrays)]
        for a in range(config.arrays):
            d = h5f[dataset_name(a)]
            assert d.shape == partition.file_shape
            for step in range(config.steps):
                block = d[partition.file_selection(step).slices()]
                assert np.array_equal(block, pattern(partition))

    read_test(config, partition, storage, comm, verify=True)


def test_write_test_truncates_existing_file(make_config, comm):
    config = make_config(arrays=1)
    with h5py.File(config.hdf5_file, "w") as h5f:
        h5f.create_dataset("stale", data=np.ones(4))
    write_test(config, plan(config, 0), Storage(config), comm)
    with h5py.File(config.hdf5_file, "r") as h5f:
        assert "stale" not in h5f


def test_verify_detects_corruption(make_config, comm):
    config = make_config(rank=3)
    partition = plan(config, 0)
    storage = Storage(config)
    write_test(config, partition, storage, comm)
    with h5py.File(config.hdf5_file, "a") as h5f:
        h5f[dataset_name(2)][1, 4, 4] = -1.0

    # without verification the read completes
    read_test(config, partition, storage, comm)
    with pytest.raises(VerificationError) as info:
        read_test(config, partition, storage, comm, verify=True)
    assert info.value.mismatches == 1
    assert "array=2" in str(info.value)


def test_read_rejects_unexpected_shape(make_config, comm):
    config = make_config()
    write_test(config, plan(config, 0), Storage(config), comm)
    other = make_config(rows=12)
    with pytest.raises(ShapeMismatchError):
        read_test(other, plan(other, 0), Storage(other), comm)


def test_progress_bar(make_config, comm, capsys):
    config = make_config()
    partition = plan(config, 0)
    storage = Storage(config)
    write_test(config, partition, storage, comm, progress=True)
    read_test(config, partition, storage, comm, progress=True)
    err = capsys.readouterr().err
    assert "Writing" in err
    assert "Reading" in err
