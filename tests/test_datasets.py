import os

import numpy as np
import pytest
from scipy import sparse
from sklearn.datasets import dump_svmlight_file
from fwpn import datasets

np.random.seed(0)


def _write_libsvm(path, n_samples=30, n_features=12, density=0.1):
    X = sparse.random(n_samples, n_features, density=density, format="csr",
                      random_state=0)
    y = np.sign(np.random.randn(n_samples))
    y[0], y[1] = -1, 1
    dump_svmlight_file(X, y, str(path))
    return X, y


def test_load_libsvm_sparse(tmp_path):
    path = tmp_path / "data.svm"
    X_orig, y_orig = _write_libsvm(path)
    X, y = datasets.load_libsvm(str(path), n_features=X_orig.shape[1])
    assert sparse.issparse(X)
    assert X.shape == X_orig.shape
    np.testing.assert_allclose(X.toarray(), X_orig.toarray())
    np.testing.assert_array_equal(y, (y_orig + 1) // 2)
    assert set(np.unique(y)) == {0, 1}


def test_load_libsvm_dense(tmp_path):
    path = tmp_path / "data.svm"
    X_orig, _ = _write_libsvm(path, density=0.9)
    X, _ = datasets.load_libsvm(str(path), n_features=X_orig.shape[1])
    assert isinstance(X, np.ndarray)
    np.testing.assert_allclose(X, X_orig.toarray())


def test_binary_targets():
    np.testing.assert_array_equal(
        datasets._binary_targets(np.array([-1.0, 1.0, 1.0])), [0, 1, 1])
    np.testing.assert_array_equal(
        datasets._binary_targets(np.array([0, 1, 0])), [0, 1, 0])
    with pytest.raises(ValueError):
        datasets._binary_targets(np.array([0, 1, 2]))
    with pytest.raises(ValueError):
        datasets._binary_targets(np.array([1, 2, 2]))
    np.testing.assert_array_equal(
        datasets._binary_targets(np.array([-1.0, -1.0])), [0, 0])


def test_load_w8a_cached(tmp_path):
    """A w8a file already present in the data folder is not downloaded."""
    dataset_dir = tmp_path / "w8a"
    dataset_dir.mkdir()
    X_orig, y_orig = _write_libsvm(
        dataset_dir / "w8a.t", n_features=datasets.W8A_N_FEATURES, density=0.02)

    X, y = datasets.load_w8a(subset="test", data_dir=str(tmp_path))
    assert sparse.issparse(X)
    assert X.shape == X_orig.shape
    np.testing.assert_allclose(X.toarray(), X_orig.toarray())
    np.testing.assert_array_equal(y, (y_orig + 1) // 2)
    assert os.path.exists(str(dataset_dir / "w8a.t.indptr.npy"))

    # second call reads from the npy cache
    os.remove(str(dataset_dir / "w8a.t"))
    X_cached, y_cached = datasets.load_w8a(subset="test", data_dir=str(tmp_path))
    np.testing.assert_allclose(X_cached.toarray(), X.toarray())
    np.testing.assert_array_equal(y_cached, y)


def test_load_w8a_full(tmp_path):
    dataset_dir = tmp_path / "w8a"
    dataset_dir.mkdir()
    X_train, _ = _write_libsvm(
        dataset_dir / "w8a", n_samples=20, n_features=datasets.W8A_N_FEATURES,
        density=0.02)
    X_test, _ = _write_libsvm(
        dataset_dir / "w8a.t", n_samples=10, n_features=datasets.W8A_N_FEATURES,
        density=0.02)
    X, y = datasets.load_w8a(subset="full", data_dir=str(tmp_path))
    assert X.shape == (30, datasets.W8A_N_FEATURES)
    assert y.shape == (30,)
    np.testing.assert_allclose(X[:20].toarray(), X_train.toarray())


def test_load_w8a_md5(tmp_path):
    dataset_dir = tmp_path / "w8a"
    dataset_dir.mkdir()
    _write_libsvm(dataset_dir / "w8a.t", n_features=datasets.W8A_N_FEATURES)
    with pytest.raises(ValueError):
        datasets.load_w8a(
            subset="test", data_dir=str(tmp_path), md5={"w8a.t": "0" * 32})
    assert not os.path.exists(str(dataset_dir / "w8a.t"))


def test_load_w8a_subset():
    with pytest.raises(ValueError):
        datasets.load_w8a(subset="validation")
