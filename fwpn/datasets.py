# python3
import hashlib
import os
import urllib
import urllib.request

import numpy as np
from scipy import sparse

DATA_DIR = os.environ.get(
    "FWPN_DATA_DIR", os.path.join(os.path.expanduser("~"), "fwpn_data")
)

LIBSVM_URL = "https://www.csie.ntu.edu.tw/~cjlin/libsvmtools/datasets/binary/%s"

W8A_FILES = {
    "train": "w8a",
    "test": "w8a.t",
}
W8A_N_FEATURES = 300


def _binary_targets(y):
    """Map {-1, 1} (or {0, 1}) labels onto {0, 1}."""
    y = np.asarray(y)
    labels = np.unique(y)
    if np.all(np.isin(labels, (0, 1))):
        return y.astype(int)
    if np.all(np.isin(labels, (-1, 1))):
        return (y > 0).astype(int)
    raise ValueError(
        "Expected labels in {0, 1} or {-1, 1}, got %s" % labels)


def _maybe_dense(X, dense_threshold):
    n_samples, n_features = X.shape
    if X.nnz / float(n_samples * n_features) > dense_threshold:
        return X.toarray()
    return X


def load_libsvm(path, n_features=None, dense_threshold=0.5):
    """Load a binary classification dataset in LIBSVM format.

    Args:
        path: string
            Path of the file.

        n_features: int, optional
            Number of features, inferred from the file if not given.

        dense_threshold: float
            If the fraction of nonzero entries is above this value the data
            is returned as a dense array.

    Returns:
        X: scipy.sparse CSR matrix or numpy array

        y: numpy array
            Labels, only takes values 0 or 1.
    """
    from sklearn import datasets  # lazy import

    X, y = datasets.load_svmlight_file(path, n_features=n_features)
    return _maybe_dense(X.tocsr(), dense_threshold), _binary_targets(y)


def _cache_paths(dataset_dir, fname):
    return [
        os.path.join(dataset_dir, "%s.%s.npy" % (fname, suffix))
        for suffix in ("data", "indices", "indptr", "target")
    ]


def _load_libsvm_cached(name, fname, data_dir, n_features, md5=None):
    """Download fname from the LIBSVM site once and cache it as npy files."""
    from sklearn import datasets  # lazy import

    dataset_dir = os.path.join(data_dir, name)
    file_path = os.path.join(dataset_dir, fname)
    cached = _cache_paths(dataset_dir, fname)

    if not all(os.path.exists(f) for f in cached):
        if not os.path.exists(dataset_dir):
            os.makedirs(dataset_dir)
        if not os.path.exists(file_path):
            print(
                "%s dataset is not present in the folder %s. Downloading it ..."
                % (fname, dataset_dir)
            )
            urllib.request.urlretrieve(LIBSVM_URL % fname, file_path)
            print("Finished downloading")
        if md5 is not None:
            with open(file_path, "rb") as f:
                h = hashlib.md5(f.read()).hexdigest()
            if h != md5:
                os.remove(file_path)
                raise ValueError(
                    "MD5 hash of %s does not coincide, file removed" % file_path
                )
        X, y = datasets.load_svmlight_file(file_path, n_features=n_features)
        X = X.tocsr()
        for path, arr in zip(cached, (X.data, X.indices, X.indptr, y)):
            np.save(path, arr)

    X_data, X_indices, X_indptr, y = [np.load(path) for path in cached]
    X = sparse.csr_matrix(
        (X_data, X_indices, X_indptr), shape=(X_indptr.size - 1, n_features)
    )
    return X, _binary_targets(y)


def load_w8a(subset="test", data_dir=DATA_DIR, md5=None, dense_threshold=0.5):
    """Download and return the w8a dataset.

    Properties:
        n_samples: 49749 (train), 14951 (test)
        n_features: 300
        density: about 3.9% of nonzero coefficients

    This is the binary classification dataset as found in the LIBSVM
    dataset project:

        https://www.csie.ntu.edu.tw/~cjlin/libsvmtools/datasets/binary.html#w8a

    Args:
        subset: string
            Can be one of 'full' for full dataset, 'train' for only the train
            set or 'test' for only the test set (the file w8a.t).

        data_dir: string
            Directory where the data is cached. Defaults to $FWPN_DATA_DIR,
            or ~/fwpn_data/.

        md5: dict, optional
            Maps file names to their expected md5 hash.

        dense_threshold: float
            See :func:`load_libsvm`.

    Returns:
        X: scipy.sparse CSR matrix, or numpy array for dense data

        y: numpy array
            Labels, only takes values 0 or 1.
    """
    if subset not in ("train", "test", "full"):
        raise ValueError(
            "subset '%s' not implemented, must be one of ('train', 'test', 'full')."
            % subset
        )
    md5 = md5 or {}
    subsets = ("train", "test") if subset == "full" else (subset,)
    parts = []
    for name in subsets:
        fname = W8A_FILES[name]
        parts.append(
            _load_libsvm_cached("w8a", fname, data_dir, W8A_N_FEATURES, md5.get(fname))
        )
    if len(parts) == 1:
        X, y = parts[0]
    else:
        X = sparse.vstack([X_part for X_part, _ in parts]).tocsr()
        y = np.concatenate([y_part for _, y_part in parts])
    return _maybe_dense(X, dense_threshold), y
