import numpy as np
import pytest
from scipy import sparse
import fwpn as fp

np.random.seed(0)
n_samples, n_features = 30, 6
A = np.random.randn(n_samples, n_features)
b = np.random.uniform(0, 1, size=n_samples)


def test_trace():
    f = fp.loss.LogLoss(A, b, 0.1)
    trace = fp.utils.Trace(f)
    fp.minimize_proximal_gradient(
        f.f_grad, np.zeros(n_features), jac=True, max_iter=20, tol=0,
        callback=trace)
    assert len(trace.trace_fx) == len(trace.trace_time) == 20
    assert len(trace.trace_step_size) == 20
    assert trace.trace_x == []
    # make sure that values are decreasing
    assert np.all(np.diff(trace.trace_fx) <= 1e-14)
    assert np.all(np.diff(trace.trace_time) >= 0)


def test_trace_iterates():
    trace = fp.utils.Trace(freq=2)
    x = np.zeros(3)
    for i in range(5):
        x[0] = i
        trace({"x": x, "step_size": 1.0})
    assert [t[0] for t in trace.trace_x] == [0, 2, 4]
    assert trace.trace_fx == []


def test_build_func_grad():
    f = fp.loss.LogLoss(A, b, 0.1)
    x = np.random.randn(n_features)
    f_ref, grad_ref = f.f_grad(x)

    for func_and_grad in (
        fp.utils.build_func_grad(True, f.f_grad, (), 1e-8),
        fp.utils.build_func_grad(lambda x: f.f_grad(x)[1], f, (), 1e-8),
    ):
        fx, grad = func_and_grad(x)
        np.testing.assert_allclose(fx, f_ref)
        np.testing.assert_allclose(grad, grad_ref)

    fx, grad = fp.utils.build_func_grad("2-point", f, (), 1e-8)(x)
    np.testing.assert_allclose(fx, f_ref)
    np.testing.assert_allclose(grad, grad_ref, atol=1e-5)

    with pytest.raises(NotImplementedError):
        fp.utils.build_func_grad("3-point", f, (), 1e-8)


def test_init_lipschitz():
    f = fp.loss.LogLoss(A, b, 0.1)
    L0 = fp.utils.init_lipschitz(f.f_grad, np.zeros(n_features))
    assert L0 > 0
    x0 = np.zeros(n_features)
    grad0 = f.f_grad(x0)[1]
    assert f(x0 - grad0 / L0) <= f(x0)


def test_safe_sparse_add():
    a = np.ones(3)
    b_sparse = sparse.csr_matrix(np.array([[1.0, 0.0, 2.0]]))
    np.testing.assert_allclose(fp.utils.safe_sparse_add(a, b_sparse), [2.0, 1.0, 3.0])
    np.testing.assert_allclose(fp.utils.safe_sparse_add(b_sparse, a), [2.0, 1.0, 3.0])
    assert sparse.issparse(fp.utils.safe_sparse_add(b_sparse, b_sparse))


@pytest.mark.parametrize("kind", ["dense", "sparse", "operator"])
def test_hessian_helpers(kind):
    M = np.random.randn(4, 4)
    H = M.T.dot(M)
    if kind == "sparse":
        hessian = sparse.csr_matrix(H)
    elif kind == "operator":
        hessian = H.dot
    else:
        hessian = H
    s = np.random.randn(4)
    np.testing.assert_allclose(fp.utils.hessian_dot(hessian, s), H.dot(s))
    for j in range(4):
        np.testing.assert_allclose(fp.utils.hessian_column(hessian, j, 4), H[:, j])
