import os
from datetime import datetime

import numpy as np
from scipy import optimize
from scipy import sparse

DISABLE_TQDM = bool(os.environ.get("DISABLE_TQDM", False))


def build_func_grad(jac, fun, args, eps):
    """Return a callable x -> (f(x), grad f(x)) from the `jac` convention."""
    if not callable(jac):
        if jac is True:

            def func_and_grad(x):
                f, g = fun(x, *args)
                return f, np.asarray(g).ravel()

            return func_and_grad
        elif jac is False or jac == "2-point":
            jac = None
        else:
            raise NotImplementedError("jac has unexpected value.")

    if jac is None:

        def func_and_grad(x):
            f = fun(x, *args)
            g = optimize.approx_fprime(x, fun, eps, *args)
            return f, g

    else:

        def func_and_grad(x):
            f = fun(x, *args)
            g = jac(x, *args)
            return f, g

    return func_and_grad


def safe_sparse_add(a, b):
    if sparse.issparse(a) and sparse.issparse(b):
        # both are sparse, keep the result sparse
        return a + b
    else:
        # one of them is non-sparse, convert
        # everything to dense.
        if sparse.issparse(a):
            a = a.toarray()
            if a.ndim == 2 and b.ndim == 1:
                a = a.ravel()
        elif sparse.issparse(b):
            b = b.toarray()
            if b.ndim == 2 and a.ndim == 1:
                b = b.ravel()
        return a + b


def hessian_column(hessian, j, size):
    """Column j of a Hessian given as a matrix or as a mat-vec callable."""
    if callable(hessian):
        e_j = np.zeros(size)
        e_j[j] = 1.0
        return hessian(e_j)
    if sparse.issparse(hessian):
        return hessian[:, j].toarray().ravel()
    return np.asarray(hessian[:, j]).ravel()


def hessian_dot(hessian, s):
    if callable(hessian):
        return hessian(s)
    return np.asarray(hessian.dot(s)).ravel()


class Trace:
    """Callback that records the iterates of a solver.

    Args:
      f: callable, optional
          If given, f(x) is stored in ``trace_fx`` instead of a copy of x
          in ``trace_x``.

      freq: int
          Record every ``freq`` calls.
    """

    def __init__(self, f=None, freq=1):
        self.trace_x = []
        self.trace_time = []
        self.trace_fx = []
        self.trace_step_size = []
        self.start = datetime.now()
        self._counter = 0
        self.freq = int(freq)
        self.f = f

    def __call__(self, dl):
        if self._counter % self.freq == 0:
            if self.f is not None:
                self.trace_fx.append(self.f(dl["x"]))
            else:
                self.trace_x.append(dl["x"].copy())
            delta = (datetime.now() - self.start).total_seconds()
            self.trace_time.append(delta)
            self.trace_step_size.append(dl.get("step_size"))
        self._counter += 1


def init_lipschitz(f_grad, x0):
    L0 = 1e-3
    f0, grad0 = f_grad(x0)
    if sparse.issparse(grad0) and not sparse.issparse(x0):
        x0 = sparse.csc_matrix(x0).T
    elif sparse.issparse(x0) and not sparse.issparse(grad0):
        grad0 = sparse.csc_matrix(grad0).T
    x_tilde = x0 - (1.0 / L0) * grad0
    f_tilde = f_grad(x_tilde)[0]
    for _ in range(100):
        if f_tilde <= f0:
            break
        L0 *= 10
        x_tilde = x0 - (1.0 / L0) * grad0
        f_tilde = f_grad(x_tilde)[0]
    return L0
