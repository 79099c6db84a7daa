"""Compare PG, APG-RS and FWPN on L1-ball constrained logistic regression.

The problem is

    minimize_x  1/n sum_i log(1 + exp(-y_i a_i^T x)) + alpha/2 ||x||^2
    subject to  ||x||_1 <= radius

PG and APG-RS work on x directly, projecting onto the L1 ball. FWPN works
on the lifted variable z in the simplex of dimension 2 * n_features, with
x = radius * (z[:p] - z[p:]).
"""
import collections

import numpy as np

from fwpn import constraint
from fwpn import loss
from fwpn import utils
from fwpn.newton_frank_wolfe import minimize_newton_frank_wolfe
from fwpn.proximal_gradient import minimize_proximal_gradient

BenchmarkResult = collections.namedtuple("BenchmarkResult", ["trace", "result", "x"])

DEFAULT_FWPN_OPTIONS = {
    "lambda0": 1.0,
    "lambda_tol": 1e-6,
    "sub_tol": 0.1,
    "short2long": 10,
    "max_iter": 100,
    "k": 2,
}

# above this lifted dimension the Hessian is only used through mat-vecs
MAX_DENSE_HESSIAN = 4000

STYLES = {
    "FWPN": ("o--", (0.8500, 0.3250, 0.0980)),
    "PG": ("d-", (0.4660, 0.6740, 0.1880)),
    "APG-RS": ("v-", (0.0, 0.4470, 0.7410)),
}


def _record_last(trace, sol):
    trace({"x": sol.x, "step_size": sol.step_size})


def run_benchmark(
        X,
        y,
        radius=10.0,
        alpha=None,
        max_iter=10000,
        tol=1e-6,
        fwpn_options=None,
        dense_hessian=None,
        verbose=0,
):
    """Run the three solvers on the same problem.

    Args:
        X: array-like or sparse matrix, shape (n_samples, n_features)

        y: array-like, shape (n_samples,)
            Labels in {0, 1}.

        radius: float
            Radius of the L1 ball.

        alpha: float, optional
            Amount of L2 regularization, defaults to 1 / n_samples.

        max_iter: int
            Iteration budget of PG and APG-RS.

        tol: float
            Tolerance of PG and APG-RS on the gradient mapping.

        fwpn_options: dict, optional
            Overrides of DEFAULT_FWPN_OPTIONS, passed to
            :func:`fwpn.minimize_newton_frank_wolfe`.

        dense_hessian: bool, optional
            Whether FWPN forms the (lifted) Hessian explicitly. By default it
            does when the lifted dimension is at most MAX_DENSE_HESSIAN.

        verbose: int
            Verbosity level passed to the solvers.

    Returns:
        results: OrderedDict
            Maps "PG", "APG-RS" and "FWPN" to a BenchmarkResult with the
            Trace of objective values and times, the OptimizeResult of the
            solver and the solution in the original space.
    """
    n_samples, n_features = X.shape
    if alpha is None:
        alpha = 1.0 / n_samples
    f = loss.LogLoss(X, y, alpha)
    l1_ball = constraint.L1Ball(radius)
    x0 = np.zeros(n_features)
    results = collections.OrderedDict()

    if verbose:
        print("Solving the logistic regression problem with PG")
    cb = utils.Trace(f)
    sol = minimize_proximal_gradient(
        f.f_grad,
        x0,
        prox=l1_ball.prox,
        jac=True,
        tol=tol,
        max_iter=max_iter,
        callback=cb,
        verbose=verbose,
    )
    _record_last(cb, sol)
    results["PG"] = BenchmarkResult(cb, sol, sol.x)

    if verbose:
        print("Solving the logistic regression problem with APG-RS")
    step_size = 1.0 / f.lipschitz
    cb = utils.Trace(f)
    sol = minimize_proximal_gradient(
        f.f_grad,
        x0,
        prox=l1_ball.prox,
        jac=True,
        tol=tol,
        max_iter=max_iter,
        step="fixed",
        step_size=step_size,
        accelerated=True,
        restart=True,
        callback=cb,
        verbose=verbose,
    )
    _record_last(cb, sol)
    results["APG-RS"] = BenchmarkResult(cb, sol, sol.x)

    if verbose:
        print("Solving the logistic regression problem with FWPN")
    n_lifted = 2 * n_features
    F = loss.LiftedLoss(f, constraint.l1_simplex_lifting(n_features, radius))
    options = dict(DEFAULT_FWPN_OPTIONS, sub_max_iter=max(n_lifted, 1000))
    options.update(fwpn_options or {})
    if dense_hessian is None:
        dense_hessian = n_lifted <= MAX_DENSE_HESSIAN
    hessian = F.hessian if dense_hessian else F.hessian_mv
    cb = utils.Trace(F)
    sol = minimize_newton_frank_wolfe(
        F.f_grad,
        hessian,
        constraint.simplex_center(n_lifted),
        callback=cb,
        verbose=verbose,
        **options
    )
    results["FWPN"] = BenchmarkResult(cb, sol, F.lift_back(sol.x))
    return results


def suboptimality(results):
    """Return f* and, for every solver, the curve |f(x_k) - f*|.

    f* is the smallest objective value reached by any solver.
    """
    f_star = min(np.min(res.trace.trace_fx) for res in results.values())
    gaps = collections.OrderedDict(
        (name, np.abs(np.asarray(res.trace.trace_fx) - f_star))
        for name, res in results.items()
    )
    return f_star, gaps


def plot_benchmark(results, title=None, ax=None, n_markers=10, marker_size=7):
    """Plot suboptimality against time on a log scale.

    Curves of first-order methods are subsampled to about n_markers points,
    FWPN iterations are all shown.

    Returns:
        ax: matplotlib Axes
    """
    import matplotlib.pyplot as plt  # lazy import

    if ax is None:
        _, ax = plt.subplots()
    _, gaps = suboptimality(results)
    for name, res in results.items():
        times = np.asarray(res.trace.trace_time)
        gap = gaps[name]
        if name == "FWPN":
            index = np.arange(times.size)
        else:
            index = np.arange(0, times.size, max(times.size // n_markers, 1))
        linestyle, color = STYLES.get(name, ("-", None))
        ax.semilogy(
            times[index],
            gap[index],
            linestyle,
            color=color,
            markeredgecolor=color,
            markerfacecolor=color,
            markersize=marker_size,
            label=name,
        )
    ax.set_xlabel(r"Time($s$)", fontsize=20)
    ax.set_ylabel(r"$f(X) - f^\star$", fontsize=20)
    if title is not None:
        ax.set_title(title, fontsize=20)
    ax.legend(fontsize=12)
    ax.grid(True)
    return ax
