# python3
"""Newton Frank-Wolfe: a proximal Newton method over the simplex whose
subproblems are solved with Frank-Wolfe."""
import warnings
import numpy as np
from scipy import optimize
from tqdm import trange

from fwpn import utils

VARIANTS = ("vanilla", "pairwise")

# inner tolerance relative to the current Frank-Wolfe gap
EPS_TOL = 0.3


def minimize_quadratic_simplex(
        grad,
        hessian,
        center,
        x0=None,
        radius=1.0,
        tol=1e-6,
        max_iter=1000,
        variant="pairwise",
):
    r"""Frank-Wolfe on a quadratic model over the simplex.

  Approximately solves

  .. math::
      \min_{u \in \Delta} \langle g, u - c\rangle + \frac{1}{2}(u - c)^T H (u - c)

  where :math:`\Delta = \{u \geq 0, \sum_i u_i = r\}`, using exact line
  search along Frank-Wolfe (or pairwise) directions. Since the vertices of
  the simplex are scaled unit vectors, each iteration needs only one
  (two for pairwise) column of H, and H u is updated incrementally.

  Args:
    grad: array-like, shape (n,)
        Gradient g of the smooth function at the center.

    hessian: array-like or callable
        H, either as a (n, n) matrix or as a callable computing H s.

    center: array-like, shape (n,)
        Point c where the model is built.

    x0: array-like, shape (n,), optional
        Starting point on the simplex. Defaults to the center.

    radius: float
        Radius r of the simplex.

    tol: float
        The iteration stops when the Frank-Wolfe gap is below tol.

    max_iter: int
        Maximum number of Frank-Wolfe iterations.

    variant: {"vanilla", "pairwise"}
        "pairwise" moves mass from the active vertex most correlated with
        the gradient to the Frank-Wolfe vertex.

  Returns:
    scipy.optimize.OptimizeResult
      ``x`` the approximate minimizer, ``certificate`` its Frank-Wolfe gap,
      ``fun`` the model value, ``nit`` the number of iterations,
      ``success`` whether the gap went below tol and ``hess_step`` the
      product H (x - center).

  References:
    Lacoste-Julien, Simon, and Martin Jaggi. "On the global linear
    convergence of Frank-Wolfe optimization variants." NeurIPS 2015.
  """
    if variant not in VARIANTS:
        raise ValueError("Invalid option variant=%s, must be one of %s" % (variant, VARIANTS))
    if tol < 0:
        raise ValueError("Tol must be non-negative")
    grad = np.asarray(grad, dtype=float).ravel()
    center = np.asarray(center, dtype=float).ravel()
    n_features = grad.size

    H_center = utils.hessian_dot(hessian, center)
    if x0 is None:
        x = center.copy()
        H_x = H_center.copy()
    else:
        x = np.array(x0, dtype=float).ravel()
        H_x = utils.hessian_dot(hessian, x)

    success = False
    certificate = np.inf
    n_iter = 0
    while n_iter < max_iter:
        grad_x = grad + H_x - H_center
        fw_idx = np.argmin(grad_x)
        certificate = grad_x.dot(x) - radius * grad_x[fw_idx]
        if certificate <= tol:
            success = True
            break
        n_iter += 1

        H_fw = radius * utils.hessian_column(hessian, fw_idx, n_features)
        if variant == "pairwise":
            active = np.flatnonzero(x > 0)
            away_idx = active[np.argmax(grad_x[active])]
            max_step_size = x[away_idx] / radius
            H_away = radius * utils.hessian_column(hessian, away_idx, n_features)
            H_d = H_fw - H_away
            slope = radius * (grad_x[fw_idx] - grad_x[away_idx])
            curvature = radius * (H_d[fw_idx] - H_d[away_idx])
        else:
            max_step_size = 1.0
            update_direction = -x
            update_direction[fw_idx] += radius
            H_d = H_fw - H_x
            slope = -certificate
            curvature = update_direction.dot(H_d)

        if slope >= 0:
            # no descent along this direction
            break
        if curvature > 0:
            step_size = min(-slope / curvature, max_step_size)
        else:
            step_size = max_step_size

        if variant == "pairwise":
            x[fw_idx] += step_size * radius
            if step_size == max_step_size:
                # .. drop step, remove vertex from the active set ..
                x[away_idx] = 0.0
            else:
                x[away_idx] -= step_size * radius
        else:
            x += step_size * update_direction
        H_x += step_size * H_d

    hess_step = H_x - H_center
    step = x - center
    return optimize.OptimizeResult(
        x=x,
        fun=grad.dot(step) + 0.5 * step.dot(hess_step),
        certificate=certificate,
        nit=n_iter,
        success=success,
        hess_step=hess_step,
    )


def minimize_newton_frank_wolfe(
        f_grad,
        hessian,
        x0,
        radius=1.0,
        lambda0=1.0,
        lambda_tol=1e-6,
        sub_tol=0.1,
        short2long=10,
        max_iter=100,
        sub_max_iter=1000,
        k=2,
        variant="pairwise",
        max_iter_backtracking=30,
        armijo=1e-4,
        callback=None,
        verbose=0,
):
    r"""Newton Frank-Wolfe method over the simplex.

  Minimizes a smooth convex function F over the simplex
  :math:`\{z \geq 0, \sum_i z_i = r\}`. At every iteration a quadratic
  model of F around the current iterate is minimized inexactly by
  :func:`minimize_quadratic_simplex`, with a tolerance that decreases with
  the Newton decrement :math:`\lambda = \|d\|_{\nabla^2 F(z)}` of the
  previous direction d.

  Far from the solution the method takes damped steps of size
  :math:`1 / (1 + \lambda)`, safeguarded by a backtracking line-search.
  Once :math:`\lambda < 1 / \mathrm{short2long}` it switches to full
  steps, which are only accepted when they decrease the objective;
  otherwise it goes back to damped steps.

  An L1-ball constraint is handled by lifting the problem to the simplex,
  see :func:`fwpn.constraint.l1_simplex_lifting`.

  Args:
    f_grad: callable
        Returns the function value and gradient of the objective.

    hessian: callable
        ``hessian(z)`` returns the Hessian at z, either as a matrix or as a
        callable computing Hessian-vector products.

    x0: array-like
        Initial point on the simplex.

    radius: float
        Radius of the simplex.

    lambda0: float
        Initial value of the Newton decrement, used for the first inner
        tolerance.

    lambda_tol: float
        The iteration stops when both the Newton decrement and the
        Frank-Wolfe gap at the current iterate are below lambda_tol.

    sub_tol: float
        Largest tolerance given to the inner solver. The tolerance is also
        kept below EPS_TOL times the Frank-Wolfe gap at the current
        iterate.

    short2long: float
        Full steps are taken once the Newton decrement is below
        1 / short2long.

    max_iter: int
        Maximum number of Newton iterations.

    sub_max_iter: int
        Maximum number of Frank-Wolfe iterations per subproblem.

    k: float
        The inner tolerance is sub_tol * min(1, lambda) ** k.

    variant: {"vanilla", "pairwise"}
        Frank-Wolfe variant for the subproblems.

    max_iter_backtracking: int
        Number of halvings of a damped step. If none of them decreases the
        objective the step is rejected and the method stops.

    armijo: float
        Sufficient decrease constant of the damped step line-search.

    callback: callable, optional
        Called with the dict of local variables at every iteration and on
        exit. The algorithm stops if it returns False.

    verbose: int
        Verbosity level. Any non-zero value shows a progress bar, 2 or more
        also prints a line per iteration.

  Returns:
    scipy.optimize.OptimizeResult
      ``x`` the last iterate, ``fun`` its objective, ``certificate`` the
      last Newton decrement, ``fw_gap`` the Frank-Wolfe gap at ``x`` (an
      upper bound on the suboptimality), ``nit`` the number of Newton
      iterations and ``n_inner`` the total number of Frank-Wolfe iterations.

  References:
    Liu, Deyi, Volkan Cevher, and Quoc Tran-Dinh. "A Newton Frank-Wolfe
    method for constrained self-concordant minimization." Journal of
    Global Optimization (2022).
  """
    if lambda_tol < 0:
        raise ValueError("lambda_tol must be non-negative")
    if sub_tol <= 0:
        raise ValueError("sub_tol must be strictly positive")
    if short2long <= 0:
        raise ValueError("short2long must be strictly positive")
    if variant not in VARIANTS:
        raise ValueError("Invalid option variant=%s, must be one of %s" % (variant, VARIANTS))
    x = np.array(x0, dtype=float).ravel()
    if np.any(x < 0) or not np.isclose(x.sum(), radius):
        raise ValueError("x0 must lie on the simplex of radius %s" % radius)

    f_t, grad = f_grad(x)
    decrement = lambda0
    sub_tol_t = sub_tol
    long_steps = False
    model_solution = x.copy()

    success = False
    stopped = False
    certificate = np.nan
    fw_gap = np.inf
    step_size = None
    n_inner = 0
    n_iter = 0
    pbar = trange(int(max_iter), disable=(verbose == 0) or utils.DISABLE_TQDM)
    for it in pbar:
        if callback is not None:
            if callback(locals()) is False:
                stopped = True
                break
        n_iter += 1

        # Frank-Wolfe gap of F at x, also the gap of the model at its center
        fw_gap = max(grad.dot(x) - radius * grad.min(), 0.0)
        hess = hessian(x)
        sub_tol_t = min(
            sub_tol_t, sub_tol * min(1.0, decrement) ** k, EPS_TOL * fw_gap)
        sub = minimize_quadratic_simplex(
            grad,
            hess,
            x,
            x0=model_solution,
            radius=radius,
            tol=sub_tol_t,
            max_iter=sub_max_iter,
            variant=variant,
        )
        n_inner += sub.nit
        model_solution = sub.x
        update_direction = model_solution - x
        decrement = np.sqrt(max(update_direction.dot(sub.hess_step), 0.0))
        certificate = decrement
        if decrement <= lambda_tol and fw_gap <= lambda_tol:
            success = True
            break

        step_size = None
        if long_steps:
            f_next, grad_next = f_grad(model_solution)
            if f_next <= f_t:
                step_size = 1.0
            else:
                long_steps = False
        if step_size is None:
            slope = min(grad.dot(update_direction), 0.0)
            step_size = 1.0 / (1.0 + decrement)
            for _ in range(max_iter_backtracking):
                f_next, grad_next = f_grad(x + step_size * update_direction)
                if f_next <= f_t + armijo * step_size * slope:
                    break
                step_size *= 0.5
            else:
                # x, the model and the tolerance would all stay the same
                step_size = 0.0
                warnings.warn(
                    "No decrease along the Newton direction, stopping",
                    RuntimeWarning,
                )
                break

        x = x + step_size * update_direction
        f_t, grad = f_next, grad_next
        if decrement < 1.0 / short2long:
            long_steps = True

        pbar.set_description("FWPN")
        pbar.set_postfix(decrement=decrement, gap=fw_gap, f=f_t, inner=sub.nit)
        if verbose > 1:
            pbar.write(
                "Iteration %s, f: %.10e, decrement: %.3e, gap: %.3e, step size: %.3e, inner: %s"
                % (it, f_t, decrement, fw_gap, step_size, sub.nit)
            )
    else:
        warnings.warn(
            "minimize_newton_frank_wolfe did not reach the desired tolerance level",
            RuntimeWarning,
        )
    fw_gap = max(grad.dot(x) - radius * grad.min(), 0.0)
    if callback is not None and not stopped:
        callback(locals())
    pbar.close()
    return optimize.OptimizeResult(
        x=x,
        fun=f_t,
        success=success,
        certificate=certificate,
        fw_gap=fw_gap,
        nit=n_iter,
        n_inner=n_inner,
        step_size=step_size,
    )
