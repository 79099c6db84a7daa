# python3
"""Proximal-gradient algorithms."""
import warnings
import numpy as np
from scipy import optimize
from tqdm import trange

from fwpn import utils


def _identity_prox(x, _):
    return x


def minimize_proximal_gradient(
        fun,
        x0,
        prox=None,
        jac="2-point",
        tol=1e-6,
        max_iter=500,
        args=(),
        verbose=0,
        callback=None,
        step="backtracking",
        step_size=None,
        accelerated=False,
        restart=False,
        eps=1e-8,
        max_iter_backtracking=1000,
        backtracking_factor=0.6,
        trace_certificate=False,
):
    """Proximal gradient descent.

  Solves problems of the form

          minimize_x f(x) + g(x)

  where f is a differentiable function and we have access to the proximal
  operator of g. With g the indicator of the L1 ball this is the projected
  gradient method used as the PG baseline, and with ``accelerated=True,
  restart=True`` it is the APG-RS baseline.

  Args:
    fun : callable
        The objective function to be minimized.
            ``fun(x, *args) -> float``
        where x is an 1-D array with shape (n,) and `args`
        is a tuple of the fixed parameters needed to completely
        specify the function.

    x0 : ndarray, shape (n,)
        Initial guess. It is not modified.

    prox : callable, optional.
        Proximal operator g, called as ``prox(x, step_size)``.

    jac : {callable,  '2-point', bool}, optional
        Method for computing the gradient vector. If it is a callable,
        it should be a function that returns the gradient vector:
            ``jac(x, *args) -> array_like, shape (n,)``
        If `jac` is True, `fun` is assumed to return the gradient along
        with the objective function. '2-point' (or False) estimates the
        gradient by finite differences.

    tol: float, optional
        Tolerance of the optimization procedure. The iteration stops when
        the gradient mapping (a generalization of the gradient to non-smooth
        functions) is below this tolerance.

    max_iter : int, optional.
        Maximum number of iterations.

    args : tuple, optional
        Extra arguments passed to the objective function and its gradient.

    verbose : int, optional.
        Verbosity level. Any non-zero value shows a progress bar.

    callback : callable.
        callback function (optional). Takes a single argument, the dict of
        local variables of the solver. The algorithm will exit if callback
        returns False.

    step : "backtracking", "fixed" or callable.
        Step-size strategy. "backtracking" uses a backtracking line-search,
        "fixed" uses ``step_size`` at every iteration, while a callable will
        use the value returned by step(locals()).

    step_size : float, optional
        Step size for step="fixed", typically 1 / lipschitz. Initial step
        size for the line-search (estimated if not given).

    accelerated: boolean
        Whether to use the accelerated (FISTA) variant of the algorithm.

    restart: boolean
        Only with accelerated=True. Reset the momentum whenever the
        objective increases (function-value restart). A step taken
        without momentum is a plain proximal gradient step and is kept.

    eps: float or ndarray
        If jac is approximated, use this value for the step size.

    max_iter_backtracking: int

    backtracking_factor: float

    trace_certificate: bool
        Whether to store the certificate of every iteration.

  Returns:
    res : The optimization result represented as a
        ``scipy.optimize.OptimizeResult`` object. Important attributes are:
        ``x`` the solution array, ``success`` a Boolean flag indicating if
        the optimizer exited successfully, ``fun`` the objective at ``x``
        and ``n_restarts`` the number of momentum restarts.

  References:
    Beck, Amir, and Marc Teboulle. "Gradient-based algorithms with applications
    to signal recovery." Convex optimization in signal processing and
    communications (2009)

    O'Donoghue, Brendan, and Emmanuel Candes. "Adaptive restart for
    accelerated gradient schemes." Foundations of computational
    mathematics (2015)
  """
    x = np.array(x0, dtype=float).ravel()
    if max_iter_backtracking <= 0:
        raise ValueError("Line search iterations need to be greater than 0")
    if restart and not accelerated:
        raise ValueError("restart=True requires accelerated=True")
    if not (callable(step) or step in ("backtracking", "fixed")):
        raise ValueError("Step-size strategy not understood: %s" % step)
    if step == "fixed" and step_size is None:
        raise ValueError('step_size needs to be specified with step="fixed"')

    if prox is None:
        prox = _identity_prox

    success = False
    certificate = np.nan
    n_restarts = 0

    func_and_grad = utils.build_func_grad(jac, fun, args, eps)

    # find initial step-size
    if step == "backtracking" and step_size is None:
        step_size = 1.8 / utils.init_lipschitz(func_and_grad, x)

    certificate_list = []
    fk, grad_fk = func_and_grad(x)
    n_iterations = 0
    pbar = trange(int(max_iter), disable=(verbose == 0) or utils.DISABLE_TQDM)
    if not accelerated:
        for n_iterations in pbar:
            if callback is not None:
                if callback(locals()) is False:
                    break
            if callable(step):
                step_size = step(locals())
                x_next = prox(x - step_size * grad_fk, step_size)
                f_next, grad_next = func_and_grad(x_next)
            elif step == "backtracking":
                step_size *= 1.1
                x_next = prox(x - step_size * grad_fk, step_size)
                for _ in range(max_iter_backtracking):
                    update_direction = x_next - x
                    f_next, grad_next = func_and_grad(x_next)
                    rhs = (
                        fk
                        + grad_fk.dot(update_direction)
                        + update_direction.dot(update_direction) / (2.0 * step_size)
                    )
                    if f_next <= rhs:
                        # .. step size found ..
                        break
                    # .. backtracking, reduce step size ..
                    step_size *= backtracking_factor
                    x_next = prox(x - step_size * grad_fk, step_size)
                else:
                    warnings.warn(
                        "Maximum number of line-search iterations reached",
                        RuntimeWarning,
                    )
            else:
                x_next = prox(x - step_size * grad_fk, step_size)
                f_next, grad_next = func_and_grad(x_next)

            certificate = np.linalg.norm((x - x_next) / step_size)
            if trace_certificate:
                certificate_list.append(certificate)
            x = x_next
            fk = f_next
            grad_fk = grad_next

            pbar.set_description("PG")
            pbar.set_postfix(tol=certificate, step_size=step_size, f=fk)

            if certificate < tol:
                if verbose:
                    pbar.write("Achieved relative tolerance at iteration %s" % n_iterations)
                success = True
                break
        else:
            warnings.warn(
                "minimize_proximal_gradient did not reach the desired tolerance level",
                RuntimeWarning,
            )
    else:
        tk = 1.0
        yk = x.copy()
        for n_iterations in pbar:
            f_yk, grad_yk = func_and_grad(yk)
            if callback is not None:
                if callback(locals()) is False:
                    break

            if callable(step):
                current_step_size = step(locals())
                x_next = prox(yk - current_step_size * grad_yk, current_step_size)
                f_next, grad_next = func_and_grad(x_next)
            elif step == "backtracking":
                current_step_size = step_size
                x_next = prox(yk - current_step_size * grad_yk, current_step_size)
                for _ in range(max_iter_backtracking):
                    update_direction = x_next - yk
                    f_next, grad_next = func_and_grad(x_next)
                    rhs = (
                        f_yk
                        + grad_yk.dot(update_direction)
                        + update_direction.dot(update_direction)
                        / (2.0 * current_step_size)
                    )
                    if f_next <= rhs:
                        break
                    current_step_size *= backtracking_factor
                    x_next = prox(yk - current_step_size * grad_yk, current_step_size)
                else:
                    warnings.warn(
                        "Maximum number of line-search iterations reached",
                        RuntimeWarning,
                    )
                step_size = current_step_size
            else:
                current_step_size = step_size
                x_next = prox(yk - current_step_size * grad_yk, current_step_size)
                f_next, grad_next = func_and_grad(x_next)

            if restart and tk > 1.0 and f_next > fk:
                # .. objective went up, drop the momentum and ..
                # .. take the next step from the current iterate ..
                # .. (a step without momentum is always kept) ..
                n_restarts += 1
                tk = 1.0
                yk = x.copy()
                continue

            x_prox = prox(x_next - current_step_size * grad_next, current_step_size)
            certificate = np.linalg.norm((x_next - x_prox) / current_step_size)
            if trace_certificate:
                certificate_list.append(certificate)

            t_next = (1 + np.sqrt(1 + 4 * tk * tk)) / 2
            yk = x_next + ((tk - 1.0) / t_next) * (x_next - x)
            tk = t_next
            x = x_next
            fk = f_next
            grad_fk = grad_next

            pbar.set_description("APG-RS" if restart else "APG")
            pbar.set_postfix(tol=certificate, step_size=current_step_size, f=fk)

            if certificate < tol:
                if verbose:
                    pbar.write("Achieved relative tolerance at iteration %s" % n_iterations)
                success = True
                break
        else:
            warnings.warn(
                "minimize_proximal_gradient did not reach the desired tolerance level",
                RuntimeWarning,
            )
    pbar.close()

    return optimize.OptimizeResult(
        x=x,
        fun=fk,
        success=success,
        certificate=certificate,
        nit=n_iterations,
        step_size=step_size,
        trace_certificate=certificate_list,
        n_restarts=n_restarts,
    )
