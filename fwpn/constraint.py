import numpy as np
from scipy import sparse


class L1Ball:
    """Indicator function over the L1 ball

    This function is 0 if the sum of absolute values is less than or equal to
    alpha, and infinity otherwise.

    Args:
        alpha: float
            radius of the ball.
    """

    def __init__(self, alpha):
        if alpha <= 0:
            raise ValueError("Radius alpha must be strictly positive, got %s" % alpha)
        self.alpha = alpha

    def __call__(self, x):
        if np.abs(x).sum() <= self.alpha:
            return 0
        else:
            return np.inf

    def prox(self, x, step_size=None):
        """Projection onto the L1 ball.

        The step size is ignored, since the proximal operator of an
        indicator function is the projection onto the set.
        """
        return euclidean_proj_l1ball(x, self.alpha)


class SimplexConstraint:
    """Indicator function over the scaled simplex {x >= 0, sum(x) = s}.

    Args:
        s: float
            radius of the simplex.
    """

    def __init__(self, s=1):
        if s <= 0:
            raise ValueError("Radius s must be strictly positive, got %s" % s)
        self.s = s

    def __call__(self, x, tol=1e-10):
        if np.all(x >= -tol) and abs(x.sum() - self.s) <= tol * max(1, self.s):
            return 0
        return np.inf

    def prox(self, x, step_size=None):
        return euclidean_proj_simplex(x, self.s)


def euclidean_proj_simplex(v, s=1.0):
    r""" Compute the Euclidean projection on a positive simplex

    Solves the optimization problem (using the algorithm from [1]):
        min_w 0.5 * || w - v ||_2^2 , s.t. \sum_i w_i = s, w_i >= 0

    Args:
    v: (n,) numpy array,
        n-dimensional vector to project
    s: float, optional, default: 1,
        radius of the simplex

    Returns:
    w: (n,) numpy array,
        Euclidean projection of v on the simplex

    Notes:
    The complexity of this algorithm is in O(n log(n)) as it involves sorting v.

    References:
    [1] Efficient Projections onto the .1-Ball for Learning in High Dimensions
        John Duchi, Shai Shalev-Shwartz, Yoram Singer, and Tushar Chandra.
        International Conference on Machine Learning (ICML 2008)
    """
    if s <= 0:
        raise ValueError("Radius s must be strictly positive (%s <= 0)" % s)
    v = np.asarray(v, dtype=float)
    if v.ndim != 1:
        raise ValueError("v must be 1-D, got shape %s" % (v.shape,))
    (n,) = v.shape
    # check if we are already on the simplex
    if v.sum() == s and np.all(v >= 0):
        return v
    # get the array of cumulative sums of a sorted (decreasing) copy of v
    u = np.sort(v)[::-1]
    cssv = np.cumsum(u)
    # get the number of > 0 components of the optimal solution
    rho = np.nonzero(u * np.arange(1, n + 1) > (cssv - s))[0][-1]
    # Lagrange multiplier associated to the simplex constraint
    theta = (cssv[rho] - s) / (rho + 1.0)
    w = (v - theta).clip(min=0)
    return w


def euclidean_proj_l1ball(v, s=1):
    """ Compute the Euclidean projection on a L1-ball

    Solves the optimisation problem (using the algorithm from [1]):
        min_w 0.5 * || w - v ||_2^2 , s.t. || w ||_1 <= s

    Args:
        v: (n,) numpy array,
            n-dimensional vector to project
        s: float, optional, default: 1,
            radius of the L1-ball

    Returns:
        w: (n,) numpy array,
            Euclidean projection of v on the L1-ball of radius s

    Notes:
        Solves the problem by a reduction to the positive simplex case
        See also :ref:`euclidean_proj_simplex`
    """
    if s <= 0:
        raise ValueError("Radius s must be strictly positive (%s <= 0)" % s)
    v = np.asarray(v, dtype=float)
    if v.ndim != 1:
        raise ValueError("v must be 1-D, got shape %s" % (v.shape,))
    u = np.abs(v)
    if u.sum() <= s:
        return v
    # optimum lies on the boundary (norm == s): project *u* on the simplex
    w = euclidean_proj_simplex(u, s=s)
    w *= np.sign(v)
    return w


def l1_simplex_lifting(n_features, alpha):
    """Linear map from the unit simplex of dimension 2 * n_features onto the
    L1 ball of radius alpha.

    Every x with ||x||_1 <= alpha can be written x = C z with z in the unit
    simplex, taking z = [x+, x-] / alpha plus the slack spread evenly.

    Returns:
        C: scipy.sparse CSR matrix, shape (n_features, 2 * n_features)
            C = alpha * [I, -I].
    """
    if alpha <= 0:
        raise ValueError("Radius alpha must be strictly positive, got %s" % alpha)
    eye = sparse.eye(n_features, format="csr")
    return (alpha * sparse.hstack((eye, -eye))).tocsr()


def simplex_center(n_lifted):
    """Barycenter of the unit simplex, mapped to x = 0 by the lifting."""
    return np.full(n_lifted, 1.0 / n_lifted)
