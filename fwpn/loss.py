import numpy as np
from scipy import sparse, special
from scipy.sparse import linalg as splinalg
from sklearn.utils.extmath import safe_sparse_dot, row_norms

from fwpn.utils import safe_sparse_add


class LogLoss:
    r"""Logistic loss function with a ridge term.

  The loss is defined as

  .. math::
      -\frac{1}{n}\sum_{i=1}^n b_i \log(\sigma(\bs{a}_i^T \bs{x}))
         + (1 - b_i) \log(1 - \sigma(\bs{a}_i^T \bs{x}))
         + \frac{\alpha}{2} \|\bs{x}\|^2

  where :math:`\sigma` is the sigmoid function
  :math:`\sigma(t) = 1/(1 + e^{-t})`.

  The input vector b verifies :math:`0 \leq b_i \leq 1`. For class labels
  :math:`y_i \in \{-1, 1\}` take :math:`b_i = (y_i + 1) / 2`; the loss is
  then :math:`\frac{1}{n}\sum_i \log(1 + \exp(-y_i \bs{a}_i^T \bs{x}))`.

  Args:
    A: array-like or sparse matrix, shape (n_samples, n_features)
        Design matrix. None means the identity.

    b: array-like, shape (n_samples,)
        Targets in [0, 1].

    alpha: float
        Amount of L2 regularization.

  References:
    http://fa.bianp.net/drafts/derivatives_logistic.html
  """

    def __init__(self, A, b, alpha=0.0):
        b = np.asarray(b, dtype=float).ravel()
        if A is None:
            A = sparse.eye(b.size, b.size, format="csr")
        if np.max(b) > 1 or np.min(b) < 0:
            raise ValueError("b can only contain values between 0 and 1 ")
        if not A.shape[0] == b.size:
            raise ValueError("Dimensions of A and b do not coincide")
        self.A = A
        self.b = b
        self.alpha = alpha

    @property
    def n_features(self):
        return self.A.shape[1]

    def __call__(self, x):
        return self.f_grad(x, return_gradient=False)

    def logsig(self, x):
        """Compute log(1 / (1 + exp(-t))) component-wise."""
        out = np.zeros_like(x)
        idx0 = x < -33
        out[idx0] = x[idx0]
        idx1 = (x >= -33) & (x < -18)
        out[idx1] = x[idx1] - np.exp(x[idx1])
        idx2 = (x >= -18) & (x < 37)
        out[idx2] = -np.log1p(np.exp(-x[idx2]))
        idx3 = x >= 37
        out[idx3] = -np.exp(-x[idx3])
        return out

    def expit_b(self, x, b):
        """Compute sigmoid(x) - b."""
        idx = x < 0
        out = np.zeros_like(x)
        exp_x = np.exp(x[idx])
        b_idx = b[idx]
        out[idx] = ((1 - b_idx) * exp_x - b_idx) / (1 + exp_x)
        exp_nx = np.exp(-x[~idx])
        b_nidx = b[~idx]
        out[~idx] = ((1 - b_nidx) - b_nidx * exp_nx) / (1 + exp_nx)
        return out

    def _margins(self, x):
        return safe_sparse_dot(self.A, x, dense_output=True).ravel()

    def f_grad(self, x, return_gradient=True):
        x = np.asarray(x, dtype=float).ravel()
        z = self._margins(x)
        loss = np.mean((1 - self.b) * z - self.logsig(z))
        loss += 0.5 * self.alpha * x.dot(x)

        if not return_gradient:
            return loss

        z0_b = self.expit_b(z, self.b)
        grad = safe_sparse_add(self.A.T.dot(z0_b) / self.A.shape[0], self.alpha * x)
        return loss, np.asarray(grad).ravel()

    def _curvature(self, x):
        # diagonal of the Hessian of the loss w.r.t. the margins
        s = special.expit(self._margins(np.asarray(x, dtype=float).ravel()))
        return s * (1 - s)

    def hessian_mv(self, x):
        """Return a callable that returns matrix-vector products with the Hessian."""
        n_samples = self.A.shape[0]
        d = self._curvature(x)
        if sparse.issparse(self.A):
            dX = safe_sparse_dot(
                sparse.dia_matrix((d, 0), shape=(n_samples, n_samples)), self.A
            )
        else:
            # Precompute as much as possible
            dX = d[:, np.newaxis] * self.A

        def _Hs(s):
            ret = np.asarray(self.A.T.dot(dX.dot(s))).ravel() / n_samples
            return ret + self.alpha * s

        return _Hs

    def hessian(self, x):
        """Dense Hessian matrix, shape (n_features, n_features)."""
        n_samples = self.A.shape[0]
        d = self._curvature(x)
        if sparse.issparse(self.A):
            dX = sparse.diags(d).dot(self.A)
            H = self.A.T.dot(dX).toarray()
        else:
            H = self.A.T.dot(d[:, np.newaxis] * self.A)
        H /= n_samples
        H[np.diag_indices_from(H)] += self.alpha
        return H

    @property
    def lipschitz(self):
        A = self.A
        if min(A.shape) == 1:
            s = np.sqrt(row_norms(A.T, squared=True).sum())
        elif not sparse.issparse(A) and min(A.shape) < 3:
            s = np.linalg.norm(A, 2)
        else:
            s = splinalg.svds(A, k=1, return_singular_vectors=False)[0]
        return 0.25 * (s * s) / A.shape[0] + self.alpha

    @property
    def max_lipschitz(self):
        max_squared_sum = row_norms(self.A, squared=True).max()
        return 0.25 * max_squared_sum + self.alpha


class LiftedLoss:
    r"""A loss composed with a linear map.

  Defines :math:`F(z) = f(C z)`, so that

  .. math::
      \nabla F(z) = C^T \nabla f(C z), \qquad
      \nabla^2 F(z) = C^T \nabla^2 f(C z) C.

  Used to write the L1-ball constrained problem over the simplex, see
  :func:`fwpn.constraint.l1_simplex_lifting`.

  Args:
    loss: LogLoss
        Loss defined on the original space.

    C: array-like or sparse matrix, shape (n_features, n_lifted)
  """

    def __init__(self, loss, C):
        if C.shape[0] != loss.n_features:
            raise ValueError(
                "C has %s rows but the loss has %s features"
                % (C.shape[0], loss.n_features)
            )
        self.loss = loss
        self.C = C

    @property
    def n_features(self):
        return self.C.shape[1]

    def lift_back(self, z):
        """Map a lifted point back to the original space."""
        return np.asarray(self.C.dot(z)).ravel()

    def __call__(self, z):
        return self.loss(self.lift_back(z))

    def f_grad(self, z, return_gradient=True):
        x = self.lift_back(z)
        if not return_gradient:
            return self.loss.f_grad(x, return_gradient=False)
        f, grad = self.loss.f_grad(x)
        return f, np.asarray(self.C.T.dot(grad)).ravel()

    def hessian_mv(self, z):
        Hs = self.loss.hessian_mv(self.lift_back(z))

        def _Hs(s):
            return np.asarray(self.C.T.dot(Hs(np.asarray(self.C.dot(s)).ravel()))).ravel()

        return _Hs

    def hessian(self, z):
        H = self.loss.hessian(self.lift_back(z))
        C = self.C
        if sparse.issparse(C):
            HC = np.asarray(C.T.dot(H.T)).T
            return np.asarray(C.T.dot(HC))
        return C.T.dot(H).dot(C)
