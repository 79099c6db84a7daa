import numpy as np
import pytest
import fwpn as fp

np.random.seed(0)


@pytest.mark.parametrize("alpha", [0.1, 1.0, 10.0])
def test_l1_projection(alpha):
    for _ in range(10):
        v = 5 * np.random.randn(20)
        w = fp.constraint.euclidean_proj_l1ball(v, alpha)
        assert np.abs(w).sum() <= alpha + 1e-10
        # projection is idempotent
        np.testing.assert_allclose(fp.constraint.euclidean_proj_l1ball(w, alpha), w)
        if np.abs(v).sum() > alpha:
            # soft-thresholding with a common threshold
            support = w != 0
            theta = np.abs(v[support]) - np.abs(w[support])
            np.testing.assert_allclose(theta, theta[0])
            assert np.all(np.abs(v[~support]) <= theta[0] + 1e-10)
            assert np.all(np.sign(w[support]) == np.sign(v[support]))


def test_l1_projection_inside():
    v = np.array([0.1, -0.2, 0.3])
    assert fp.constraint.euclidean_proj_l1ball(v, 1.0) is v
    l1_ball = fp.constraint.L1Ball(1.0)
    assert l1_ball(v) == 0
    assert l1_ball(10 * v) == np.inf
    np.testing.assert_allclose(l1_ball.prox(v, 0.5), v)


@pytest.mark.parametrize("s", [0.5, 1.0, 4.0])
def test_simplex_projection(s):
    for _ in range(10):
        v = np.random.randn(6)
        w = fp.constraint.euclidean_proj_simplex(v, s)
        assert np.all(w >= 0)
        np.testing.assert_allclose(w.sum(), s)
        # no point of the simplex is closer to v
        for _ in range(50):
            u = np.random.rand(6)
            u *= s / u.sum()
            assert np.linalg.norm(w - v) <= np.linalg.norm(u - v) + 1e-12


def test_projection_errors():
    with pytest.raises(ValueError):
        fp.constraint.euclidean_proj_simplex(np.ones(3), 0)
    with pytest.raises(ValueError):
        fp.constraint.euclidean_proj_l1ball(np.ones(3), -1)
    with pytest.raises(ValueError):
        fp.constraint.euclidean_proj_l1ball(np.ones((3, 3)), 1)
    with pytest.raises(ValueError):
        fp.constraint.L1Ball(0)
    with pytest.raises(ValueError):
        fp.constraint.SimplexConstraint(-1)


def test_simplex_indicator():
    simplex = fp.constraint.SimplexConstraint(3.0)
    x = np.array([1.0, 1.0, 1.0])
    assert simplex(x) == 0
    assert simplex(2 * x) == np.inf
    assert simplex(np.array([4.0, -1.0, 0.0])) == np.inf
    np.testing.assert_allclose(simplex.prox(x, 1.0), x)


@pytest.mark.parametrize("alpha", [0.5, 10.0])
def test_l1_simplex_lifting(alpha):
    n_features = 7
    C = fp.constraint.l1_simplex_lifting(n_features, alpha)
    assert C.shape == (n_features, 2 * n_features)
    center = fp.constraint.simplex_center(2 * n_features)
    np.testing.assert_allclose(center.sum(), 1.0)
    np.testing.assert_allclose(C.dot(center), 0.0, atol=1e-12)

    # vertices of the simplex are mapped onto vertices of the L1 ball
    vertices = C.toarray().T
    np.testing.assert_allclose(np.abs(vertices).sum(axis=1), alpha)

    for _ in range(10):
        z = np.random.rand(2 * n_features)
        z /= z.sum()
        assert np.abs(C.dot(z)).sum() <= alpha + 1e-10

    # every point of the ball has a preimage on the simplex
    x = fp.constraint.euclidean_proj_l1ball(np.random.randn(n_features), alpha)
    z = np.concatenate((np.maximum(x, 0), np.maximum(-x, 0))) / alpha
    z += (1 - z.sum()) / z.size
    np.testing.assert_allclose(z.sum(), 1.0)
    assert np.all(z >= 0)
    np.testing.assert_allclose(C.dot(z), x, atol=1e-12)
