from datetime import date, timedelta

import numpy as np
import pytest

from curvepca.data.curves import CurveObservation
from curvepca.data.synthetic import generate_mock_curves
from curvepca.data.tenors import Tenor


def make_observations(matrix, tenors, start=date(2024, 1, 1)):
    """Observations from an (n_obs x n_tenors) yield matrix, one per calendar day."""
    return [
        CurveObservation(
            date=start + timedelta(days=i),
            yields={t: float(v) for t, v in zip(tenors, row)},
        )
        for i, row in enumerate(np.asarray(matrix, dtype=float))
    ]


@pytest.fixture
def mock_curves():
    return generate_mock_curves(days=120, seed=11, end=date(2024, 6, 28))


@pytest.fixture
def all_tenors():
    return list(Tenor)


@pytest.fixture
def make_curves():
    return make_observations


# Four tenors whose factor shapes are all orthogonal to V4, so the residual
# direction of a three-factor fit is known in advance.
FACTOR_TENORS = [Tenor.Y2, Tenor.Y5, Tenor.Y10, Tenor.Y30]
FACTOR_BASE   = np.array([4.2, 4.0, 4.1, 4.3])
FACTOR_SHAPES = np.array([
    [1.0, 1.0, 1.0, 1.0],      # level
    [-1.0, -0.5, 0.0, 1.5],    # slope
    [0.5, 1.0, 1.5, -3.0],     # curvature
])
V4 = np.array([1.0, -2.0, 1.0, 0.0]) / np.sqrt(6)


def factor_matrix(n, seed=0, step=0.05, noise=0.002):
    """Random-walk level/slope/curvature curves plus small iid noise."""
    rng = np.random.default_rng(seed)
    factors = np.cumsum(rng.normal(0.0, step, size=(n, 3)), axis=0)
    return FACTOR_BASE + factors @ FACTOR_SHAPES + rng.normal(0.0, noise, size=(n, 4))


@pytest.fixture
def factor_tenors():
    return list(FACTOR_TENORS)


@pytest.fixture
def capped_solver(monkeypatch):
    """Limit every PCA fit to two Jacobi rotations, so no fit converges."""
    from curvepca.engine import linalg, pca

    def capped(cov, max_iterations, tolerance, warn=True):
        return linalg.jacobi_eigen_decompose(cov, max_iterations=2, tolerance=tolerance, warn=warn)

    monkeypatch.setattr(pca, "jacobi_eigen_decompose", capped)
