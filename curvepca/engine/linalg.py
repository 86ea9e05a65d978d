import logging
import math
from dataclasses import dataclass

import numpy as np

from curvepca.config import JACOBI_MAX_ITERATIONS, JACOBI_TOLERANCE

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class EigenDecomposition:
    """
    Output of the Jacobi solver.

    eigenvalues  : (n,) sorted descending
    eigenvectors : (n, n), row k is the unit eigenvector for eigenvalues[k]
    converged    : False when the iteration cap was hit first
    iterations   : rotations applied
    """
    eigenvalues: np.ndarray
    eigenvectors: np.ndarray
    converged: bool
    iterations: int


def mean_vector(matrix: np.ndarray) -> np.ndarray:
    """Column-wise mean. Empty vector when there are no rows."""
    matrix = np.asarray(matrix, dtype=float)
    if matrix.ndim != 2 or matrix.shape[0] == 0:
        return np.zeros(0)
    return matrix.mean(axis=0)


def center_rows(matrix: np.ndarray, means: np.ndarray) -> np.ndarray:
    """Subtract the column means from every row."""
    return np.asarray(matrix, dtype=float) - np.asarray(means, dtype=float)


def covariance(centered: np.ndarray) -> np.ndarray:
    """
    Unbiased (n-1) covariance of already-centered data.

    Fewer than two rows gives an all-zero matrix rather than a division by
    zero, so short backtest windows stay usable.
    """
    centered = np.asarray(centered, dtype=float)
    n = centered.shape[0]
    m = centered.shape[1] if centered.ndim == 2 else 0
    if n < 2 or m == 0:
        return np.zeros((m, m))
    cov = centered.T @ centered / (n - 1)
    # Exact symmetry for the solver
    return (cov + cov.T) / 2


def jacobi_eigen_decompose(
    matrix: np.ndarray,
    max_iterations: int = JACOBI_MAX_ITERATIONS,
    tolerance: float = JACOBI_TOLERANCE,
    warn: bool = True,
) -> EigenDecomposition:
    """
    Eigen-decomposition of a symmetric matrix by max-pivot Jacobi rotations.

    Each iteration zeroes the largest off-diagonal entry a_pq with a Givens
    rotation of angle 0.5 * atan2(2 a_pq, a_pp - a_qq), updating both the
    working matrix D and the accumulated rotations V. Stops once the largest
    off-diagonal magnitude drops below `tolerance`.

    If `max_iterations` runs out first the current estimate is returned with
    converged=False; eigenvectors are then only approximately orthonormal.
    That is logged as a warning, or at debug level with warn=False (callers
    fitting many windows report a single summary instead).
    """
    D = np.array(matrix, dtype=float)
    n = D.shape[0]
    if n == 0:
        return EigenDecomposition(np.zeros(0), np.zeros((0, 0)), True, 0)

    V = np.eye(n)
    converged  = False
    iterations = 0

    for _ in range(max_iterations):
        # ── Locate pivot ──────────────────────────────────────────────────
        off = np.abs(np.triu(D, k=1))
        p, q = np.unravel_index(np.argmax(off), off.shape)
        max_val = off[p, q]
        if max_val < tolerance:
            converged = True
            break

        d_pp, d_qq, d_pq = D[p, p], D[q, q], D[p, q]
        theta = 0.5 * math.atan2(2 * d_pq, d_pp - d_qq)
        c, s = math.cos(theta), math.sin(theta)

        # ── Rotate working matrix ─────────────────────────────────────────
        D[p, p] = c * c * d_pp + 2 * s * c * d_pq + s * s * d_qq
        D[q, q] = s * s * d_pp - 2 * s * c * d_pq + c * c * d_qq
        D[p, q] = D[q, p] = 0.0

        others = [i for i in range(n) if i != p and i != q]
        d_ip = D[others, p].copy()
        d_iq = D[others, q].copy()
        D[others, p] = D[p, others] = c * d_ip + s * d_iq
        D[others, q] = D[q, others] = c * d_iq - s * d_ip

        # ── Accumulate rotation ───────────────────────────────────────────
        v_p = V[:, p].copy()
        v_q = V[:, q].copy()
        V[:, p] = c * v_p + s * v_q
        V[:, q] = c * v_q - s * v_p

        iterations += 1
    else:
        off = np.abs(np.triu(D, k=1))
        converged = bool(off.max() < tolerance)

    if not converged:
        logger.log(
            logging.WARNING if warn else logging.DEBUG,
            "Jacobi solver stopped after %s iterations (max off-diagonal %.3e > %.1e)",
            iterations, float(np.abs(np.triu(D, k=1)).max()), tolerance,
        )
    logger.debug("Jacobi solver: n=%s iterations=%s converged=%s", n, iterations, converged)

    eigenvalues = np.diag(D).copy()
    order = np.argsort(-eigenvalues, kind="stable")
    return EigenDecomposition(
        eigenvalues=eigenvalues[order],
        eigenvectors=V[:, order].T.copy(),
        converged=converged,
        iterations=iterations,
    )
