import logging
from dataclasses import dataclass
from datetime import date
from typing import List, Sequence

import numpy as np
import pandas as pd

from curvepca.config import (
    JACOBI_MAX_ITERATIONS,
    JACOBI_TOLERANCE,
    ROLLING_LOADINGS_WINDOW,
    ROLLING_VARIANCE_WINDOW,
    VARIANCE_FLOOR,
)
from curvepca.data.curves import CurveObservation, yield_matrix
from curvepca.data.tenors import Tenor
from curvepca.engine.linalg import center_rows, covariance, jacobi_eigen_decompose, mean_vector

logger = logging.getLogger(__name__)

COMPONENT_NAMES = ["Level", "Slope", "Curvature"]


@dataclass(frozen=True)
class PCAResult:
    """
    Factor model fitted on one window of curves.

    eigenvalues         : (k,) descending
    eigenvectors        : (k, n_tenors), row k = loadings of component k
    explained_variance  : (k,) fractions summing to 1 (zeros for constant data)
    cumulative_variance : running sum of explained_variance
    scores              : (n_obs, k) projections of the centered observations
    mean_vector         : (n_tenors,) window mean per tenor
    tenors              : tenor ordering of every tenor axis above
    """
    eigenvalues: np.ndarray
    eigenvectors: np.ndarray
    explained_variance: np.ndarray
    cumulative_variance: np.ndarray
    scores: np.ndarray
    mean_vector: np.ndarray
    tenors: tuple
    converged: bool = True
    iterations: int = 0

    @classmethod
    def empty(cls, tenors: Sequence[Tenor]) -> "PCAResult":
        n = len(tenors)
        return cls(
            eigenvalues=np.zeros(0),
            eigenvectors=np.zeros((0, n)),
            explained_variance=np.zeros(0),
            cumulative_variance=np.zeros(0),
            scores=np.zeros((0, 0)),
            mean_vector=np.zeros(0),
            tenors=tuple(tenors),
        )

    @property
    def is_empty(self) -> bool:
        return len(self.eigenvalues) == 0

    @property
    def n_components(self) -> int:
        return len(self.eigenvalues)

    def component_labels(self) -> List[str]:
        return [f"PC{k + 1}" for k in range(self.n_components)]

    def loadings_frame(self) -> pd.DataFrame:
        """Loadings as a DataFrame: rows PC1..PCk, columns tenor labels."""
        return pd.DataFrame(
            self.eigenvectors,
            index=self.component_labels(),
            columns=[t.value for t in self.tenors],
        )

    def scores_frame(self, dates: Sequence = None) -> pd.DataFrame:
        """Scores as a DataFrame: one row per fitted observation, columns PC1..PCk."""
        index = pd.DatetimeIndex(pd.to_datetime(list(dates)), name="date") if dates is not None else None
        return pd.DataFrame(self.scores, index=index, columns=self.component_labels())


@dataclass(frozen=True)
class RollingLoadings:
    """Sign-aligned loadings of one rolling window, stamped with its last date."""
    date: date
    loadings: np.ndarray

    @property
    def level(self) -> np.ndarray:
        return self.loadings[0] if len(self.loadings) > 0 else np.zeros(0)

    @property
    def slope(self) -> np.ndarray:
        return self.loadings[1] if len(self.loadings) > 1 else np.zeros(0)

    @property
    def curvature(self) -> np.ndarray:
        return self.loadings[2] if len(self.loadings) > 2 else np.zeros(0)


def log_unconverged(what: str, unconverged: int, total: int):
    """One warning per run of window fits that hit the Jacobi iteration cap."""
    if unconverged:
        logger.warning(
            "%s: Jacobi solver hit the iteration cap in %s of %s windows",
            what, unconverged, total,
        )


class PCAEngine:
    """
    Principal component decomposition of yield-curve levels.

    Every fit, static or rolling, runs the same pipeline:
        mean -> center -> covariance -> Jacobi -> sign alignment
             -> variance normalisation -> score projection
    so factor signs stay comparable from one window to the next.
    """

    @staticmethod
    def align_signs(eigenvectors: np.ndarray) -> np.ndarray:
        """
        Fix the sign of the first three eigenvectors by convention:

            PC1 (Level)     : loadings sum >= 0           (rates up is positive)
            PC2 (Slope)     : last - first >= 0           (steepener is positive)
            PC3 (Curvature) : middle >= mean of the wings (hump is positive)

        Higher components keep the solver's sign. Applying it twice changes
        nothing.
        """
        aligned = np.array(eigenvectors, dtype=float, copy=True)
        for k in range(min(3, len(aligned))):
            vec = aligned[k]
            if len(vec) == 0:
                continue
            if k == 0:
                flip = vec.sum() < 0
            elif k == 1:
                flip = vec[-1] - vec[0] < 0
            else:
                flip = vec[len(vec) // 2] < (vec[0] + vec[-1]) / 2
            if flip:
                aligned[k] = -vec
        return aligned

    @staticmethod
    def fit_matrix(
        matrix: np.ndarray,
        tenors: Sequence[Tenor],
        max_iterations: int = JACOBI_MAX_ITERATIONS,
        tolerance: float = JACOBI_TOLERANCE,
        warn: bool = True,
    ) -> PCAResult:
        """
        Fit on an already-numeric (n_obs x n_tenors) matrix.

        warn=False drops the solver's non-convergence message to debug level;
        the result still carries converged=False.
        """
        tenors = tuple(Tenor.parse(t) for t in tenors)
        matrix = np.asarray(matrix, dtype=float)
        if matrix.shape[0] == 0:
            return PCAResult.empty(tenors)

        means    = mean_vector(matrix)
        centered = center_rows(matrix, means)
        cov      = covariance(centered)
        eig      = jacobi_eigen_decompose(cov, max_iterations=max_iterations, tolerance=tolerance, warn=warn)
        vectors  = PCAEngine.align_signs(eig.eigenvectors)

        total = eig.eigenvalues.sum()
        if total > VARIANCE_FLOOR:
            explained = eig.eigenvalues / total
        else:
            explained = np.zeros(len(eig.eigenvalues))

        return PCAResult(
            eigenvalues=eig.eigenvalues,
            eigenvectors=vectors,
            explained_variance=explained,
            cumulative_variance=np.cumsum(explained),
            scores=centered @ vectors.T,
            mean_vector=means,
            tenors=tenors,
            converged=eig.converged,
            iterations=eig.iterations,
        )

    @staticmethod
    def fit(
        observations: Sequence[CurveObservation],
        tenors: Sequence[Tenor],
        strict: bool = False,
    ) -> PCAResult:
        """
        Fit the factor model on a window of curves.

        Parameters
        ----------
        observations : date-ascending curves
        tenors       : tenor ordering of the fit
        strict       : raise NonNumericYieldError on missing/non-numeric
                       values instead of reading them as 0.0

        Returns
        -------
        PCAResult — PCAResult.empty(tenors) when there are no observations
        """
        tenors = [Tenor.parse(t) for t in tenors]
        if not observations:
            return PCAResult.empty(tenors)
        return PCAEngine.fit_matrix(yield_matrix(observations, tenors, strict=strict), tenors)

    @staticmethod
    def _windows(observations: Sequence[CurveObservation], tenors, window_size: int, strict: bool):
        """Yield (last date, fitted PCAResult) for each full window, oldest first."""
        if window_size < 1 or len(observations) < window_size:
            return
        matrix = yield_matrix(observations, tenors, strict=strict)
        for end in range(window_size, len(observations) + 1):
            pca = PCAEngine.fit_matrix(matrix[end - window_size:end], tenors, warn=False)
            yield observations[end - 1].date, pca

    @staticmethod
    def fit_rolling(
        observations: Sequence[CurveObservation],
        tenors: Sequence[Tenor],
        window_size: int = ROLLING_VARIANCE_WINDOW,
        strict: bool = False,
    ) -> pd.DataFrame:
        """
        Explained variance of each component through time.

        Slides a `window_size` window forward one observation at a time and
        refits independently. Each row is stamped with the window's last date,
        so window_size == len(observations) gives exactly one row equal to the
        static fit.

        Returns
        -------
        pd.DataFrame indexed by date, columns PC1..PCk (fractions of 1).
        Empty when there are fewer observations than window_size.
        """
        tenors = [Tenor.parse(t) for t in tenors]
        columns = [f"PC{k + 1}" for k in range(len(tenors))]
        rows, dates = [], []
        unconverged = 0
        for window_date, pca in PCAEngine._windows(observations, tenors, window_size, strict):
            rows.append(pca.explained_variance)
            dates.append(pd.Timestamp(window_date))
            unconverged += not pca.converged

        log_unconverged("Rolling variance", unconverged, len(rows))
        logger.debug("Rolling variance: %s windows of %s", len(rows), window_size)
        return pd.DataFrame(rows, index=pd.DatetimeIndex(dates, name="date"), columns=columns)

    @staticmethod
    def fit_rolling_loadings(
        observations: Sequence[CurveObservation],
        tenors: Sequence[Tenor],
        window_size: int = ROLLING_LOADINGS_WINDOW,
        strict: bool = False,
    ) -> List[RollingLoadings]:
        """Sign-aligned eigenvectors of each rolling window (see fit_rolling)."""
        tenors = [Tenor.parse(t) for t in tenors]
        loadings, unconverged = [], 0
        for window_date, pca in PCAEngine._windows(observations, tenors, window_size, strict):
            loadings.append(RollingLoadings(date=window_date, loadings=pca.eigenvectors))
            unconverged += not pca.converged
        log_unconverged("Rolling loadings", unconverged, len(loadings))
        return loadings
