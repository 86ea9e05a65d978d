from dataclasses import dataclass
from typing import List, Sequence

import numpy as np
import pandas as pd

from curvepca.config import N_FACTORS, RESIDUAL_STD_FLOOR
from curvepca.data.curves import CurveObservation, yield_matrix
from curvepca.data.tenors import Tenor
from curvepca.engine.pca import PCAResult


@dataclass(frozen=True)
class ResidualSignal:
    """
    Rich/cheap reading for one tenor.

    residual > 0 : actual yield above the model  -> cheap (buy)
    residual < 0 : actual yield below the model  -> rich  (sell)
    """
    tenor: Tenor
    actual: float
    model: float
    residual: float
    z_score: float

    @property
    def residual_bps(self) -> float:
        return self.residual * 100

    @property
    def label(self) -> str:
        return "CHEAP" if self.residual > 0 else "RICH"


class ResidualModel:
    """
    Model-implied yields from the first three factors of a fitted PCA.

    The new observation is projected onto the fit's eigenvectors; its score
    is never read from the stored scores because it was not part of the fit.
    """

    @staticmethod
    def _n_factors(pca: PCAResult) -> int:
        return min(N_FACTORS, pca.n_components)

    @staticmethod
    def model_yields(pca: PCAResult, rows: np.ndarray) -> np.ndarray:
        """
        Reconstruct (n_rows x n_tenors) yields from the top factors:
            model = mean + sum_k score_k * eigenvector_k,  k < 3
        where score_k is the projection of (row - mean) on eigenvector_k.
        """
        rows = np.atleast_2d(np.asarray(rows, dtype=float))
        k = ResidualModel._n_factors(pca)
        vectors = pca.eigenvectors[:k]
        scores = (rows - pca.mean_vector) @ vectors.T
        return pca.mean_vector + scores @ vectors

    @staticmethod
    def residual_std(pca: PCAResult, window: np.ndarray) -> np.ndarray:
        """Population std (divide by n) of the in-window residuals per tenor."""
        window = np.atleast_2d(np.asarray(window, dtype=float))
        residuals = window - ResidualModel.model_yields(pca, window)
        return np.sqrt((residuals ** 2).sum(axis=0) / len(window))

    @staticmethod
    def evaluate_row(pca: PCAResult, window: np.ndarray, row: np.ndarray) -> List[ResidualSignal]:
        """evaluate() on numeric inputs already laid out in pca.tenors order."""
        if pca.is_empty:
            return []
        row      = np.asarray(row, dtype=float)
        model    = ResidualModel.model_yields(pca, row)[0]
        residual = row - model
        std      = ResidualModel.residual_std(pca, window)

        signals = []
        for j, tenor in enumerate(pca.tenors):
            z = residual[j] / std[j] if std[j] > RESIDUAL_STD_FLOOR else 0.0
            signals.append(ResidualSignal(
                tenor=tenor,
                actual=float(row[j]),
                model=float(model[j]),
                residual=float(residual[j]),
                z_score=float(z),
            ))
        return signals

    @staticmethod
    def evaluate(
        pca: PCAResult,
        window: Sequence[CurveObservation],
        observation: CurveObservation,
    ) -> List[ResidualSignal]:
        """
        Score `observation` against a PCA fitted on `window`.

        Parameters
        ----------
        pca         : fit on `window`
        window      : the observations the fit used (for the residual std)
        observation : typically the day after the window

        Returns
        -------
        list of ResidualSignal in pca.tenors order (empty for an empty fit)
        """
        tenors = list(pca.tenors)
        return ResidualModel.evaluate_row(
            pca,
            yield_matrix(window, tenors),
            yield_matrix([observation], tenors)[0],
        )

    @staticmethod
    def latest(observations: Sequence[CurveObservation], pca: PCAResult) -> List[ResidualSignal]:
        """
        In-sample rich/cheap snapshot of the last observation against a fit
        on `observations`.
        """
        if not observations or pca.is_empty:
            return []
        return ResidualModel.evaluate(pca, observations, observations[-1])

    @staticmethod
    def to_frame(signals: Sequence[ResidualSignal]) -> pd.DataFrame:
        """Signals as a DataFrame indexed by tenor label, residuals also in bps."""
        return pd.DataFrame(
            [
                {
                    "tenor":        s.tenor.value,
                    "actual":       s.actual,
                    "model":        s.model,
                    "residual_bps": round(s.residual_bps, 1),
                    "z_score":      s.z_score,
                    "signal":       s.label,
                }
                for s in signals
            ],
            columns=["tenor", "actual", "model", "residual_bps", "z_score", "signal"],
        ).set_index("tenor")
