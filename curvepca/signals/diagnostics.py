from typing import Sequence

import numpy as np
import pandas as pd
from scipy.stats import pearsonr

from curvepca.data.curves import CurveObservation, yield_matrix
from curvepca.engine.pca import PCAResult


def observable_factors(observations: Sequence[CurveObservation], tenors) -> pd.DataFrame:
    """
    Model-free curve factors per observation:
        level     = mean yield across tenors
        slope     = last tenor - first tenor
        butterfly = 2 × middle - first - last
    """
    m = yield_matrix(observations, tenors)
    mid = m.shape[1] // 2
    return pd.DataFrame(
        {
            "level":     m.mean(axis=1),
            "slope":     m[:, -1] - m[:, 0],
            "butterfly": 2 * m[:, mid] - m[:, 0] - m[:, -1],
        },
        index=pd.DatetimeIndex([pd.Timestamp(o.date) for o in observations], name="date"),
    )


def factor_diagnostics(observations: Sequence[CurveObservation], pca: PCAResult) -> pd.DataFrame:
    """
    Pearson correlation of each PC score series with its observable twin.

    With aligned signs PC1 should track the level, PC2 the slope and PC3 the
    butterfly, all with positive correlation. A weak or negative value flags
    a window where the factor interpretation does not hold.

    Returns
    -------
    pd.DataFrame indexed by PC1..PC3 with columns: factor, corr, p_value
    """
    rows = []
    if pca.is_empty or len(observations) != len(pca.scores):
        return pd.DataFrame(rows, columns=["factor", "corr", "p_value"])

    observed = observable_factors(observations, pca.tenors)
    for k, factor in enumerate(["level", "slope", "butterfly"][:pca.n_components]):
        score = pca.scores[:, k]
        x = observed[factor].values
        if len(score) < 3 or np.std(score) == 0 or np.std(x) == 0:
            corr, p_value = np.nan, np.nan
        else:
            corr, p_value = pearsonr(score, x)
        rows.append({"pc": f"PC{k + 1}", "factor": factor, "corr": round(float(corr), 4), "p_value": float(p_value)})

    return pd.DataFrame(rows).set_index("pc")
