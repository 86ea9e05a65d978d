from datetime import date, timedelta
from typing import List

import numpy as np

from curvepca.data.curves import CurveObservation
from curvepca.data.tenors import Tenor

# Normal, gently humped starting curve (percent)
BASE_CURVE = {
    Tenor.M1:  4.5,  Tenor.M3: 4.6,  Tenor.M6:  4.7,
    Tenor.Y1:  4.8,  Tenor.Y2: 4.75, Tenor.Y3:  4.7,
    Tenor.Y5:  4.65, Tenor.Y7: 4.7,  Tenor.Y10: 4.8,
    Tenor.Y20: 5.0,  Tenor.Y30: 4.9,
}


def factor_shapes(tenor: Tenor):
    """Level, slope and curvature exposure of a tenor (Nelson-Siegel style)."""
    t = tenor.years
    return (
        1.0,
        1 - np.exp(-t / 5),
        4 * np.exp(-t / 2) * (1 - np.exp(-t / 2)),
    )


def generate_mock_curves(days: int = 90, seed: int = None, end: date = None) -> List[CurveObservation]:
    """
    Synthetic daily curves driven by random-walk level, slope and curvature
    factors plus small independent noise, rounded to 3 decimals.

    Parameters
    ----------
    days : number of days back from `end`; days + 1 curves are produced
    seed : seed for numpy's Generator, for reproducible curves
    end  : last curve date (default today)
    """
    rng = np.random.default_rng(seed)
    end = end or date.today()
    shapes = {t: factor_shapes(t) for t in Tenor}

    level = slope = curvature = 0.0
    observations = []
    for i in range(days, -1, -1):
        level     += (rng.random() - 0.5) * 0.05
        slope     += (rng.random() - 0.5) * 0.03
        curvature += (rng.random() - 0.5) * 0.02

        yields = {}
        for tenor in Tenor:
            s_level, s_slope, s_curv = shapes[tenor]
            val = BASE_CURVE[tenor] + level * s_level + slope * s_slope + curvature * s_curv
            val += (rng.random() - 0.5) * 0.02
            yields[tenor] = round(float(val), 3)

        observations.append(CurveObservation(date=end - timedelta(days=i), yields=yields))
    return observations
