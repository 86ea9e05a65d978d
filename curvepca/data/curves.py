import logging
import math
from dataclasses import dataclass, field
from datetime import date
from typing import Dict, List, Mapping, Sequence

import numpy as np
import pandas as pd

from curvepca.data.tenors import Tenor
from curvepca.errors import NonNumericYieldError

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class CurveObservation:
    """One day's yield curve. Yields are in percent (4.08, not 0.0408)."""

    date: date
    yields: Mapping[Tenor, float] = field(default_factory=dict)

    def __post_init__(self):
        # Normalise string keys ("10Y", "10 Yr") to Tenor members
        normalised = {Tenor.parse(k): v for k, v in self.yields.items()}
        object.__setattr__(self, "yields", normalised)

    def __getitem__(self, tenor) -> float:
        return self.yields[Tenor.parse(tenor)]

    def get(self, tenor, default=None):
        return self.yields.get(Tenor.parse(tenor), default)


def _coerce(value, obs_date, tenor: Tenor, strict: bool) -> float:
    """Read a yield as float; missing or non-numeric values become 0.0."""
    try:
        val = float(value)
    except (TypeError, ValueError):
        val = math.nan
    if math.isnan(val):
        if strict:
            raise NonNumericYieldError(obs_date, tenor, value)
        logger.warning("Non-numeric yield %r for %s on %s; using 0.0", value, tenor, obs_date)
        return 0.0
    return val


def yield_matrix(
    observations: Sequence[CurveObservation],
    tenors: Sequence[Tenor],
    strict: bool = False,
) -> np.ndarray:
    """
    Stack observations into an (n_obs x n_tenors) matrix in `tenors` order.

    With strict=False a missing or non-numeric value is logged and read as
    0.0 so the pipeline stays total. With strict=True it raises
    NonNumericYieldError instead.
    """
    tenors = [Tenor.parse(t) for t in tenors]
    matrix = np.zeros((len(observations), len(tenors)))
    for i, obs in enumerate(observations):
        for j, tenor in enumerate(tenors):
            matrix[i, j] = _coerce(obs.yields.get(tenor), obs.date, tenor, strict)
    return matrix


def observations_from_frame(df: pd.DataFrame, tenors: Sequence = None) -> List[CurveObservation]:
    """
    Convert a curve DataFrame (DatetimeIndex, tenor columns) to observations.

    Columns that are not tenor labels are ignored. Pass `tenors` to restrict
    the conversion to a subset.
    """
    if tenors is None:
        tenors = []
        for col in df.columns:
            try:
                tenors.append(Tenor.parse(col))
            except ValueError:
                continue
    tenors = [Tenor.parse(t) for t in tenors]
    columns = {t: _column_for(df, t) for t in tenors}

    observations = []
    for ts, row in df.iterrows():
        obs_date = ts.date() if hasattr(ts, "date") else ts
        yields: Dict[Tenor, float] = {t: row[col] for t, col in columns.items()}
        observations.append(CurveObservation(date=obs_date, yields=yields))
    return observations


def observations_to_frame(
    observations: Sequence[CurveObservation],
    tenors: Sequence = None,
) -> pd.DataFrame:
    """Inverse of observations_from_frame; columns are tenor labels in curve order."""
    if tenors is None:
        seen = set()
        for obs in observations:
            seen.update(obs.yields)
        tenors = Tenor.ordered(seen)
    tenors = [Tenor.parse(t) for t in tenors]
    index = pd.DatetimeIndex([pd.Timestamp(o.date) for o in observations], name="date")
    data = {t.value: [o.yields.get(t, np.nan) for o in observations] for t in tenors}
    return pd.DataFrame(data, index=index)


def _column_for(df: pd.DataFrame, tenor: Tenor):
    for col in df.columns:
        try:
            if Tenor.parse(col) is tenor:
                return col
        except ValueError:
            continue
    raise KeyError(f"Tenor {tenor} not found in columns {list(df.columns)}")
