from abc import ABC, abstractmethod
from typing import List

import pandas as pd

from curvepca.data.curves import CurveObservation, observations_from_frame
from curvepca.data.tenors import Tenor
from curvepca.errors import InsufficientDataError

MIN_TENORS = 3


class BaseCurveLoader(ABC):

    @abstractmethod
    def load_curves(self) -> pd.DataFrame:
        """
        Must return a DataFrame with:
            DatetimeIndex, ascending, no duplicate dates
            one column per tenor label ("2Y", "10Y", ...), in curve order
            only rows where every tenor column is numeric
        """
        pass

    def load_observations(self) -> List[CurveObservation]:
        return observations_from_frame(self.load_curves())

    @staticmethod
    def available_tenors(df: pd.DataFrame) -> List[Tenor]:
        return [Tenor.parse(c) for c in df.columns]

    @staticmethod
    def _finalize(df: pd.DataFrame) -> pd.DataFrame:
        """Keep complete rows, sort by date, order tenor columns along the curve."""
        tenors = Tenor.ordered(df.columns)
        if len(tenors) < MIN_TENORS:
            raise InsufficientDataError(
                f"Need at least {MIN_TENORS} tenor columns for PCA, found {[t.value for t in tenors]}."
            )
        df = df[[t.value for t in tenors]].dropna()
        df = df[~df.index.duplicated(keep="last")].sort_index()
        df.index.name = "date"
        if df.empty:
            raise InsufficientDataError("No complete curves left after dropping missing values.")
        return df
