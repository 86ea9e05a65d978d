import logging

import pandas as pd
from fredapi import Fred

from curvepca.data.base_loader import BaseCurveLoader
from curvepca.data.tenors import Tenor
from curvepca.errors import InsufficientDataError

logger = logging.getLogger(__name__)


class FredCurveLoader(BaseCurveLoader):
    """
    Daily Treasury par yield curve (DGS* series) from FRED.

    Tenors whose series come back empty are dropped; the remaining tenors
    must all be present on a date for that date to be kept.
    """

    def __init__(self, fred_api_key: str, start_date: str = "2020-01-01", tenors=None):
        self.fred       = Fred(api_key=fred_api_key)
        self.start_date = start_date
        self.tenors     = Tenor.ordered(tenors)

    def load_curves(self) -> pd.DataFrame:
        data = pd.DataFrame()
        for tenor in self.tenors:
            series = self.fred.get_series(tenor.fred_series, observation_start=self.start_date)
            series = pd.to_numeric(series, errors="coerce").dropna()
            if series.empty:
                logger.warning("FRED returned no data for %s (%s)", tenor, tenor.fred_series)
                continue
            data[tenor.value] = series

        if data.empty:
            raise InsufficientDataError(
                "FRED returned no data. Check the API key and the start date."
            )

        data.index = pd.DatetimeIndex(data.index)
        curves = self._finalize(data)
        logger.info(
            "Loaded %s curves (%s to %s) for %s",
            len(curves), curves.index[0].date(), curves.index[-1].date(), list(curves.columns),
        )
        return curves
