import logging

import pandas as pd

from curvepca.data.base_loader import BaseCurveLoader
from curvepca.data.tenors import Tenor

logger = logging.getLogger(__name__)


class CsvCurveLoader(BaseCurveLoader):
    """
    Curve history from a CSV file with a Date column and tenor columns.

    Headers are matched loosely ("1 Mo", "10 Yr", "2Y"), unknown columns are
    ignored, and rows with a missing or non-numeric tenor value are skipped.
    The Treasury's daily par yield curve download works as-is.
    """

    def __init__(self, path: str):
        self.path = path

    def load_curves(self) -> pd.DataFrame:
        raw = pd.read_csv(self.path)
        if len(raw) < 1:
            raise ValueError("CSV must have a header row and data rows.")

        date_col = next((c for c in raw.columns if str(c).strip().upper() == "DATE"), None)
        if date_col is None:
            raise ValueError("CSV must contain a 'Date' column.")

        columns = {}
        for col in raw.columns:
            if col == date_col:
                continue
            try:
                columns[Tenor.parse(col).value] = col
            except ValueError:
                logger.debug("Ignoring non-tenor column %r", col)

        data = pd.DataFrame(
            {label: pd.to_numeric(raw[col], errors="coerce") for label, col in columns.items()}
        )
        data.index = pd.DatetimeIndex(pd.to_datetime(raw[date_col].astype(str).str.strip()))

        curves = self._finalize(data)
        skipped = len(raw) - len(curves)
        if skipped:
            logger.info("Skipped %s incomplete or duplicate rows in %s", skipped, self.path)
        return curves
