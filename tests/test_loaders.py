import pandas as pd
import pytest

from curvepca.data import data_loader
from curvepca.data.csv_loader import CsvCurveLoader
from curvepca.data.data_loader import FredCurveLoader
from curvepca.data.tenors import Tenor
from curvepca.errors import InsufficientDataError

TREASURY_CSV = """Date,1 Mo,2 Yr,5 Yr,10 Yr,Source
2024-01-04,5.55,4.38,4.00,4.00,UST
2024-01-02,5.55,4.33,3.93,3.95,UST
2024-01-03,N/A,4.33,3.90,3.91,UST
2024-01-05,5.54,4.39,abc,4.05,UST
2024-01-04,5.56,4.40,4.02,4.02,UST
"""


@pytest.fixture
def treasury_csv(tmp_path):
    path = tmp_path / "curves.csv"
    path.write_text(TREASURY_CSV)
    return path


def test_csv_loose_headers_and_ordering(treasury_csv):
    df = CsvCurveLoader(treasury_csv).load_curves()
    assert list(df.columns) == ["1M", "2Y", "5Y", "10Y"]
    assert df.index.name == "date"
    assert df.index.is_monotonic_increasing


def test_csv_skips_incomplete_rows_and_keeps_last_duplicate(treasury_csv):
    df = CsvCurveLoader(treasury_csv).load_curves()
    assert [d.date().isoformat() for d in df.index] == ["2024-01-02", "2024-01-04"]
    assert df.loc["2024-01-04", "2Y"] == pytest.approx(4.40)


def test_csv_observations(treasury_csv):
    loader = CsvCurveLoader(treasury_csv)
    obs = loader.load_observations()
    assert len(obs) == 2
    assert obs[0][Tenor.Y10] == pytest.approx(3.95)
    assert loader.available_tenors(loader.load_curves()) == [Tenor.M1, Tenor.Y2, Tenor.Y5, Tenor.Y10]


def test_csv_needs_three_tenors(tmp_path):
    path = tmp_path / "short.csv"
    path.write_text("Date,2Y,10Y\n2024-01-02,4.3,3.9\n")
    with pytest.raises(InsufficientDataError):
        CsvCurveLoader(path).load_curves()


def test_csv_needs_date_column(tmp_path):
    path = tmp_path / "nodate.csv"
    path.write_text("Day,2Y,5Y,10Y\n2024-01-02,4.3,4.0,3.9\n")
    with pytest.raises(ValueError, match="Date"):
        CsvCurveLoader(path).load_curves()


def test_csv_needs_rows(tmp_path):
    path = tmp_path / "empty.csv"
    path.write_text("Date,2Y,5Y,10Y\n")
    with pytest.raises(ValueError):
        CsvCurveLoader(path).load_curves()


class FakeFred:
    """Serves DGS2 / DGS5 / DGS10 only; every other series is empty."""

    index = pd.to_datetime(["2024-01-02", "2024-01-03", "2024-01-04"])
    data = {
        "DGS2":  [4.33, 4.33, 4.38],
        "DGS5":  [3.93, float("nan"), 4.00],
        "DGS10": [3.95, 3.91, 4.00],
    }

    def __init__(self, api_key=None):
        self.api_key = api_key
        self.requested = []

    def get_series(self, series_id, observation_start=None):
        self.requested.append((series_id, observation_start))
        if series_id not in self.data:
            return pd.Series(dtype=float)
        return pd.Series(self.data[series_id], index=self.index)


class EmptyFred(FakeFred):
    data = {}


def test_fred_loader_drops_missing_series_and_dates(monkeypatch):
    monkeypatch.setattr(data_loader, "Fred", FakeFred)
    loader = FredCurveLoader("key", start_date="2024-01-01")
    df = loader.load_curves()

    assert list(df.columns) == ["2Y", "5Y", "10Y"]
    assert len(df) == 2
    assert ("DGS10", "2024-01-01") in loader.fred.requested
    assert len(loader.fred.requested) == len(Tenor)


def test_fred_loader_tenor_subset(monkeypatch):
    monkeypatch.setattr(data_loader, "Fred", FakeFred)
    loader = FredCurveLoader("key", tenors=["10Y", "2Y", "5Y"])
    assert loader.tenors == [Tenor.Y2, Tenor.Y5, Tenor.Y10]
    loader.load_curves()
    assert [s for s, _ in loader.fred.requested] == ["DGS2", "DGS5", "DGS10"]


def test_fred_loader_no_data(monkeypatch):
    monkeypatch.setattr(data_loader, "Fred", EmptyFred)
    with pytest.raises(InsufficientDataError):
        FredCurveLoader("key").load_curves()
