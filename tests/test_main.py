from datetime import date

import pytest

import main
from curvepca.data.curves import observations_to_frame
from curvepca.data.synthetic import generate_mock_curves
from curvepca.data.tenors import Tenor

SYNTHETIC_NOTICE = "using synthetic curves"


@pytest.fixture
def curve_csv(tmp_path):
    curves = generate_mock_curves(days=80, seed=5, end=date(2024, 3, 29))
    df = observations_to_frame(curves, [Tenor.Y2, Tenor.Y5, Tenor.Y10, Tenor.Y30])
    path = tmp_path / "curves.csv"
    df.to_csv(path, index_label="Date")
    return path


@pytest.fixture(autouse=True)
def no_fred_key(monkeypatch):
    monkeypatch.setattr(main, "FRED_API_KEY", None)


def test_csv_path_alone_runs_default_analysis(curve_csv, capsys):
    main.main([str(curve_csv)])
    out = capsys.readouterr().out
    assert SYNTHETIC_NOTICE not in out
    assert "=== Latest Curves ===" in out
    assert "2024-03-29" in out


def test_command_with_csv_path(curve_csv, capsys):
    main.main(["richcheap", str(curve_csv)])
    out = capsys.readouterr().out
    assert SYNTHETIC_NOTICE not in out
    assert "Rich / Cheap — 2024-03-29" in out


def test_no_arguments_falls_back_to_synthetic(capsys):
    main.main([])
    assert SYNTHETIC_NOTICE in capsys.readouterr().out


def test_load_curves_reads_csv_tenors(curve_csv):
    observations, tenors = main.load_curves(str(curve_csv))
    assert tenors == [Tenor.Y2, Tenor.Y5, Tenor.Y10, Tenor.Y30]
    assert len(observations) == 81
    assert observations[-1].date == date(2024, 3, 29)
