from curvepca.backtests.simulator import run_pca_backtest
from curvepca.engine.pca import PCAEngine, PCAResult
from curvepca.reports.pca_report import generate_report
from curvepca.signals.interpretation import INSUFFICIENT_DATA


def test_report_sections(mock_curves, all_tenors):
    pca = PCAEngine.fit(mock_curves, all_tenors)
    report = generate_report(mock_curves, pca)
    for header in ["YIELD CURVE PCA REPORT", "EXPLAINED VARIANCE", "LOADINGS", "REGIME", "FACTOR CHECK", "RICH / CHEAP"]:
        assert header in report
    assert "BACKTEST" not in report
    assert str(mock_curves[-1].date) in report


def test_report_with_backtest(mock_curves, all_tenors):
    pca = PCAEngine.fit(mock_curves, all_tenors)
    backtest = run_pca_backtest(mock_curves, all_tenors, window_size=30, z_score_threshold=1.5)
    report = generate_report(mock_curves, pca, backtest, n_trades=5)
    assert "BACKTEST" in report
    assert f"Trades:            {backtest.stats.total_trades}" in report


def test_report_on_empty_fit(all_tenors):
    report = generate_report([], PCAResult.empty(all_tenors))
    assert INSUFFICIENT_DATA in report
    assert "LOADINGS" not in report
