import logging
import sys

from curvepca.backtests.simulator import run_pca_backtest
from curvepca.config import (
    DEFAULT_WINDOW_SIZE,
    DEFAULT_Z_THRESHOLD,
    FRED_API_KEY,
    LOG_LEVEL,
    ROLLING_LOADINGS_WINDOW,
    ROLLING_VARIANCE_WINDOW,
)
from curvepca.data.csv_loader import CsvCurveLoader
from curvepca.data.curves import observations_from_frame, observations_to_frame
from curvepca.data.data_loader import FredCurveLoader
from curvepca.data.synthetic import generate_mock_curves
from curvepca.data.tenors import Tenor
from curvepca.engine.pca import PCAEngine
from curvepca.engine.residuals import ResidualModel
from curvepca.reports.pca_report import generate_report
from curvepca.signals.interpretation import describe_regime

logging.basicConfig(level=LOG_LEVEL, format="%(asctime)s %(levelname)s %(name)s: %(message)s")


def load_curves(csv_path: str = None):
    """
    Curve history from, in order of preference:
      - the CSV file given on the command line
      - FRED, when FRED_API_KEY is set
      - synthetic curves (one year, fixed seed)
    Returns (observations, tenors).
    """
    if csv_path:
        loader = CsvCurveLoader(csv_path)
    elif FRED_API_KEY:
        loader = FredCurveLoader(FRED_API_KEY)
    else:
        print("FRED_API_KEY not set and no CSV given — using synthetic curves.")
        observations = generate_mock_curves(days=365, seed=7)
        return observations, list(Tenor)

    df = loader.load_curves()
    tenors = loader.available_tenors(df)
    return observations_from_frame(df, tenors), tenors


def run_analysis(csv_path: str = None):
    observations, tenors = load_curves(csv_path)
    pca = PCAEngine.fit(observations, tenors)

    print("=== Latest Curves ===")
    print(observations_to_frame(observations, tenors).tail())

    print("\n=== Explained Variance ===")
    for k in range(min(3, pca.n_components)):
        print(f"  PC{k + 1}: {pca.explained_variance[k]:.1%}   (cumulative {pca.cumulative_variance[k]:.1%})")

    print("\n=== Loadings ===")
    print(pca.loadings_frame().head(3).round(3).to_string())

    print("\n=== Regime ===")
    print(describe_regime(pca, str(observations[0].date), str(observations[-1].date)))


def run_rolling(csv_path: str = None):
    """
    Rolling explained variance and the latest rolling loadings.
    Usage: python main.py rolling [csv_path]
    """
    observations, tenors = load_curves(csv_path)

    print(f"=== Rolling Explained Variance ({ROLLING_VARIANCE_WINDOW}d window, last 10) ===")
    rolling = PCAEngine.fit_rolling(observations, tenors, ROLLING_VARIANCE_WINDOW)
    if rolling.empty:
        print("  Not enough data for the rolling window.")
    else:
        print((rolling[["PC1", "PC2", "PC3"]] * 100).round(1).tail(10).to_string())

    print(f"\n=== Rolling Loadings ({ROLLING_LOADINGS_WINDOW}d window, latest) ===")
    loadings = PCAEngine.fit_rolling_loadings(observations, tenors, ROLLING_LOADINGS_WINDOW)
    if loadings:
        last = loadings[-1]
        print(f"  {last.date}")
        for name, vec in [("Level", last.level), ("Slope", last.slope), ("Curvature", last.curvature)]:
            print(f"  {name:<10} " + " ".join(f"{v:+.3f}" for v in vec))


def run_richcheap(csv_path: str = None):
    """
    Rich/cheap snapshot of the latest curve against the full-sample model.
    Usage: python main.py richcheap [csv_path]
    """
    observations, tenors = load_curves(csv_path)
    pca = PCAEngine.fit(observations, tenors)
    print(f"=== Rich / Cheap — {observations[-1].date} ===")
    print(ResidualModel.to_frame(ResidualModel.latest(observations, pca)).round(3).to_string())


def run_backtest(csv_path: str = None):
    """
    Rolling-PCA mean-reversion backtest.
    Usage: python main.py backtest [csv_path]
    """
    observations, tenors = load_curves(csv_path)
    try:
        result = run_pca_backtest(
            observations, tenors,
            window_size=DEFAULT_WINDOW_SIZE,
            z_score_threshold=DEFAULT_Z_THRESHOLD,
        )
    except ValueError as e:
        print(f"  Skipped: {e}")
        return

    print(f"=== Backtest ({DEFAULT_WINDOW_SIZE}d window, z > {DEFAULT_Z_THRESHOLD}) ===")
    for key, val in result.stats.to_dict().items():
        print(f"  {key:<14} {val:.3f}" if isinstance(val, float) else f"  {key:<14} {val}")

    trades = result.trades_frame()
    closed = trades[trades["type"] == "CLOSE"]
    if not closed.empty:
        print("\n=== P&L by Tenor (closed trades, bps) ===")
        print(closed.groupby("tenor")["total_pnl"].agg(["count", "sum", "mean"]).round(2).to_string())

    print("\n=== Last 10 Trades ===")
    print(trades.tail(10).round(3).to_string(index=False))


def run_report(csv_path: str = None):
    """
    Print the full factor-model report, including a backtest when there is
    enough history.
    Usage: python main.py report [csv_path]
    """
    observations, tenors = load_curves(csv_path)
    pca = PCAEngine.fit(observations, tenors)
    try:
        backtest = run_pca_backtest(observations, tenors)
    except ValueError as e:
        print(f"  Backtest skipped: {e}")
        backtest = None
    print(generate_report(observations, pca, backtest))


COMMANDS = {
    "rolling":   run_rolling,
    "richcheap": run_richcheap,
    "backtest":  run_backtest,
    "report":    run_report,
}


def main(argv=None):
    """
    python main.py [rolling|richcheap|backtest|report] [csv_path]
    python main.py [csv_path]            (default analysis)
    """
    args = sys.argv[1:] if argv is None else list(argv)
    if args and args[0] in COMMANDS:
        COMMANDS[args[0]](args[1] if len(args) > 1 else None)
    else:
        run_analysis(args[0] if args else None)


if __name__ == "__main__":
    main()
