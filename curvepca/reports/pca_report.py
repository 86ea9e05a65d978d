from typing import Sequence

import numpy as np

from curvepca.backtests.simulator import CLOSE, BacktestResult
from curvepca.data.curves import CurveObservation
from curvepca.engine.pca import COMPONENT_NAMES, PCAResult
from curvepca.engine.residuals import ResidualModel
from curvepca.signals.diagnostics import factor_diagnostics
from curvepca.signals.interpretation import INSUFFICIENT_DATA, interpret_regime

SEP  = "=" * 62
THIN = "─" * 62


def generate_report(
    observations: Sequence[CurveObservation],
    pca: PCAResult,
    backtest: BacktestResult = None,
    n_trades: int = 10,
) -> str:
    """
    Formatted factor-model report for a static fit.

    Outputs:
      - Explained / cumulative variance per component
      - Loadings of Level, Slope and Curvature
      - Regime interpretation of the period
      - Score vs observable factor correlations
      - Rich/cheap snapshot of the last curve
      - Backtest stats and last trades (if a backtest is given)

    Parameters
    ----------
    observations : the curves `pca` was fitted on
    pca          : static fit
    backtest     : optional result of run_pca_backtest
    n_trades     : trades to list from the end of the trade log

    Returns
    -------
    str — formatted report ready for printing or saving
    """
    if pca.is_empty or not observations:
        return "\n".join([SEP, "  YIELD CURVE PCA REPORT", SEP, "", f"  {INSUFFICIENT_DATA}"])

    start = str(observations[0].date)
    end   = str(observations[-1].date)

    lines = [
        SEP,
        f"  YIELD CURVE PCA REPORT   {start} → {end}",
        SEP,
        "",
        f"  Observations:      {len(observations)}",
        f"  Tenors:            {' '.join(t.value for t in pca.tenors)}",
        f"  Solver:            {'converged' if pca.converged else 'NOT converged'} "
        f"after {pca.iterations} rotations",
        "",
    ]

    # ── Variance ──────────────────────────────────────────────────────────────
    lines += [THIN, "  EXPLAINED VARIANCE", THIN]
    lines.append(f"  {'Component':<18} {'Eigenvalue':>12} {'Explained':>10} {'Cumulative':>11}")
    for k in range(min(5, pca.n_components)):
        name = f"PC{k + 1}" + (f" ({COMPONENT_NAMES[k]})" if k < len(COMPONENT_NAMES) else "")
        lines.append(
            f"  {name:<18} {pca.eigenvalues[k]:>12.5f} "
            f"{pca.explained_variance[k]:>9.1%} {pca.cumulative_variance[k]:>10.1%}"
        )
    lines.append("")

    # ── Loadings ──────────────────────────────────────────────────────────────
    lines += [THIN, "  LOADINGS", THIN]
    lines.append("  " + f"{'':<6}" + "".join(f"{t.value:>8}" for t in pca.tenors))
    for k in range(min(3, pca.n_components)):
        lines.append("  " + f"{'PC' + str(k + 1):<6}" + "".join(f"{v:>+8.3f}" for v in pca.eigenvectors[k]))
    lines.append("")

    # ── Regime ────────────────────────────────────────────────────────────────
    interp = interpret_regime(pca, start, end)
    lines += [THIN, "  REGIME", THIN]
    if interp is None:
        lines.append(f"  {INSUFFICIENT_DATA}")
    else:
        lines += [
            f"  Regime:            {interp.regime}",
            f"  Level:             {interp.level_trend}   (Δscore {interp.level_change:+.2f})",
            f"  Slope:             {interp.slope_trend}   (Δscore {interp.slope_change:+.2f})",
            f"  Curvature:         {interp.curvature_trend}   (Δscore {interp.curvature_change:+.2f})",
        ]
    lines.append("")

    # ── Diagnostics ───────────────────────────────────────────────────────────
    diag = factor_diagnostics(observations, pca)
    if not diag.empty:
        lines += [THIN, "  FACTOR CHECK  (score vs observable, Pearson)", THIN]
        for pc, row in diag.iterrows():
            corr = "N/A" if np.isnan(row["corr"]) else f"{row['corr']:+.3f}"
            lines.append(f"  {pc:<6} vs {row['factor']:<10} corr {corr}")
        lines.append("")

    # ── Rich / cheap ──────────────────────────────────────────────────────────
    signals = ResidualModel.latest(observations, pca)
    lines += [THIN, f"  RICH / CHEAP   {end}   (positive = cheap)", THIN]
    lines.append(f"  {'Tenor':<6} {'Actual':>8} {'Model':>8} {'Resid bps':>10} {'z':>7}  Signal")
    for s in signals:
        lines.append(
            f"  {s.tenor.value:<6} {s.actual:>8.3f} {s.model:>8.3f} "
            f"{s.residual_bps:>+10.1f} {s.z_score:>+7.2f}  {s.label}"
        )
    lines.append("")

    if backtest is not None:
        lines += _backtest_section(backtest, n_trades)

    lines.append(SEP)
    return "\n".join(lines)


def _backtest_section(result: BacktestResult, n_trades: int) -> list:
    st = result.stats
    lines = [
        THIN,
        "  BACKTEST  (rolling PCA rich/cheap, P&L in bps)",
        THIN,
        f"  Total return:      {st.total_return:+.1f} bps",
        f"  Sharpe (ann.):     {st.sharpe_ratio:+.2f}",
        f"  Max drawdown:      {st.max_drawdown:.1f} bps",
        f"  Win rate:          {st.win_rate:.0%}",
        f"  Trades:            {st.total_trades}   (open positions: {len(result.open_positions)})",
        "",
    ]
    recent = result.trades[-n_trades:]
    if recent:
        lines.append(f"  {'Date':<11} {'Tenor':<5} {'Type':<6} {'Entry':>7} {'Exit':>7} {'Price':>8} {'Carry':>7} {'Total':>8}")
        for t in recent:
            if t.type == CLOSE:
                lines.append(
                    f"  {str(t.date):<11} {t.tenor.value:<5} {t.type:<6} {t.entry_yield:>7.3f} "
                    f"{t.exit_yield:>7.3f} {t.price_pnl:>+8.1f} {t.carry_pnl:>+7.1f} {t.total_pnl:>+8.1f}"
                )
            else:
                lines.append(f"  {str(t.date):<11} {t.tenor.value:<5} {t.type:<6} {t.entry_yield:>7.3f}")
        lines.append("")
    return lines
