from dataclasses import dataclass
from typing import Optional

import numpy as np

from curvepca.data.tenors import Tenor
from curvepca.engine.pca import PCAResult

INSUFFICIENT_DATA = "Insufficient data to generate interpretation."


@dataclass(frozen=True)
class RegimeInterpretation:
    """
    Direction of the three factors between the first and last fitted day.

    level_change / slope_change / curvature_change are score changes signed
    so that positive = higher rates / steeper curve / more hump.
    """
    bond_trend: str          # "Bearish" | "Bullish" | "Neutral"
    curve_regime: str        # "Steepening" | "Flattening" | "Neutral"
    regime: str              # "Bear Steepener", ..., "Mixed / Range-bound"
    level_trend: str
    slope_trend: str
    curvature_trend: str
    level_change: float
    slope_change: float
    curvature_change: float
    summary: str


def _index_or(tenors, tenor: Tenor, fallback: int) -> int:
    return tenors.index(tenor) if tenor in tenors else fallback


def _score_change(pca: PCAResult, k: int) -> float:
    if len(pca.scores) == 0 or pca.scores.shape[1] <= k:
        return 0.0
    return float(pca.scores[-1, k] - pca.scores[0, k])


def _pct(val) -> str:
    return "N/A" if val is None or np.isnan(val) else f"{val * 100:.1f}"


def interpret_regime(pca: PCAResult, start: str, end: str) -> Optional[RegimeInterpretation]:
    """
    Classify the period covered by a static fit into a curve regime.

    Level  (PC1): score change beyond ±0.25 = trend, beyond ±1 = significant
    Slope  (PC2): 10Y minus 2Y loading gives the steepening direction; ±0.5
    Curve  (PC3): 5Y minus the 2Y/10Y wings gives the hump direction; ±0.5

    Returns None for an empty fit; use describe_regime() for text that
    covers that case.
    """
    if pca.is_empty or pca.n_components < 3:
        return None

    tenors = list(pca.tenors)
    n      = len(tenors)
    i2     = _index_or(tenors, Tenor.Y2, 0)
    i10    = _index_or(tenors, Tenor.Y10, n - 1)
    i5     = _index_or(tenors, Tenor.Y5, n // 2)
    v      = pca.eigenvectors

    # ── Level ─────────────────────────────────────────────────────────────────
    dir_level    = 1 if v[0].mean() > 0 else -1
    level_change = _score_change(pca, 0) * dir_level
    if level_change > 1:
        level_trend, bond_trend = "risen significantly", "Bearish"
    elif level_change > 0.25:
        level_trend, bond_trend = "trended higher", "Bearish"
    elif level_change < -1:
        level_trend, bond_trend = "fallen significantly", "Bullish"
    elif level_change < -0.25:
        level_trend, bond_trend = "trended lower", "Bullish"
    else:
        level_trend, bond_trend = "remained relatively stable", "Neutral"

    # ── Slope ─────────────────────────────────────────────────────────────────
    dir_slope    = 1 if v[1][i10] - v[1][i2] > 0 else -1
    slope_change = _score_change(pca, 1) * dir_slope
    if slope_change > 0.5:
        slope_trend, curve_regime = "steepened", "Steepening"
    elif slope_change < -0.5:
        slope_trend, curve_regime = "flattened", "Flattening"
    else:
        slope_trend, curve_regime = "kept a stable shape", "Neutral"

    # ── Curvature ─────────────────────────────────────────────────────────────
    dir_curv         = 1 if v[2][i5] - (v[2][i2] + v[2][i10]) / 2 > 0 else -1
    curvature_change = _score_change(pca, 2) * dir_curv
    if curvature_change > 0.5:
        curvature_trend = "Increased Convexity (Hump)"
    elif curvature_change < -0.5:
        curvature_trend = "Decreased Convexity"
    else:
        curvature_trend = "Standard Convexity"

    regime = {
        ("Bearish", "Steepening"): "Bear Steepener",
        ("Bearish", "Flattening"): "Bear Flattener",
        ("Bullish", "Steepening"): "Bull Steepener",
        ("Bullish", "Flattening"): "Bull Flattener",
    }.get((bond_trend, curve_regime), "Mixed / Range-bound")

    regime_note = {
        "Bear Steepener": "Yields rose, long-end yields faster. Often driven by rising inflation expectations.",
        "Bear Flattener": "Yields rose, led by the short end. Classic signal of a central bank hiking cycle.",
        "Bull Steepener": "Yields fell, the short end faster. The market anticipates imminent rate cuts.",
        "Bull Flattener": "Yields fell, long-end yields faster. Suggests a pessimistic long-term growth outlook.",
    }.get(regime, "The market lacked a strong directional conviction combining level and slope.")

    ev = pca.explained_variance
    lines = [
        f"### Market Regime Analysis: {bond_trend} {curve_regime}",
        "",
        f"**Period**: {start} to {end}",
        "",
        f"#### 1. Level Factor (PC1: {_pct(ev[0])}%)",
        f"Yields have **{level_trend}** over this period.",
        "",
        f"#### 2. Slope Factor (PC2: {_pct(ev[1])}%)",
        f"The yield curve has **{slope_trend}**.",
        "",
        f"#### 3. Curvature Factor (PC3: {_pct(ev[2])}%)",
        f"{curvature_trend}.",
        "",
        "#### 4. Strategic Interpretation",
        f"- **{regime}**: {regime_note}",
    ]

    return RegimeInterpretation(
        bond_trend=bond_trend,
        curve_regime=curve_regime,
        regime=regime,
        level_trend=level_trend,
        slope_trend=slope_trend,
        curvature_trend=curvature_trend,
        level_change=level_change,
        slope_change=slope_change,
        curvature_change=curvature_change,
        summary="\n".join(lines),
    )


def describe_regime(pca: PCAResult, start: str, end: str) -> str:
    """Markdown summary of interpret_regime(), or the insufficient-data message."""
    interp = interpret_regime(pca, start, end)
    return interp.summary if interp is not None else INSUFFICIENT_DATA
