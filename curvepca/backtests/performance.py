from dataclasses import asdict, dataclass
from typing import Sequence

import numpy as np

from curvepca.config import TRADING_DAYS_PER_YEAR


@dataclass(frozen=True)
class BacktestStats:
    total_return: float
    sharpe_ratio: float
    max_drawdown: float
    win_rate: float
    total_trades: int

    def to_dict(self) -> dict:
        return asdict(self)


def daily_returns(equity_curve: Sequence[float]) -> np.ndarray:
    """Day-over-day P&L; the first day (the equity origin) counts as 0."""
    equity = np.asarray(equity_curve, dtype=float)
    if len(equity) == 0:
        return np.zeros(0)
    return np.concatenate([[0.0], np.diff(equity)])


def sharpe_ratio(equity_curve: Sequence[float], periods: int = TRADING_DAYS_PER_YEAR) -> float:
    """Annualised mean / population std of daily P&L; 0 when the std is 0."""
    returns = daily_returns(equity_curve)
    if len(returns) == 0:
        return 0.0
    std = returns.std()
    return float(returns.mean() / std * np.sqrt(periods)) if std > 0 else 0.0


def max_drawdown(equity_curve: Sequence[float]) -> float:
    """Largest peak-to-trough drop of the equity curve, as a positive number."""
    equity = np.asarray(equity_curve, dtype=float)
    if len(equity) == 0:
        return 0.0
    drawdowns = np.maximum.accumulate(equity) - equity
    return float(max(drawdowns.max(), 0.0))


def win_rate(closed_pnls: Sequence[float]) -> float:
    """Fraction of closed trades with positive P&L; 0 with no closed trades."""
    pnls = np.asarray(closed_pnls, dtype=float)
    if len(pnls) == 0:
        return 0.0
    return float((pnls > 0).mean())


def summarize(equity_curve: Sequence[float], closed_pnls: Sequence[float], total_trades: int) -> BacktestStats:
    return BacktestStats(
        total_return=float(equity_curve[-1]) if len(equity_curve) else 0.0,
        sharpe_ratio=sharpe_ratio(equity_curve),
        max_drawdown=max_drawdown(equity_curve),
        win_rate=win_rate(closed_pnls),
        total_trades=int(total_trades),
    )
