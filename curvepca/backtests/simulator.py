import logging
from dataclasses import dataclass, field
from datetime import date
from typing import List, Optional, Sequence

import pandas as pd

from curvepca.backtests.performance import BacktestStats, summarize
from curvepca.backtests.positions import Position, Side
from curvepca.config import DEFAULT_WINDOW_SIZE, DEFAULT_Z_THRESHOLD, N_FACTORS
from curvepca.data.curves import CurveObservation, yield_matrix
from curvepca.data.tenors import Tenor
from curvepca.engine.pca import PCAEngine, log_unconverged
from curvepca.engine.residuals import ResidualModel
from curvepca.errors import InsufficientDataError

logger = logging.getLogger(__name__)

BUY   = "BUY"
SELL  = "SELL"
CLOSE = "CLOSE"


@dataclass(frozen=True)
class BacktestConfig:
    """
    window_size       : trailing observations per refit (today excluded)
    z_score_threshold : |z| needed to open a position
    """
    window_size: int = DEFAULT_WINDOW_SIZE
    z_score_threshold: float = DEFAULT_Z_THRESHOLD

    def __post_init__(self):
        if int(self.window_size) != self.window_size or self.window_size < 2:
            raise ValueError(f"window_size must be an integer >= 2, got {self.window_size!r}")
        if not self.z_score_threshold > 0:
            raise ValueError(f"z_score_threshold must be positive, got {self.z_score_threshold!r}")


@dataclass(frozen=True)
class Trade:
    """
    Trade log entry. BUY/SELL record an entry; CLOSE records the exit with
    price, carry and total P&L in bps.
    """
    date: date
    tenor: Tenor
    type: str
    entry_yield: float
    entry_date: date
    z_score: float
    exit_yield: Optional[float] = None
    price_pnl: Optional[float] = None
    carry_pnl: Optional[float] = None
    total_pnl: Optional[float] = None
    holding_days: Optional[int] = None


@dataclass
class BacktestResult:
    dates: List[date]
    equity_curve: List[float]
    trades: List[Trade]
    stats: BacktestStats
    open_positions: List[Position] = field(default_factory=list)

    def equity_frame(self) -> pd.DataFrame:
        """Equity curve and daily P&L indexed by date."""
        equity = pd.Series(self.equity_curve, index=pd.DatetimeIndex(pd.to_datetime(self.dates), name="date"))
        return pd.DataFrame({"equity": equity, "daily_pnl": equity.diff().fillna(0.0)})

    def trades_frame(self) -> pd.DataFrame:
        columns = [
            "date", "tenor", "type", "entry_date", "entry_yield", "exit_yield",
            "z_score", "price_pnl", "carry_pnl", "total_pnl", "holding_days",
        ]
        rows = [
            {
                "date":         t.date,
                "tenor":        t.tenor.value,
                "type":         t.type,
                "entry_date":   t.entry_date,
                "entry_yield":  t.entry_yield,
                "exit_yield":   t.exit_yield,
                "z_score":      t.z_score,
                "price_pnl":    t.price_pnl,
                "carry_pnl":    t.carry_pnl,
                "total_pnl":    t.total_pnl,
                "holding_days": t.holding_days,
            }
            for t in self.trades
        ]
        return pd.DataFrame(rows, columns=columns)


class BacktestSimulator:
    """
    Day-by-day rich/cheap mean-reversion backtest on a rolling PCA.

    Each day i (from window_size on):
      1. mark open positions to today's yields (price + carry)
      2. refit the PCA on observations [i - window_size, i), today excluded
      3. z-score today's residual per tenor against that fit
      4. FLAT slot:  z > +threshold -> BUY (cheap),  z < -threshold -> SELL (rich)
      5. open slot:  LONG closes on z < 0, SHORT closes on z > 0

    Positions still open at the end are reported but not closed.
    """

    def __init__(self, config: BacktestConfig = None):
        self.config = config or BacktestConfig()

    def run(self, observations: Sequence[CurveObservation], tenors: Sequence[Tenor]) -> BacktestResult:
        window    = self.config.window_size
        threshold = self.config.z_score_threshold
        tenors    = [Tenor.parse(t) for t in tenors]

        if len(tenors) < N_FACTORS:
            raise InsufficientDataError(
                f"Backtest needs at least {N_FACTORS} tenors, got {len(tenors)}."
            )
        if len(observations) <= window:
            raise InsufficientDataError(
                f"Not enough data for backtest: {len(observations)} observations "
                f"for a {window}-day window."
            )

        matrix = yield_matrix(observations, tenors)
        slots  = [Position.flat(t) for t in tenors]
        trades: List[Trade] = []
        dates  = [observations[window - 1].date]
        equity = [0.0]
        unconverged = 0

        for i in range(window, len(observations)):
            today = observations[i]
            row   = matrix[i]

            # ── 1. Mark to market ─────────────────────────────────────────
            daily_pnl = 0.0
            for j, pos in enumerate(slots):
                if pos.is_open:
                    slots[j], price, carry = pos.mark(row[j])
                    daily_pnl += price + carry
            equity.append(equity[-1] + daily_pnl)
            dates.append(today.date)

            # ── 2. Refit on the trailing window ───────────────────────────
            history = matrix[i - window:i]
            pca     = PCAEngine.fit_matrix(history, tenors, warn=False)
            unconverged += not pca.converged

            # ── 3-5. Signals, entries, exits ──────────────────────────────
            signals = ResidualModel.evaluate_row(pca, history, row)
            for j, signal in enumerate(signals):
                slots[j] = self._step_slot(slots[j], signal.z_score, row[j], today.date, i, threshold, trades)

        log_unconverged("Backtest", unconverged, len(observations) - window)
        closed = [t.total_pnl for t in trades if t.type == CLOSE]
        stats  = summarize(equity, closed, len(trades))
        logger.info(
            "Backtest: %s days, %s trades, total %.2f bps, sharpe %.2f",
            len(dates), stats.total_trades, stats.total_return, stats.sharpe_ratio,
        )
        return BacktestResult(
            dates=dates,
            equity_curve=equity,
            trades=trades,
            stats=stats,
            open_positions=[p for p in slots if p.is_open],
        )

    @staticmethod
    def _step_slot(
        pos: Position,
        z: float,
        current_yield: float,
        today: date,
        index: int,
        threshold: float,
        trades: List[Trade],
    ) -> Position:
        """Advance one tenor's slot given today's z-score; appends to `trades`."""
        if pos.side is Side.FLAT:
            if z > threshold:
                side, kind = Side.LONG, BUY
            elif z < -threshold:
                side, kind = Side.SHORT, SELL
            else:
                return pos
            trades.append(Trade(
                date=today,
                tenor=pos.tenor,
                type=kind,
                entry_yield=float(current_yield),
                entry_date=today,
                z_score=z,
            ))
            return Position.open(pos.tenor, side, float(current_yield), today, index)

        if (pos.side is Side.LONG and z < 0) or (pos.side is Side.SHORT and z > 0):
            price = pos.holding_price_pnl(current_yield)
            carry = pos.accumulated_carry
            trades.append(Trade(
                date=today,
                tenor=pos.tenor,
                type=CLOSE,
                entry_yield=pos.entry_yield,
                entry_date=pos.entry_date,
                z_score=z,
                exit_yield=float(current_yield),
                price_pnl=price,
                carry_pnl=carry,
                total_pnl=price + carry,
                holding_days=index - pos.entry_index,
            ))
            return Position.flat(pos.tenor)

        return pos


def run_pca_backtest(
    observations: Sequence[CurveObservation],
    tenors: Sequence[Tenor],
    window_size: int = DEFAULT_WINDOW_SIZE,
    z_score_threshold: float = DEFAULT_Z_THRESHOLD,
) -> BacktestResult:
    """
    Run the rich/cheap PCA backtest.

    Parameters
    ----------
    observations      : date-ascending curves, len > window_size
    tenors            : tenor ordering (at least 3)
    window_size       : trailing refit window in observations (default 60)
    z_score_threshold : entry threshold on |z| (default 1.5)

    Returns
    -------
    BacktestResult — equity curve in bps, trade log, summary stats

    Raises
    ------
    InsufficientDataError when there are too few observations or tenors
    """
    config = BacktestConfig(window_size=window_size, z_score_threshold=z_score_threshold)
    return BacktestSimulator(config).run(observations, tenors)
