from curvepca.config import BPS, CARRY_DAY_COUNT
from curvepca.data.tenors import Tenor


class PnLCalculator:
    """
    Bond P&L in basis points of notional for one unit of position.

    Yields are in percent (4.08 not 0.0408); `side` is +1 long, -1 short.
    """

    @staticmethod
    def price_return(tenor: Tenor, yield_from: float, yield_to: float) -> float:
        """
        Price return of a long position, second order in the yield move:
            return ≈ -duration × Δy + ½ × convexity × Δy²
        with Δy in decimal yield units.
        """
        dy = (yield_to - yield_from) / 100
        return -tenor.duration * dy + 0.5 * tenor.convexity * dy * dy

    @staticmethod
    def price_pnl(tenor: Tenor, yield_from: float, yield_to: float, side: int) -> float:
        """Signed price P&L in bps for a move from yield_from to yield_to."""
        return PnLCalculator.price_return(tenor, yield_from, yield_to) * BPS * side

    @staticmethod
    def carry_pnl(yield_level: float, side: int, days: int = 1) -> float:
        """
        Carry accrued over `days` on an ACT/360 basis, in bps:
            (yield / 100) / 360 × days
        Longs earn the yield, shorts pay it.
        """
        return (yield_level / 100) / CARRY_DAY_COUNT * days * BPS * side
