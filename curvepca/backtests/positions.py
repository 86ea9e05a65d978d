from dataclasses import dataclass, replace
from datetime import date
from enum import IntEnum
from typing import Optional

from curvepca.backtests.pnl import PnLCalculator
from curvepca.data.tenors import Tenor


class Side(IntEnum):
    """Slot state. The integer value is the P&L sign of the position."""
    FLAT  = 0
    LONG  = 1    # bought cheap, profits when the yield falls
    SHORT = -1   # sold rich, profits when the yield rises


@dataclass(frozen=True)
class Position:
    """
    State of one tenor's slot. Entry fields are only meaningful when the
    side is not FLAT.
    """
    tenor: Tenor
    side: Side = Side.FLAT
    entry_yield: float = 0.0
    entry_date: Optional[date] = None
    entry_index: int = -1
    accumulated_carry: float = 0.0
    last_marked_yield: float = 0.0

    @property
    def is_open(self) -> bool:
        return self.side is not Side.FLAT

    @classmethod
    def flat(cls, tenor: Tenor) -> "Position":
        return cls(tenor=tenor)

    @classmethod
    def open(cls, tenor: Tenor, side: Side, entry_yield: float, entry_date: date, entry_index: int) -> "Position":
        if side is Side.FLAT:
            raise ValueError("Cannot open a FLAT position.")
        return cls(
            tenor=tenor,
            side=side,
            entry_yield=entry_yield,
            entry_date=entry_date,
            entry_index=entry_index,
            last_marked_yield=entry_yield,
        )

    def mark(self, current_yield: float):
        """
        Mark to market against `current_yield`.

        Returns (new position, price P&L bps, carry P&L bps). Carry accrues on
        the yield at the previous mark.
        """
        if not self.is_open:
            return self, 0.0, 0.0
        price = PnLCalculator.price_pnl(self.tenor, self.last_marked_yield, current_yield, self.side)
        carry = PnLCalculator.carry_pnl(self.last_marked_yield, self.side)
        marked = replace(
            self,
            accumulated_carry=self.accumulated_carry + carry,
            last_marked_yield=current_yield,
        )
        return marked, price, carry

    def holding_price_pnl(self, exit_yield: float) -> float:
        """Price P&L over the whole holding period, entry to exit."""
        return PnLCalculator.price_pnl(self.tenor, self.entry_yield, exit_yield, self.side)
