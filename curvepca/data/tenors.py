import re
from enum import Enum
from typing import Iterable, List

# Approximate modified durations (in years) per tenor, par bond at ~4-5%
DURATIONS = {
    "1M":  0.08, "3M":  0.25, "6M":  0.5,
    "1Y":  0.95, "2Y":  1.9,  "3Y":  2.8,
    "5Y":  4.6,  "7Y":  6.4,  "10Y": 8.8,
    "20Y": 17.0, "30Y": 20.0,
}

# Approximate convexities (in years^2) on the same basis
CONVEXITIES = {
    "1M":  0.01,  "3M":  0.1,  "6M":  0.3,
    "1Y":  1.0,   "2Y":  4.5,  "3Y":  9.5,
    "5Y":  25.0,  "7Y":  47.0, "10Y": 90.0,
    "20Y": 300.0, "30Y": 500.0,
}

# Daily Treasury par yield curve rates on FRED
FRED_SERIES = {
    "1M":  "DGS1MO", "3M":  "DGS3MO", "6M":  "DGS6MO",
    "1Y":  "DGS1",   "2Y":  "DGS2",   "3Y":  "DGS3",
    "5Y":  "DGS5",   "7Y":  "DGS7",   "10Y": "DGS10",
    "20Y": "DGS20",  "30Y": "DGS30",
}

_LABEL_RE = re.compile(r"^(?P<num>\d+)(?P<unit>M|Y)$")


class Tenor(Enum):
    """
    Maturity points on the curve. Definition order is the dimension order of
    every vector and matrix the engine builds.
    """

    M1  = "1M"
    M3  = "3M"
    M6  = "6M"
    Y1  = "1Y"
    Y2  = "2Y"
    Y3  = "3Y"
    Y5  = "5Y"
    Y7  = "7Y"
    Y10 = "10Y"
    Y20 = "20Y"
    Y30 = "30Y"

    def __str__(self) -> str:
        return self.value

    @property
    def years(self) -> float:
        m = _LABEL_RE.match(self.value)
        num = int(m.group("num"))
        return num / 12 if m.group("unit") == "M" else float(num)

    @property
    def duration(self) -> float:
        return DURATIONS[self.value]

    @property
    def convexity(self) -> float:
        return CONVEXITIES[self.value]

    @property
    def fred_series(self) -> str:
        return FRED_SERIES[self.value]

    @property
    def position(self) -> int:
        return _ORDER[self]

    @classmethod
    def parse(cls, label) -> "Tenor":
        """
        Read a tenor from a loosely formatted label.

        "1 Mo" -> 1M, "10 Yr" -> 10Y, "2year" -> 2Y, Tenor.Y5 -> 5Y.
        Raises ValueError for anything that is not a known tenor.
        """
        if isinstance(label, cls):
            return label
        clean = str(label).upper().replace(" ", "")
        clean = clean.replace("MONTHS", "M").replace("MONTH", "M").replace("MO", "M")
        clean = clean.replace("YEARS", "Y").replace("YEAR", "Y").replace("YR", "Y")
        try:
            return cls(clean)
        except ValueError:
            raise ValueError(f"Unrecognised tenor label: {label!r}") from None

    @classmethod
    def ordered(cls, tenors: Iterable = None) -> List["Tenor"]:
        """Return tenors (all of them by default) in curve order, de-duplicated."""
        if tenors is None:
            return list(cls)
        return sorted({cls.parse(t) for t in tenors}, key=lambda t: t.position)


_ORDER = {t: i for i, t in enumerate(Tenor)}
