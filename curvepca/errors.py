class CurvePCAError(Exception):
    """Base class for errors raised by the curve PCA engine."""


class InsufficientDataError(CurvePCAError, ValueError):
    """Too few observations or tenors for the requested computation."""


class NonNumericYieldError(CurvePCAError, ValueError):
    """A tenor value could not be read as a number (strict mode only)."""

    def __init__(self, date, tenor, value):
        self.date  = date
        self.tenor = tenor
        self.value = value
        super().__init__(f"Non-numeric yield {value!r} for {tenor} on {date}.")
