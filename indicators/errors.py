"""Exceptions raised by the indicator calculations in strict mode."""


class IndicatorError(Exception):
    """Base class for indicator calculation errors."""


class UnmatchedQuarterError(IndicatorError):
    """A credit observation has no GDP observation in the same quarter."""

    def __init__(self, observation_date):
        self.observation_date = observation_date
        super().__init__(f"No GDP observation for the quarter of {observation_date}")


class DegenerateDenominatorError(IndicatorError):
    """A ratio was requested against a zero denominator."""

    def __init__(self, what: str, observation_date=None):
        self.what = what
        self.observation_date = observation_date
        suffix = f" at {observation_date}" if observation_date is not None else ""
        super().__init__(f"Zero denominator in {what}{suffix}")
