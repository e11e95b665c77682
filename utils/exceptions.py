"""Exceptions raised by the climate analysis framework."""


class ClimateAnalysisError(Exception):
    """Base class for all framework errors."""
    pass


class ParseError(ClimateAnalysisError, ValueError):
    """Raised when the station file is missing a column or holds an unparseable date."""
    pass


class InsufficientDataError(ClimateAnalysisError, ValueError):
    """Raised when a statistic is requested on too few valid observations."""
    pass


class ReturnPeriodError(ClimateAnalysisError, ZeroDivisionError):
    """Raised when a return period is requested for a record with no qualifying events."""
    pass
