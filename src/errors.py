"""Errors - Exception taxonomy for the cost report pipeline."""


class CostReportError(Exception):
    """Base class for all cost report errors."""


class ParseError(CostReportError):
    """Raised when a CSV export cannot be turned into cost data."""


class ValidationError(CostReportError):
    """Raised when a request payload is missing or has malformed fields."""


class AnalysisError(CostReportError):
    """Raised when the analytics pipeline fails unexpectedly."""
