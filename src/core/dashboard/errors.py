"""Errors raised by dashboard panels."""


class DashboardError(Exception):
    """Base class for a panel that could not be built."""
    pass


class MetricsError(DashboardError):
    """Raised when the metric snapshot cannot be assembled."""
    pass


class HistoryError(DashboardError):
    """Raised when the trend history cannot be read or written."""
    pass


class MediaError(DashboardError):
    """Raised when the media grid cannot be built."""
    pass
