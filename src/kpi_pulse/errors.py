"""Exceptions raised by the KPI engine and its adapters."""

from typing import Any, Optional


class KPIPulseError(Exception):
    """Base exception for kpi_pulse."""

    def __init__(self, message: str, details: Optional[Any] = None):
        self.message = message
        self.details = details
        super().__init__(message)


class NotFoundError(KPIPulseError):
    """KPI or alert not found."""

    pass


class UpstreamDataError(KPIPulseError):
    """The metrics provider call failed (network, auth, quota, bad payload)."""

    pass


class PersistenceError(KPIPulseError):
    """A read or write against the KPI store failed."""

    pass


class KPIValidationError(KPIPulseError):
    """A KPI definition violates its invariants."""

    pass
