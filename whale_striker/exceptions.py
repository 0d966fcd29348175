"""
Exception hierarchy for the whale striker.

Transient errors (reserve reads, simulation, submission) are raised inside a
single handling cycle and stopped at the pipeline boundary. Configuration
errors abort startup. Transport closure restarts the monitor loop.
"""

from typing import Any, Dict, Optional


class WhaleStrikerError(Exception):
    """Base exception for all whale striker errors."""

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        super().__init__(message)
        self.details = details or {}


class ConfigurationError(WhaleStrikerError):
    """Raised when configuration is missing or malformed."""

    pass


class ReserveReadError(WhaleStrikerError):
    """Raised when pool reserves cannot be read."""

    def __init__(
        self,
        message: str,
        pool: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message, details)
        self.pool = pool


class SimulationError(WhaleStrikerError):
    """Raised when the dry-run call reverts, returns garbage, or fees are unavailable."""

    def __init__(
        self,
        message: str,
        loan_amount: Optional[int] = None,
        details: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message, details)
        self.loan_amount = loan_amount


class SubmissionError(WhaleStrikerError):
    """Raised when the node rejects a strike transaction."""

    def __init__(
        self,
        message: str,
        to: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message, details)
        self.to = to


class TransportClosedError(WhaleStrikerError):
    """Raised when the log subscription transport closes."""

    def __init__(
        self,
        message: str,
        endpoint: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message, details)
        self.endpoint = endpoint
