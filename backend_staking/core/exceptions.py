"""
Application-level exceptions.

UpstreamError covers every failure talking to Kiln or Etherscan (transport,
HTTP status, unexpected payload). InvalidRequestError is raised for malformed
client input and maps to HTTP 400.
"""

from __future__ import annotations

from typing import Any


class StakingAnalyticsError(Exception):
    """Base class for errors raised by this service."""


class UpstreamError(StakingAnalyticsError):
    """An upstream API call failed. Carries the service name and any error body."""

    def __init__(self, service: str, message: str, details: Any = None) -> None:
        super().__init__(f"{service}: {message}")
        self.service = service
        self.message = message
        self.details = details if details is not None else message


class InvalidRequestError(StakingAnalyticsError):
    """Client input failed validation."""

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message
