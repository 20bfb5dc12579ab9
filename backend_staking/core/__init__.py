"""
Core utilities: shared exceptions and cross-cutting concerns.

Used across data sources, analytics and the API server.
"""

from backend_staking.core.exceptions import (
    InvalidRequestError,
    StakingAnalyticsError,
    UpstreamError,
)

__all__ = ["InvalidRequestError", "StakingAnalyticsError", "UpstreamError"]
