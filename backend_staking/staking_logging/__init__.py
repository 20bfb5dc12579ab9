"""
Structured logging for Backend Staking: get_logger(__name__) everywhere.
"""

from backend_staking.staking_logging.logger import bind_request, configure_logging, get_logger

__all__ = ["bind_request", "configure_logging", "get_logger"]
