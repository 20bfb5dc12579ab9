"""
Per-request data source selection with a uniform synthetic fallback.

The selector owns the live source (None when Kiln is not configured) and the
synthetic source. select() is called once per request and returns a
SelectedSource; SelectedSource.run() executes an operation against the primary
and, if a live operation raises UpstreamError, re-runs the whole operation
against the synthetic source. The returned source name is what payloads
report as 'source'.
"""

from __future__ import annotations

from typing import Awaitable, Callable, TypeVar

from backend_staking.core.exceptions import UpstreamError
from backend_staking.datasource.base import StakingDataSource
from backend_staking.staking_logging import get_logger

logger = get_logger(__name__)

T = TypeVar("T")


class SelectedSource:
    """Primary source for one request plus the synthetic fallback."""

    def __init__(self, primary: StakingDataSource, fallback: StakingDataSource) -> None:
        self.primary = primary
        self.fallback = fallback

    @property
    def is_synthetic(self) -> bool:
        return self.primary is self.fallback

    async def run(
        self,
        operation: Callable[[StakingDataSource], Awaitable[T]],
        *,
        name: str,
    ) -> tuple[T, str]:
        """Run operation(primary); on UpstreamError from a live primary, run operation(fallback)."""
        try:
            return await operation(self.primary), self.primary.name
        except UpstreamError as e:
            if self.is_synthetic:
                raise
            logger.warning(
                "upstream_fallback_to_synthetic",
                operation=name,
                service=e.service,
                error=e.message,
            )
        return await operation(self.fallback), self.fallback.name


class DataSourceSelector:
    def __init__(self, synthetic: StakingDataSource, live: StakingDataSource | None = None) -> None:
        self._synthetic = synthetic
        self._live = live

    @property
    def live_enabled(self) -> bool:
        return self._live is not None

    def select(self) -> SelectedSource:
        primary = self._live if self._live is not None else self._synthetic
        return SelectedSource(primary, self._synthetic)
