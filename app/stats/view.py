"""Stats projection polled from the backend."""

from __future__ import annotations

import asyncio
import time
from collections.abc import Callable
from dataclasses import dataclass, field
from enum import StrEnum
from typing import Protocol

from loguru import logger

from app.api.errors import TrackerApiError
from app.api.schemas import StatsResponse
from app.config.settings import settings
from app.stats.progress import DailyChart, GoalProgress, daily_charts, placeholder_bars, progress_bars

STATS_ERROR_MESSAGE = "Could not load stats. Is the backend running?"


class StatsSource(Protocol):
    async def get_stats(self) -> StatsResponse: ...


class StatsStatus(StrEnum):
    LOADING = "loading"
    READY = "ready"
    ERROR = "error"


@dataclass(frozen=True)
class StatsRender:
    """What the progress panel should draw.

    While loading, bars are zero-progress placeholders against the configured
    goals so the layout does not shift once data arrives.
    """

    status: StatsStatus
    bars: list[GoalProgress]
    charts: list[DailyChart] = field(default_factory=list)
    error_message: str | None = None

    @property
    def is_placeholder(self) -> bool:
        return self.status is StatsStatus.LOADING


class StatsView:
    """Keeps the latest stats snapshot fresh.

    Fetches on start and then every poll interval. invalidate() forces an
    immediate fetch (used after a session is logged). A failed fetch keeps
    the last good snapshot and sets the error flag; the next poll tries again.
    """

    def __init__(
        self,
        source: StatsSource,
        *,
        poll_interval: float | None = None,
        b1_plus_goal_hours: float | None = None,
        b2_goal_hours: float | None = None,
    ) -> None:
        self._source = source
        self.poll_interval = poll_interval if poll_interval is not None else settings.stats_poll_interval_seconds
        self._placeholder_goals = (
            b1_plus_goal_hours if b1_plus_goal_hours is not None else settings.b1_plus_goal_hours,
            b2_goal_hours if b2_goal_hours is not None else settings.b2_goal_hours,
        )
        self.snapshot: StatsResponse | None = None
        self.error: TrackerApiError | None = None
        self._issued = 0
        self._applied = 0
        self._poll_task: asyncio.Task[None] | None = None
        self._last_attempt: float | None = None

    async def refresh(self) -> bool:
        """Fetch a snapshot. Returns True if it was applied.

        Fetches can overlap (poll tick and invalidation); a response older
        than one already applied or already failed is ignored.
        """
        self._issued += 1
        seq = self._issued
        self._last_attempt = time.monotonic()
        try:
            stats = await self._source.get_stats()
        except TrackerApiError as e:
            if seq > self._applied:
                logger.warning(f"Stats fetch failed: {e}")
                self._applied = seq
                self.error = e
            return False

        if seq < self._applied:
            logger.debug(f"Ignoring stats response #{seq}; #{self._applied} already applied")
            return False

        self._applied = seq
        self.snapshot = stats
        self.error = None
        logger.debug(f"Stats refreshed: total_hours={stats.total_hours}")
        return True

    def is_due(self, now: float | None = None) -> bool:
        """True when no fetch has been attempted within the poll interval."""
        if self._last_attempt is None:
            return True
        now = time.monotonic() if now is None else now
        return now - self._last_attempt >= self.poll_interval

    async def invalidate(self) -> None:
        logger.info("Stats invalidated; refreshing")
        await self.refresh()

    async def poll(self, on_refresh: Callable[[], None] | None = None) -> None:
        """Refresh now and then on every interval, until cancelled.

        on_refresh runs after every attempt, successful or not.
        """
        while True:
            await self.refresh()
            if on_refresh is not None:
                on_refresh()
            await asyncio.sleep(self.poll_interval)

    def start_polling(self, on_refresh: Callable[[], None] | None = None) -> asyncio.Task[None]:
        if self._poll_task is None or self._poll_task.done():
            self._poll_task = asyncio.create_task(self.poll(on_refresh), name="stats-poll")
        return self._poll_task

    async def stop_polling(self) -> None:
        task, self._poll_task = self._poll_task, None
        if task is None:
            return
        task.cancel()
        try:
            await task
        except asyncio.CancelledError:
            pass

    def render(self) -> StatsRender:
        if self.snapshot is None:
            if self.error:
                return StatsRender(status=StatsStatus.ERROR, bars=[], error_message=STATS_ERROR_MESSAGE)
            return StatsRender(status=StatsStatus.LOADING, bars=placeholder_bars(*self._placeholder_goals))
        return StatsRender(
            status=StatsStatus.ERROR if self.error else StatsStatus.READY,
            bars=progress_bars(self.snapshot),
            charts=daily_charts(self.snapshot),
            error_message=STATS_ERROR_MESSAGE if self.error else None,
        )
