"""Composition root shared by the Streamlit dashboard and the terminal client."""

from __future__ import annotations

from dataclasses import dataclass

from loguru import logger

from app.api.client import TrackerApiClient
from app.config.settings import Settings, settings
from app.core.logger import setup_logger
from app.sessions.lifecycle import SessionLifecycle
from app.stats.view import StatsView


@dataclass
class Tracker:
    """The session panel and the progress panel over one backend client.

    The only link between the two is the lifecycle's on_logged callback,
    which invalidates the stats view.
    """

    api: TrackerApiClient
    lifecycle: SessionLifecycle
    stats: StatsView

    async def aclose(self) -> None:
        await self.stats.stop_polling()
        await self.api.aclose()


def build_tracker(api: TrackerApiClient | None = None, config: Settings = settings) -> Tracker:
    api = api or TrackerApiClient(config.backend_url, timeout=config.api_timeout_seconds)
    stats = StatsView(
        api,
        poll_interval=config.stats_poll_interval_seconds,
        b1_plus_goal_hours=config.b1_plus_goal_hours,
        b2_goal_hours=config.b2_goal_hours,
    )
    lifecycle = SessionLifecycle(api, on_logged=stats.invalidate)
    logger.info(f"Tracker ready against {api.base_url}")
    return Tracker(api=api, lifecycle=lifecycle, stats=stats)


def init_logging(config: Settings = settings, *, debug: bool = False) -> None:
    setup_logger(level="DEBUG" if debug else config.log_level, log_file=config.log_file)
