"""End-to-end flows through build_tracker against a mocked backend."""

import pytest

from app.config.settings import Settings
from app.main import build_tracker
from app.sessions.models import Level, Phase


@pytest.fixture
def config() -> Settings:
    return Settings(BACKEND_URL="http://tracker.test/", STATS_POLL_INTERVAL_SECONDS=30)


@pytest.mark.asyncio
async def test_confirm_triggers_exactly_one_stats_fetch(make_api, config: Settings):
    api, transport = make_api()
    tracker = build_tracker(api, config)

    tracker.lifecycle.request_start()
    await tracker.lifecycle.choose_level(Level.B1_PLUS)
    await tracker.lifecycle.stop()
    await tracker.lifecycle.confirm()

    assert transport.paths() == [
        "POST /api/sessions/start",
        "POST /api/sessions/stop/s1",
        "GET /api/stats",
    ]
    assert tracker.lifecycle.phase is Phase.IDLE
    assert tracker.stats.snapshot is not None
    await tracker.aclose()


@pytest.mark.asyncio
async def test_discard_deletes_without_stats_fetch(make_api, config: Settings):
    api, transport = make_api()
    tracker = build_tracker(api, config)

    tracker.lifecycle.request_start()
    await tracker.lifecycle.choose_level(Level.B2)
    await tracker.lifecycle.stop()
    await tracker.lifecycle.discard()

    assert transport.paths() == [
        "POST /api/sessions/start",
        "POST /api/sessions/stop/s1",
        "DELETE /api/sessions/s1",
    ]
    assert tracker.stats.snapshot is None
    await tracker.aclose()


def test_settings_normalize_backend_url(config: Settings):
    assert config.backend_url == "http://tracker.test"
    assert config.log_level == "INFO"


def test_settings_fall_back_to_info_for_unknown_level():
    assert Settings(LOG_LEVEL="verbose").log_level == "INFO"


def test_settings_reject_non_positive_interval():
    with pytest.raises(ValueError, match="greater than zero"):
        Settings(STATS_POLL_INTERVAL_SECONDS=0)
