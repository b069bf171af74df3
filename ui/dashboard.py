from __future__ import annotations

import asyncio
from collections.abc import Coroutine
from typing import Any

import altair as alt
import pandas as pd
import streamlit as st

from app.config.settings import settings
from app.main import Tracker, build_tracker, init_logging
from app.sessions.models import Action, Confirming, Level, Phase, Running, duration_label
from app.stats.progress import DailyChart, GoalProgress

# -------------------------------------------------
# Session State
# -------------------------------------------------
# One event loop per browser session; the httpx pool stays bound to it.
if "loop" not in st.session_state:
    init_logging()
    st.session_state.loop = asyncio.new_event_loop()
if "tracker" not in st.session_state:
    st.session_state.tracker = build_tracker()

tracker: Tracker = st.session_state.tracker


def run(coro: Coroutine[Any, Any, Any]) -> Any:
    return st.session_state.loop.run_until_complete(coro)


# -------------------------------------------------
# Helpers
# -------------------------------------------------
def on_start() -> None:
    tracker.lifecycle.request_start()


def on_cancel() -> None:
    tracker.lifecycle.cancel()


def on_level(level: Level) -> None:
    run(tracker.lifecycle.choose_level(level))


def on_stop() -> None:
    run(tracker.lifecycle.stop())


def on_confirm() -> None:
    run(tracker.lifecycle.confirm())


def on_discard() -> None:
    run(tracker.lifecycle.discard())


def progress_bar(bar: GoalProgress) -> None:
    left, right = st.columns([3, 1])
    left.markdown(f"**{bar.label}**")
    right.markdown(f"<div style='text-align:right'>{bar.hours_label}</div>", unsafe_allow_html=True)
    st.progress(bar.percent / 100)
    left, right = st.columns([3, 1])
    left.caption(bar.percent_label)
    if bar.goal_reached:
        right.markdown(f"<span style='color:#4ade80'>{bar.status_label} 🎉</span>", unsafe_allow_html=True)
    else:
        right.caption(bar.status_label)


def daily_chart(chart: DailyChart) -> None:
    if chart.is_empty:
        st.info(chart.empty_message)
        return

    st.markdown(f"**{chart.title}**")
    df = pd.DataFrame({
        "date": pd.to_datetime([p.date for p in chart.points]),
        "hours": [p.hours for p in chart.points],
    })
    bars = (
        alt.Chart(df)
        .mark_bar(color=chart.color, cornerRadiusTopLeft=4, cornerRadiusTopRight=4)
        .encode(
            x=alt.X("date:T", title=None, axis=alt.Axis(format="%m/%d")),
            y=alt.Y("hours:Q", title="h"),
            tooltip=["date:T", "hours:Q"],
        )
        .properties(height=200)
    )
    st.altair_chart(bars, use_container_width=True)


# -------------------------------------------------
# Page config
# -------------------------------------------------
st.set_page_config(page_title="German Learning Tracker", layout="centered")

st.markdown("## 🇩🇪 German Learning Tracker")
st.caption("Track every hour. See every step forward.")
st.divider()

# =============================
# SESSION PANEL
# =============================
lifecycle = tracker.lifecycle
actions = lifecycle.available_actions()
state = lifecycle.state

if lifecycle.phase is Phase.IDLE:
    st.button("START", type="primary", on_click=on_start, disabled=Action.START not in actions)
    st.caption("Tap to begin a study session")

elif lifecycle.phase is Phase.CHOOSING_LEVEL:
    st.markdown("Which level are you studying?")
    cols = st.columns(len(Level))
    for col, level in zip(cols, Level, strict=True):
        col.button(
            level.label,
            key=f"level-{level}",
            on_click=on_level,
            args=(level,),
            disabled=Action.CHOOSE_LEVEL not in actions,
        )
    st.button("Cancel", on_click=on_cancel, disabled=Action.CANCEL not in actions)

elif isinstance(state, Running):
    st.markdown(f"<span style='color:#4ade80'>● Session running · {state.level.label}</span>", unsafe_allow_html=True)
    st.button("STOP", type="primary", on_click=on_stop, disabled=Action.STOP not in actions)
    st.caption("Tap when you're done studying")

elif isinstance(state, Confirming):
    st.markdown(f"### You studied {duration_label(state.duration_minutes)}.")
    st.caption("Do you want to log this session?")
    left, right = st.columns(2)
    left.button("✓ Log it", type="primary", on_click=on_confirm, disabled=Action.CONFIRM not in actions)
    right.button("Discard", on_click=on_discard, disabled=Action.DISCARD not in actions)

if lifecycle.last_error is not None:
    st.error(str(lifecycle.last_error))

st.divider()


# =============================
# PROGRESS PANEL
# =============================
@st.fragment(run_every=settings.stats_poll_interval_seconds)
def progress_panel() -> None:
    if tracker.stats.is_due():
        run(tracker.stats.refresh())
    view = tracker.stats.render()

    st.markdown("#### Cumulative Progress")
    if view.error_message:
        st.error(view.error_message)

    for bar in view.bars:
        progress_bar(bar)

    if view.charts:
        st.divider()
        st.markdown("#### Daily Activity")
        for chart in view.charts:
            daily_chart(chart)


progress_panel()
