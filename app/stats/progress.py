"""Progress toward the proficiency-hour goals.

Pure functions over a stats snapshot; rendering lives in the front ends.
"""

from dataclasses import dataclass

from app.api.schemas import DailyHours, StatsResponse

B1_PLUS_COLOR = "#6c8aff"
B2_COLOR = "#a78bfa"
TOTAL_COLOR = "#4ade80"


@dataclass(frozen=True, slots=True)
class GoalProgress:
    """One progress bar.

    Attributes:
        label: Bar title
        hours: Hours studied so far
        goal_hours: Target hours
        percent: Completion, clamped to 100
        remaining_hours: Hours left, never negative
        color: Bar color
    """

    label: str
    hours: float
    goal_hours: float
    percent: float
    remaining_hours: float
    color: str

    @property
    def goal_reached(self) -> bool:
        return self.remaining_hours <= 0

    @property
    def status_label(self) -> str:
        if self.goal_reached:
            return "Goal reached!"
        return f"{self.remaining_hours:.1f}h remaining"

    @property
    def hours_label(self) -> str:
        return f"{self.hours:.1f}h / {self.goal_hours:g}h"

    @property
    def percent_label(self) -> str:
        return f"{self.percent:.1f}% complete"


def percent_complete(hours: float, goal_hours: float) -> float:
    if goal_hours <= 0:
        raise ValueError(f"goal_hours must be positive, got {goal_hours}")
    return min(hours / goal_hours * 100, 100.0)


def remaining_hours(hours: float, goal_hours: float) -> float:
    return max(goal_hours - hours, 0.0)


def goal_progress(label: str, hours: float, goal_hours: float, color: str) -> GoalProgress:
    return GoalProgress(
        label=label,
        hours=hours,
        goal_hours=goal_hours,
        percent=percent_complete(hours, goal_hours),
        remaining_hours=remaining_hours(hours, goal_hours),
        color=color,
    )


def progress_bars(stats: StatsResponse) -> list[GoalProgress]:
    """B1+, B2 and combined bars. The combined goal is the sum of both goals."""
    return [
        goal_progress("B1+ Completion", stats.b1_plus_hours, stats.b1_plus_goal_hours, B1_PLUS_COLOR),
        goal_progress("B2 Completion", stats.b2_hours, stats.b2_goal_hours, B2_COLOR),
        goal_progress(
            "Combined Total",
            stats.total_hours,
            stats.b1_plus_goal_hours + stats.b2_goal_hours,
            TOTAL_COLOR,
        ),
    ]


def placeholder_bars(b1_plus_goal_hours: float, b2_goal_hours: float) -> list[GoalProgress]:
    """Zero-progress bars shown until the first snapshot arrives."""
    return [
        goal_progress("B1+ Progress", 0.0, b1_plus_goal_hours, B1_PLUS_COLOR),
        goal_progress("B2 Progress", 0.0, b2_goal_hours, B2_COLOR),
        goal_progress("Combined Total", 0.0, b1_plus_goal_hours + b2_goal_hours, TOTAL_COLOR),
    ]


@dataclass(frozen=True, slots=True)
class DailyChart:
    title: str
    points: list[DailyHours]
    color: str

    @property
    def is_empty(self) -> bool:
        return not self.points

    @property
    def empty_message(self) -> str:
        return f"No data for {self.title} yet."

    def tick_labels(self) -> list[str]:
        return [point.date.strftime("%m/%d") for point in self.points]


def daily_charts(stats: StatsResponse) -> list[DailyChart]:
    return [
        DailyChart(title="Daily B1+ Activity", points=list(stats.daily_b1_plus), color=B1_PLUS_COLOR),
        DailyChart(title="Daily B2 Activity", points=list(stats.daily_b2), color=B2_COLOR),
    ]
