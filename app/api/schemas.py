"""Wire schemas for the tracker backend API."""

import datetime as dt

from pydantic import BaseModel, Field

from app.sessions.models import Level


class StartSessionRequest(BaseModel):
    level: Level


class StartSessionResponse(BaseModel):
    session_id: str = Field(min_length=1)


class StopSessionResponse(BaseModel):
    duration_minutes: int = Field(ge=0)


class DailyHours(BaseModel):
    date: dt.date
    hours: float = Field(ge=0)


class StatsResponse(BaseModel):
    """GET /api/stats payload.

    The daily series are optional on the wire; older backends only return
    the aggregate hours.
    """

    b1_plus_hours: float = Field(ge=0)
    b2_hours: float = Field(ge=0)
    total_hours: float = Field(ge=0)
    b1_plus_goal_hours: float = Field(gt=0)
    b2_goal_hours: float = Field(gt=0)
    daily_b1_plus: list[DailyHours] = Field(default_factory=list)
    daily_b2: list[DailyHours] = Field(default_factory=list)
