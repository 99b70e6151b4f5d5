from __future__ import annotations

import datetime as dt
import logging
import math
from typing import Dict, List, Literal, Optional, Sequence, Tuple

from pydantic import BaseModel

from .records import count_session_exercises, get_client_sessions, get_client_weight_history, get_session_exercises

logger = logging.getLogger(__name__)

# Exercise progress
SESSION_LOOKBACK = 10
TREND_WINDOW = 3
CHANGE_THRESHOLD_PCT = 5.0

# Bodyweight
WEIGHT_WINDOW = 7
WEEKLY_THRESHOLD_KG = 0.2

ProgressTrend = Literal["improving", "stagnant", "declining"]
WeightDirection = Literal["losing", "gaining", "stable"]


class SessionAggregate(BaseModel):
    date: dt.date
    max_weight: float
    total_volume: float


class ExerciseProgress(BaseModel):
    exercise_name: str
    trend: ProgressTrend
    last_three_sessions: List[SessionAggregate]
    change_percent: Optional[float] = None
    suggestion: Optional[str] = None


class WeightPoint(BaseModel):
    date: dt.date
    weight: float


class WeightTrend(BaseModel):
    trend: WeightDirection
    weekly_change: float
    total_change: float
    data: List[WeightPoint]


class ClientStats(BaseModel):
    total_sessions: int
    total_exercises: int
    last_session_date: Optional[dt.date] = None
    avg_session_exercises: int


def normalize_exercise_name(name: str) -> str:
    return name.strip().lower()


def display_name(name: str) -> str:
    """Uppercase the first character only: 'bench press' -> 'Bench press'."""
    return name[:1].upper() + name[1:]


def classify_volume_trend(volumes: Sequence[float]) -> Tuple[ProgressTrend, Optional[float]]:
    """Compare the two most recent volumes against the third most recent.

    ``volumes`` is most recent first. Returns the trend and the percent change,
    which is ``None`` when the baseline volume is zero.
    """
    avg_recent = (volumes[0] + volumes[1]) / 2
    avg_older = volumes[2]

    if avg_older == 0:
        # No baseline to divide by: any recent work counts as progress
        return ("improving" if avg_recent > 0 else "stagnant"), None

    change_percent = ((avg_recent - avg_older) / avg_older) * 100
    if change_percent > CHANGE_THRESHOLD_PCT:
        return "improving", change_percent
    if change_percent < -CHANGE_THRESHOLD_PCT:
        return "declining", change_percent
    return "stagnant", change_percent


def _suggestion(trend: ProgressTrend, exercise_name: str) -> Optional[str]:
    if trend == "declining":
        return f"Consider deloading or checking recovery for {exercise_name}"
    if trend == "stagnant":
        return (
            f"No progress on {exercise_name} in last 3 sessions. "
            "Consider progressive overload or variation."
        )
    return None


async def analyze_exercise_progress(client_id: int) -> List[ExerciseProgress]:
    """
    Classify each exercise the client trains regularly as improving,
    stagnant or declining.

    Looks at the 10 most recent sessions. An exercise needs entries in at
    least 3 of them; its two most recent sessions' total volume is averaged
    and compared with the session before. Fewer than 3 sessions overall
    yields an empty list.
    """
    sessions = await get_client_sessions(client_id, limit=SESSION_LOOKBACK)
    if len(sessions) < TREND_WINDOW:
        logger.debug("Client %s has %d sessions, not enough for progress analysis", client_id, len(sessions))
        return []

    # name -> per-session aggregates, most recent session first
    history: Dict[str, List[SessionAggregate]] = {}
    for workout in sessions:
        per_session: Dict[str, SessionAggregate] = {}
        for entry in await get_session_exercises(workout.id):
            name = normalize_exercise_name(entry.name)
            if not name:
                continue
            volume = entry.weight * entry.reps
            agg = per_session.get(name)
            if agg is None:
                per_session[name] = SessionAggregate(
                    date=workout.date, max_weight=entry.weight, total_volume=volume
                )
            else:
                agg.max_weight = max(agg.max_weight, entry.weight)
                agg.total_volume += volume
        for name, agg in per_session.items():
            history.setdefault(name, []).append(agg)

    analyses: List[ExerciseProgress] = []
    for name, data in history.items():
        if len(data) < TREND_WINDOW:
            continue

        last_three = data[:TREND_WINDOW]
        trend, change_percent = classify_volume_trend([d.total_volume for d in last_three])
        analyses.append(
            ExerciseProgress(
                exercise_name=display_name(name),
                trend=trend,
                last_three_sessions=last_three,
                change_percent=round(change_percent, 1) if change_percent is not None else None,
                suggestion=_suggestion(trend, name),
            )
        )
    return analyses


def weekly_rate(weights: Sequence[float]) -> float:
    """Change across the window scaled to a 7-entry "week".

    This treats each entry as one day, so it only matches the calendar rate
    when the client logs daily.
    """
    if len(weights) < 2:
        return 0.0
    return (weights[-1] - weights[0]) / (len(weights) / WEIGHT_WINDOW)


async def analyze_weight_trend(client_id: int) -> Optional[WeightTrend]:
    logs = await get_client_weight_history(client_id)
    if len(logs) < 2:
        logger.debug("Client %s has %d weight logs, not enough for a trend", client_id, len(logs))
        return None

    data = [WeightPoint(date=log.date, weight=log.weight) for log in logs]
    total_change = logs[-1].weight - logs[0].weight
    weekly_change = weekly_rate([log.weight for log in logs[-WEIGHT_WINDOW:]])

    trend: WeightDirection
    if weekly_change < -WEEKLY_THRESHOLD_KG:
        trend = "losing"
    elif weekly_change > WEEKLY_THRESHOLD_KG:
        trend = "gaining"
    else:
        trend = "stable"

    return WeightTrend(trend=trend, weekly_change=weekly_change, total_change=total_change, data=data)


async def get_client_stats(client_id: int) -> ClientStats:
    sessions = await get_client_sessions(client_id)

    total_exercises = 0
    for workout in sessions:
        total_exercises += await count_session_exercises(workout.id)

    avg = 0
    if sessions:
        # Round half up
        avg = math.floor(total_exercises / len(sessions) + 0.5)

    return ClientStats(
        total_sessions=len(sessions),
        total_exercises=total_exercises,
        last_session_date=sessions[0].date if sessions else None,
        avg_session_exercises=avg,
    )
