"""Tests for exercise progress, weight trend and client stats."""
from __future__ import annotations

import datetime as dt

import pytest

from conftest import log_weights, log_workout, make_client
from fitcoach.models import ExerciseCreate, WorkoutSessionCreate
from fitcoach.services import records
from fitcoach.services.analytics import (
    analyze_exercise_progress,
    analyze_weight_trend,
    classify_volume_trend,
    display_name,
    get_client_stats,
    weekly_rate,
)

D = dt.date


def test_display_name_only_uppercases_first_character():
    assert display_name("bench press") == "Bench press"
    assert display_name("rDL") == "RDL"
    assert display_name("") == ""


@pytest.mark.parametrize(
    "volumes, trend, pct",
    [
        ([1000, 1000, 1000], "stagnant", 0.0),
        ([1100, 1200, 1000], "improving", 15.0),
        ([900, 800, 1000], "declining", -15.0),
        ([1040, 1040, 1000], "stagnant", 4.0),
        ([960, 960, 1000], "stagnant", -4.0),
    ],
)
def test_classify_volume_trend(volumes, trend, pct):
    got_trend, got_pct = classify_volume_trend(volumes)
    assert got_trend == trend
    assert got_pct == pytest.approx(pct)


def test_classify_volume_trend_zero_baseline():
    assert classify_volume_trend([500, 400, 0]) == ("improving", None)
    assert classify_volume_trend([0, 0, 0]) == ("stagnant", None)


def test_weekly_rate_scales_by_entry_count():
    assert weekly_rate([70.0]) == 0.0
    assert weekly_rate([70.0, 70.5, 71.0]) == pytest.approx(1.0 / (3 / 7))
    assert weekly_rate([80, 79, 78, 77, 76, 75, 74]) == pytest.approx(-6.0)


@pytest.mark.usefixtures("database")
class TestExerciseProgress:
    async def test_fewer_than_three_sessions_is_empty(self):
        client_id = await make_client()
        await log_workout(client_id, D(2024, 1, 1), [("Bench Press", 100, 10)])
        await log_workout(client_id, D(2024, 1, 3), [("Bench Press", 100, 10)])

        assert await analyze_exercise_progress(client_id) == []

    async def test_unknown_client_is_empty(self):
        assert await analyze_exercise_progress(999) == []

    async def test_flat_volume_is_stagnant(self):
        client_id = await make_client()
        for day in (1, 3, 5):
            await log_workout(client_id, D(2024, 1, day), [("bench press", 100, 10)])

        [progress] = await analyze_exercise_progress(client_id)

        assert progress.exercise_name == "Bench press"
        assert progress.trend == "stagnant"
        assert progress.change_percent == 0.0
        assert "bench press" in progress.suggestion
        assert "progressive overload" in progress.suggestion

    async def test_rising_volume_is_improving_without_suggestion(self):
        client_id = await make_client()
        await log_workout(client_id, D(2024, 1, 1), [("Squat", 100, 10)])
        await log_workout(client_id, D(2024, 1, 3), [("Squat", 110, 10)])
        await log_workout(client_id, D(2024, 1, 5), [("Squat", 120, 10)])

        [progress] = await analyze_exercise_progress(client_id)

        assert progress.trend == "improving"
        assert progress.suggestion is None
        assert progress.change_percent == 15.0
        # most recent first
        assert [s.date for s in progress.last_three_sessions] == [D(2024, 1, 5), D(2024, 1, 3), D(2024, 1, 1)]
        assert [s.total_volume for s in progress.last_three_sessions] == [1200, 1100, 1000]

    async def test_falling_volume_is_declining(self):
        client_id = await make_client()
        await log_workout(client_id, D(2024, 1, 1), [("Row", 80, 10)])
        await log_workout(client_id, D(2024, 1, 3), [("Row", 70, 10)])
        await log_workout(client_id, D(2024, 1, 5), [("Row", 60, 10)])

        [progress] = await analyze_exercise_progress(client_id)

        assert progress.trend == "declining"
        assert "deloading" in progress.suggestion
        assert "row" in progress.suggestion

    async def test_sets_in_a_session_are_aggregated(self):
        client_id = await make_client()
        for day in (1, 3):
            await log_workout(client_id, D(2024, 1, day), [("Deadlift", 140, 5)])
        await log_workout(
            client_id,
            D(2024, 1, 5),
            [("Deadlift", 140, 5), ("Deadlift", 150, 3), ("Deadlift", 120, 8)],
        )

        [progress] = await analyze_exercise_progress(client_id)
        latest = progress.last_three_sessions[0]

        assert latest.max_weight == 150
        assert latest.total_volume == 140 * 5 + 150 * 3 + 120 * 8

    async def test_names_group_case_insensitively_and_trimmed(self):
        client_id = await make_client()
        await log_workout(client_id, D(2024, 1, 1), [("Overhead Press", 40, 8)])
        await log_workout(client_id, D(2024, 1, 3), [("  overhead press ", 40, 8)])
        await log_workout(client_id, D(2024, 1, 5), [("OVERHEAD PRESS", 40, 8)])

        [progress] = await analyze_exercise_progress(client_id)

        assert progress.exercise_name == "Overhead press"
        assert len(progress.last_three_sessions) == 3

    async def test_exercise_needs_three_sessions(self):
        client_id = await make_client()
        await log_workout(client_id, D(2024, 1, 1), [("Squat", 100, 5), ("Curl", 15, 12)])
        await log_workout(client_id, D(2024, 1, 3), [("Squat", 100, 5), ("Curl", 15, 12)])
        await log_workout(client_id, D(2024, 1, 5), [("Squat", 100, 5)])

        result = await analyze_exercise_progress(client_id)

        assert [p.exercise_name for p in result] == ["Squat"]

    async def test_only_ten_latest_sessions_are_considered(self):
        client_id = await make_client()
        await log_workout(client_id, D(2024, 1, 1), [("Lunge", 20, 10), ("Squat", 100, 5)])
        await log_workout(client_id, D(2024, 1, 2), [("Lunge", 20, 10), ("Squat", 100, 5)])
        for day in range(3, 13):
            sets = [("Squat", 100, 5)]
            if day == 12:
                sets.append(("Lunge", 20, 10))
            await log_workout(client_id, D(2024, 1, day), sets)

        result = await analyze_exercise_progress(client_id)

        assert [p.exercise_name for p in result] == ["Squat"]
        assert result[0].last_three_sessions[0].date == D(2024, 1, 12)

    async def test_sessions_logged_out_of_order_use_calendar_order(self):
        client_id = await make_client()
        await log_workout(client_id, D(2024, 1, 5), [("Squat", 120, 10)])
        await log_workout(client_id, D(2024, 1, 1), [("Squat", 100, 10)])
        await log_workout(client_id, D(2024, 1, 3), [("Squat", 110, 10)])

        [progress] = await analyze_exercise_progress(client_id)

        assert progress.trend == "improving"
        assert progress.last_three_sessions[0].date == D(2024, 1, 5)

    async def test_zero_volume_baseline_counts_as_improving(self):
        client_id = await make_client()
        # Bodyweight sets bypass the workout logger, which drops zero-weight entries
        session_id = await records.add_session(client_id, WorkoutSessionCreate(date=D(2024, 1, 1)))
        await records.add_exercise(session_id, ExerciseCreate(name="Pull Up", weight=0, reps=8))
        await log_workout(client_id, D(2024, 1, 3), [("Pull Up", 10, 8)])
        await log_workout(client_id, D(2024, 1, 5), [("Pull Up", 10, 8)])

        [progress] = await analyze_exercise_progress(client_id)

        assert progress.trend == "improving"
        assert progress.change_percent is None

    async def test_repeated_calls_are_equal(self):
        client_id = await make_client()
        for day in (1, 3, 5):
            await log_workout(client_id, D(2024, 1, day), [("Bench Press", 100, 10), ("Row", 60, 10)])

        first = await analyze_exercise_progress(client_id)
        second = await analyze_exercise_progress(client_id)

        key = lambda p: p.exercise_name
        assert sorted(first, key=key) == sorted(second, key=key)


@pytest.mark.usefixtures("database")
class TestWeightTrend:
    async def test_fewer_than_two_logs_is_none(self):
        client_id = await make_client()
        assert await analyze_weight_trend(client_id) is None

        await log_weights(client_id, [(D(2024, 1, 1), 70.0)])
        assert await analyze_weight_trend(client_id) is None

    async def test_gaining(self):
        client_id = await make_client()
        await log_weights(
            client_id,
            [(D(2024, 1, 1), 70.0), (D(2024, 1, 8), 70.5), (D(2024, 1, 15), 71.0)],
        )

        trend = await analyze_weight_trend(client_id)

        assert trend.trend == "gaining"
        assert trend.weekly_change == pytest.approx(1.0 / (3 / 7))
        assert trend.total_change == pytest.approx(1.0)
        assert [(p.date, p.weight) for p in trend.data] == [
            (D(2024, 1, 1), 70.0),
            (D(2024, 1, 8), 70.5),
            (D(2024, 1, 15), 71.0),
        ]

    async def test_losing_uses_last_seven_logs_only(self):
        client_id = await make_client()
        await log_weights(client_id, [(D(2024, 1, day), 81.0 - day) for day in range(1, 11)])

        trend = await analyze_weight_trend(client_id)

        assert trend.trend == "losing"
        assert trend.weekly_change == pytest.approx(-6.0)
        assert trend.total_change == pytest.approx(-9.0)
        assert len(trend.data) == 10

    async def test_stable(self):
        client_id = await make_client()
        await log_weights(
            client_id,
            [(D(2024, 1, 1), 70.0), (D(2024, 1, 2), 70.0), (D(2024, 1, 3), 70.05)],
        )

        trend = await analyze_weight_trend(client_id)

        assert trend.trend == "stable"

    async def test_series_is_sorted_by_date(self):
        client_id = await make_client()
        await log_weights(client_id, [(D(2024, 2, 1), 68.0), (D(2024, 1, 1), 70.0)])

        trend = await analyze_weight_trend(client_id)

        assert trend.data[0].date == D(2024, 1, 1)
        assert trend.total_change == pytest.approx(-2.0)
        assert trend.trend == "losing"


@pytest.mark.usefixtures("database")
class TestClientStats:
    async def test_no_sessions(self):
        client_id = await make_client()

        stats = await get_client_stats(client_id)

        assert stats.total_sessions == 0
        assert stats.total_exercises == 0
        assert stats.last_session_date is None
        assert stats.avg_session_exercises == 0

    async def test_counts_and_average(self):
        client_id = await make_client()
        for day, count in zip((1, 3, 5, 7), (3, 5, 4, 4)):
            await log_workout(client_id, D(2024, 3, day), [("Squat", 100, 5)] * count)

        stats = await get_client_stats(client_id)

        assert stats.total_sessions == 4
        assert stats.total_exercises == 16
        assert stats.avg_session_exercises == 4
        assert stats.last_session_date == D(2024, 3, 7)

    async def test_average_rounds_half_up(self):
        client_id = await make_client()
        await log_workout(client_id, D(2024, 3, 1), [("Squat", 100, 5)])
        await log_workout(client_id, D(2024, 3, 2), [("Squat", 100, 5)] * 2)

        stats = await get_client_stats(client_id)

        assert stats.avg_session_exercises == 2
