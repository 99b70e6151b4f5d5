"""Pytest configuration: temporary database, logging and a fresh change feed."""
from __future__ import annotations

import datetime as dt
import os
import tempfile
from typing import Iterable, Tuple

import pytest

_TMP_DIR = tempfile.mkdtemp(prefix="fitcoach-tests-")
os.environ["DATABASE_URL"] = f"sqlite:///{_TMP_DIR}/test.db"
os.environ["LOG_DIR"] = os.path.join(_TMP_DIR, "logs")

from fitcoach.logging_config import configure_logging

configure_logging()

from fitcoach import db
from fitcoach.models import ClientCreate, ExerciseBase, SessionLog, WeightLogCreate
from fitcoach.services import live, records


@pytest.fixture
async def database():
    """Create the schema for one test and drop it afterwards."""

    await db.init_db()
    yield
    await db.drop_db()
    await db.engine.dispose()


@pytest.fixture(autouse=True)
def change_feed(monkeypatch) -> live.ChangeFeed:
    feed = live.ChangeFeed()
    monkeypatch.setattr(live, "feed", feed)
    return feed


def client_payload(name: str = "Ana Souza", **overrides) -> ClientCreate:
    data = {
        "name": name,
        "age": 31,
        "height": 168.0,
        "start_weight": 64.5,
        "goal": "Strength",
        "injuries": "",
        "start_date": dt.date(2024, 1, 1),
    }
    data.update(overrides)
    return ClientCreate(**data)


async def make_client(name: str = "Ana Souza", **overrides) -> int:
    return await records.add_client(client_payload(name, **overrides))


async def log_workout(client_id: int, day: dt.date, sets: Iterable[Tuple[str, float, int]], notes: str = "") -> int:
    """Log a session whose entries are (name, weight, reps) tuples."""

    entries = [ExerciseBase(name=name, weight=weight, reps=reps) for name, weight, reps in sets]
    return await records.log_session(client_id, SessionLog(date=day, notes=notes, exercises=entries))


async def log_weights(client_id: int, points: Iterable[Tuple[dt.date, float]]) -> None:
    for day, weight in points:
        await records.add_weight_log(client_id, WeightLogCreate(date=day, weight=weight))
