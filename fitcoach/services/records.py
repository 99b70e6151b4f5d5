from __future__ import annotations

import logging
from typing import List, Optional, Sequence, Type, TypeVar

from sqlalchemy import delete, func
from sqlmodel import SQLModel, select
from sqlmodel.ext.asyncio.session import AsyncSession

from . import live
from .live import Change
from ..db import get_session
from ..models import (
    Client,
    ClientCreate,
    ClientUpdate,
    Exercise,
    ExerciseBase,
    ExerciseCreate,
    ExerciseUpdate,
    Program,
    ProgramCreate,
    ProgramUpdate,
    SessionLog,
    WeightLog,
    WeightLogCreate,
    WeightLogUpdate,
    WorkoutSession,
    WorkoutSessionCreate,
    WorkoutSessionUpdate,
    utcnow,
)

logger = logging.getLogger(__name__)

M = TypeVar("M", bound=SQLModel)


class RecordNotFoundError(LookupError):
    def __init__(self, collection: str, record_id: int) -> None:
        super().__init__(f"{collection} {record_id} not found")
        self.collection = collection
        self.record_id = record_id


async def _require(session: AsyncSession, model: Type[M], record_id: int, collection: str) -> M:
    record = await session.get(model, record_id)
    if record is None:
        raise RecordNotFoundError(collection, record_id)
    return record


async def _publish(changes: Sequence[Change]) -> None:
    for change in changes:
        await live.feed.publish(change)


# Clients

async def add_client(data: ClientCreate) -> int:
    async with get_session() as session:
        client = Client(**data.model_dump())
        session.add(client)
        await session.commit()
    logger.info("Added client %s (%s)", client.id, client.name)
    await _publish([Change("client", "insert", client.id, client.id)])
    return client.id


async def enroll_client(data: ClientCreate) -> int:
    """Create a client together with a first weight log at their starting weight."""
    async with get_session() as session:
        async with session.begin():
            client = Client(**data.model_dump())
            session.add(client)
            await session.flush()
            log = WeightLog(client_id=client.id, weight=client.start_weight, date=client.start_date)
            session.add(log)
            await session.flush()
    logger.info("Enrolled client %s (%s) at %.1f", client.id, client.name, client.start_weight)
    await _publish([
        Change("client", "insert", client.id, client.id),
        Change("weightlog", "insert", log.id, client.id),
    ])
    return client.id


async def update_client(client_id: int, updates: ClientUpdate) -> None:
    async with get_session() as session:
        client = await _require(session, Client, client_id, "client")
        client.sqlmodel_update(updates.model_dump(exclude_unset=True, exclude_none=True))
        client.updated_at = utcnow()
        session.add(client)
        await session.commit()
    logger.info("Updated client %s", client_id)
    await _publish([Change("client", "update", client_id, client_id)])


async def delete_client(client_id: int) -> None:
    """Delete a client and everything that belongs to it, all or nothing."""
    async with get_session() as session:
        async with session.begin():
            await _require(session, Client, client_id, "client")

            session_ids = (await session.exec(
                select(WorkoutSession.id).where(WorkoutSession.client_id == client_id)
            )).all()
            exercise_ids = []
            if session_ids:
                exercise_ids = (await session.exec(
                    select(Exercise.id).where(Exercise.session_id.in_(session_ids))
                )).all()
            weight_log_ids = (await session.exec(
                select(WeightLog.id).where(WeightLog.client_id == client_id)
            )).all()
            program_ids = (await session.exec(
                select(Program.id).where(Program.client_id == client_id)
            )).all()

            if session_ids:
                await session.exec(delete(Exercise).where(Exercise.session_id.in_(session_ids)))
            await session.exec(delete(WorkoutSession).where(WorkoutSession.client_id == client_id))
            await session.exec(delete(WeightLog).where(WeightLog.client_id == client_id))
            await session.exec(delete(Program).where(Program.client_id == client_id))
            await session.exec(delete(Client).where(Client.id == client_id))

    logger.info(
        "Deleted client %s with %d sessions, %d exercises, %d weight logs, %d programs",
        client_id, len(session_ids), len(exercise_ids), len(weight_log_ids), len(program_ids),
    )
    changes = [Change("exercise", "delete", i, client_id) for i in exercise_ids]
    changes += [Change("session", "delete", i, client_id) for i in session_ids]
    changes += [Change("weightlog", "delete", i, client_id) for i in weight_log_ids]
    changes += [Change("program", "delete", i, client_id) for i in program_ids]
    changes.append(Change("client", "delete", client_id, client_id))
    await _publish(changes)


async def get_client(client_id: int) -> Optional[Client]:
    async with get_session() as session:
        return await session.get(Client, client_id)


async def list_clients(search: Optional[str] = None) -> List[Client]:
    stmt = select(Client)
    if search and search.strip():
        stmt = stmt.where(func.lower(Client.name).contains(search.strip().lower(), autoescape=True))
    stmt = stmt.order_by(Client.name, Client.id)
    async with get_session() as session:
        result = await session.exec(stmt)
        return list(result.all())


# Sessions

async def add_session(client_id: int, data: WorkoutSessionCreate) -> int:
    async with get_session() as session:
        await _require(session, Client, client_id, "client")
        workout = WorkoutSession(client_id=client_id, **data.model_dump())
        session.add(workout)
        await session.commit()
    logger.info("Added session %s for client %s on %s", workout.id, client_id, workout.date)
    await _publish([Change("session", "insert", workout.id, client_id)])
    return workout.id


def is_complete_entry(entry: ExerciseBase) -> bool:
    return bool(entry.name.strip() and entry.weight and entry.reps)


async def log_session(client_id: int, data: SessionLog) -> int:
    """Record a workout and its set entries in one transaction.

    Entries missing a name, a weight or a rep count (blank or zero) are
    skipped; the remaining entries keep their relative order and are numbered
    from 0. At least one entry has to survive, otherwise ``ValueError`` is
    raised and nothing is written.
    """
    entries = [e for e in data.exercises if is_complete_entry(e)]
    if not entries:
        raise ValueError("Add at least one exercise with name, weight, and reps")

    async with get_session() as session:
        async with session.begin():
            await _require(session, Client, client_id, "client")
            workout = WorkoutSession(client_id=client_id, date=data.date, notes=data.notes)
            session.add(workout)
            await session.flush()
            rows = [
                Exercise(session_id=workout.id, order=i, **entry.model_dump())
                for i, entry in enumerate(entries)
            ]
            session.add_all(rows)
            await session.flush()

    logger.info("Logged session %s for client %s with %d entries", workout.id, client_id, len(rows))
    changes = [Change("session", "insert", workout.id, client_id)]
    changes += [Change("exercise", "insert", row.id, client_id) for row in rows]
    await _publish(changes)
    return workout.id


async def get_client_sessions(client_id: int, limit: Optional[int] = None) -> List[WorkoutSession]:
    """Sessions for a client, most recent first."""
    stmt = (
        select(WorkoutSession)
        .where(WorkoutSession.client_id == client_id)
        .order_by(WorkoutSession.date.desc(), WorkoutSession.id.desc())
    )
    if limit is not None:
        stmt = stmt.limit(limit)
    async with get_session() as session:
        result = await session.exec(stmt)
        return list(result.all())


async def get_workout_session(session_id: int) -> Optional[WorkoutSession]:
    async with get_session() as session:
        return await session.get(WorkoutSession, session_id)


async def update_session(session_id: int, updates: WorkoutSessionUpdate) -> None:
    # Sessions are only removed together with their client
    async with get_session() as session:
        workout = await _require(session, WorkoutSession, session_id, "session")
        workout.sqlmodel_update(updates.model_dump(exclude_unset=True, exclude_none=True))
        session.add(workout)
        await session.commit()
    logger.info("Updated session %s", session_id)
    await _publish([Change("session", "update", session_id, workout.client_id)])


# Exercises

async def add_exercise(session_id: int, data: ExerciseCreate) -> int:
    async with get_session() as session:
        workout = await _require(session, WorkoutSession, session_id, "session")
        exercise = Exercise(session_id=session_id, **data.model_dump())
        session.add(exercise)
        await session.commit()
    await _publish([Change("exercise", "insert", exercise.id, workout.client_id)])
    return exercise.id


async def get_exercise(exercise_id: int) -> Optional[Exercise]:
    async with get_session() as session:
        return await session.get(Exercise, exercise_id)


async def update_exercise(exercise_id: int, updates: ExerciseUpdate) -> None:
    async with get_session() as session:
        exercise = await _require(session, Exercise, exercise_id, "exercise")
        workout = await _require(session, WorkoutSession, exercise.session_id, "session")
        exercise.sqlmodel_update(updates.model_dump(exclude_unset=True, exclude_none=True))
        session.add(exercise)
        await session.commit()
    await _publish([Change("exercise", "update", exercise_id, workout.client_id)])


async def delete_exercise(exercise_id: int) -> None:
    async with get_session() as session:
        exercise = await _require(session, Exercise, exercise_id, "exercise")
        workout = await _require(session, WorkoutSession, exercise.session_id, "session")
        await session.delete(exercise)
        await session.commit()
    logger.info("Deleted exercise %s from session %s", exercise_id, workout.id)
    await _publish([Change("exercise", "delete", exercise_id, workout.client_id)])


async def get_session_exercises(session_id: int) -> List[Exercise]:
    stmt = (
        select(Exercise)
        .where(Exercise.session_id == session_id)
        .order_by(Exercise.order, Exercise.id)
    )
    async with get_session() as session:
        result = await session.exec(stmt)
        return list(result.all())


async def count_session_exercises(session_id: int) -> int:
    stmt = select(func.count(Exercise.id)).where(Exercise.session_id == session_id)
    async with get_session() as session:
        result = await session.exec(stmt)
        return result.one()


# Weight logs

async def add_weight_log(client_id: int, data: WeightLogCreate) -> int:
    async with get_session() as session:
        await _require(session, Client, client_id, "client")
        log = WeightLog(client_id=client_id, **data.model_dump())
        session.add(log)
        await session.commit()
    logger.info("Logged weight %.1f for client %s on %s", log.weight, client_id, log.date)
    await _publish([Change("weightlog", "insert", log.id, client_id)])
    return log.id


async def get_weight_log(log_id: int) -> Optional[WeightLog]:
    async with get_session() as session:
        return await session.get(WeightLog, log_id)


async def update_weight_log(log_id: int, updates: WeightLogUpdate) -> None:
    async with get_session() as session:
        log = await _require(session, WeightLog, log_id, "weightlog")
        log.sqlmodel_update(updates.model_dump(exclude_unset=True, exclude_none=True))
        session.add(log)
        await session.commit()
    await _publish([Change("weightlog", "update", log_id, log.client_id)])


async def delete_weight_log(log_id: int) -> None:
    async with get_session() as session:
        log = await _require(session, WeightLog, log_id, "weightlog")
        client_id = log.client_id
        await session.delete(log)
        await session.commit()
    logger.info("Deleted weight log %s", log_id)
    await _publish([Change("weightlog", "delete", log_id, client_id)])


async def get_client_weight_history(client_id: int) -> List[WeightLog]:
    """Weight logs for a client, oldest first."""
    stmt = (
        select(WeightLog)
        .where(WeightLog.client_id == client_id)
        .order_by(WeightLog.date, WeightLog.id)
    )
    async with get_session() as session:
        result = await session.exec(stmt)
        return list(result.all())


# Programs

async def add_program(client_id: int, data: ProgramCreate) -> int:
    async with get_session() as session:
        await _require(session, Client, client_id, "client")
        program = Program(client_id=client_id, **data.model_dump())
        session.add(program)
        await session.commit()
    logger.info("Added program %s (%s) for client %s", program.id, program.name, client_id)
    await _publish([Change("program", "insert", program.id, client_id)])
    return program.id


async def get_program(program_id: int) -> Optional[Program]:
    async with get_session() as session:
        return await session.get(Program, program_id)


async def update_program(program_id: int, updates: ProgramUpdate) -> None:
    async with get_session() as session:
        program = await _require(session, Program, program_id, "program")
        program.sqlmodel_update(updates.model_dump(exclude_unset=True, exclude_none=True))
        program.updated_at = utcnow()
        session.add(program)
        await session.commit()
    await _publish([Change("program", "update", program_id, program.client_id)])


async def delete_program(program_id: int) -> None:
    async with get_session() as session:
        program = await _require(session, Program, program_id, "program")
        client_id = program.client_id
        await session.delete(program)
        await session.commit()
    logger.info("Deleted program %s", program_id)
    await _publish([Change("program", "delete", program_id, client_id)])


async def get_client_programs(client_id: int) -> List[Program]:
    stmt = select(Program).where(Program.client_id == client_id).order_by(Program.id)
    async with get_session() as session:
        result = await session.exec(stmt)
        return list(result.all())
