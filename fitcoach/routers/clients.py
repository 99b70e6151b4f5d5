"""Client, session, weight-log and program endpoints."""
from __future__ import annotations

import logging
from typing import List, Optional

from fastapi import APIRouter, HTTPException, Response

from ..models import (
    ClientCreate,
    ClientRead,
    ClientUpdate,
    ExerciseCreate,
    ExerciseRead,
    ExerciseUpdate,
    ProgramCreate,
    ProgramRead,
    ProgramUpdate,
    SessionLog,
    WeightLogCreate,
    WeightLogRead,
    WeightLogUpdate,
    WorkoutSessionRead,
    WorkoutSessionUpdate,
)
from ..services import records
from ..services.records import RecordNotFoundError

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api", tags=["clients"])


def _found(record, collection: str, record_id: int):
    if record is None:
        raise RecordNotFoundError(collection, record_id)
    return record


async def _load_client(client_id: int):
    return _found(await records.get_client(client_id), "client", client_id)


@router.get("/clients", response_model=List[ClientRead])
async def list_clients(search: Optional[str] = None):
    return await records.list_clients(search)


@router.post("/clients", response_model=ClientRead, status_code=201)
async def create_client(payload: ClientCreate):
    """Create a client and record their starting weight as the first weight log."""
    client_id = await records.enroll_client(payload)
    return await _load_client(client_id)


@router.get("/clients/{client_id}", response_model=ClientRead)
async def get_client(client_id: int):
    return await _load_client(client_id)


@router.patch("/clients/{client_id}", response_model=ClientRead)
async def update_client(client_id: int, payload: ClientUpdate):
    await records.update_client(client_id, payload)
    return await _load_client(client_id)


@router.delete("/clients/{client_id}", status_code=204)
async def delete_client(client_id: int) -> Response:
    await records.delete_client(client_id)
    return Response(status_code=204)


@router.get("/clients/{client_id}/sessions", response_model=List[WorkoutSessionRead])
async def list_sessions(client_id: int, limit: Optional[int] = None):
    return await records.get_client_sessions(client_id, limit=limit)


@router.post("/clients/{client_id}/sessions", response_model=WorkoutSessionRead, status_code=201)
async def log_session(client_id: int, payload: SessionLog):
    try:
        session_id = await records.log_session(client_id, payload)
    except ValueError as e:
        logger.warning("Rejected session for client %s: %s", client_id, e)
        raise HTTPException(status_code=400, detail=str(e))
    return _found(await records.get_workout_session(session_id), "session", session_id)


@router.patch("/sessions/{session_id}", response_model=WorkoutSessionRead)
async def update_session(session_id: int, payload: WorkoutSessionUpdate):
    await records.update_session(session_id, payload)
    return _found(await records.get_workout_session(session_id), "session", session_id)


@router.get("/sessions/{session_id}/exercises", response_model=List[ExerciseRead])
async def list_session_exercises(session_id: int):
    return await records.get_session_exercises(session_id)


@router.post("/sessions/{session_id}/exercises", response_model=ExerciseRead, status_code=201)
async def add_exercise(session_id: int, payload: ExerciseCreate):
    exercise_id = await records.add_exercise(session_id, payload)
    return _found(await records.get_exercise(exercise_id), "exercise", exercise_id)


@router.patch("/exercises/{exercise_id}", response_model=ExerciseRead)
async def update_exercise(exercise_id: int, payload: ExerciseUpdate):
    await records.update_exercise(exercise_id, payload)
    return _found(await records.get_exercise(exercise_id), "exercise", exercise_id)


@router.delete("/exercises/{exercise_id}", status_code=204)
async def delete_exercise(exercise_id: int) -> Response:
    await records.delete_exercise(exercise_id)
    return Response(status_code=204)


@router.get("/clients/{client_id}/weight-logs", response_model=List[WeightLogRead])
async def list_weight_logs(client_id: int):
    return await records.get_client_weight_history(client_id)


@router.post("/clients/{client_id}/weight-logs", response_model=WeightLogRead, status_code=201)
async def add_weight_log(client_id: int, payload: WeightLogCreate):
    log_id = await records.add_weight_log(client_id, payload)
    return _found(await records.get_weight_log(log_id), "weightlog", log_id)


@router.patch("/weight-logs/{log_id}", response_model=WeightLogRead)
async def update_weight_log(log_id: int, payload: WeightLogUpdate):
    await records.update_weight_log(log_id, payload)
    return _found(await records.get_weight_log(log_id), "weightlog", log_id)


@router.delete("/weight-logs/{log_id}", status_code=204)
async def delete_weight_log(log_id: int) -> Response:
    await records.delete_weight_log(log_id)
    return Response(status_code=204)


@router.get("/clients/{client_id}/programs", response_model=List[ProgramRead])
async def list_programs(client_id: int):
    return await records.get_client_programs(client_id)


@router.post("/clients/{client_id}/programs", response_model=ProgramRead, status_code=201)
async def create_program(client_id: int, payload: ProgramCreate):
    program_id = await records.add_program(client_id, payload)
    return _found(await records.get_program(program_id), "program", program_id)


@router.patch("/programs/{program_id}", status_code=204)
async def update_program(program_id: int, payload: ProgramUpdate) -> Response:
    await records.update_program(program_id, payload)
    return Response(status_code=204)


@router.delete("/programs/{program_id}", status_code=204)
async def delete_program(program_id: int) -> Response:
    await records.delete_program(program_id)
    return Response(status_code=204)
