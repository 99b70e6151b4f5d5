"""Per-client analytics endpoints."""
from __future__ import annotations

from typing import List, Optional

from fastapi import APIRouter

from ..services.analytics import (
    ClientStats,
    ExerciseProgress,
    WeightTrend,
    analyze_exercise_progress,
    analyze_weight_trend,
    get_client_stats,
)

router = APIRouter(prefix="/api/clients/{client_id}", tags=["analytics"])


@router.get("/stats", response_model=ClientStats)
async def client_stats(client_id: int):
    return await get_client_stats(client_id)


@router.get("/progress", response_model=List[ExerciseProgress])
async def exercise_progress(client_id: int):
    """
    Volume trend per exercise over the client's recent sessions.

    Returns an empty list until the client has at least 3 sessions.
    """
    return await analyze_exercise_progress(client_id)


@router.get("/weight-trend", response_model=Optional[WeightTrend])
async def weight_trend(client_id: int):
    """Bodyweight trajectory, or null with fewer than 2 weight logs."""
    return await analyze_weight_trend(client_id)
