import datetime as dt
from typing import Any, Dict, List, Optional

from sqlalchemy import JSON, Column, DateTime
from sqlmodel import Field, SQLModel


def utcnow() -> dt.datetime:
    # Timezone-aware UTC; SQLite stores the wall time without an offset
    return dt.datetime.now(dt.timezone.utc)


# Clients

class ClientBase(SQLModel):
    name: str = Field(min_length=1, index=True)
    age: int = Field(gt=0)
    height: float = Field(gt=0)
    start_weight: float = Field(gt=0)
    goal: str = ""
    injuries: str = ""
    start_date: dt.date


class Client(ClientBase, table=True):
    id: Optional[int] = Field(default=None, primary_key=True)
    created_at: dt.datetime = Field(default_factory=utcnow, sa_type=DateTime(timezone=True))
    updated_at: dt.datetime = Field(default_factory=utcnow, sa_type=DateTime(timezone=True))


class ClientCreate(ClientBase):
    pass


class ClientUpdate(SQLModel):
    name: Optional[str] = Field(default=None, min_length=1)
    age: Optional[int] = Field(default=None, gt=0)
    height: Optional[float] = Field(default=None, gt=0)
    start_weight: Optional[float] = Field(default=None, gt=0)
    goal: Optional[str] = None
    injuries: Optional[str] = None
    start_date: Optional[dt.date] = None


class ClientRead(ClientBase):
    id: int
    created_at: dt.datetime
    updated_at: dt.datetime


# Sessions and their set entries

class WorkoutSessionBase(SQLModel):
    date: dt.date
    notes: str = ""


class WorkoutSession(WorkoutSessionBase, table=True):
    __tablename__ = "session"

    id: Optional[int] = Field(default=None, primary_key=True)
    client_id: int = Field(foreign_key="client.id", index=True)
    date: dt.date = Field(index=True)
    created_at: dt.datetime = Field(default_factory=utcnow, sa_type=DateTime(timezone=True))


class WorkoutSessionCreate(WorkoutSessionBase):
    pass


class WorkoutSessionUpdate(SQLModel):
    date: Optional[dt.date] = None
    notes: Optional[str] = None


class WorkoutSessionRead(WorkoutSessionBase):
    id: int
    client_id: int
    created_at: dt.datetime


class ExerciseBase(SQLModel):
    name: str
    weight: float = Field(ge=0)
    reps: int = Field(ge=0)
    rir: int = Field(default=0, ge=0)
    notes: str = ""


class Exercise(ExerciseBase, table=True):
    id: Optional[int] = Field(default=None, primary_key=True)
    session_id: int = Field(foreign_key="session.id", index=True)
    name: str = Field(index=True)
    order: int = 0


class ExerciseCreate(ExerciseBase):
    order: int = Field(default=0, ge=0)


class ExerciseUpdate(SQLModel):
    name: Optional[str] = Field(default=None, min_length=1)
    weight: Optional[float] = Field(default=None, ge=0)
    reps: Optional[int] = Field(default=None, ge=0)
    rir: Optional[int] = Field(default=None, ge=0)
    notes: Optional[str] = None
    order: Optional[int] = Field(default=None, ge=0)


class ExerciseRead(ExerciseBase):
    id: int
    session_id: int
    order: int


class SessionLog(WorkoutSessionBase):
    """A whole workout as entered by the coach: the session plus its sets."""

    exercises: List[ExerciseBase] = []


# Bodyweight

class WeightLogBase(SQLModel):
    weight: float = Field(gt=0)
    date: dt.date


class WeightLog(WeightLogBase, table=True):
    id: Optional[int] = Field(default=None, primary_key=True)
    client_id: int = Field(foreign_key="client.id", index=True)
    date: dt.date = Field(index=True)
    created_at: dt.datetime = Field(default_factory=utcnow, sa_type=DateTime(timezone=True))


class WeightLogCreate(WeightLogBase):
    pass


class WeightLogUpdate(SQLModel):
    weight: Optional[float] = Field(default=None, gt=0)
    date: Optional[dt.date] = None


class WeightLogRead(WeightLogBase):
    id: int
    client_id: int
    created_at: dt.datetime


# Programs

class ExerciseTemplate(SQLModel):
    name: str
    target_sets: int = Field(gt=0)
    target_reps: int = Field(gt=0)


class ProgramBase(SQLModel):
    name: str = Field(min_length=1)
    description: str = ""


class Program(ProgramBase, table=True):
    id: Optional[int] = Field(default=None, primary_key=True)
    client_id: int = Field(foreign_key="client.id", index=True)
    name: str = Field(index=True)
    # Stored as plain JSON; ProgramCreate/ProgramRead validate the template shape
    exercises: List[Dict[str, Any]] = Field(default_factory=list, sa_column=Column(JSON))
    created_at: dt.datetime = Field(default_factory=utcnow, sa_type=DateTime(timezone=True))
    updated_at: dt.datetime = Field(default_factory=utcnow, sa_type=DateTime(timezone=True))


class ProgramCreate(ProgramBase):
    exercises: List[ExerciseTemplate] = []


class ProgramUpdate(SQLModel):
    name: Optional[str] = Field(default=None, min_length=1)
    description: Optional[str] = None
    exercises: Optional[List[ExerciseTemplate]] = None


class ProgramRead(ProgramBase):
    id: int
    client_id: int
    exercises: List[ExerciseTemplate]
    created_at: dt.datetime
    updated_at: dt.datetime
