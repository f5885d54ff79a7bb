from datetime import datetime
from enum import Enum
from typing import Any, Dict, List, Optional

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, field_validator


class JobPhase(str, Enum):
    idle = "idle"
    starting = "starting"
    running = "running"
    completed = "completed"
    failed = "failed"


class JobConfig(BaseModel):
    """Allocation parameters, passed through to the backend untouched."""

    model_config = ConfigDict(frozen=True)

    rural_quota: float = 30
    reserved_quota: float = 50
    female_quota: float = 33
    top_k_similarity: int = 10
    optimization_time: float = 60  # seconds of solver budget


class StartAck(BaseModel):
    model_config = ConfigDict(extra="allow")

    accepted: bool = True
    message: Optional[str] = None


class JobStatus(BaseModel):
    """Authoritative job snapshot as reported by ``GET /api/allocation/status``."""

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    is_running: bool = Field(alias="running")
    progress_percent: float = Field(default=0.0, ge=0.0, le=100.0, alias="progress")
    stage_name: str = Field(default="", alias="stage")
    message: str = ""
    estimated_remaining_seconds: Optional[float] = Field(
        default=None,
        validation_alias=AliasChoices("estimated_time", "estimated_time_remaining", "estimated_remaining_seconds"),
    )
    total_units: Optional[int] = Field(default=None, alias="total")

    @field_validator("progress_percent", mode="before")
    @classmethod
    def _null_progress(cls, value):
        return 0.0 if value is None else value

    @field_validator("stage_name", "message", mode="before")
    @classmethod
    def _null_text(cls, value):
        return "" if value is None else value


class LiveMatch(BaseModel):
    """Provisional match produced while the job is still running."""

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    subject_id: str = Field(alias="student_id")
    subject_name: str = Field(alias="student_name")
    counterparty_name: str = Field(alias="company")
    role_name: str = Field(alias="position")
    similarity_score: float = Field(ge=0.0, le=1.0)
    success_probability: float = Field(ge=0.0, le=1.0)


class MatchRecord(LiveMatch):
    """Final allocation row from ``GET /api/allocations/latest``."""


class LatestResult(BaseModel):
    allocations: List[MatchRecord] = []
    total: int = 0
    timestamp: Optional[float] = None


class MonitorEvent(BaseModel):
    name: str
    payload: Dict[str, Any] = {}
    emitted_at: datetime


class MonitorSnapshot(BaseModel):
    """Observable monitor state handed to the UI layer."""

    phase: JobPhase
    progress: float
    stage: str = ""
    message: str = ""
    live_matches: List[LiveMatch] = []
    connection_degraded: bool = False
    elapsed_seconds: float = 0.0
    estimated_remaining_seconds: Optional[float] = None
    milestones: List[int] = []
