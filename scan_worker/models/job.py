# models/job.py

"""
Job-related data models
"""

from pydantic import BaseModel
from typing import Optional, Dict, Any
from datetime import datetime
from enum import Enum


class JobState(str, Enum):
    PENDING = "pending"
    RUNNING = "running"
    DONE = "done"
    FAILED = "failed"

    @property
    def is_terminal(self) -> bool:
        return self in (JobState.DONE, JobState.FAILED)


# Allowed moves of the job state machine; anything else is a regression.
TRANSITIONS = {
    JobState.PENDING: {JobState.RUNNING},
    JobState.RUNNING: {JobState.DONE, JobState.FAILED},
    JobState.DONE: set(),
    JobState.FAILED: set(),
}


def can_transition(current: JobState, target: JobState) -> bool:
    return target in TRANSITIONS[current]


class Job(BaseModel):
    id: str
    url: str
    workspace_id: str
    status: JobState = JobState.PENDING
    created_at: datetime
    started_at: Optional[datetime] = None
    finished_at: Optional[datetime] = None
    summary: Optional[Dict[str, Any]] = None
    artifact_url: Optional[str] = None

    @property
    def artifact_path(self) -> str:
        """Deterministic storage key of the rendered report"""
        return f"{self.workspace_id}/{self.id}.pdf"
