# stores/memory.py

"""
In-memory job store - single process only, used for local runs and tests
"""

import asyncio
import uuid
from typing import Dict, Any, Optional
from datetime import datetime, timezone

from scan_worker.core.errors import JobStoreError
from scan_worker.models.job import Job, JobState, can_transition
from scan_worker.stores.base import JobRecordStore


class MemoryJobStore(JobRecordStore):
    def __init__(self):
        self.jobs: Dict[str, Job] = {}
        self.lock = asyncio.Lock()

    async def enqueue(self, url: str, workspace_id: str) -> Job:
        """Create a new pending job"""
        job = Job(
            id=str(uuid.uuid4()),
            url=url,
            workspace_id=workspace_id,
            status=JobState.PENDING,
            created_at=datetime.now(timezone.utc),
        )
        async with self.lock:
            self.jobs[job.id] = job
        return job

    def add(self, job: Job) -> Job:
        """Insert a prepared record as-is"""
        if job.id in self.jobs:
            raise JobStoreError(f"Job {job.id} already exists")
        self.jobs[job.id] = job
        return job

    async def get(self, job_id: str) -> Optional[Job]:
        return self.jobs.get(job_id)

    async def fetch_oldest_pending(self) -> Optional[Job]:
        pending = [j for j in self.jobs.values() if j.status == JobState.PENDING]
        if not pending:
            return None
        return min(pending, key=lambda j: j.created_at)

    async def try_lease(self, job_id: str, started_at: datetime) -> bool:
        async with self.lock:
            job = self.jobs.get(job_id)
            if job is None or job.status != JobState.PENDING:
                return False
            self.jobs[job_id] = job.model_copy(
                update={"status": JobState.RUNNING, "started_at": started_at}
            )
            return True

    async def finalize(
            self,
            job_id: str,
            status: JobState,
            finished_at: datetime,
            summary: Optional[Dict[str, Any]] = None,
            artifact_url: Optional[str] = None
    ) -> bool:
        if not status.is_terminal:
            raise JobStoreError(f"Cannot finalize job {job_id} as {status.value}")
        async with self.lock:
            job = self.jobs.get(job_id)
            if job is None or not can_transition(job.status, status):
                return False
            self.jobs[job_id] = job.model_copy(update={
                "status": status,
                "finished_at": finished_at,
                "summary": summary,
                "artifact_url": artifact_url,
            })
            return True
