# stores/base.py

"""
Store interfaces consumed by the poller
"""

from abc import ABC, abstractmethod
from datetime import datetime
from typing import Any, Dict, Optional

from scan_worker.models.job import Job, JobState


class JobRecordStore(ABC):
    async def init(self) -> None:
        """Prepare the backend; failures here are fatal"""

    async def close(self) -> None:
        pass

    @abstractmethod
    async def fetch_oldest_pending(self) -> Optional[Job]:
        """Oldest pending job or None; raises LeaseError when the store cannot be read"""

    @abstractmethod
    async def try_lease(self, job_id: str, started_at: datetime) -> bool:
        """Atomically move pending -> running; False when the job is no longer pending"""

    @abstractmethod
    async def finalize(
            self,
            job_id: str,
            status: JobState,
            finished_at: datetime,
            summary: Optional[Dict[str, Any]] = None,
            artifact_url: Optional[str] = None
    ) -> bool:
        """Move running -> done/failed; False when the job is not running"""

    @abstractmethod
    async def enqueue(self, url: str, workspace_id: str) -> Job:
        pass

    @abstractmethod
    async def get(self, job_id: str) -> Optional[Job]:
        pass


class ArtifactStore(ABC):
    async def close(self) -> None:
        pass

    @abstractmethod
    async def upload(self, path: str, data: bytes, content_type: str, overwrite: bool = True) -> str:
        """Write the object and return its public URL"""

    @abstractmethod
    def public_url(self, path: str) -> str:
        pass
