# services/poller.py

"""
Job queue poller - leases pending jobs one at a time and drives them to a terminal state
"""

import asyncio
import logging
from datetime import datetime, timezone
from typing import Any, Callable, Dict, Optional

from scan_worker.core.errors import AuditError, LeaseError
from scan_worker.models.job import Job, JobState
from scan_worker.models.summary import FailureSummary
from scan_worker.services.pipeline import AuditPipeline
from scan_worker.services.report_renderer import ReportRenderer
from scan_worker.stores.base import ArtifactStore, JobRecordStore
from scan_worker.utils.url_tools import validate_url

logger = logging.getLogger(__name__)

PDF_CONTENT_TYPE = "application/pdf"

# Pending jobs tried per tick when other workers keep winning the lease
LEASE_ATTEMPTS = 3


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class JobQueuePoller:
    def __init__(
            self,
            job_store: JobRecordStore,
            artifact_store: ArtifactStore,
            pipeline: AuditPipeline,
            renderer: ReportRenderer,
            poll_interval: float = 10.0,
            clock: Callable[[], datetime] = utcnow
    ):
        self.job_store = job_store
        self.artifact_store = artifact_store
        self.pipeline = pipeline
        self.renderer = renderer
        self.poll_interval = poll_interval
        self.clock = clock

    async def run(self, stop_event: Optional[asyncio.Event] = None):
        """Tick until stop_event is set; a job in flight always finishes first"""
        stop_event = stop_event or asyncio.Event()
        logger.info(f"Worker started (poll interval {self.poll_interval}s)")

        while not stop_event.is_set():
            await self.tick()
            try:
                await asyncio.wait_for(stop_event.wait(), timeout=self.poll_interval)
            except asyncio.TimeoutError:
                continue  # interval elapsed, poll again

        logger.info("Worker stopped.")

    async def tick(self) -> Optional[Job]:
        """Lease and process the oldest pending job; returns the finalized job, or None when idle"""
        logger.debug("Checking for pending jobs...")
        try:
            for _ in range(LEASE_ATTEMPTS):
                job = await self.job_store.fetch_oldest_pending()
                if job is None:
                    logger.debug("No pending jobs found.")
                    return None

                started_at = self.clock()
                if await self.job_store.try_lease(job.id, started_at):
                    break
                logger.info(f"[job_id={job.id}] Already leased by another worker, skipping")
            else:
                return None
        except LeaseError as e:
            logger.error(f"Error leasing job: {e}")
            return None

        job = job.model_copy(update={"status": JobState.RUNNING, "started_at": started_at})
        return await self.process(job)

    async def process(self, job: Job) -> Job:
        logger.info(f"[job_id={job.id}] Processing job for URL: {job.url}")
        try:
            url = validate_url(job.url)
            summary = await self.pipeline.run(url)
            pdf = await self.renderer.render(job, summary)
            artifact_url = await self.artifact_store.upload(
                job.artifact_path, pdf, PDF_CONTENT_TYPE, overwrite=True
            )
        except Exception as e:
            # AuditErrors are already logged where they were raised
            logger.error(f"[job_id={job.id}] Failed to process job: {e}", exc_info=not isinstance(e, AuditError))
            failure = FailureSummary(error=str(e) or type(e).__name__)
            return await self._finalize(job, JobState.FAILED, failure.to_json())

        finished = await self._finalize(job, JobState.DONE, summary.to_json(), artifact_url)
        logger.info(f"[job_id={job.id}] Job completed successfully.")
        return finished

    async def _finalize(
            self,
            job: Job,
            status: JobState,
            summary: Dict[str, Any],
            artifact_url: Optional[str] = None
    ) -> Job:
        finished_at = self.clock()
        updated = await self.job_store.finalize(
            job.id, status, finished_at, summary=summary, artifact_url=artifact_url
        )
        if not updated:
            logger.warning(f"[job_id={job.id}] Job was no longer running; {status.value} result not recorded")
        return job.model_copy(update={
            "status": status,
            "finished_at": finished_at,
            "summary": summary,
            "artifact_url": artifact_url,
        })
