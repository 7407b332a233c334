# stores/supabase.py

"""
Supabase backends over plain HTTP (httpx)

Job records go through PostgREST; the lease is a PATCH filtered on the current
status, and an empty representation means another worker already won.
Reports go to Supabase Storage.
"""

import logging
from datetime import datetime
from typing import Any, Dict, List, Optional
from urllib.parse import quote

import httpx

from scan_worker.core.errors import JobStoreError, LeaseError, StorageError, UrlResolutionError
from scan_worker.models.job import Job, JobState
from scan_worker.stores.base import ArtifactStore, JobRecordStore
from scan_worker.utils.url_tools import origin_of

logger = logging.getLogger(__name__)


def create_client(supabase_url: str, service_key: str, timeout: float = 30.0) -> httpx.AsyncClient:
    if not supabase_url or not service_key:
        raise ValueError("Supabase environment variables are not set.")
    return httpx.AsyncClient(
        base_url=supabase_url.rstrip("/"),
        headers={
            "apikey": service_key,
            "Authorization": f"Bearer {service_key}",
        },
        timeout=timeout,
    )


def _row_to_job(row: Dict[str, Any]) -> Job:
    return Job(
        id=str(row["id"]),
        url=row["url"],
        workspace_id=str(row["workspace_id"]),
        status=JobState(row["status"]),
        created_at=row["created_at"],
        started_at=row.get("started_at"),
        finished_at=row.get("finished_at"),
        summary=row.get("summary_json"),
        artifact_url=row.get("pdf_url"),
    )


class SupabaseJobStore(JobRecordStore):
    def __init__(self, client: httpx.AsyncClient, table: str = "scan_jobs"):
        self.client = client
        self.path = f"/rest/v1/{table}"

    async def close(self) -> None:
        await self.client.aclose()

    async def _request(self, method: str, params: Dict[str, str], json=None) -> List[Dict[str, Any]]:
        response = await self.client.request(
            method,
            self.path,
            params=params,
            json=json,
            headers={"Prefer": "return=representation"},
        )
        response.raise_for_status()
        return response.json() if response.content else []

    async def enqueue(self, url: str, workspace_id: str) -> Job:
        try:
            rows = await self._request(
                "POST", {}, json=[{"url": url, "workspace_id": workspace_id, "status": JobState.PENDING.value}]
            )
        except httpx.HTTPError as e:
            raise JobStoreError(f"Failed to create scan job: {e}") from e
        job = _row_to_job(rows[0])
        logger.info(f"[job_id={job.id}] Enqueued scan job for {url}")
        return job

    async def get(self, job_id: str) -> Optional[Job]:
        try:
            rows = await self._request("GET", {"select": "*", "id": f"eq.{job_id}"})
        except httpx.HTTPError as e:
            raise JobStoreError(f"Error fetching job {job_id}: {e}") from e
        return _row_to_job(rows[0]) if rows else None

    async def fetch_oldest_pending(self) -> Optional[Job]:
        params = {
            "select": "*",
            "status": f"eq.{JobState.PENDING.value}",
            "order": "created_at.asc",
            "limit": "1",
        }
        try:
            rows = await self._request("GET", params)
        except httpx.HTTPError as e:
            raise LeaseError(f"Error fetching job: {e}") from e
        return _row_to_job(rows[0]) if rows else None

    async def try_lease(self, job_id: str, started_at: datetime) -> bool:
        params = {"id": f"eq.{job_id}", "status": f"eq.{JobState.PENDING.value}"}
        body = {"status": JobState.RUNNING.value, "started_at": started_at.isoformat()}
        try:
            rows = await self._request("PATCH", params, json=body)
        except httpx.HTTPError as e:
            raise LeaseError(f"Error leasing job {job_id}: {e}") from e
        return len(rows) == 1

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
        params = {"id": f"eq.{job_id}", "status": f"eq.{JobState.RUNNING.value}"}
        body = {
            "status": status.value,
            "finished_at": finished_at.isoformat(),
            "summary_json": summary,
            "pdf_url": artifact_url,
        }
        try:
            rows = await self._request("PATCH", params, json=body)
        except httpx.HTTPError as e:
            raise JobStoreError(f"Error finalizing job {job_id}: {e}") from e
        return len(rows) == 1


class SupabaseArtifactStore(ArtifactStore):
    def __init__(self, client: httpx.AsyncClient, bucket: str = "reports"):
        self.client = client
        self.bucket = bucket

    async def close(self) -> None:
        await self.client.aclose()

    async def upload(self, path: str, data: bytes, content_type: str, overwrite: bool = True) -> str:
        logger.info(f"Uploading PDF to storage at: {path}")
        try:
            response = await self.client.post(
                f"/storage/v1/object/{self.bucket}/{quote(path)}",
                content=data,
                headers={
                    "Content-Type": content_type,
                    "x-upsert": "true" if overwrite else "false",
                },
            )
            response.raise_for_status()
        except httpx.HTTPStatusError as e:
            raise StorageError(f"Failed to upload PDF: {e.response.status_code} {e.response.text}") from e
        except httpx.HTTPError as e:
            raise StorageError(f"Failed to upload PDF: {e}") from e

        url = self.public_url(path)
        logger.info(f"PDF uploaded successfully. URL: {url}")
        return url

    def public_url(self, path: str) -> str:
        url = f"{self.client.base_url}".rstrip("/") + f"/storage/v1/object/public/{self.bucket}/{quote(path)}"
        if origin_of(url) is None:
            raise UrlResolutionError("Failed to get public URL for the PDF.")
        return url
