# stores/sql.py

"""
SQL job store (SQLAlchemy async)

The lease and the finalize step are single conditional UPDATEs keyed on the
current status, so concurrent workers can never both win the same job.
"""

import logging
import uuid
from datetime import datetime, timezone
from typing import Any, Dict, Optional

from sqlalchemy import JSON, Column, DateTime, String, Text, select, update
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncEngine, async_sessionmaker, create_async_engine
from sqlalchemy.orm import declarative_base

from scan_worker.core.errors import JobStoreError, LeaseError
from scan_worker.models.job import Job, JobState
from scan_worker.stores.base import JobRecordStore

logger = logging.getLogger(__name__)

Base = declarative_base()


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _aware(value: Optional[datetime]) -> Optional[datetime]:
    # SQLite hands back naive datetimes; everything is stored in UTC
    if value is not None and value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


class ScanJobRecord(Base):
    __tablename__ = 'scan_jobs'
    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    url = Column(Text, nullable=False)
    workspace_id = Column(String, nullable=False, index=True)
    status = Column(String(16), nullable=False, default=JobState.PENDING.value, index=True)
    created_at = Column(DateTime(timezone=True), nullable=False, default=utcnow)
    started_at = Column(DateTime(timezone=True), nullable=True)
    finished_at = Column(DateTime(timezone=True), nullable=True)
    summary_json = Column(JSON, nullable=True)
    pdf_url = Column(Text, nullable=True)

    def to_job(self) -> Job:
        return Job(
            id=self.id,
            url=self.url,
            workspace_id=self.workspace_id,
            status=JobState(self.status),
            created_at=_aware(self.created_at),
            started_at=_aware(self.started_at),
            finished_at=_aware(self.finished_at),
            summary=self.summary_json,
            artifact_url=self.pdf_url,
        )


class SqlJobStore(JobRecordStore):
    def __init__(self, database_url: Optional[str] = None, engine: Optional[AsyncEngine] = None):
        if engine is None:
            engine = create_async_engine(database_url, pool_pre_ping=True)
        self.engine = engine
        self.session_factory = async_sessionmaker(self.engine, expire_on_commit=False, autoflush=False)

    async def init(self) -> None:
        # Create tables if they don't exist
        async with self.engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)
        logger.info("SQL job store ready")

    async def close(self) -> None:
        await self.engine.dispose()

    async def enqueue(self, url: str, workspace_id: str) -> Job:
        record = ScanJobRecord(
            id=str(uuid.uuid4()),
            url=url,
            workspace_id=workspace_id,
            status=JobState.PENDING.value,
            created_at=utcnow(),
        )
        try:
            async with self.session_factory() as session:
                session.add(record)
                await session.commit()
        except SQLAlchemyError as e:
            raise JobStoreError(f"Failed to create scan job: {e}") from e
        logger.info(f"[job_id={record.id}] Enqueued scan job for {url}")
        return record.to_job()

    async def get(self, job_id: str) -> Optional[Job]:
        async with self.session_factory() as session:
            record = await session.get(ScanJobRecord, job_id)
            return record.to_job() if record else None

    async def fetch_oldest_pending(self) -> Optional[Job]:
        query = (
            select(ScanJobRecord)
            .where(ScanJobRecord.status == JobState.PENDING.value)
            .order_by(ScanJobRecord.created_at.asc())
            .limit(1)
        )
        try:
            async with self.session_factory() as session:
                record = (await session.execute(query)).scalars().first()
                return record.to_job() if record else None
        except SQLAlchemyError as e:
            raise LeaseError(f"Error fetching job: {e}") from e

    async def try_lease(self, job_id: str, started_at: datetime) -> bool:
        statement = (
            update(ScanJobRecord)
            .where(ScanJobRecord.id == job_id, ScanJobRecord.status == JobState.PENDING.value)
            .values(status=JobState.RUNNING.value, started_at=started_at)
            .execution_options(synchronize_session=False)
        )
        try:
            async with self.session_factory() as session:
                result = await session.execute(statement)
                await session.commit()
        except SQLAlchemyError as e:
            raise LeaseError(f"Error leasing job {job_id}: {e}") from e
        return result.rowcount == 1

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
        statement = (
            update(ScanJobRecord)
            .where(ScanJobRecord.id == job_id, ScanJobRecord.status == JobState.RUNNING.value)
            .values(
                status=status.value,
                finished_at=finished_at,
                summary_json=summary,
                pdf_url=artifact_url,
            )
            .execution_options(synchronize_session=False)
        )
        try:
            async with self.session_factory() as session:
                result = await session.execute(statement)
                await session.commit()
        except SQLAlchemyError as e:
            raise JobStoreError(f"Error finalizing job {job_id}: {e}") from e
        return result.rowcount == 1
