# stores/__init__.py

from scan_worker.core.config import Settings

from .base import ArtifactStore, JobRecordStore
from .local import LocalArtifactStore
from .memory import MemoryJobStore
from .sql import SqlJobStore
from .supabase import SupabaseArtifactStore, SupabaseJobStore, create_client


def build_job_store(settings: Settings) -> JobRecordStore:
    if settings.job_store == "memory":
        return MemoryJobStore()
    if settings.job_store == "supabase":
        client = create_client(
            settings.supabase_url, settings.supabase_service_role_key, settings.http_timeout_seconds
        )
        return SupabaseJobStore(client, table=settings.jobs_table)
    return SqlJobStore(settings.database_url)


def build_artifact_store(settings: Settings) -> ArtifactStore:
    if settings.artifact_store == "supabase":
        client = create_client(
            settings.supabase_url, settings.supabase_service_role_key, settings.http_timeout_seconds
        )
        return SupabaseArtifactStore(client, bucket=settings.reports_bucket)
    return LocalArtifactStore(settings.artifacts_dir, settings.artifacts_public_base_url)


__all__ = [
    'ArtifactStore',
    'JobRecordStore',
    'LocalArtifactStore',
    'MemoryJobStore',
    'SqlJobStore',
    'SupabaseArtifactStore',
    'SupabaseJobStore',
    'build_job_store',
    'build_artifact_store'
]
