# core/config.py

"""
Worker Configuration
"""

from typing import Literal, Optional

from pydantic import AliasChoices, Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    # Poller Settings
    poll_interval_seconds: float = 10.0

    # Backend Selection
    job_store: Literal["sql", "supabase", "memory"] = "sql"
    artifact_store: Literal["local", "supabase"] = "local"

    # SQL Job Store
    database_url: str = "sqlite+aiosqlite:///./scan_jobs.db"

    # Supabase (job records over PostgREST, reports in Storage)
    supabase_url: Optional[str] = Field(
        default=None,
        validation_alias=AliasChoices("SCAN_WORKER_SUPABASE_URL", "SUPABASE_URL"),
    )
    supabase_service_role_key: Optional[str] = Field(
        default=None,
        validation_alias=AliasChoices(
            "SCAN_WORKER_SUPABASE_SERVICE_ROLE_KEY", "SUPABASE_SERVICE_ROLE_KEY"
        ),
    )
    jobs_table: str = "scan_jobs"
    reports_bucket: str = "reports"
    http_timeout_seconds: float = 30.0

    # Local Artifact Store
    artifacts_dir: str = "reports"
    artifacts_public_base_url: Optional[str] = None

    # Browser Settings
    headless: bool = True
    debug_port: int = 9222
    navigation_timeout_ms: int = 30000

    # Lighthouse Settings
    lighthouse_bin: str = "lighthouse"
    lighthouse_timeout_seconds: float = 150.0

    # Check Budgets (seconds)
    score_check_timeout: float = 180.0
    header_check_timeout: float = 60.0
    seo_check_timeout: float = 30.0
    tech_stack_check_timeout: float = 30.0
    broken_link_check_timeout: float = 300.0
    render_timeout_seconds: float = 60.0

    # Broken Link Probes
    probe_concurrency: int = Field(default=1, ge=1)
    probe_timeout_ms: int = 15000

    model_config = SettingsConfigDict(
        env_prefix="SCAN_WORKER_",
        env_file=".env",
        extra="ignore",
        case_sensitive=False,
    )

    def check_timeouts(self) -> dict:
        """Time budget per check, keyed by check name"""
        return {
            "ScoreCheck": self.score_check_timeout,
            "HeaderInspector": self.header_check_timeout,
            "SeoInspector": self.seo_check_timeout,
            "TechStackDetector": self.tech_stack_check_timeout,
            "BrokenLinkCrawler": self.broken_link_check_timeout,
        }


settings = Settings()
