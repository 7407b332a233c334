# services/pipeline.py

"""
Audit pipeline - runs the check modules against one browsing session
"""

import asyncio
import logging
from functools import partial
from typing import Callable, Dict, List, Optional, Sequence

from scan_worker.checks import (
    BrokenLinkCrawler,
    Check,
    HeaderInspector,
    ScoreCheck,
    SeoInspector,
    TechStackDetector,
)
from scan_worker.core.config import Settings
from scan_worker.core.errors import CheckError
from scan_worker.models.summary import Summary
from scan_worker.session.playwright_session import PlaywrightSession

# Configure logging
logger = logging.getLogger(__name__)


def default_checks(settings: Settings) -> List[Check]:
    """The five checks in execution order; HeaderInspector must run before the page-reading checks"""
    return [
        ScoreCheck(
            debug_port=settings.debug_port,
            headless=settings.headless,
            lighthouse_bin=settings.lighthouse_bin,
            lighthouse_timeout=settings.lighthouse_timeout_seconds,
        ),
        HeaderInspector(),
        SeoInspector(),
        TechStackDetector(),
        BrokenLinkCrawler(concurrency=settings.probe_concurrency),
    ]


class AuditPipeline:
    def __init__(
            self,
            session_factory: Callable,
            checks: Sequence[Check],
            timeouts: Optional[Dict[str, float]] = None
    ):
        self.session_factory = session_factory
        self.checks = list(checks)
        self.timeouts = timeouts or {}
        logger.info(f"AuditPipeline initialized with checks: {[c.name for c in self.checks]}")

    @classmethod
    def from_settings(cls, settings: Settings) -> "AuditPipeline":
        session_factory = partial(
            PlaywrightSession.open,
            headless=settings.headless,
            navigation_timeout_ms=settings.navigation_timeout_ms,
            probe_timeout_ms=settings.probe_timeout_ms,
        )
        return cls(session_factory, default_checks(settings), settings.check_timeouts())

    async def run(self, url: str) -> Summary:
        """Run every check in order; the first failure aborts the audit and nothing partial is kept"""
        logger.info(f"Starting audit for {url}")
        findings = {}

        async with self.session_factory() as session:
            for i, check in enumerate(self.checks, 1):
                logger.info(f"Check {i}/{len(self.checks)}: {check.name}")
                findings[check.key] = await self._run_check(check, session, url)

        summary = Summary(**findings)
        logger.info(f"Audit completed for {url}")
        return summary

    async def _run_check(self, check: Check, session, url: str):
        budget = self.timeouts.get(check.name)
        task = asyncio.ensure_future(check.run(session, url))
        try:
            done, _ = await asyncio.wait({task}, timeout=budget)
        finally:
            if not task.done():
                task.cancel()
                await asyncio.wait({task})

        # Only an expired budget counts as an overrun; a timeout raised by the check keeps its message
        if not done:
            logger.error(f"{check.name} exceeded its {budget}s budget")
            raise CheckError(f"{check.name} timed out after {budget}s", check=check.name)

        try:
            return task.result()
        except CheckError as e:
            if e.check is None:
                e.check = check.name
            logger.error(f"{check.name} failed: {e}")
            raise
        except Exception as e:
            logger.error(f"{check.name} failed: {e}", exc_info=True)
            raise CheckError(str(e) or type(e).__name__, check=check.name) from e
