# checks/scores.py

"""
Lighthouse category scores

Lighthouse attaches to its own Chromium over the remote debugging port; the
shared session is never handed to it.
"""

import asyncio
import json
import logging
import math
from contextlib import asynccontextmanager
from typing import Any, Dict, Optional

from playwright.async_api import async_playwright

from scan_worker.checks.base import Check
from scan_worker.core.errors import CheckError
from scan_worker.models.summary import Scores

logger = logging.getLogger(__name__)

# Summary field -> Lighthouse category id
CATEGORIES = {
    "performance": "performance",
    "seo": "seo",
    "bestPractices": "best-practices",
    "accessibility": "accessibility",
}


def to_percent(score: float) -> int:
    """Fractional score in [0, 1] to an integer 0-100, halves rounded up"""
    return int(math.floor(score * 100 + 0.5))


class ScoreCheck(Check):
    name = "ScoreCheck"
    key = "scores"

    def __init__(
            self,
            debug_port: int = 9222,
            headless: bool = True,
            lighthouse_bin: str = "lighthouse",
            lighthouse_timeout: Optional[float] = None
    ):
        self.debug_port = debug_port
        self.headless = headless
        self.lighthouse_bin = lighthouse_bin
        self.lighthouse_timeout = lighthouse_timeout

    async def run(self, session, url: str) -> Scores:
        logger.info(f"Running Lighthouse for {url}...")
        async with self._debug_browser() as port:
            report = await self._run_lighthouse(url, port)

        categories = report.get("categories") or {}
        values = {}
        for field, category in CATEGORIES.items():
            score = (categories.get(category) or {}).get("score")
            if not isinstance(score, (int, float)):
                raise CheckError(f"Lighthouse returned no {category} score", check=self.name)
            values[field] = to_percent(score)

        scores = Scores.model_validate(values)
        logger.info(f"Lighthouse scores for {url}: {scores.to_json()}")
        return scores

    @asynccontextmanager
    async def _debug_browser(self):
        """Second Chromium instance exposing the debugging port; torn down with its driver on exit"""
        async with async_playwright() as p:
            logger.debug(f"Launching Chromium with --remote-debugging-port={self.debug_port}")
            browser = await p.chromium.launch(
                headless=self.headless,
                args=[f"--remote-debugging-port={self.debug_port}"]
            )
            try:
                yield self.debug_port
            finally:
                await browser.close()
                logger.debug("Lighthouse browser closed")

    async def _run_lighthouse(self, url: str, port: int) -> Dict[str, Any]:
        cmd = [
            self.lighthouse_bin, url,
            f"--port={port}",
            "--output=json",
            "--output-path=stdout",
            "--quiet",
            f"--only-categories={','.join(CATEGORIES.values())}",
        ]
        try:
            proc = await asyncio.create_subprocess_exec(
                *cmd,
                stdout=asyncio.subprocess.PIPE,
                stderr=asyncio.subprocess.PIPE,
            )
        except OSError as e:
            raise CheckError(f"Could not start Lighthouse: {e}", check=self.name) from e

        try:
            stdout, stderr = await asyncio.wait_for(proc.communicate(), timeout=self.lighthouse_timeout)
        except asyncio.TimeoutError:
            raise CheckError(f"Lighthouse timed out after {self.lighthouse_timeout}s", check=self.name)
        finally:
            if proc.returncode is None:
                proc.kill()
                await proc.wait()

        if proc.returncode != 0:
            detail = stderr.decode(errors="replace").strip() or f"exit code {proc.returncode}"
            raise CheckError(f"Lighthouse failed: {detail}", check=self.name)

        try:
            return json.loads(stdout)
        except json.JSONDecodeError as e:
            raise CheckError("Failed to parse Lighthouse output as JSON.", check=self.name) from e
