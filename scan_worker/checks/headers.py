# checks/headers.py

import logging

from scan_worker.checks.base import Check
from scan_worker.models.summary import SecurityHeaders

logger = logging.getLogger(__name__)


class HeaderInspector(Check):
    """Navigates the shared page to the target; later checks rely on this navigation."""

    name = "HeaderInspector"
    key = "headers"

    async def run(self, session, url: str) -> SecurityHeaders:
        logger.info(f"Checking headers for {url}...")
        result = await session.navigate(url)
        headers = SecurityHeaders.from_response(result.headers)

        missing = [name for name, value in headers.items() if value is None]
        if missing:
            logger.info(f"Security headers not set on {url}: {missing}")
        return headers
