# checks/broken_links.py

"""
Same-origin broken link crawl
"""

import asyncio
import logging
from typing import List

from scan_worker.checks.base import Check
from scan_worker.models.summary import BrokenLink, BrokenLinks
from scan_worker.session.base import ProbeError
from scan_worker.utils.url_tools import origin_of, resolve_href

logger = logging.getLogger(__name__)

# Recorded for links whose probe fails before any HTTP status is received
NETWORK_ERROR_STATUS = 500


class BrokenLinkCrawler(Check):
    name = "BrokenLinkCrawler"
    key = "broken_links"

    def __init__(self, concurrency: int = 1):
        self.concurrency = max(1, concurrency)

    async def collect_candidates(self, session, url: str) -> List[str]:
        """Unique same-origin link targets, in first-seen order"""
        origin = origin_of(url)
        hrefs = await session.get_attributes("a[href]", "href")

        candidates = {}
        for href in hrefs:
            absolute = resolve_href(href, origin)
            if absolute and origin_of(absolute) == origin:
                candidates.setdefault(absolute, None)
        return list(candidates)

    async def run(self, session, url: str) -> BrokenLinks:
        logger.info("Checking for broken links...")
        candidates = await self.collect_candidates(session, url)
        logger.info(f"Probing {len(candidates)} internal links (concurrency={self.concurrency})")

        semaphore = asyncio.Semaphore(self.concurrency)

        async def probe(link: str):
            async with semaphore:
                try:
                    status = await session.probe_head(link)
                except ProbeError as e:
                    logger.debug(f"Probe failed for {link}: {e}")
                    return BrokenLink(url=link, status=NETWORK_ERROR_STATUS)
            if status >= 400:
                return BrokenLink(url=link, status=status)
            return None

        tasks = [asyncio.ensure_future(probe(link)) for link in candidates]
        try:
            results = await asyncio.gather(*tasks)
        except BaseException:
            # No probe may outlive the check; the session is closed right after a failure
            for task in tasks:
                task.cancel()
            await asyncio.gather(*tasks, return_exceptions=True)
            raise
        broken = [link for link in results if link is not None]

        if broken:
            logger.warning(f"Found {len(broken)} broken links on {url}")
        return BrokenLinks(count=len(broken), links=broken)
