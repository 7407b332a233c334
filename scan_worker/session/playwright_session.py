# session/playwright_session.py

"""
Playwright Capability Session
"""

import logging
from contextlib import asynccontextmanager
from typing import Any, List, Optional

from playwright.async_api import Error as PlaywrightError
from playwright.async_api import Page, async_playwright

from scan_worker.session.base import CapabilitySession, NavigationResult, ProbeError

logger = logging.getLogger(__name__)

VIEWPORT = {'width': 1920, 'height': 1080}
USER_AGENT = 'Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 (KHTML, like Gecko) Chrome/120.0.0.0 Safari/537.36'


class PlaywrightSession(CapabilitySession):
    def __init__(self, page: Page, probe_timeout_ms: int = 15000):
        self.page = page
        self.probe_timeout_ms = probe_timeout_ms

    @classmethod
    @asynccontextmanager
    async def open(cls, headless: bool = True, navigation_timeout_ms: int = 30000, probe_timeout_ms: int = 15000):
        """Launch a Chromium page for one job; the browser is closed on every exit path"""
        async with async_playwright() as p:
            logger.info(f"Launching Chromium session (headless={headless})")
            browser = await p.chromium.launch(headless=headless)
            try:
                context = await browser.new_context(viewport=VIEWPORT, user_agent=USER_AGENT)
                context.set_default_navigation_timeout(navigation_timeout_ms)
                page = await context.new_page()
                logger.debug("New page created")
                yield cls(page, probe_timeout_ms=probe_timeout_ms)
            finally:
                await browser.close()
                logger.info("Chromium session closed")

    async def navigate(self, url: str) -> NavigationResult:
        logger.debug(f"Navigating to {url}")
        response = await self.page.goto(url)
        if response is None:
            return NavigationResult(url=self.page.url)
        return NavigationResult(
            url=response.url,
            status=response.status,
            headers=await response.all_headers(),
        )

    async def title(self) -> str:
        return await self.page.title()

    async def count(self, selector: str) -> int:
        return await self.page.locator(selector).count()

    async def get_attribute(self, selector: str, name: str) -> Optional[str]:
        locator = self.page.locator(selector)
        if await locator.count() == 0:
            return None
        return await locator.first.get_attribute(name)

    async def get_attributes(self, selector: str, name: str) -> List[Optional[str]]:
        return [await element.get_attribute(name) for element in await self.page.locator(selector).all()]

    async def text_contents(self, selector: str) -> List[str]:
        return await self.page.locator(selector).all_text_contents()

    async def evaluate(self, script: str) -> Any:
        return await self.page.evaluate(script)

    async def probe_head(self, url: str) -> int:
        try:
            response = await self.page.context.request.head(url, timeout=self.probe_timeout_ms)
        except PlaywrightError as e:
            raise ProbeError(str(e)) from e
        status = response.status
        try:
            await response.dispose()
        except PlaywrightError as e:
            logger.debug(f"Could not dispose HEAD response for {url}: {e}")
        return status
