# services/report_renderer.py

"""
Report renderer - HTML report printed to an A4 PDF by its own short-lived browser
"""

import asyncio
import logging
import os
from datetime import datetime, timezone
from typing import Optional

from jinja2 import Environment, FileSystemLoader, select_autoescape
from playwright.async_api import async_playwright

from scan_worker.core.errors import RenderError
from scan_worker.models.job import Job
from scan_worker.models.summary import Summary

logger = logging.getLogger(__name__)

template_dir = os.path.join(os.path.dirname(os.path.dirname(os.path.abspath(__file__))), "templates")

UNSET_LABEL = "Not set"


def score_band(score: int) -> str:
    if score >= 90:
        return "good"
    if score >= 50:
        return "medium"
    return "poor"


def format_scan_time(value: Optional[datetime]) -> str:
    """Locale representation in the worker's local time zone; naive values are taken as UTC"""
    if value is None:
        return "n/a"
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    return value.astimezone().strftime("%c")


env = Environment(
    loader=FileSystemLoader(template_dir),
    autoescape=select_autoescape(["html"]),
)
env.filters["score_band"] = score_band


class ReportRenderer:
    def __init__(self, headless: bool = True, timeout: Optional[float] = None):
        self.headless = headless
        self.timeout = timeout

    def render_html(self, job: Job, summary: Summary) -> str:
        template = env.get_template("report.html")
        scores = summary.scores
        return template.render(
            job=job,
            summary=summary,
            scanned_at=format_scan_time(job.started_at),
            unset_label=UNSET_LABEL,
            score_cards=[
                ("Performance", scores.performance),
                ("SEO", scores.seo),
                ("Best Practices", scores.best_practices),
                ("Accessibility", scores.accessibility),
            ],
        )

    async def render(self, job: Job, summary: Summary) -> bytes:
        logger.info("Generating PDF report...")
        try:
            html = self.render_html(job, summary)
            pdf = await asyncio.wait_for(self._print_pdf(html), timeout=self.timeout)
        except asyncio.TimeoutError as e:
            raise RenderError(f"Report rendering timed out after {self.timeout}s") from e
        except Exception as e:
            logger.error(f"Report rendering failed: {e}", exc_info=True)
            raise RenderError(f"Failed to render report: {e}") from e

        logger.info(f"PDF report generated ({len(pdf)} bytes)")
        return pdf

    async def _print_pdf(self, html: str) -> bytes:
        async with async_playwright() as p:
            browser = await p.chromium.launch(headless=self.headless)
            try:
                page = await browser.new_page()
                await page.set_content(html, wait_until="networkidle")
                return await page.pdf(format="A4", print_background=True)
            finally:
                await browser.close()
