"""
Shared fixtures: an in-process capability session and stub checks, so the
suite never launches a browser or touches the network.
"""

from contextlib import asynccontextmanager
from datetime import datetime, timedelta, timezone
from typing import Any, Dict, List, Optional

import pytest

from scan_worker.checks import BrokenLinkCrawler, Check, HeaderInspector, SeoInspector, TechStackDetector
from scan_worker.models.job import Job, JobState
from scan_worker.models.summary import Scores
from scan_worker.session.base import CapabilitySession, NavigationResult


class FakeSession(CapabilitySession):
    def __init__(
            self,
            headers: Optional[Dict[str, str]] = None,
            title: str = "",
            attributes: Optional[Dict[tuple, List[Optional[str]]]] = None,
            texts: Optional[Dict[str, List[str]]] = None,
            counts: Optional[Dict[str, int]] = None,
            evaluations: Optional[Dict[str, Any]] = None,
            probes: Optional[Dict[str, Any]] = None
    ):
        self.headers = headers or {}
        self._title = title
        self.attributes = attributes or {}
        self.texts = texts or {}
        self.counts = counts or {}
        self.evaluations = evaluations or {}
        self.probes = probes or {}
        self.navigated: List[str] = []
        self.probed: List[str] = []

    async def navigate(self, url: str) -> NavigationResult:
        self.navigated.append(url)
        return NavigationResult(url=url, status=200, headers=dict(self.headers))

    async def title(self) -> str:
        return self._title

    async def count(self, selector: str) -> int:
        return self.counts.get(selector, 0)

    async def get_attribute(self, selector: str, name: str) -> Optional[str]:
        values = self.attributes.get((selector, name), [])
        return values[0] if values else None

    async def get_attributes(self, selector: str, name: str) -> List[Optional[str]]:
        return list(self.attributes.get((selector, name), []))

    async def text_contents(self, selector: str) -> List[str]:
        return list(self.texts.get(selector, []))

    async def evaluate(self, script: str) -> Any:
        return self.evaluations.get(script, False)

    async def probe_head(self, url: str) -> int:
        self.probed.append(url)
        outcome = self.probes.get(url, 200)
        if isinstance(outcome, Exception):
            raise outcome
        return outcome


class SessionFactory:
    """Hands out one FakeSession per audit and records its lifecycle"""

    def __init__(self, session: FakeSession):
        self.session = session
        self.opened = 0
        self.closed = 0

    @asynccontextmanager
    async def __call__(self):
        self.opened += 1
        try:
            yield self.session
        finally:
            self.closed += 1


class StaticScoreCheck(Check):
    name = "ScoreCheck"
    key = "scores"

    def __init__(self, **scores):
        values = {"performance": 93, "seo": 88, "bestPractices": 75, "accessibility": 41}
        values.update(scores)
        self.scores = Scores.model_validate(values)

    async def run(self, session, url: str) -> Scores:
        return self.scores


def standard_checks(score_check: Optional[Check] = None) -> List[Check]:
    return [
        score_check or StaticScoreCheck(),
        HeaderInspector(),
        SeoInspector(),
        TechStackDetector(),
        BrokenLinkCrawler(),
    ]


@pytest.fixture
def page_session() -> FakeSession:
    """A small page on https://example.com with one broken internal link"""
    return FakeSession(
        headers={
            "content-type": "text/html",
            "strict-transport-security": "max-age=63072000",
            "x-frame-options": "DENY",
        },
        title="Example Domain",
        attributes={
            ('meta[name="description"]', "content"): ["An example page"],
            ("a[href]", "href"): ["/a", "https://other.com/b", "/c"],
        },
        texts={"h1": ["Example Domain"]},
        probes={
            "https://example.com/a": 200,
            "https://example.com/c": 404,
        },
    )


@pytest.fixture
def session_factory(page_session) -> SessionFactory:
    return SessionFactory(page_session)


@pytest.fixture
def make_job():
    base = datetime(2024, 5, 1, 12, 0, tzinfo=timezone.utc)

    def _make(job_id: str = "job-1", url: str = "https://example.com", workspace_id: str = "ws-1",
              minutes: int = 0, status: JobState = JobState.PENDING) -> Job:
        return Job(
            id=job_id,
            url=url,
            workspace_id=workspace_id,
            status=status,
            created_at=base + timedelta(minutes=minutes),
        )

    return _make
