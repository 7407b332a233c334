# checks/seo.py

import logging

from scan_worker.checks.base import Check
from scan_worker.models.summary import DescriptionFact, HeadingFact, SeoFacts, TitleFact

logger = logging.getLogger(__name__)


class SeoInspector(Check):
    name = "SeoInspector"
    key = "seo"

    async def run(self, session, url: str) -> SeoFacts:
        logger.info("Running SEO checks...")
        title = await session.title() or ""
        description = await session.get_attribute('meta[name="description"]', "content")
        h1s = await session.text_contents("h1")

        return SeoFacts(
            title=TitleFact(text=title, length=len(title)),
            meta_description=DescriptionFact(
                text=description or None,
                length=len(description) if description else 0,
            ),
            h1_tags=HeadingFact(count=len(h1s), tags=list(h1s)),
        )
