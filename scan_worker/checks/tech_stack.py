# checks/tech_stack.py

"""
Technology fingerprinting

Markers are evaluated in a fixed priority order; a label is recorded the first
time its marker matches. "React" is not reported once "Next.js" was found.
"""

import logging
from typing import List

from scan_worker.checks.base import Check

logger = logging.getLogger(__name__)

NEXT_ROOT_SELECTOR = "#__next"
REACT_SCRIPT = "() => !!window.React || !!document.querySelector('[data-reactroot]')"
SHOPIFY_SCRIPT = "() => !!(window.Shopify && window.Shopify.shop)"

# (substring of meta[name=generator] content, label), checked in order
GENERATORS = (
    ("WordPress", "WordPress"),
    ("Drupal", "Drupal"),
    ("Joomla", "Joomla"),
    ("Ghost", "Ghost"),
    ("Wix.com", "Wix"),
    ("Squarespace", "Squarespace"),
)


class TechStackDetector(Check):
    name = "TechStackDetector"
    key = "tech_stack"

    async def run(self, session, url: str) -> List[str]:
        logger.info("Detecting tech stack...")
        detected: List[str] = []

        def add(label: str):
            if label not in detected:
                detected.append(label)

        if await session.count(NEXT_ROOT_SELECTOR) > 0:
            add("Next.js")

        if await session.evaluate(REACT_SCRIPT) and "Next.js" not in detected:
            add("React")

        generators = await session.get_attributes('meta[name="generator"]', "content")
        for needle, label in GENERATORS:
            if any(content and needle in content for content in generators):
                add(label)

        if await session.evaluate(SHOPIFY_SCRIPT):
            add("Shopify")

        logger.info(f"Detected tech stack: {detected}")
        return detected
