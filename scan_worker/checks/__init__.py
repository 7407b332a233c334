# checks/__init__.py

from .base import Check
from .scores import ScoreCheck
from .headers import HeaderInspector
from .seo import SeoInspector
from .tech_stack import TechStackDetector
from .broken_links import BrokenLinkCrawler

__all__ = [
    'Check',
    'ScoreCheck',
    'HeaderInspector',
    'SeoInspector',
    'TechStackDetector',
    'BrokenLinkCrawler'
]
