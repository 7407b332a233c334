# models/__init__.py

from .job import Job, JobState, can_transition
from .summary import (
    SECURITY_HEADERS,
    Scores,
    SecurityHeaders,
    TitleFact,
    DescriptionFact,
    HeadingFact,
    SeoFacts,
    BrokenLink,
    BrokenLinks,
    Summary,
    FailureSummary
)

__all__ = [
    'Job',
    'JobState',
    'can_transition',
    'SECURITY_HEADERS',
    'Scores',
    'SecurityHeaders',
    'TitleFact',
    'DescriptionFact',
    'HeadingFact',
    'SeoFacts',
    'BrokenLink',
    'BrokenLinks',
    'Summary',
    'FailureSummary'
]
