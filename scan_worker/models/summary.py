# models/summary.py

"""
Audit summary models

The persisted shape uses camelCase keys and the literal security header names,
so every model is populated and dumped by alias.
"""

from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field


SECURITY_HEADERS = (
    "content-security-policy",
    "strict-transport-security",
    "x-frame-options",
    "x-content-type-options",
)


class _Record(BaseModel):
    model_config = ConfigDict(populate_by_name=True, frozen=True)

    def to_json(self) -> dict:
        return self.model_dump(mode="json", by_alias=True)


class Scores(_Record):
    performance: int = Field(ge=0, le=100)
    seo: int = Field(ge=0, le=100)
    best_practices: int = Field(ge=0, le=100, alias="bestPractices")
    accessibility: int = Field(ge=0, le=100)


class SecurityHeaders(_Record):
    """None is the explicit "unset" marker for a header the response did not send"""

    content_security_policy: Optional[str] = Field(alias="content-security-policy")
    strict_transport_security: Optional[str] = Field(alias="strict-transport-security")
    x_frame_options: Optional[str] = Field(alias="x-frame-options")
    x_content_type_options: Optional[str] = Field(alias="x-content-type-options")

    @classmethod
    def from_response(cls, headers: dict) -> "SecurityHeaders":
        lowered = {k.lower(): v for k, v in (headers or {}).items()}
        return cls.model_validate({name: lowered.get(name) or None for name in SECURITY_HEADERS})

    def items(self):
        data = self.to_json()
        return [(name, data[name]) for name in SECURITY_HEADERS]


class TitleFact(_Record):
    text: str
    length: int


class DescriptionFact(_Record):
    text: Optional[str]
    length: int


class HeadingFact(_Record):
    count: int
    tags: List[str]


class SeoFacts(_Record):
    title: TitleFact
    meta_description: DescriptionFact = Field(alias="metaDescription")
    h1_tags: HeadingFact = Field(alias="h1Tags")


class BrokenLink(_Record):
    url: str
    status: int


class BrokenLinks(_Record):
    count: int
    links: List[BrokenLink]


class Summary(_Record):
    scores: Scores
    headers: SecurityHeaders
    seo: SeoFacts
    tech_stack: List[str] = Field(alias="techStack")
    broken_links: BrokenLinks = Field(alias="brokenLinks")


class FailureSummary(_Record):
    error: str
