"""Pydantic request/response schemas for page analysis.

Python attributes are snake_case; the JSON wire format uses the camelCase
names the dashboard expects (``basicInfo``, ``loadTimeMs``, ``extractCSS``).
Always serialise with ``model_dump(by_alias=True)`` (FastAPI does this for
``response_model`` automatically).

Every section model carries explicit defaults, so an ``AnalysisResult``
constructed from nothing but a URL is already schema-complete.  Extractors
fill sections in place; a section whose extraction failed simply keeps its
defaults.
"""

from __future__ import annotations

import urllib.parse
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel


def utc_timestamp() -> str:
    """Return the current UTC time as an ISO-8601 string."""
    return datetime.now(timezone.utc).isoformat()


class _CamelModel(BaseModel):
    """Base model emitting camelCase aliases while accepting either spelling."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


# ---------------------------------------------------------------------------
# Provenance
# ---------------------------------------------------------------------------


class ExtractionMode(str, Enum):
    """Which strategy produced a result.

    Attributes:
        REAL: Headless browser with a live DOM.
        ALTERNATIVE: Plain HTTP fetch parsed with pattern matching.
        SIMULATED: Synthetic placeholder data; not derived from the page.
    """

    REAL = "real"
    ALTERNATIVE = "alternative"
    SIMULATED = "simulated"


# ---------------------------------------------------------------------------
# Request
# ---------------------------------------------------------------------------


class AnalysisOptions(_CamelModel):
    """Flags gating the optional result sections.  Omitted flags are ``False``."""

    extract_css: bool = Field(default=False, alias="extractCSS")
    extract_html: bool = Field(default=False, alias="extractHTML")
    extract_js: bool = Field(default=False, alias="extractJS")
    extract_images: bool = False
    extract_links: bool = False
    extract_metadata: bool = False
    deep_scan: bool = False


class AnalysisRequest(_CamelModel):
    """Payload of ``POST /analyze``.

    Attributes:
        url: Absolute ``http``/``https`` URL of the page to analyse.
        selector: CSS selector of the content root; blank means ``"body"``.
        keywords: Keywords to look for, in the order they are reported.
        analysis_options: Section flags, see :class:`AnalysisOptions`.
    """

    url: str
    selector: str = "body"
    keywords: list[str] = Field(default_factory=list)
    analysis_options: AnalysisOptions = Field(default_factory=AnalysisOptions)

    @field_validator("url")
    @classmethod
    def _require_absolute_url(cls, value: str) -> str:
        value = value.strip()
        parsed = urllib.parse.urlparse(value)
        if parsed.scheme not in ("http", "https") or not parsed.hostname:
            raise ValueError("url must be an absolute http(s) URL")
        return value

    @field_validator("selector", mode="before")
    @classmethod
    def _default_selector(cls, value: Optional[str]) -> str:
        if value is None or not str(value).strip():
            return "body"
        return str(value).strip()

    @field_validator("keywords", mode="before")
    @classmethod
    def _clean_keywords(cls, value: Optional[list[str]]) -> list[str]:
        if value is None:
            return []
        if not isinstance(value, list):
            return value
        cleaned = []
        for keyword in value:
            if keyword is None:
                continue
            if isinstance(keyword, str):
                keyword = keyword.strip()
                if not keyword:
                    continue
            cleaned.append(keyword)
        return cleaned

    @property
    def host(self) -> str:
        """Lower-cased host name of :attr:`url`."""
        return (urllib.parse.urlparse(self.url).hostname or "").lower()


# ---------------------------------------------------------------------------
# Result sections
# ---------------------------------------------------------------------------


class BasicInfo(_CamelModel):
    title: str = ""
    description: str = ""
    favicon: str = ""
    language: str = "unknown"


class PageContent(_CamelModel):
    text: str = ""
    html: str = ""
    structure: dict[str, Any] = Field(default_factory=dict)


class KeywordHit(_CamelModel):
    """Where a keyword was first seen.

    Attributes:
        keyword: The keyword as requested (original casing).
        element: Lower-case tag name of the matching element.
        text: Context snippet around the match.
        selector: Best-effort CSS path (``#id``, ``.class`` or tag name).
        position: Element index (browser) or character offset (fetch).
    """

    keyword: str
    element: str
    text: str
    selector: str
    position: int


class KeywordFindings(_CamelModel):
    found: list[str] = Field(default_factory=list)
    positions: list[KeywordHit] = Field(default_factory=list)


class ImageAsset(_CamelModel):
    src: str = ""
    alt: str = ""
    title: str = ""


class LinkAsset(_CamelModel):
    href: str = ""
    text: str = ""
    type: str = "url"


class Assets(_CamelModel):
    images: list[ImageAsset] = Field(default_factory=list)
    links: list[LinkAsset] = Field(default_factory=list)
    scripts: list[str] = Field(default_factory=list)
    stylesheets: list[str] = Field(default_factory=list)


class Performance(_CamelModel):
    load_time_ms: float = 0
    dom_element_count: int = 0
    request_count: int = 0


class TechnicalInfo(_CamelModel):
    frameworks: list[str] = Field(default_factory=list)
    technologies: list[str] = Field(default_factory=list)
    performance: Performance = Field(default_factory=Performance)


class MetaTag(_CamelModel):
    name: str = ""
    content: str = ""


class Heading(_CamelModel):
    level: int
    text: str = ""


class SeoInfo(_CamelModel):
    meta_tags: list[MetaTag] = Field(default_factory=list)
    headings: list[Heading] = Field(default_factory=list)
    alt_texts: list[str] = Field(default_factory=list)


class AnalysisResult(_CamelModel):
    """Canonical, strategy-agnostic analysis output.

    Every section is always present.  ``errors`` collects section-level
    failures and provenance notices in the order they occurred.
    """

    url: str
    timestamp: str = Field(default_factory=utc_timestamp)
    basic_info: BasicInfo = Field(default_factory=BasicInfo)
    content: PageContent = Field(default_factory=PageContent)
    keywords: KeywordFindings = Field(default_factory=KeywordFindings)
    assets: Assets = Field(default_factory=Assets)
    technical: TechnicalInfo = Field(default_factory=TechnicalInfo)
    seo: SeoInfo = Field(default_factory=SeoInfo)
    errors: list[str] = Field(default_factory=list)


# ---------------------------------------------------------------------------
# API envelopes
# ---------------------------------------------------------------------------


class AnalyzeResponse(_CamelModel):
    """Successful ``POST /analyze`` response."""

    success: bool = True
    mode: ExtractionMode
    data: AnalysisResult
    warning: Optional[str] = None


class ErrorResponse(BaseModel):
    """Body of every 4xx/5xx response produced by the analysis API."""

    error: str
    details: Any = None


class AnalysisRecord(_CamelModel):
    """One stored analysis, as kept by the analysis repository."""

    id: str
    url: str
    mode: ExtractionMode
    warning: Optional[str] = None
    created_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
    data: AnalysisResult
