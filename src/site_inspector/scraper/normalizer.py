"""Strategy-agnostic post-processing of analysis results.

Every strategy hands its raw :class:`AnalysisResult` to :func:`normalize`,
which applies one flag-gating table, the list caps and de-duplication, so
callers never need to know which strategy ran.

Gating table (a section not listed is always kept):

=====================  ==================
Section                Kept when
=====================  ==================
content                ``extractHTML``
assets.images          ``extractImages``
assets.links           ``extractLinks``
assets.scripts         ``extractJS``
assets.stylesheets     ``extractCSS``
seo.metaTags           ``extractMetadata``
seo.altTexts           ``extractImages``
keywords               keywords requested
=====================  ==================
"""

from __future__ import annotations

from typing import Hashable, Iterable, TypeVar

from site_inspector.core.schemas.analysis import (
    AnalysisOptions,
    AnalysisResult,
    KeywordFindings,
    PageContent,
)
from site_inspector.scraper.config import ExtractionLimits

H = TypeVar("H", bound=Hashable)


def dedupe(items: Iterable[H]) -> list[H]:
    """Drop repeated items, keeping the first occurrence of each."""
    seen: set[H] = set()
    unique: list[H] = []
    for item in items:
        if item not in seen:
            seen.add(item)
            unique.append(item)
    return unique


def normalize(
    result: AnalysisResult,
    keywords: list[str],
    options: AnalysisOptions,
    limits: ExtractionLimits | None = None,
) -> AnalysisResult:
    """Return a gated, capped and de-duplicated copy of ``result``.

    Args:
        result: Raw strategy output.  Not modified.
        keywords: The keywords of the request.
        options: The request's section flags.
        limits: List caps; defaults to :class:`ExtractionLimits`.
    """
    limits = limits or ExtractionLimits()
    out = result.model_copy(deep=True)

    if not options.extract_html:
        out.content = PageContent()

    if keywords:
        found = dedupe(out.keywords.found)
        reported: set[str] = set()
        positions = []
        for hit in out.keywords.positions:
            if hit.keyword in found and hit.keyword not in reported:
                reported.add(hit.keyword)
                positions.append(hit)
        out.keywords = KeywordFindings(found=found, positions=positions)
    else:
        out.keywords = KeywordFindings()

    assets = out.assets
    assets.images = assets.images[: limits.max_images] if options.extract_images else []
    assets.links = assets.links[: limits.max_links] if options.extract_links else []
    assets.scripts = dedupe(assets.scripts)[: limits.max_scripts] if options.extract_js else []
    assets.stylesheets = dedupe(assets.stylesheets)[: limits.max_stylesheets] if options.extract_css else []

    out.technical.frameworks = dedupe(out.technical.frameworks)
    out.technical.technologies = dedupe(out.technical.technologies)

    seo = out.seo
    seo.meta_tags = seo.meta_tags[: limits.max_meta_tags] if options.extract_metadata else []
    seo.headings = seo.headings[: limits.max_headings]
    seo.alt_texts = dedupe(seo.alt_texts) if options.extract_images else []

    out.errors = dedupe(out.errors)
    return out
