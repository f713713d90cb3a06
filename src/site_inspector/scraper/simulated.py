"""Synthetic placeholder analysis.

Last rung of the fallback ladder: it needs neither network nor browser and
cannot fail.  Values are shaped like a real result but fabricated; every
result carries :data:`SIMULATION_NOTICE` in ``errors`` so it is never
mistaken for real data.
"""

from __future__ import annotations

import asyncio
import logging
import random
import urllib.parse

from site_inspector.core.schemas.analysis import (
    AnalysisOptions,
    AnalysisResult,
    Assets,
    BasicInfo,
    Heading,
    ImageAsset,
    KeywordFindings,
    KeywordHit,
    LinkAsset,
    MetaTag,
    PageContent,
    Performance,
    SeoInfo,
    TechnicalInfo,
)

logger = logging.getLogger(__name__)

#: Diagnostic appended to the ``errors`` of every simulated result.
SIMULATION_NOTICE = "Simulation mode: no browser or network data was used; all values are placeholders"

#: Probability threshold above which a keyword is reported as found.
KEYWORD_FOUND_THRESHOLD = 0.3

_IMAGES = (
    ImageAsset(src="/image1.jpg", alt="Simulated image 1", title="Title 1"),
    ImageAsset(src="/image2.jpg", alt="Simulated image 2", title="Title 2"),
    ImageAsset(src="/image3.jpg", alt="Simulated image 3", title="Title 3"),
)
_LINKS = (
    LinkAsset(href="/link1", text="Simulated link 1", type="url"),
    LinkAsset(href="mailto:test@example.com", text="Contact", type="email"),
    LinkAsset(href="tel:+1234567890", text="Phone", type="phone"),
)
_SCRIPTS = ("/js/app.js", "/js/vendor.js", "/js/analytics.js")
_STYLESHEETS = ("/css/main.css", "/css/vendor.css", "/css/responsive.css")
_META_TAGS = (
    MetaTag(name="description", content="Simulated meta description"),
    MetaTag(name="keywords", content="simulated, test, development, scraping"),
    MetaTag(name="viewport", content="width=device-width, initial-scale=1"),
)
_HEADINGS = (
    Heading(level=1, text="Simulated main title"),
    Heading(level=2, text="Section subtitle"),
    Heading(level=3, text="Important subsection"),
    Heading(level=2, text="Another main section"),
)


class SimulatedExtractor:
    """Fabricates a complete, clearly-labelled result.

    Args:
        rng: Random source; inject a seeded :class:`random.Random` for
            reproducible output.
        delay: Seconds to sleep before answering, mimicking a page load.
    """

    def __init__(self, rng: random.Random | None = None, delay: float = 0.0) -> None:
        self._rng = rng or random.Random()
        self.delay = delay

    async def extract(
        self,
        url: str,
        selector: str,
        keywords: list[str],
        options: AnalysisOptions,
    ) -> AnalysisResult:
        if self.delay > 0:
            await asyncio.sleep(self.delay)

        host = urllib.parse.urlparse(url).hostname or url
        rng = self._rng
        found = [k for k in keywords if rng.random() > KEYWORD_FOUND_THRESHOLD]
        logger.info("simulated: placeholder analysis for %s (%d/%d keywords)", url, len(found), len(keywords))

        return AnalysisResult(
            url=url,
            basic_info=BasicInfo(
                title=f"Simulated analysis - {host}",
                description="Simulated site description for development and testing",
                favicon="/favicon.ico",
                language="en",
            ),
            content=PageContent(
                text=f"Simulated content for selector {selector}. Keywords of interest: {', '.join(keywords)}.",
                html=f'<div class="content">{selector} - simulated HTML content</div>',
                structure={"tagName": "div", "className": "content", "id": "", "attributes": {"class": "content"}},
            ),
            keywords=KeywordFindings(
                found=found,
                positions=[
                    KeywordHit(
                        keyword=keyword,
                        element="span",
                        text=f"Simulated text containing {keyword}",
                        selector=".content span",
                        position=index * 15,
                    )
                    for index, keyword in enumerate(found)
                ],
            ),
            assets=Assets(
                images=[img.model_copy() for img in _IMAGES] if options.extract_images else [],
                links=[link.model_copy() for link in _LINKS] if options.extract_links else [],
                scripts=list(_SCRIPTS),
                stylesheets=list(_STYLESHEETS),
            ),
            technical=TechnicalInfo(
                frameworks=["React", "Next.js", "Tailwind CSS"],
                technologies=["Google Analytics"],
                performance=Performance(
                    load_time_ms=round(1200 + rng.random() * 800, 2),
                    dom_element_count=180 + rng.randrange(150),
                    request_count=28 + rng.randrange(12),
                ),
            ),
            seo=SeoInfo(
                meta_tags=[tag.model_copy() for tag in _META_TAGS],
                headings=[heading.model_copy() for heading in _HEADINGS],
                alt_texts=[img.alt for img in _IMAGES],
            ),
            errors=[SIMULATION_NOTICE],
        )
