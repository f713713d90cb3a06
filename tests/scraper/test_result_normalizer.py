"""Unit tests for option gating, caps and de-duplication of results."""

from __future__ import annotations

from site_inspector.core.schemas.analysis import (
    AnalysisOptions,
    AnalysisResult,
    Heading,
    ImageAsset,
    KeywordFindings,
    KeywordHit,
    LinkAsset,
    MetaTag,
    PageContent,
)
from site_inspector.scraper.config import ExtractionLimits
from site_inspector.scraper.normalizer import dedupe, normalize


def _hit(keyword: str, position: int = 0) -> KeywordHit:
    return KeywordHit(keyword=keyword, element="p", text=keyword, selector="p", position=position)


def _full_result() -> AnalysisResult:
    result = AnalysisResult(url="https://example.com/")
    result.content = PageContent(text="t", html="<p>t</p>", structure={"tagName": "p"})
    result.keywords = KeywordFindings(
        found=["a", "b", "a"],
        positions=[_hit("a"), _hit("b"), _hit("a", 9), _hit("ghost")],
    )
    result.assets.images = [ImageAsset(src=f"/{i}.png", alt=f"alt {i % 2}") for i in range(20)]
    result.assets.links = [LinkAsset(href=f"/{i}") for i in range(30)]
    result.assets.scripts = ["/a.js", "/a.js", "/b.js"]
    result.assets.stylesheets = ["/a.css", "/a.css"]
    result.technical.frameworks = ["React", "jQuery", "React"]
    result.technical.technologies = ["WordPress", "WordPress"]
    result.seo.meta_tags = [MetaTag(name=f"m{i}", content="c") for i in range(12)]
    result.seo.headings = [Heading(level=2, text=f"h{i}") for i in range(12)]
    result.seo.alt_texts = ["alt 0", "alt 1", "alt 0"]
    result.errors = ["boom", "boom", "bang"]
    return result


ALL_FLAGS = AnalysisOptions(
    extract_html=True,
    extract_images=True,
    extract_links=True,
    extract_js=True,
    extract_css=True,
    extract_metadata=True,
)


class TestDedupe:
    def test_first_seen_order(self) -> None:
        assert dedupe(["b", "a", "b", "c", "a"]) == ["b", "a", "c"]

    def test_empty(self) -> None:
        assert dedupe([]) == []


class TestNormalize:
    def test_input_not_mutated(self) -> None:
        raw = _full_result()
        normalize(raw, ["a"], AnalysisOptions())

        assert raw.content.html == "<p>t</p>"
        assert raw.technical.frameworks == ["React", "jQuery", "React"]

    def test_no_flags_strips_gated_sections(self) -> None:
        out = normalize(_full_result(), ["a", "b"], AnalysisOptions())

        assert out.content == PageContent()
        assert out.assets.images == []
        assert out.assets.links == []
        assert out.assets.scripts == []
        assert out.assets.stylesheets == []
        assert out.seo.meta_tags == []
        assert out.seo.alt_texts == []
        # ungated sections survive
        assert out.technical.frameworks == ["React", "jQuery"]
        assert len(out.seo.headings) == 10

    def test_all_flags_keep_capped_sections(self) -> None:
        out = normalize(_full_result(), ["a", "b"], ALL_FLAGS)

        assert out.content.html == "<p>t</p>"
        assert len(out.assets.images) == 10
        assert len(out.assets.links) == 15
        assert out.assets.scripts == ["/a.js", "/b.js"]
        assert out.assets.stylesheets == ["/a.css"]
        assert len(out.seo.meta_tags) == 10
        assert out.seo.alt_texts == ["alt 0", "alt 1"]

    def test_custom_caps(self) -> None:
        limits = ExtractionLimits(max_images=2, max_links=1, max_headings=3)
        out = normalize(_full_result(), [], ALL_FLAGS, limits)

        assert len(out.assets.images) == 2
        assert len(out.assets.links) == 1
        assert len(out.seo.headings) == 3

    def test_keywords_deduplicated_and_positions_filtered(self) -> None:
        out = normalize(_full_result(), ["a", "b"], AnalysisOptions())

        assert out.keywords.found == ["a", "b"]
        assert [(hit.keyword, hit.position) for hit in out.keywords.positions] == [("a", 0), ("b", 0)]

    def test_no_keywords_requested_clears_findings(self) -> None:
        out = normalize(_full_result(), [], AnalysisOptions())

        assert out.keywords == KeywordFindings()

    def test_technologies_and_errors_deduplicated(self) -> None:
        out = normalize(_full_result(), [], AnalysisOptions())

        assert out.technical.technologies == ["WordPress"]
        assert out.errors == ["boom", "bang"]

    def test_envelope_complete_for_empty_result(self) -> None:
        out = normalize(AnalysisResult(url="https://example.com/"), [], AnalysisOptions())
        payload = out.model_dump(by_alias=True)

        assert set(payload) == {
            "url",
            "timestamp",
            "basicInfo",
            "content",
            "keywords",
            "assets",
            "technical",
            "seo",
            "errors",
        }
        assert set(payload["technical"]["performance"]) == {"loadTimeMs", "domElementCount", "requestCount"}
        assert set(payload["seo"]) == {"metaTags", "headings", "altTexts"}
