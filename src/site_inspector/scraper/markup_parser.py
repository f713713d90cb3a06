"""Pattern-matching extraction from raw HTML.

Used by the HTTP fetch strategy, which has no DOM.  Everything here works on
the markup string with regular expressions: tags are located first, then
their attributes are read with a small attribute pattern.  Malformed markup
never raises; it just yields fewer matches.

All list extractors take a ``limit`` and stop as soon as it is reached.
"""

from __future__ import annotations

import html as html_module
import re
from typing import Iterable, Iterator

from site_inspector.core.schemas.analysis import (
    BasicInfo,
    Heading,
    ImageAsset,
    KeywordFindings,
    KeywordHit,
    LinkAsset,
    MetaTag,
)
from site_inspector.scraper.config import (
    KEYWORD_CONTEXT_AFTER,
    KEYWORD_CONTEXT_BEFORE,
    SIGNATURES,
)

# ---------------------------------------------------------------------------
# Patterns
# ---------------------------------------------------------------------------

_ATTR_RE = re.compile(
    r"""([^\s"'<>/=]+)\s*=\s*(?:"([^"]*)"|'([^']*)'|([^\s"'=<>`]+))""",
)
_TITLE_RE = re.compile(r"<title[^>]*>(.*?)</title>", re.IGNORECASE | re.DOTALL)
_HTML_TAG_RE = re.compile(r"<html\b([^>]*)>", re.IGNORECASE)
_BODY_RE = re.compile(r"<body[^>]*>(.*?)</body>", re.IGNORECASE | re.DOTALL)
_BODY_OPEN_RE = re.compile(r"<body[^>]*>(.*)", re.IGNORECASE | re.DOTALL)
_SCRIPT_BLOCK_RE = re.compile(r"<script\b[^>]*>.*?</script\s*>", re.IGNORECASE | re.DOTALL)
_STYLE_BLOCK_RE = re.compile(r"<style\b[^>]*>.*?</style\s*>", re.IGNORECASE | re.DOTALL)
_NOSCRIPT_BLOCK_RE = re.compile(r"<noscript\b[^>]*>.*?</noscript\s*>", re.IGNORECASE | re.DOTALL)
_COMMENT_RE = re.compile(r"<!--.*?-->", re.DOTALL)
_TAG_RE = re.compile(r"<[^>]+>")
_OPEN_TAG_RE = re.compile(r"<[a-zA-Z][^>]*>")
_WHITESPACE_RE = re.compile(r"\s+")
_ANCHOR_RE = re.compile(r"<a\b([^>]*)>(.*?)</a\s*>", re.IGNORECASE | re.DOTALL)
_HEADING_RE = re.compile(r"<h([1-6])\b[^>]*>(.*?)</h\1\s*>", re.IGNORECASE | re.DOTALL)


def _tags(markup: str, name: str) -> Iterator[dict[str, str]]:
    """Yield the attribute dicts of every ``<name ...>`` opening tag, in order."""
    pattern = re.compile(rf"<{name}\b([^>]*)>", re.IGNORECASE)
    for match in pattern.finditer(markup):
        yield parse_attributes(match.group(1))


def parse_attributes(fragment: str) -> dict[str, str]:
    """Parse ``key="value"`` pairs from the inside of an opening tag.

    Keys are lower-cased; the first occurrence of a duplicated key wins.
    Values are HTML-unescaped.
    """
    attrs: dict[str, str] = {}
    for match in _ATTR_RE.finditer(fragment):
        key = match.group(1).lower()
        if key in attrs:
            continue
        value = next((g for g in match.groups()[1:] if g is not None), "")
        attrs[key] = html_module.unescape(value)
    return attrs


def _clean(text: str) -> str:
    return _WHITESPACE_RE.sub(" ", html_module.unescape(text)).strip()


# ---------------------------------------------------------------------------
# Page-level fields
# ---------------------------------------------------------------------------


def parse_basic_info(markup: str) -> BasicInfo:
    """Read title, meta description, favicon and ``<html lang>``."""
    info = BasicInfo()

    title_match = _TITLE_RE.search(markup)
    if title_match:
        info.title = _clean(_TAG_RE.sub("", title_match.group(1)))

    for attrs in _tags(markup, "meta"):
        if attrs.get("name", "").lower() == "description" and "content" in attrs:
            info.description = attrs["content"].strip()
            break

    for attrs in _tags(markup, "link"):
        rel = attrs.get("rel", "").lower().split()
        if "icon" in rel and attrs.get("href"):
            info.favicon = attrs["href"]
            break

    html_match = _HTML_TAG_RE.search(markup)
    if html_match:
        lang = parse_attributes(html_match.group(1)).get("lang", "").strip()
        if lang:
            info.language = lang

    return info


def extract_body(markup: str) -> str | None:
    """Return the inner markup of ``<body>``, or ``None`` when there is no body tag.

    An unterminated body (truncated documents) yields everything after the
    opening tag.
    """
    match = _BODY_RE.search(markup) or _BODY_OPEN_RE.search(markup)
    return match.group(1) if match else None


def html_to_text(markup: str) -> str:
    """Render markup as plain text.

    Scripts, styles, noscript blocks and comments are removed, remaining tags
    are replaced by spaces, entities are unescaped and whitespace collapsed.
    """
    stripped = _COMMENT_RE.sub(" ", markup)
    stripped = _SCRIPT_BLOCK_RE.sub(" ", stripped)
    stripped = _STYLE_BLOCK_RE.sub(" ", stripped)
    stripped = _NOSCRIPT_BLOCK_RE.sub(" ", stripped)
    stripped = _TAG_RE.sub(" ", stripped)
    return _clean(stripped)


def count_elements(markup: str) -> int:
    """Approximate the DOM size by counting opening tags."""
    return len(_OPEN_TAG_RE.findall(markup))


# ---------------------------------------------------------------------------
# Bounded lists
# ---------------------------------------------------------------------------


def classify_link(href: str) -> str:
    """Return ``"email"``, ``"phone"`` or ``"url"`` for a link target."""
    lowered = href.strip().lower()
    if lowered.startswith("mailto:"):
        return "email"
    if lowered.startswith("tel:"):
        return "phone"
    return "url"


def extract_images(markup: str, limit: int) -> list[ImageAsset]:
    images: list[ImageAsset] = []
    if limit <= 0:
        return images
    for attrs in _tags(markup, "img"):
        src = attrs.get("src", "").strip()
        if not src:
            continue
        images.append(ImageAsset(src=src, alt=attrs.get("alt", ""), title=attrs.get("title", "")))
        if len(images) >= limit:
            break
    return images


def extract_links(markup: str, limit: int) -> list[LinkAsset]:
    links: list[LinkAsset] = []
    if limit <= 0:
        return links
    for match in _ANCHOR_RE.finditer(markup):
        href = parse_attributes(match.group(1)).get("href", "").strip()
        if not href:
            continue
        links.append(LinkAsset(href=href, text=html_to_text(match.group(2)), type=classify_link(href)))
        if len(links) >= limit:
            break
    return links


def extract_scripts(markup: str, limit: int) -> list[str]:
    scripts: list[str] = []
    for attrs in _tags(markup, "script"):
        if len(scripts) >= limit:
            break
        src = attrs.get("src", "").strip()
        if src:
            scripts.append(src)
    return scripts


def extract_stylesheets(markup: str, limit: int) -> list[str]:
    sheets: list[str] = []
    for attrs in _tags(markup, "link"):
        if len(sheets) >= limit:
            break
        if "stylesheet" in attrs.get("rel", "").lower().split() and attrs.get("href"):
            sheets.append(attrs["href"].strip())
    return sheets


def extract_meta_tags(markup: str, limit: int) -> list[MetaTag]:
    """Collect ``<meta>`` tags that have a name (or property) and a content."""
    tags: list[MetaTag] = []
    for attrs in _tags(markup, "meta"):
        if len(tags) >= limit:
            break
        name = attrs.get("name") or attrs.get("property") or ""
        if name and "content" in attrs:
            tags.append(MetaTag(name=name, content=attrs["content"]))
    return tags


def extract_headings(markup: str, limit: int) -> list[Heading]:
    headings: list[Heading] = []
    for match in _HEADING_RE.finditer(markup):
        if len(headings) >= limit:
            break
        text = html_to_text(match.group(2))
        if text:
            headings.append(Heading(level=int(match.group(1)), text=text))
    return headings


def extract_alt_texts(images: Iterable[ImageAsset]) -> list[str]:
    return [img.alt.strip() for img in images if img.alt.strip()]


# ---------------------------------------------------------------------------
# Fingerprints and keywords
# ---------------------------------------------------------------------------


def detect_signatures(haystacks: Iterable[str]) -> tuple[list[str], list[str]]:
    """Match the signature table against ``haystacks``.

    Args:
        haystacks: Strings to search (raw markup, script sources, ...).

    Returns:
        ``(frameworks, technologies)`` in signature-table order, without
        duplicates.
    """
    corpus = list(haystacks)
    frameworks: list[str] = []
    technologies: list[str] = []
    for signature in SIGNATURES:
        if any(needle in text for text in corpus for needle in signature.needles):
            target = frameworks if signature.kind == "framework" else technologies
            if signature.name not in target:
                target.append(signature.name)
    return frameworks, technologies


def find_keywords(text: str, keywords: Iterable[str]) -> KeywordFindings:
    """Case-insensitive substring search over the plain text of the body.

    One :class:`KeywordHit` per keyword, at its first occurrence, with a
    context window of ``KEYWORD_CONTEXT_BEFORE`` characters before and
    ``KEYWORD_CONTEXT_AFTER`` characters after the match start.  Without a
    DOM the hit is always attributed to ``body``.

    Args:
        text: Plain text (not markup) to search.
        keywords: Keywords in reporting order.

    Returns:
        The populated :class:`KeywordFindings`.
    """
    findings = KeywordFindings()
    for keyword in keywords:
        if keyword in findings.found:
            continue
        match = re.search(re.escape(keyword), text, re.IGNORECASE)
        if match is None:
            continue
        start = match.start()
        findings.found.append(keyword)
        findings.positions.append(
            KeywordHit(
                keyword=keyword,
                element="body",
                text=text[max(0, start - KEYWORD_CONTEXT_BEFORE): start + KEYWORD_CONTEXT_AFTER],
                selector="body",
                position=start,
            )
        )
    return findings
