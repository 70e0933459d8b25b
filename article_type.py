"""Article-type extraction from JAMA Network publisher pages."""

from __future__ import annotations

import json
import logging
import re
from typing import Any

import requests
from bs4 import BeautifulSoup

from models import TypeResolution
from settings import PipelineConfig

LOGGER = logging.getLogger(__name__)

PRIORITY_LABEL = "Original Investigation"

# Kicker/badge elements used across JAMA Network page templates.
_BADGE_SELECTORS: tuple[str, ...] = (
    ".article-header__kicker",
    ".article-header__type",
    ".article-type",
    ".ArticleBadge, .c-article-type, .c-article__type",
)

_META_ATTRS: tuple[dict[str, str], ...] = (
    {"name": "citation_article_type"},
    {"name": "DC.Type"},
    {"name": "prism.section"},
    {"property": "article:section"},
)

_FALLBACK_TYPE_RE = re.compile(
    r"(Original Investigation|Research Letter|Editorial|Correspondence|Review|Viewpoint)",
    re.IGNORECASE,
)


def extract_article_type(html: str) -> str:
    """Infer the article-type label of a publisher page.

    Candidates are gathered from badges, meta tags, JSON-LD and a raw regex
    scan, in that order. "Original Investigation" wins whenever any
    candidate mentions it; otherwise the first candidate is returned, or
    ``""`` if nothing matched.
    """
    if not html:
        return ""

    soup = BeautifulSoup(html, "html.parser")
    candidates = [
        *_badge_candidates(soup),
        *_meta_candidates(soup),
        _json_ld_section(soup),
        _regex_fallback(html),
    ]
    candidates = [c for c in candidates if c]

    if any(PRIORITY_LABEL.lower() in c.lower() for c in candidates):
        return PRIORITY_LABEL
    return candidates[0] if candidates else ""


def sibling_link(url: str, config: PipelineConfig) -> str:
    """Swap the full-text and abstract-only path segments of a JAMA URL."""
    if config.full_text_segment in url:
        return url.replace(config.full_text_segment, config.abstract_segment)
    if config.abstract_segment in url:
        return url.replace(config.abstract_segment, config.full_text_segment)
    return url


def resolve_article_type(link: str, config: PipelineConfig) -> TypeResolution:
    """Fetch ``link`` and read its article type, trying the sibling page once.

    Network errors are not handled here; the caller records them per item.
    """
    final_link, html = _fetch_page(link, config)
    label = extract_article_type(html)
    if label:
        return TypeResolution(final_link=final_link, type_label=label)

    alt_link = sibling_link(final_link, config)
    if alt_link != final_link:
        LOGGER.debug("No article type at %s, trying %s", final_link, alt_link)
        alt_final, alt_html = _fetch_page(alt_link, config)
        alt_label = extract_article_type(alt_html)
        if alt_label:
            return TypeResolution(final_link=alt_final, type_label=alt_label)

    return TypeResolution(final_link=final_link, type_label="")


def _fetch_page(url: str, config: PipelineConfig) -> tuple[str, str]:
    """GET a page following redirects; return (final_url, body)."""
    headers = {
        "User-Agent": config.user_agent,
        "Accept": "text/html,application/xhtml+xml",
    }
    response = requests.get(
        url,
        headers=headers,
        allow_redirects=True,
        timeout=config.request_timeout_seconds,
    )
    if not response.ok:
        LOGGER.warning("Page fetch returned status=%s for %s", response.status_code, url)
    return response.url or url, response.text or ""


def _badge_candidates(soup: BeautifulSoup) -> list[str]:
    found: list[str] = []
    for selector in _BADGE_SELECTORS:
        element = soup.select_one(selector)
        found.append(_norm(element.get_text(" ")) if element else "")
    return found


def _meta_candidates(soup: BeautifulSoup) -> list[str]:
    found: list[str] = []
    for attrs in _META_ATTRS:
        tag = soup.find("meta", attrs=attrs)
        content = tag.get("content") if tag else None
        found.append(_norm(content) if isinstance(content, str) else "")
    return found


def _json_ld_section(soup: BeautifulSoup) -> str:
    """Return the first string ``articleSection`` found in JSON-LD blocks."""
    for script in soup.find_all("script", attrs={"type": "application/ld+json"}):
        try:
            payload = json.loads(script.string or script.get_text())
        except ValueError:
            continue
        section = _find_section(payload)
        if section:
            return section
    return ""


def _find_section(payload: Any) -> str:
    if isinstance(payload, list):
        for entry in payload:
            section = _find_section(entry)
            if section:
                return section
        return ""
    if not isinstance(payload, dict):
        return ""

    section = payload.get("articleSection")
    if isinstance(section, list):
        section = next((s for s in section if isinstance(s, str) and s.strip()), None)
    if isinstance(section, str) and section.strip():
        return _norm(section)

    headline = payload.get("headline")
    if isinstance(headline, dict):
        nested = _find_section(headline)
        if nested:
            return nested
    return _find_section(payload.get("@graph", []))


def _regex_fallback(html: str) -> str:
    match = _FALLBACK_TYPE_RE.search(html)
    return _norm(match.group(0)) if match else ""


def _norm(value: str | None) -> str:
    return " ".join((value or "").split())
