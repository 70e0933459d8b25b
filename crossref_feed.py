"""Crossref discovery of JAMA journal articles in a publication-date window."""

from __future__ import annotations

import logging
from datetime import date, timedelta
from typing import Any

import requests

from models import WorkCandidate
from settings import PipelineConfig

LOGGER = logging.getLogger(__name__)


class DiscoveryError(RuntimeError):
    """A Crossref page could not be fetched or parsed. Fatal for the run."""


def previous_month_window(today: date) -> tuple[date, date]:
    """Return the first and last calendar day of the month before ``today``."""
    last_day = today.replace(day=1) - timedelta(days=1)
    return last_day.replace(day=1), last_day


def build_filter(date_from: date, date_to: date, issns: tuple[str, ...]) -> str:
    parts = [
        f"from-pub-date:{date_from.isoformat()}",
        f"until-pub-date:{date_to.isoformat()}",
        "type:journal-article",
        *(f"issn:{issn}" for issn in issns),
    ]
    return ",".join(parts)


def discover_works(date_from: date, date_to: date, config: PipelineConfig) -> list[WorkCandidate]:
    """Page through Crossref with cursor continuation and collect candidates.

    Iteration stops on a missing ``next-cursor``, an empty page, or after
    ``config.max_pages`` pages. Identifiers are not deduplicated.

    Raises:
        DiscoveryError: on any transport failure, non-2xx status or malformed
            page. Partial pagination is never returned.
    """
    filter_expr = build_filter(date_from, date_to, config.issns)
    candidates: list[WorkCandidate] = []
    cursor = "*"

    for page in range(1, config.max_pages + 1):
        params = {
            "filter": filter_expr,
            "sort": "issued",
            "order": "asc",
            "rows": str(config.page_size),
            "cursor": cursor,
        }
        try:
            response = requests.get(
                config.crossref_api_url,
                params=params,
                timeout=config.request_timeout_seconds,
            )
            response.raise_for_status()
            payload = response.json()
        except (requests.RequestException, ValueError) as exc:
            raise DiscoveryError(f"Crossref page {page} failed: {exc}") from exc

        items, next_cursor = _parse_works_page(payload)
        candidates.extend(_candidate_from_item(item) for item in items)

        LOGGER.info(
            "Crossref page=%s items=%s total=%s has_next=%s",
            page,
            len(items),
            len(candidates),
            bool(next_cursor),
        )

        if not next_cursor or not items:
            break
        cursor = next_cursor
    else:
        LOGGER.warning("Crossref pagination stopped at max_pages=%s", config.max_pages)

    return candidates


def _parse_works_page(payload: Any) -> tuple[list[dict[str, Any]], str | None]:
    """Return (items, next_cursor) from a Crossref works envelope."""
    if not isinstance(payload, dict) or not isinstance(payload.get("message"), dict):
        raise DiscoveryError("Unexpected Crossref payload shape: missing 'message' object")

    message = payload["message"]
    items = message.get("items", [])
    if not isinstance(items, list):
        raise DiscoveryError("Unexpected Crossref payload shape: 'items' is not a list")

    next_cursor = message.get("next-cursor")
    return [item for item in items if isinstance(item, dict)], _as_str(next_cursor)


def _candidate_from_item(item: dict[str, Any]) -> WorkCandidate:
    doi = _as_str(item.get("DOI")) or ""
    link = _as_str(item.get("URL")) or (f"https://doi.org/{doi}" if doi else "")
    return WorkCandidate(identifier=doi, canonical_link=link)


def _as_str(value: Any) -> str | None:
    return value.strip() if isinstance(value, str) and value.strip() else None
