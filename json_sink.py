"""JSON artifacts: discovery list, type-enriched list and PubMed-enriched lists."""

from __future__ import annotations

import json
import logging
from dataclasses import asdict
from datetime import date
from pathlib import Path
from typing import Any

from models import EnrichedRecord, TypedWork, WorkCandidate

LOGGER = logging.getLogger(__name__)


def candidate_to_dict(candidate: WorkCandidate) -> dict[str, Any]:
    return {"identifier": candidate.identifier, "canonical_link": candidate.canonical_link}


def typed_work_to_dict(work: TypedWork) -> dict[str, Any]:
    row = asdict(work)
    if not row["error"]:
        del row["error"]
    return row


def record_to_dict(record: EnrichedRecord) -> dict[str, Any]:
    row = asdict(record)
    row["authors"] = list(record.authors)
    row["type_tags"] = list(record.type_tags)
    if not row["error"]:
        del row["error"]
    return row


def build_envelope(
    date_from: date,
    date_to: date,
    items: list[dict[str, Any]],
    **extra: Any,
) -> dict[str, Any]:
    return {"from": date_from.isoformat(), "to": date_to.isoformat(), **extra, "items": items}


def write_discovery(path: Path, date_from: date, date_to: date, candidates: list[WorkCandidate]) -> None:
    _write_json(path, build_envelope(date_from, date_to, [candidate_to_dict(c) for c in candidates]))


def write_typed_works(path: Path, date_from: date, date_to: date, works: list[TypedWork]) -> None:
    _write_json(path, build_envelope(date_from, date_to, [typed_work_to_dict(w) for w in works]))


def write_enriched(path: Path, date_from: date, date_to: date, records: list[EnrichedRecord]) -> None:
    """Write every record, research or not, with a counts header."""
    counts = {"total": len(records), "research": sum(1 for r in records if r.is_research)}
    payload = build_envelope(date_from, date_to, [record_to_dict(r) for r in records], counts=counts)
    _write_json(path, payload)


def write_research_only(path: Path, date_from: date, date_to: date, records: list[EnrichedRecord]) -> None:
    research = [record_to_dict(r) for r in records if r.is_research]
    _write_json(path, build_envelope(date_from, date_to, research))


def load_envelope(path: Path) -> tuple[date, date, list[dict[str, Any]]]:
    """Read an artifact written by this module back into (from, to, items)."""
    with path.open(encoding="utf-8") as fh:
        payload = json.load(fh)

    if not isinstance(payload, dict) or not isinstance(payload.get("items"), list):
        raise ValueError(f"{path} is not a pipeline artifact: expected an object with 'items'")

    date_from = date.fromisoformat(payload["from"])
    date_to = date.fromisoformat(payload["to"])
    items = [item for item in payload["items"] if isinstance(item, dict)]
    return date_from, date_to, items


def candidates_from_items(items: list[dict[str, Any]]) -> list[WorkCandidate]:
    return [
        WorkCandidate(
            identifier=str(item.get("identifier") or ""),
            canonical_link=str(item.get("canonical_link") or ""),
        )
        for item in items
    ]


def typed_works_from_items(items: list[dict[str, Any]]) -> list[TypedWork]:
    return [
        TypedWork(
            identifier=str(item.get("identifier") or ""),
            canonical_link=str(item.get("canonical_link") or ""),
            final_link=str(item.get("final_link") or ""),
            type_label=str(item.get("type_label") or ""),
            error=str(item.get("error") or ""),
        )
        for item in items
    ]


def _write_json(path: Path, payload: dict[str, Any]) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    with path.open("w", encoding="utf-8") as fh:
        json.dump(payload, fh, ensure_ascii=False, indent=2)
        fh.write("\n")
    LOGGER.info("Wrote %s items to %s", len(payload["items"]), path)
