"""Shared typed models for the pipeline."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum


@dataclass(frozen=True, slots=True)
class WorkCandidate:
    """One Crossref work: DOI plus the link Crossref points at."""

    identifier: str
    canonical_link: str


@dataclass(frozen=True, slots=True)
class TypeResolution:
    """Outcome of fetching a publisher page and reading its article type."""

    final_link: str = ""
    type_label: str = ""


@dataclass(frozen=True, slots=True)
class TypedWork:
    """Work candidate enriched with the article type from the publisher site."""

    identifier: str
    canonical_link: str
    final_link: str = ""
    type_label: str = ""
    error: str = ""

    @classmethod
    def from_resolution(cls, candidate: WorkCandidate, resolution: TypeResolution) -> TypedWork:
        return cls(
            identifier=candidate.identifier,
            canonical_link=candidate.canonical_link,
            final_link=resolution.final_link,
            type_label=resolution.type_label,
        )


@dataclass(frozen=True, slots=True)
class SecondarySummary:
    """PubMed ESummary fields. Every field defaults to empty."""

    title: str = ""
    journal_name: str = ""
    publication_date: str = ""
    volume: str = ""
    issue: str = ""
    pages: str = ""
    authors: tuple[str, ...] = ()
    # Set semantics, kept in source order so output is stable.
    type_tags: tuple[str, ...] = ()


class Signal(Enum):
    """Three-valued classification outcome."""

    TRUE = "true"
    FALSE = "false"
    UNKNOWN = "unknown"


@dataclass(frozen=True, slots=True)
class EnrichedRecord:
    """Terminal record written to the JSON and CSV artifacts."""

    identifier: str
    canonical_link: str
    final_link: str
    type_label: str
    secondary_id: str
    title: str
    journal_name: str
    publication_date: str
    volume: str
    issue: str
    pages: str
    authors: tuple[str, ...]
    type_tags: tuple[str, ...]
    abstract_text: str
    abstract_markdown: str
    is_research: bool
    error: str = ""

    @property
    def display_url(self) -> str:
        if self.final_link:
            return self.final_link
        if self.canonical_link:
            return self.canonical_link
        return f"https://doi.org/{self.identifier}" if self.identifier else ""
