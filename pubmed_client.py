"""PubMed E-utilities client: DOI lookup, summary and abstract retrieval."""

from __future__ import annotations

import logging
import time
import xml.etree.ElementTree as ET
from collections.abc import Callable
from dataclasses import dataclass, field
from typing import Any, TypeVar

import requests

from models import SecondarySummary
from settings import PipelineConfig

LOGGER = logging.getLogger(__name__)

_T = TypeVar("_T")


@dataclass(frozen=True, slots=True)
class PubMedLookup:
    """Result of the three-call PubMed sequence for one DOI."""

    pmid: str = ""
    summary: SecondarySummary = field(default_factory=SecondarySummary)
    abstract_text: str = ""
    error: str = ""


def lookup_pubmed(identifier: str, config: PipelineConfig) -> PubMedLookup:
    """Resolve a DOI to PMID, summary and abstract, pausing after every call.

    NCBI blocks clients that exceed its request rate, so the politeness delay
    is applied after each request regardless of outcome. Any exception
    degrades the whole lookup to empty values with ``error`` set.
    """
    if not identifier:
        return PubMedLookup()

    try:
        pmid = _paced(doi_to_pmid, identifier, config)
        if not pmid:
            return PubMedLookup()

        summary = _paced(pmid_to_summary, pmid, config)
        abstract_text = _paced(pmid_to_abstract, pmid, config)
    except Exception as exc:  # broad by design: one bad DOI must not stop the run
        LOGGER.warning("PubMed lookup failed for DOI=%s: %s", identifier, exc)
        return PubMedLookup(error=f"pubmed: {exc}")

    return PubMedLookup(
        pmid=pmid,
        summary=summary or SecondarySummary(),
        abstract_text=abstract_text,
    )


def _paced(call: Callable[[str, PipelineConfig], _T], value: str, config: PipelineConfig) -> _T:
    """Run one E-utilities call, then sleep even if it raised."""
    try:
        return call(value, config)
    finally:
        time.sleep(config.pubmed_delay_seconds)


def doi_to_pmid(identifier: str, config: PipelineConfig) -> str | None:
    """Return the first PMID whose DOI matches exactly, or None."""
    if not identifier:
        return None

    response = _eutils_get(
        config.esearch_url,
        {"db": "pubmed", "term": f"{identifier}[DOI]", "retmode": "json"},
        config,
    )
    if response is None:
        return None

    body = response.json()
    result = body.get("esearchresult") if isinstance(body, dict) else None
    id_list = result.get("idlist") if isinstance(result, dict) else None
    if not isinstance(id_list, list) or not id_list:
        return None
    return _as_text(id_list[0]) or None


def pmid_to_summary(pmid: str, config: PipelineConfig) -> SecondarySummary | None:
    """Fetch the ESummary record for a PMID."""
    if not pmid:
        return None

    response = _eutils_get(
        config.esummary_url,
        {"db": "pubmed", "id": pmid, "retmode": "json"},
        config,
    )
    if response is None:
        return None
    return _parse_summary(response.json(), pmid)


def pmid_to_abstract(pmid: str, config: PipelineConfig) -> str:
    """Fetch the abstract for a PMID as plain text, or ``""``."""
    if not pmid:
        return ""

    response = _eutils_get(
        config.efetch_url,
        {"db": "pubmed", "id": pmid, "retmode": "xml"},
        config,
    )
    if response is None:
        return ""
    return _parse_abstract_xml(response.text)


def _eutils_get(url: str, params: dict[str, str], config: PipelineConfig) -> requests.Response | None:
    """GET an E-utilities endpoint; None on non-2xx. Transport errors propagate."""
    if config.ncbi_tool:
        params = {**params, "tool": config.ncbi_tool}
    if config.ncbi_email:
        params = {**params, "email": config.ncbi_email}

    response = requests.get(url, params=params, timeout=config.request_timeout_seconds)
    if not response.ok:
        LOGGER.warning("E-utilities %s returned status=%s", url, response.status_code)
        return None
    return response


def _parse_summary(payload: Any, pmid: str) -> SecondarySummary | None:
    """Map an ESummary JSON payload onto SecondarySummary."""
    result = payload.get("result") if isinstance(payload, dict) else None
    record = result.get(pmid) if isinstance(result, dict) else None
    if not isinstance(record, dict):
        return None

    authors: list[str] = []
    for author in record.get("authors") or []:
        if not isinstance(author, dict):
            continue
        name = " ".join(p for p in (_as_text(author.get("name")), _as_text(author.get("authtype"))) if p)
        if name:
            authors.append(name)

    tags: list[str] = []
    for tag in record.get("pubtype") or []:
        text = _as_text(tag)
        if text and text not in tags:
            tags.append(text)

    return SecondarySummary(
        title=_as_text(record.get("title")),
        journal_name=_as_text(record.get("fulljournalname")) or _as_text(record.get("source")),
        publication_date=_as_text(record.get("pubdate")),
        volume=_as_text(record.get("volume")),
        issue=_as_text(record.get("issue")),
        pages=_as_text(record.get("pages")),
        authors=tuple(authors),
        type_tags=tuple(tags),
    )


def _parse_abstract_xml(xml: str) -> str:
    """Join every <AbstractText> segment as whitespace-collapsed plain text.

    Structured abstracts carry their heading in the ``Label`` attribute; it is
    kept as a ``"LABEL: text"`` prefix so the markdown pass can bold it.
    Inline markup (<i>, <sub>, ...) is dropped by reading the element text.
    """
    root = _parse_xml(xml)
    if root is None:
        return ""

    nodes = root.findall(".//Abstract/AbstractText") or list(root.iter("AbstractText"))
    parts: list[str] = []
    for node in nodes:
        text = " ".join("".join(node.itertext()).split())
        if not text:
            continue
        label = " ".join((node.attrib.get("Label") or "").split())
        parts.append(f"{label}: {text}" if label else text)
    return " ".join(parts)


def _parse_xml(xml: str) -> ET.Element | None:
    if not xml or not xml.strip():
        return None
    try:
        return ET.fromstring(xml)
    except ET.ParseError:
        pass
    # Bare <AbstractText> fragments have no single root element.
    try:
        return ET.fromstring(f"<AbstractSet>{xml}</AbstractSet>")
    except ET.ParseError as exc:
        LOGGER.warning("Unparseable EFetch XML: %s", exc)
        return None


def _as_text(value: Any) -> str:
    return value.strip() if isinstance(value, str) else ""
