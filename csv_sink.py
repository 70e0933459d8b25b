"""CSV export of research-only records."""

from __future__ import annotations

import csv
import logging
from pathlib import Path

from models import EnrichedRecord

LOGGER = logging.getLogger(__name__)

CSV_COLUMNS = [
    "title",
    "authors",              # "; "-joined "name authtype" strings
    "published",
    "DOI",
    "URL",                  # final page URL, else canonical link, else doi.org
    "journal",
    "issue",
    "volume",
    "pages",
    "article_type_site",    # label read from the publisher page
    "pubmed_pubtypes",      # "; "-joined PubMed publication types
    "abstract_md",
]

LIST_SEPARATOR = "; "


def record_to_row(record: EnrichedRecord) -> list[str]:
    return [
        record.title,
        LIST_SEPARATOR.join(record.authors),
        record.publication_date,
        record.identifier,
        record.display_url,
        record.journal_name,
        record.issue,
        record.volume,
        record.pages,
        record.type_label,
        LIST_SEPARATOR.join(record.type_tags),
        record.abstract_markdown,
    ]


def write_research_csv(path: Path, records: list[EnrichedRecord]) -> int:
    """Write the research-only subset of ``records``; return the row count.

    Every field is quoted and embedded quotes are doubled.
    """
    rows = [record_to_row(r) for r in records if r.is_research]

    path.parent.mkdir(parents=True, exist_ok=True)
    with path.open("w", newline="", encoding="utf-8") as fh:
        writer = csv.writer(fh, quoting=csv.QUOTE_ALL, lineterminator="\n")
        writer.writerow(CSV_COLUMNS)
        writer.writerows(rows)

    LOGGER.info("Wrote %s CSV rows to %s", len(rows), path)
    return len(rows)
