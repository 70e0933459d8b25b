"""CLI entrypoint for the JAMA research-article pipeline."""

from __future__ import annotations

import argparse
import logging
import time
from dataclasses import replace
from datetime import UTC, date, datetime
from pathlib import Path

from dotenv import load_dotenv

from abstract_format import abstract_to_markdown
from article_type import resolve_article_type
from crossref_feed import DiscoveryError, discover_works, previous_month_window
from csv_sink import write_research_csv
from json_sink import (
    candidates_from_items,
    load_envelope,
    typed_works_from_items,
    write_discovery,
    write_enriched,
    write_research_only,
    write_typed_works,
)
from models import EnrichedRecord, TypedWork, WorkCandidate
from pubmed_client import lookup_pubmed
from research_filter import ResearchClassifier
from settings import (
    ARTICLE_TYPES_FILENAME,
    DISCOVERY_FILENAME,
    ENRICHED_FILENAME,
    RESEARCH_CSV_FILENAME,
    RESEARCH_ONLY_FILENAME,
    PipelineConfig,
)

STAGES = ("discover", "types", "pubmed", "all")


class StageInputError(RuntimeError):
    """The artifact a single stage reads is missing or unreadable."""


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    """Parse command-line flags."""
    parser = argparse.ArgumentParser(description="Run the Crossref -> JAMA site -> PubMed pipeline")
    parser.add_argument(
        "--stage",
        choices=STAGES,
        default="all",
        help=(
            "'discover' writes the Crossref list, 'types' reads it and adds article types, "
            "'pubmed' reads the typed list and writes the final outputs, 'all' runs everything"
        ),
    )
    parser.add_argument("--from", dest="date_from", type=date.fromisoformat, default=None, help="First publication day (YYYY-MM-DD); defaults to the start of last month")
    parser.add_argument("--to", dest="date_to", type=date.fromisoformat, default=None, help="Last publication day (YYYY-MM-DD); defaults to the end of last month")
    parser.add_argument("--output-dir", type=Path, default=None, help="Directory for JSON/CSV artifacts (overrides OUTPUT_DIR)")
    parser.add_argument("--max-pages", type=int, default=None, help="Crossref page cap (overrides CROSSREF_MAX_PAGES)")
    parser.add_argument("--limit", type=int, default=None, help="Maximum number of discovered works to enrich")
    parser.add_argument("--verbose", action="store_true", help="Enable debug logging")
    args = parser.parse_args(argv)

    if (args.date_from is None) != (args.date_to is None):
        parser.error("--from and --to must be given together")
    if args.date_from and args.date_to and args.date_from > args.date_to:
        parser.error("--from must not be later than --to")
    if args.limit is not None and args.limit < 0:
        parser.error("--limit must not be negative")
    if args.max_pages is not None and args.max_pages < 1:
        parser.error("--max-pages must be at least 1")
    return args


def resolve_types(candidates: list[WorkCandidate], config: PipelineConfig) -> list[TypedWork]:
    """Read the article type of every candidate from the publisher site."""
    works: list[TypedWork] = []
    failed = 0

    for index, candidate in enumerate(candidates, start=1):
        if not candidate.canonical_link:
            works.append(TypedWork(identifier=candidate.identifier, canonical_link=""))
            continue

        try:
            resolution = resolve_article_type(candidate.canonical_link, config)
            works.append(TypedWork.from_resolution(candidate, resolution))
        except Exception as exc:  # broad by design to keep the run resilient
            failed += 1
            logging.exception("Page resolution failed for DOI=%s: %s", candidate.identifier, exc)
            works.append(
                TypedWork(
                    identifier=candidate.identifier,
                    canonical_link=candidate.canonical_link,
                    error=f"page: {exc}",
                )
            )

        time.sleep(config.page_delay_seconds)
        if index % 25 == 0:
            logging.info("...processed %s/%s pages", index, len(candidates))

    typed = sum(1 for w in works if w.type_label)
    logging.info("Article types: total=%s typed=%s failed=%s", len(works), typed, failed)
    return works


def enrich_with_pubmed(
    works: list[TypedWork],
    config: PipelineConfig,
    classifier: ResearchClassifier | None = None,
) -> list[EnrichedRecord]:
    """Attach PubMed metadata, the research verdict and the markdown abstract."""
    classifier = classifier or ResearchClassifier()
    records: list[EnrichedRecord] = []

    for index, work in enumerate(works, start=1):
        lookup = lookup_pubmed(work.identifier, config)
        summary = lookup.summary
        errors = [e for e in (work.error, lookup.error) if e]

        records.append(
            EnrichedRecord(
                identifier=work.identifier,
                canonical_link=work.canonical_link,
                final_link=work.final_link,
                type_label=work.type_label,
                secondary_id=lookup.pmid,
                title=summary.title,
                journal_name=summary.journal_name,
                publication_date=summary.publication_date,
                volume=summary.volume,
                issue=summary.issue,
                pages=summary.pages,
                authors=summary.authors,
                type_tags=summary.type_tags,
                abstract_text=lookup.abstract_text,
                abstract_markdown=abstract_to_markdown(lookup.abstract_text),
                is_research=classifier.classify(summary.type_tags, lookup.abstract_text),
                error="; ".join(errors),
            )
        )

        if index % 10 == 0:
            logging.info("...PubMed processed %s/%s", index, len(works))

    research = sum(1 for r in records if r.is_research)
    logging.info("PubMed enrichment: research=%s total=%s", research, len(records))
    return records


def write_final_outputs(
    records: list[EnrichedRecord],
    date_from: date,
    date_to: date,
    config: PipelineConfig,
) -> None:
    out = config.output_dir
    write_enriched(out / ENRICHED_FILENAME, date_from, date_to, records)
    write_research_only(out / RESEARCH_ONLY_FILENAME, date_from, date_to, records)
    write_research_csv(out / RESEARCH_CSV_FILENAME, records)


def run(
    config: PipelineConfig,
    date_from: date,
    date_to: date,
    limit: int | None = None,
) -> list[EnrichedRecord]:
    """Run all three stages in memory, writing every artifact along the way.

    Raises:
        DiscoveryError: when Crossref discovery fails; nothing is written then.
    """
    candidates = discover_works(date_from, date_to, config)
    logging.info("Discovered %s works between %s and %s", len(candidates), date_from, date_to)
    write_discovery(config.output_dir / DISCOVERY_FILENAME, date_from, date_to, candidates)

    if limit is not None:
        candidates = candidates[:limit]

    works = resolve_types(candidates, config)
    write_typed_works(config.output_dir / ARTICLE_TYPES_FILENAME, date_from, date_to, works)

    records = enrich_with_pubmed(works, config)
    write_final_outputs(records, date_from, date_to, config)
    return records


def _load_stage_input(path: Path) -> tuple[date, date, list[dict]]:
    try:
        return load_envelope(path)
    except (OSError, ValueError, KeyError) as exc:
        raise StageInputError(f"cannot read {path}: {exc}") from exc


def run_stage(stage: str, config: PipelineConfig, date_from: date, date_to: date, limit: int | None) -> None:
    """Run one stage, reading the previous stage's artifact from disk."""
    out = config.output_dir

    if stage == "discover":
        candidates = discover_works(date_from, date_to, config)
        write_discovery(out / DISCOVERY_FILENAME, date_from, date_to, candidates)
    elif stage == "types":
        src_from, src_to, items = _load_stage_input(out / DISCOVERY_FILENAME)
        candidates = candidates_from_items(items)
        if limit is not None:
            candidates = candidates[:limit]
        works = resolve_types(candidates, config)
        write_typed_works(out / ARTICLE_TYPES_FILENAME, src_from, src_to, works)
    elif stage == "pubmed":
        src_from, src_to, items = _load_stage_input(out / ARTICLE_TYPES_FILENAME)
        works = typed_works_from_items(items)
        if limit is not None:
            works = works[:limit]
        records = enrich_with_pubmed(works, config)
        write_final_outputs(records, src_from, src_to, config)
    else:
        run(config, date_from, date_to, limit=limit)


def main(argv: list[str] | None = None) -> int:
    """Initialize config and execute the requested stage."""
    load_dotenv()
    args = parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s %(levelname)s %(message)s",
    )

    config = PipelineConfig.from_env()
    if args.output_dir is not None:
        config = replace(config, output_dir=args.output_dir)
    if args.max_pages is not None:
        config = replace(config, max_pages=args.max_pages)
        config.validate()

    if args.date_from is None:
        date_from, date_to = previous_month_window(datetime.now(UTC).date())
    else:
        date_from, date_to = args.date_from, args.date_to

    try:
        run_stage(args.stage, config, date_from, date_to, args.limit)
    except DiscoveryError as exc:
        logging.error("Discovery failed, no output written: %s", exc)
        return 1
    except StageInputError as exc:
        logging.error("Stage %s could not start: %s", args.stage, exc)
        return 1

    logging.info("Run complete: stage=%s output_dir=%s", args.stage, config.output_dir)
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
