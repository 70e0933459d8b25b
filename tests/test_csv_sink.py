from __future__ import annotations

import csv
from dataclasses import replace
from pathlib import Path

import csv_sink
from models import EnrichedRecord

SAMPLE_RECORD = EnrichedRecord(
    identifier="10.1001/jama.2025.12345",
    canonical_link="https://doi.org/10.1001/jama.2025.12345",
    final_link="https://jamanetwork.com/journals/jama/fullarticle/2830000",
    type_label="Original Investigation",
    secondary_id="40000001",
    title='Effect of "Nudge" Letters on Statin Use',
    journal_name="JAMA",
    publication_date="2025 Sep 2",
    volume="334",
    issue="9",
    pages="801-812",
    authors=("Smith J Author", "Lee K Author"),
    type_tags=("Journal Article", "Randomized Controlled Trial"),
    abstract_text="Importance: Statins, work.",
    abstract_markdown="**Importance:** Statins, work.",
    is_research=True,
)


def _read(path: Path) -> list[list[str]]:
    with path.open(newline="", encoding="utf-8") as fh:
        return list(csv.reader(fh))


def test_header_has_fixed_column_order(tmp_path: Path) -> None:
    path = tmp_path / "out.csv"
    csv_sink.write_research_csv(path, [SAMPLE_RECORD])

    rows = _read(path)
    assert rows[0] == [
        "title", "authors", "published", "DOI", "URL", "journal",
        "issue", "volume", "pages", "article_type_site", "pubmed_pubtypes", "abstract_md",
    ]


def test_row_values_and_joins(tmp_path: Path) -> None:
    path = tmp_path / "out.csv"
    csv_sink.write_research_csv(path, [SAMPLE_RECORD])

    row = dict(zip(_read(path)[0], _read(path)[1]))
    assert row["authors"] == "Smith J Author; Lee K Author"
    assert row["pubmed_pubtypes"] == "Journal Article; Randomized Controlled Trial"
    assert row["URL"] == "https://jamanetwork.com/journals/jama/fullarticle/2830000"
    assert row["article_type_site"] == "Original Investigation"
    assert row["abstract_md"] == "**Importance:** Statins, work."


def test_quotes_round_trip_exactly(tmp_path: Path) -> None:
    path = tmp_path / "out.csv"
    csv_sink.write_research_csv(path, [SAMPLE_RECORD])

    assert _read(path)[1][0] == 'Effect of "Nudge" Letters on Statin Use'


def test_every_field_is_quoted(tmp_path: Path) -> None:
    path = tmp_path / "out.csv"
    record = replace(SAMPLE_RECORD, volume="", issue="")
    csv_sink.write_research_csv(path, [record])

    lines = path.read_text(encoding="utf-8").splitlines()
    assert lines[0].startswith('"title","authors"')
    assert lines[1].startswith('"Effect of ""Nudge"" Letters on Statin Use",')
    assert ',"","",' in lines[1]


def test_only_research_records_are_written(tmp_path: Path) -> None:
    path = tmp_path / "out.csv"
    other = replace(SAMPLE_RECORD, identifier="10.1001/jama.2025.2", is_research=False)

    count = csv_sink.write_research_csv(path, [SAMPLE_RECORD, other])

    assert count == 1
    rows = _read(path)
    assert len(rows) == 2
    assert rows[1][3] == "10.1001/jama.2025.12345"


def test_url_falls_back_to_doi(tmp_path: Path) -> None:
    path = tmp_path / "out.csv"
    record = replace(SAMPLE_RECORD, final_link="", canonical_link="")
    csv_sink.write_research_csv(path, [record])

    assert _read(path)[1][4] == "https://doi.org/10.1001/jama.2025.12345"


def test_empty_record_set_writes_header_only(tmp_path: Path) -> None:
    path = tmp_path / "nested" / "out.csv"
    assert csv_sink.write_research_csv(path, []) == 0
    assert len(_read(path)) == 1
