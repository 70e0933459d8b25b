"""Runtime configuration for the JAMA research pipeline.

Values come from environment variables (a local ``.env`` is loaded by
``main.main`` via python-dotenv) and are frozen into a ``PipelineConfig``
that every stage receives explicitly.
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path

CROSSREF_WORKS_URL = "https://api.crossref.org/works"
PUBMED_ESEARCH_URL = "https://eutils.ncbi.nlm.nih.gov/entrez/eutils/esearch.fcgi"
PUBMED_ESUMMARY_URL = "https://eutils.ncbi.nlm.nih.gov/entrez/eutils/esummary.fcgi"
PUBMED_EFETCH_URL = "https://eutils.ncbi.nlm.nih.gov/entrez/eutils/efetch.fcgi"

# JAMA print and electronic ISSNs.
JAMA_ISSNS: tuple[str, ...] = ("0098-7484", "1538-3598")

# Publisher sites block the default python-requests signature.
BROWSER_USER_AGENT = (
    "Mozilla/5.0 (Macintosh; Intel Mac OS X 10_15_7) AppleWebKit/537.36 "
    "(KHTML, like Gecko) Chrome/124 Safari/537.36"
)

DISCOVERY_FILENAME = "_jama-urls.json"
ARTICLE_TYPES_FILENAME = "jama-article-types.json"
ENRICHED_FILENAME = "jama-article-types-with-pubmed.json"
RESEARCH_ONLY_FILENAME = "jama-research-only.json"
RESEARCH_CSV_FILENAME = "jama-research.csv"


@dataclass(frozen=True, slots=True)
class PipelineConfig:
    """Endpoints, pacing and output locations for one run."""

    crossref_api_url: str = CROSSREF_WORKS_URL
    issns: tuple[str, ...] = JAMA_ISSNS
    page_size: int = 200
    max_pages: int = 10
    esearch_url: str = PUBMED_ESEARCH_URL
    esummary_url: str = PUBMED_ESUMMARY_URL
    efetch_url: str = PUBMED_EFETCH_URL
    ncbi_tool: str = ""
    ncbi_email: str = ""
    pubmed_delay_seconds: float = 0.6
    page_delay_seconds: float = 0.3
    request_timeout_seconds: float = 30.0
    user_agent: str = BROWSER_USER_AGENT
    full_text_segment: str = "/fullarticle/"
    abstract_segment: str = "/article-abstract/"
    output_dir: Path = Path("public")

    @classmethod
    def from_env(cls) -> PipelineConfig:
        """Build a config from environment variables, falling back to defaults."""
        issns_raw = os.getenv("JAMA_ISSNS", "")
        issns = tuple(part.strip() for part in issns_raw.split(",") if part.strip())

        config = cls(
            crossref_api_url=os.getenv("CROSSREF_API_URL", CROSSREF_WORKS_URL),
            issns=issns or JAMA_ISSNS,
            page_size=int(os.getenv("CROSSREF_PAGE_SIZE", "200")),
            max_pages=int(os.getenv("CROSSREF_MAX_PAGES", "10")),
            ncbi_tool=os.getenv("NCBI_TOOL", ""),
            ncbi_email=os.getenv("NCBI_EMAIL", ""),
            pubmed_delay_seconds=float(os.getenv("PUBMED_DELAY_SECONDS", "0.6")),
            page_delay_seconds=float(os.getenv("PAGE_FETCH_DELAY_SECONDS", "0.3")),
            request_timeout_seconds=float(os.getenv("REQUEST_TIMEOUT_SECONDS", "30")),
            user_agent=os.getenv("SCRAPER_USER_AGENT", BROWSER_USER_AGENT),
            output_dir=Path(os.getenv("OUTPUT_DIR", "public")),
        )
        config.validate()
        return config

    def validate(self) -> None:
        if self.page_size < 1:
            raise ValueError(f"page_size must be positive, got {self.page_size}")
        if self.max_pages < 1:
            raise ValueError(f"max_pages must be positive, got {self.max_pages}")
        if self.pubmed_delay_seconds < 0 or self.page_delay_seconds < 0:
            raise ValueError("politeness delays must not be negative")
        if self.request_timeout_seconds <= 0:
            raise ValueError("request_timeout_seconds must be positive")
