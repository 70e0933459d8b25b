from unittest.mock import MagicMock, patch

import pytest
import requests

from article_type import extract_article_type, resolve_article_type, sibling_link
from models import TypeResolution
from settings import PipelineConfig

FULL_URL = "https://jamanetwork.com/journals/jama/fullarticle/2830000"
ABSTRACT_URL = "https://jamanetwork.com/journals/jama/article-abstract/2830000"
BLANK_HTML = "<html><head><title>JAMA</title></head><body><p>Loading</p></body></html>"


def _page(html: str, url: str, status: int = 200) -> MagicMock:
    mock = MagicMock()
    mock.text = html
    mock.url = url
    mock.status_code = status
    mock.ok = status < 400
    return mock


def test_extract_from_kicker_badge() -> None:
    html = '<div class="article-header__kicker">  Research\n Letter </div>'
    assert extract_article_type(html) == "Research Letter"


def test_extract_from_meta_tag() -> None:
    html = '<head><meta name="citation_article_type" content="Viewpoint"></head>'
    assert extract_article_type(html) == "Viewpoint"


def test_extract_from_meta_property() -> None:
    html = '<head><meta property="article:section" content="Comment &amp; Response"></head>'
    assert extract_article_type(html) == "Comment & Response"


def test_extract_from_json_ld_article_section() -> None:
    html = (
        '<script type="application/ld+json">'
        '{"@context": "https://schema.org", "@type": "ScholarlyArticle", "articleSection": "Special Communication"}'
        "</script>"
    )
    assert extract_article_type(html) == "Special Communication"


def test_extract_from_json_ld_graph() -> None:
    html = (
        '<script type="application/ld+json">'
        '{"@graph": [{"@type": "WebPage"}, {"@type": "Article", "articleSection": ["Clinical Challenge"]}]}'
        "</script>"
    )
    assert extract_article_type(html) == "Clinical Challenge"


def test_malformed_json_ld_is_ignored() -> None:
    html = '<script type="application/ld+json">{not json</script><p>A Viewpoint piece</p>'
    assert extract_article_type(html) == "Viewpoint"


def test_regex_fallback_scans_raw_document() -> None:
    assert extract_article_type("<p>This editorial discusses</p>") == "editorial"


def test_original_investigation_overrides_probe_order() -> None:
    """An earlier 'Editorial' hit loses to 'Original Investigation' from a meta tag."""
    html = (
        '<head><meta name="DC.Type" content="Original Investigation"></head>'
        '<body><div class="article-type">Editorial</div><p>See the Editorial.</p></body>'
    )
    assert extract_article_type(html) == "Original Investigation"


def test_original_investigation_match_is_case_insensitive() -> None:
    html = '<div class="article-header__type">ORIGINAL INVESTIGATION | Cardiology</div>'
    assert extract_article_type(html) == "Original Investigation"


def test_first_candidate_in_probe_order_wins() -> None:
    html = (
        '<head><meta name="citation_article_type" content="Research Letter"></head>'
        '<body><div class="article-header__kicker">Editorial</div></body>'
    )
    assert extract_article_type(html) == "Editorial"


@pytest.mark.parametrize("html", ["", BLANK_HTML])
def test_extract_returns_empty_when_nothing_matches(html: str) -> None:
    assert extract_article_type(html) == ""


def test_sibling_link_toggles_both_ways() -> None:
    config = PipelineConfig()
    assert sibling_link(FULL_URL, config) == ABSTRACT_URL
    assert sibling_link(ABSTRACT_URL, config) == FULL_URL


def test_sibling_link_unchanged_for_other_urls() -> None:
    url = "https://doi.org/10.1001/jama.2025.1"
    assert sibling_link(url, PipelineConfig()) == url


def test_resolve_uses_first_page_when_typed() -> None:
    html = '<meta name="citation_article_type" content="Original Investigation">'

    with patch("article_type.requests.get", return_value=_page(html, FULL_URL)) as mock_get:
        result = resolve_article_type("https://doi.org/10.1001/jama.2025.1", PipelineConfig())

    assert result == TypeResolution(final_link=FULL_URL, type_label="Original Investigation")
    assert mock_get.call_count == 1
    headers = mock_get.call_args.kwargs["headers"]
    assert headers["User-Agent"].startswith("Mozilla/5.0")


def test_resolve_falls_back_to_sibling_page() -> None:
    sibling_html = '<div class="article-header__kicker">Research Letter</div>'
    pages = [_page(BLANK_HTML, FULL_URL), _page(sibling_html, ABSTRACT_URL)]

    with patch("article_type.requests.get", side_effect=pages) as mock_get:
        result = resolve_article_type(FULL_URL, PipelineConfig())

    assert result == TypeResolution(final_link=ABSTRACT_URL, type_label="Research Letter")
    assert mock_get.call_args_list[1].args[0] == ABSTRACT_URL


def test_resolve_keeps_first_url_when_sibling_also_blank() -> None:
    pages = [_page(BLANK_HTML, FULL_URL), _page(BLANK_HTML, ABSTRACT_URL)]

    with patch("article_type.requests.get", side_effect=pages) as mock_get:
        result = resolve_article_type(FULL_URL, PipelineConfig())

    assert result == TypeResolution(final_link=FULL_URL, type_label="")
    assert mock_get.call_count == 2


def test_resolve_skips_fallback_without_known_segment() -> None:
    other = "https://example.org/article/1"

    with patch("article_type.requests.get", return_value=_page(BLANK_HTML, other)) as mock_get:
        result = resolve_article_type(other, PipelineConfig())

    assert result == TypeResolution(final_link=other, type_label="")
    assert mock_get.call_count == 1


def test_resolve_propagates_fetch_errors() -> None:
    with patch("article_type.requests.get", side_effect=requests.Timeout("slow")):
        with pytest.raises(requests.Timeout):
            resolve_article_type(FULL_URL, PipelineConfig())
