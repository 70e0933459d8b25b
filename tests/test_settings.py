from pathlib import Path
from unittest.mock import patch

import pytest

from settings import JAMA_ISSNS, PipelineConfig


def test_defaults_without_environment() -> None:
    with patch.dict("os.environ", {}, clear=True):
        config = PipelineConfig.from_env()

    assert config.issns == JAMA_ISSNS
    assert config.max_pages == 10
    assert config.page_size == 200
    assert config.pubmed_delay_seconds == 0.6
    assert config.output_dir == Path("public")


def test_environment_overrides() -> None:
    env = {
        "CROSSREF_MAX_PAGES": "3",
        "JAMA_ISSNS": "2574-3805, 2168-6106",
        "PUBMED_DELAY_SECONDS": "1.5",
        "OUTPUT_DIR": "/tmp/jama",
    }
    with patch.dict("os.environ", env, clear=True):
        config = PipelineConfig.from_env()

    assert config.max_pages == 3
    assert config.issns == ("2574-3805", "2168-6106")
    assert config.pubmed_delay_seconds == 1.5
    assert config.output_dir == Path("/tmp/jama")


@pytest.mark.parametrize("env", [
    {"CROSSREF_MAX_PAGES": "0"},
    {"CROSSREF_MAX_PAGES": "ten"},
    {"PUBMED_DELAY_SECONDS": "-1"},
])
def test_invalid_values_raise(env: dict[str, str]) -> None:
    with patch.dict("os.environ", env, clear=True):
        with pytest.raises(ValueError):
            PipelineConfig.from_env()
