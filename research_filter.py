"""Primary-research classifier over PubMed publication types and abstract text."""

from __future__ import annotations

import re
from collections.abc import Iterable
from dataclasses import dataclass

from models import Signal

# Publication types that mark a record as not primary research, whatever
# the abstract says.
_DENY_TAGS: frozenset[str] = frozenset({
    "review",
    "systematic review",
    "meta-analysis",
    "editorial",
    "comment",
    "letter",
    "news",
    "biography",
    "practice guideline",
    "guideline",
    "retracted publication",
    "expression of concern",
    "case reports",
})

_ALLOW_TAGS: frozenset[str] = frozenset({
    "clinical trial",
    "randomized controlled trial",
    "controlled clinical trial",
    "pragmatic clinical trial",
    "multicenter study",
    "observational study",
    "comparative study",
    "evaluation study",
    "validation study",
    "clinical study",
    "cohort studies",
    "case-control studies",
    "cross-sectional studies",
    "prospective studies",
    "retrospective studies",
})

# Catches phase-suffixed and other variants, e.g. "Clinical Trial, Phase III".
_ALLOW_TAG_PATTERNS: tuple[re.Pattern[str], ...] = tuple(
    re.compile(p, re.IGNORECASE)
    for p in (
        r"clinical trial",
        r"randomized controlled trial",
        r"observational study",
        r"(cohort|case-control|cross-sectional|prospective|retrospective) studies?",
        r"comparative study",
        r"evaluation study",
        r"validation study",
        r"multicenter study",
        r"clinical study",
    )
)

_TRIAL_PATTERNS: tuple[re.Pattern[str], ...] = tuple(
    re.compile(p, re.IGNORECASE)
    for p in (
        r"randomi[sz]ed (double|single)?-?blind(ed)?",
        r"phase\s*(?:[1-4]|iv|i{1,3})\b",
        r"clinical (trial|study)",
        r"\bplacebo-?controlled\b",
        r"\bdouble-?blind(ed)?\b",
        r"\btrial\b",
    )
)

_OBSERVATIONAL_PATTERNS: tuple[re.Pattern[str], ...] = tuple(
    re.compile(p, re.IGNORECASE)
    for p in (
        r"\bcohort\b",
        r"case-?control",
        r"cross-?sectional",
        r"\bprospective\b",
        r"\bretrospective\b",
        r"\bobservational study\b",
        r"\bmulticenter\b",
    )
)


@dataclass(frozen=True, slots=True)
class ResearchVocabulary:
    """Tag lists and regex tables used by ResearchClassifier."""

    deny_tags: frozenset[str] = _DENY_TAGS
    allow_tags: frozenset[str] = _ALLOW_TAGS
    allow_tag_patterns: tuple[re.Pattern[str], ...] = _ALLOW_TAG_PATTERNS
    trial_patterns: tuple[re.Pattern[str], ...] = _TRIAL_PATTERNS
    observational_patterns: tuple[re.Pattern[str], ...] = _OBSERVATIONAL_PATTERNS


DEFAULT_VOCABULARY = ResearchVocabulary()


class ResearchClassifier:
    """Fuse tag and abstract signals into one is-research verdict.

    Fusion order: any FALSE wins, then any TRUE, and two UNKNOWNs resolve to
    False so ambiguous records stay out of the research-only output.

    The abstract signal never returns FALSE; only publication types can veto.
    """

    def __init__(self, vocabulary: ResearchVocabulary = DEFAULT_VOCABULARY) -> None:
        self.vocabulary = vocabulary

    def by_tags(self, tags: Iterable[str]) -> Signal:
        lowered = [t.strip().lower() for t in tags if isinstance(t, str)]
        vocab = self.vocabulary

        if any(t in vocab.deny_tags for t in lowered):
            return Signal.FALSE
        if any(t in vocab.allow_tags for t in lowered):
            return Signal.TRUE
        if any(rx.search(t) for t in lowered for rx in vocab.allow_tag_patterns):
            return Signal.TRUE
        return Signal.UNKNOWN

    def by_abstract(self, text: str) -> Signal:
        lowered = (text or "").lower()
        if not lowered.strip():
            return Signal.UNKNOWN

        vocab = self.vocabulary
        if any(rx.search(lowered) for rx in vocab.trial_patterns):
            return Signal.TRUE
        if any(rx.search(lowered) for rx in vocab.observational_patterns):
            return Signal.TRUE
        return Signal.UNKNOWN

    def classify(self, tags: Iterable[str], abstract_text: str) -> bool:
        signals = (self.by_tags(tags), self.by_abstract(abstract_text))
        if Signal.FALSE in signals:
            return False
        if Signal.TRUE in signals:
            return True
        return False


_DEFAULT_CLASSIFIER = ResearchClassifier()


def is_research(tags: Iterable[str], abstract_text: str) -> bool:
    """Classify with the default vocabulary."""
    return _DEFAULT_CLASSIFIER.classify(tags, abstract_text)
