"""Markdown rendering of structured abstract headings."""

from __future__ import annotations

import re

# Longest headings first so compound forms win over their parts.
_HEADINGS: tuple[str, ...] = (
    "Design, Setting, and Participants",
    "Main Outcomes and Measures",
    "Conclusions and Relevance",
    "Interventions",
    "Participants",
    "Conclusions",
    "Conclusion",
    "Importance",
    "Objectives",
    "Objective",
    "Exposures",
    "Exposure",
    "Relevance",
    "Outcomes",
    "Measures",
    "Results",
    "Setting",
    "Meaning",
    "Design",
)

_CANONICAL = {h.lower(): h for h in _HEADINGS}

# No match right after "*" or a word char, and none when the colon is already
# followed by "*": both keep already-bolded headings untouched.
_HEADING_RE = re.compile(
    r"(?<![\w*])(" + "|".join(re.escape(h).replace(r"\ ", r"\s+") for h in _HEADINGS) + r")\s*:(?!\*)\s*",
    re.IGNORECASE,
)


def abstract_to_markdown(text: str) -> str:
    """Bold recognised abstract headings: ``Results: x`` -> ``**Results:** x``."""
    if not text:
        return ""
    return _HEADING_RE.sub(_bold_heading, text).strip()


def _bold_heading(match: re.Match[str]) -> str:
    key = " ".join(match.group(1).lower().split())
    return f"**{_CANONICAL.get(key, match.group(1))}:** "
