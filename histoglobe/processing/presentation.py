"""Display formatting for classified events: dated titles and trimmed descriptions."""

import re
from typing import Optional

from histoglobe.processing.taxonomy import ALL_CATEGORY_KEYWORDS, BCE_SUFFIX, has_action_verb
from histoglobe.processing.temporal import format_century_label

MAX_DESCRIPTION = 500

_SENTENCE_SPLIT_RE = re.compile(r"(?<=[.!?])\s+")
_HAS_YEAR_RE = re.compile(r"\b\d{3,4}\b", re.ASCII)
_HAS_CENTURY_RE = re.compile(r"siècle", re.IGNORECASE)


def format_title(raw_title: str, year: Optional[int], extract: str) -> str:
    """Prefix the title with its year, or its century when no year is known."""
    if year is not None and year > 0:
        return f"({year}) {raw_title}"
    if year is not None and year < 0:
        return f"({abs(year)} {BCE_SUFFIX}) {raw_title}"
    label = format_century_label(f"{raw_title} {extract}")
    if label:
        return f"({label}) {raw_title}"
    return raw_title


def _from(sentences: list[str], idx: int) -> str:
    return " ".join(sentences[idx:])[:MAX_DESCRIPTION]


def trim_extract(extract: str, year: Optional[int]) -> str:
    """Start the description at the first sentence that carries the event.

    Preference order: a sentence with both a date and a keyword, then the
    sentence mentioning the year, then the first keyword sentence. Falls back
    to the head of the extract. Always capped at 500 characters.
    """
    sentences = _SENTENCE_SPLIT_RE.split(extract)

    for i, sentence in enumerate(sentences):
        lower = sentence.lower()
        has_date = bool(_HAS_YEAR_RE.search(sentence) or _HAS_CENTURY_RE.search(sentence))
        has_kw = any(k in lower for k in ALL_CATEGORY_KEYWORDS) or has_action_verb(lower)
        if has_date and has_kw:
            return _from(sentences, i)

    if year and year > 0:
        ys = str(year)
        for i, sentence in enumerate(sentences):
            if ys in sentence:
                return _from(sentences, i)

    for kw in ALL_CATEGORY_KEYWORDS:
        for i, sentence in enumerate(sentences):
            if kw in sentence.lower():
                return _from(sentences, i)

    return extract[:MAX_DESCRIPTION]
