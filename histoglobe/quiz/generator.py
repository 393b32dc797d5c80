"""Build "guess the event" quiz questions from classified events.

The description is masked so the answer cannot be read off it: first every
occurrence of the full title, then every significant word of the title.
Decoy answers come from the same category first, then from other categories,
then from a fixed list of well-known events.
"""

from __future__ import annotations

import random
import re
from typing import Optional

from histoglobe.models import ClassifiedEvent, Difficulty, QuizHints, QuizQuestion
from histoglobe.processing.taxonomy import VERB_INFINITIVES
from histoglobe.processing.temporal import strip_date_prefix

FULL_MASK = "██████"
WORD_MASK = "████"
DECOY_COUNT = 3
MAX_ACTIONS = 3
MIN_WORD_LENGTH = 4

_STOPWORDS = {
    "de", "du", "des", "le", "la", "les", "un", "une",
    "au", "aux", "en", "et", "ou", "par", "pour", "sur",
    "dans", "avec", "sans", "sous", "entre", "vers",
    "qui", "que", "dont", "son", "ses", "leur", "ce",
    "cette", "ces", "est", "été", "sont", "fut", "ont",
}

GENERIC_DECOYS = [
    "Siège de Constantinople",
    "Révolte des Canuts",
    "Traité de Westphalie",
    "Bataille de Verdun",
    "Massacre de Wounded Knee",
    "Chute de l'Empire romain",
    "Croisade des Albigeois",
    "Déclaration de Balfour",
]

_WORD_SPLIT_RE = re.compile(r"[\s'’`\-–—/,.:;]+")


def clean_title(title: str) -> str:
    """Title without the "(1942) " / "(XVIe) " display prefix."""
    return strip_date_prefix(title)


def extract_significant_words(title: str) -> list[str]:
    """Words of 4+ letters that are not stop words, punctuation removed."""
    words = []
    for raw in _WORD_SPLIT_RE.split(strip_date_prefix(title)):
        word = "".join(ch for ch in raw if ch.isalpha())
        if len(word) >= MIN_WORD_LENGTH and word.lower() not in _STOPWORDS and word not in words:
            words.append(word)
    return words


def mask_description(description: str, title: str) -> str:
    title = clean_title(title)
    masked = description

    if title:
        masked = re.sub(re.escape(title), FULL_MASK, masked, flags=re.IGNORECASE)

    for word in extract_significant_words(title):
        masked = re.sub(rf"\b{re.escape(word)}\b", WORD_MASK, masked, flags=re.IGNORECASE)

    return masked


def extract_action_verbs(description: str, max_count: int = MAX_ACTIONS) -> list[str]:
    """Infinitives of action verbs found in the text, in lexicon order."""
    lower = description.lower()
    found: list[str] = []
    for stem, infinitive in VERB_INFINITIVES.items():
        if stem in lower and infinitive not in found:
            found.append(infinitive)
            if len(found) >= max_count:
                break
    return found


def _shuffled(items: list, rng) -> list:
    copy = list(items)
    rng.shuffle(copy)
    return copy


def generate_decoys(
    correct: ClassifiedEvent,
    pool: list[ClassifiedEvent],
    count: int = DECOY_COUNT,
    rng: Optional[random.Random] = None,
) -> list[str]:
    """`count` wrong answers, never equal (case-insensitively) to the correct one."""
    rng = rng or random
    correct_key = clean_title(correct.title).lower()

    candidates = [
        e for e in pool
        if e.id != correct.id and clean_title(e.title).lower() != correct_key
    ]
    same = [e for e in candidates if e.category == correct.category]
    other = [e for e in candidates if e.category != correct.category]

    decoys: list[str] = []
    used = {correct_key}

    for e in _shuffled(same, rng) + _shuffled(other, rng):
        if len(decoys) >= count:
            break
        title = clean_title(e.title)
        if title and title.lower() not in used:
            decoys.append(title)
            used.add(title.lower())

    # Pool exhausted: pad with generic titles
    for fallback in GENERIC_DECOYS:
        if len(decoys) >= count:
            break
        if fallback.lower() not in used:
            decoys.append(fallback)
            used.add(fallback.lower())

    return decoys[:count]


def prepare_quiz_question(
    event: ClassifiedEvent,
    pool: list[ClassifiedEvent],
    difficulty: Difficulty = "easy",
    rng: Optional[random.Random] = None,
) -> QuizQuestion:
    """Turn an event into a question with a masked description, hints and 4 options."""
    if difficulty not in ("easy", "hard"):
        raise ValueError(f"difficulty must be 'easy' or 'hard', got {difficulty!r}")
    rng = rng or random
    correct_title = clean_title(event.title)
    decoys = generate_decoys(event, pool, rng=rng)

    return QuizQuestion(
        event_id=event.id,
        correct_title=correct_title,
        masked_description=mask_description(event.description, event.title),
        hints=QuizHints(
            category=event.category,
            year=event.year,
            actions=extract_action_verbs(event.description),
        ),
        options=_shuffled([correct_title, *decoys], rng),
        difficulty=difficulty,
    )
