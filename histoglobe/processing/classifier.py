"""Rule-based classification and significance scoring of Wikipedia articles.

compute_score runs an ordered list of rules over a shared context. Each rule
either returns None (continue) or a ScoreResult that ends the pipeline, so the
first decisive rule wins.
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Callable, Optional

from histoglobe.models import Category, ScoreResult
from histoglobe.processing import taxonomy as tx
from histoglobe.processing.temporal import extract_year

MEMORIAL_BASE = 100
MEMORIAL_MULTIPLIER = 10
MEMORIAL_THRESHOLD = MEMORIAL_BASE * MEMORIAL_MULTIPLIER
IMPACT_BONUS = 15
TITLE_BONUS = 500
ACTION_BONUS = 10
SPORT_PENALTY = 50
GEO_PENALTY = 10
CHURCH_LIMIT = 3
SPORT_MIN_LANGS = 20
PREHISTORY_MIN_LANGS = 30
PREHISTORY_DIVISOR = 5
ORIGINS_MIN_LANGS = 15
NOTORIETY_FACTOR = 0.3


def js_round(value: float) -> int:
    """Round half up, so 2.5 -> 3 and -2.5 -> -2."""
    return int(math.floor(value + 0.5))


def classify(full: str) -> tuple[Category, int]:
    """Pick the category with the highest weighted keyword score.

    `full` must already be lowercased. Returns ("civilization", 0) when no
    keyword matches at all.
    """
    scores: list[tuple[Category, int]] = [
        ("shock",
         tx.count_hits(full, tx.SHOCK_KEYWORDS) * tx.SHOCK_KEYWORD_WEIGHT
         + tx.count_hits(full, tx.SHOCK_VERBS) * tx.SHOCK_VERB_WEIGHT),
        ("civilization", tx.count_hits(full, tx.CIVILIZATION_KEYWORDS) * tx.CIVILIZATION_WEIGHT),
        ("struggle", tx.count_hits(full, tx.STRUGGLE_KEYWORDS) * tx.STRUGGLE_WEIGHT),
        ("origins", tx.count_hits(full, tx.ORIGINS_KEYWORDS) * tx.ORIGINS_WEIGHT),
    ]
    # sorted() is stable: ties keep the order above
    best_cat, best_score = sorted(scores, key=lambda s: s[1], reverse=True)[0]
    if best_score == 0:
        return "civilization", 0
    return best_cat, best_score


@dataclass
class _Context:
    title: str
    extract: str
    langs: int
    full: str = ""
    has_action: bool = False
    is_sport: bool = False
    category: Category = "civilization"
    category_score: int = 0
    score: int = 0
    impact_hits: int = 0
    title_bonus: bool = False
    dampened: bool = False

    def __post_init__(self):
        self.full = f"{self.title} {self.extract}".lower()
        self.has_action = tx.has_action_verb(self.full)
        self.impact_hits = tx.count_hits(self.full, tx.IMPACT_KEYWORDS)

    @property
    def has_keyword(self) -> bool:
        return self.category_score > 0


Rule = Callable[[_Context], Optional[ScoreResult]]


def _memorial_boost(ctx: _Context) -> Optional[ScoreResult]:
    if not tx.has_any(ctx.full, tx.MEMORIAL_KEYWORDS):
        return None
    impact = ctx.impact_hits * IMPACT_BONUS
    return ScoreResult(
        score=(MEMORIAL_BASE + impact) * MEMORIAL_MULTIPLIER,
        rejected=False,
        reason=f"memorial boost x{MEMORIAL_MULTIPLIER} (impact: {impact})",
        category="shock",
    )


def _religious_building_noise(ctx: _Context) -> Optional[ScoreResult]:
    church_count = tx.count_occurrences(ctx.full, tx.CHURCH_WORDS)
    has_conflict = tx.has_any(ctx.full, tx.CONFLICT_KEYWORDS)
    if church_count > CHURCH_LIMIT and not ctx.has_action and not has_conflict:
        return ScoreResult(
            score=0, rejected=True,
            reason=f"religious building: {church_count} mentions, no action",
        )
    return None


def _sports_blacklist(ctx: _Context) -> Optional[ScoreResult]:
    if not tx.has_any(ctx.full, tx.SPORT_KEYWORDS):
        return None
    if tx.has_any(ctx.full, tx.SPORT_EXCEPTIONS):
        return None
    if ctx.langs < SPORT_MIN_LANGS:
        return ScoreResult(
            score=-100, rejected=True,
            reason=f"sport ({ctx.langs} languages < {SPORT_MIN_LANGS}, no memorial exception)",
        )
    # notable venue: kept, penalised during base scoring
    ctx.is_sport = True
    return None


def _classification(ctx: _Context) -> Optional[ScoreResult]:
    ctx.category, ctx.category_score = classify(ctx.full)
    return None


def _geography_only(ctx: _Context) -> Optional[ScoreResult]:
    if ctx.has_keyword:
        return None
    for kw in tx.GEO_KEYWORDS:
        if kw in ctx.full:
            return ScoreResult(score=-15, rejected=True, reason=f'geography stub: "{kw}"', category=ctx.category)
    return None


def _base_score(ctx: _Context) -> Optional[ScoreResult]:
    score = 10 + ctx.category_score

    title_lower = ctx.title.lower()
    if tx.has_any(title_lower, tx.TITLE_KEYWORDS):
        ctx.title_bonus = True
        score += TITLE_BONUS

    if ctx.is_sport:
        score -= SPORT_PENALTY

    if tx.has_any(ctx.full, tx.GEO_KEYWORDS):
        score -= GEO_PENALTY

    score += ctx.impact_hits * IMPACT_BONUS

    if ctx.has_action:
        score += ACTION_BONUS

    if len(ctx.extract) > 200:
        score += 5
    if len(ctx.extract) > 500:
        score += 5

    ctx.score = score
    return None


def _undated_without_keyword(ctx: _Context) -> Optional[ScoreResult]:
    if not extract_year(ctx.extract) and not ctx.has_keyword:
        return ScoreResult(score=0, rejected=True, reason="no date, no keyword", category=ctx.category)
    return None


def _minor_prehistory(ctx: _Context) -> Optional[ScoreResult]:
    if ctx.category == "origins" and ctx.langs < PREHISTORY_MIN_LANGS:
        ctx.score = js_round(ctx.score / PREHISTORY_DIVISOR)
        ctx.dampened = True
    return None


RULES: list[Rule] = [
    _memorial_boost,
    _religious_building_noise,
    _sports_blacklist,
    _classification,
    _geography_only,
    _base_score,
    _undated_without_keyword,
    _minor_prehistory,
]


def compute_score(title: str, extract: str, langs: int) -> ScoreResult:
    """Score one article from its title, intro extract and language-edition count."""
    ctx = _Context(title=title, extract=extract or "", langs=langs)
    for rule in RULES:
        result = rule(ctx)
        if result is not None:
            return result

    parts = [f"catScore:{ctx.category_score}", f"impact:{ctx.impact_hits * IMPACT_BONUS}"]
    if ctx.title_bonus:
        parts.append(f"title+{TITLE_BONUS}")
    if ctx.dampened:
        parts.append(f"prehistory/{PREHISTORY_DIVISOR}")
    return ScoreResult(
        score=ctx.score, rejected=False,
        reason=f"{ctx.category} ({' '.join(parts)})",
        category=ctx.category,
    )


def is_memorial_score(score: int) -> bool:
    return score >= MEMORIAL_THRESHOLD


def notoriety_multiplier(langs: int) -> float:
    return 1 + math.log2(max(1, langs)) * NOTORIETY_FACTOR


def apply_notoriety(base_score: int, langs: int) -> int:
    """Scale a base score by how many language editions the article has.

    Memorial-boosted scores are returned unchanged.
    """
    if is_memorial_score(base_score):
        return base_score
    return js_round(base_score * notoriety_multiplier(langs))


def is_minor_origins(category: Category, langs: int, incontournable: bool) -> bool:
    """Obscure prehistory articles are dropped unless found by keyword search."""
    return category == "origins" and langs < ORIGINS_MIN_LANGS and not incontournable
