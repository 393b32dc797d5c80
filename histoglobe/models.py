from dataclasses import dataclass, field
from typing import Any, Generic, Literal, Optional, TypeVar

Category = Literal["shock", "civilization", "struggle", "origins"]
Difficulty = Literal["easy", "hard"]

T = TypeVar("T")


@dataclass
class CandidateArticle:
    """An article returned by geosearch or keyword search, before scoring."""
    article_id: int
    title: str
    latitude: float
    longitude: float


@dataclass
class ExtractRecord:
    article_id: int
    title: str
    plaintext_intro: str = ""


@dataclass
class NotorietyRecord:
    article_id: int
    language_edition_count: int = 0


@dataclass
class ScoreResult:
    """Outcome of the scoring rules for one article."""
    score: int
    rejected: bool
    reason: str
    category: Category = "civilization"


@dataclass(frozen=True)
class ClassifiedEvent:
    """A scored, classified article ready for display on the globe."""
    id: int
    title: str  # display title, prefixed with "(1942) " or "(XVIe) "
    description: str
    latitude: float
    longitude: float
    year: Optional[int]  # negative = BCE
    category: Category
    score: int
    notoriety_score: int = 0
    is_incontournable: bool = False

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "title": self.title,
            "description": self.description,
            "latitude": self.latitude,
            "longitude": self.longitude,
            "year": self.year,
            "category": self.category,
            "score": self.score,
            "notorietyScore": self.notoriety_score,
            "isIncontournable": self.is_incontournable,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "ClassifiedEvent":
        return cls(
            id=int(data["id"]),
            title=data["title"],
            description=data.get("description", ""),
            latitude=float(data["latitude"]),
            longitude=float(data["longitude"]),
            year=data.get("year"),
            category=data.get("category", "civilization"),
            score=int(data.get("score", 0)),
            notoriety_score=int(data.get("notorietyScore", 0)),
            is_incontournable=bool(data.get("isIncontournable", False)),
        )


@dataclass
class QuizHints:
    category: Category
    year: Optional[int]
    actions: list[str] = field(default_factory=list)


@dataclass
class QuizQuestion:
    """One round of the guessing game. Discarded after the round."""
    event_id: int
    correct_title: str
    masked_description: str
    hints: QuizHints
    options: list[str]
    difficulty: Difficulty = "easy"

    def to_dict(self) -> dict[str, Any]:
        return {
            "eventId": self.event_id,
            "correctTitle": self.correct_title,
            "maskedDescription": self.masked_description,
            "hints": {
                "category": self.hints.category,
                "year": self.hints.year,
                "actions": list(self.hints.actions),
            },
            "options": list(self.options),
            "difficulty": self.difficulty,
        }


@dataclass(frozen=True)
class QuizResult:
    points: int
    hints_used: int
    was_qcm: bool
    correct: bool


@dataclass
class FetchResult(Generic[T]):
    """Result of one upstream call. Failures carry an error and empty data."""
    data: T
    error: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.error is None


@dataclass
class DiscoveryReport:
    """Events from one discovery pass plus counters describing how it went."""
    events: list[ClassifiedEvent] = field(default_factory=list)
    candidates: int = 0
    accepted: int = 0
    rejected: int = 0
    failed_calls: int = 0
    skipped: bool = False  # every grid cell was already visited

    @property
    def degraded(self) -> bool:
        return self.failed_calls > 0
