"""Core data models for keydojo."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Optional

SAVE_VERSION = 2
LEGACY_SAVE_VERSION = 1


class Grade(Enum):
    """Letter grade for a completed challenge, A best."""

    A = "A"
    B = "B"
    C = "C"
    D = "D"
    E = "E"
    F = "F"

    @property
    def order(self) -> int:
        """Numeric rank for comparison (0 is best)."""
        return list(Grade).index(self)

    def __lt__(self, other: Grade) -> bool:
        if not isinstance(other, Grade):
            return NotImplemented
        return self.order < other.order

    def __le__(self, other: Grade) -> bool:
        if not isinstance(other, Grade):
            return NotImplemented
        return self.order <= other.order

    def __gt__(self, other: Grade) -> bool:
        if not isinstance(other, Grade):
            return NotImplemented
        return self.order > other.order

    def __ge__(self, other: Grade) -> bool:
        if not isinstance(other, Grade):
            return NotImplemented
        return self.order >= other.order

    @property
    def is_passing(self) -> bool:
        """Any grade but F counts as passing."""
        return self is not Grade.F

    @classmethod
    def from_string(cls, value: str) -> Grade:
        """Create Grade from string value."""
        try:
            return cls(value.upper())
        except ValueError:
            raise ValueError(f"Invalid grade: {value}")


class LegacyOutcome(Enum):
    """Qualitative outcomes stored by version 1 save files."""

    PERFECT = "Perfect"
    GOLD = "Gold"
    SILVER = "Silver"
    BRONZE = "Bronze"
    NO_MATCH = "NoMatch"

    @property
    def grade(self) -> Grade:
        """The grade this legacy outcome migrates to."""
        return LEGACY_GRADE_MAP[self]

    @classmethod
    def from_value(cls, value: Optional[str]) -> LegacyOutcome:
        """Parse a stored legacy value; null and "None" mean no match."""
        if value is None or value in ("None", ""):
            return cls.NO_MATCH
        for outcome in cls:
            if outcome.value.lower() == str(value).lower():
                return outcome
        raise ValueError(f"Unknown legacy outcome: {value}")


LEGACY_GRADE_MAP: dict[LegacyOutcome, Grade] = {
    LegacyOutcome.PERFECT: Grade.A,
    LegacyOutcome.GOLD: Grade.B,
    LegacyOutcome.SILVER: Grade.C,
    LegacyOutcome.BRONZE: Grade.D,
    LegacyOutcome.NO_MATCH: Grade.F,
}


class Category(Enum):
    """Topic groupings used for unlocking."""

    BEGINNER = "beginner"
    INTERMEDIATE = "intermediate"
    ADVANCED = "advanced"
    LEGENDARY = "legendary"
    FREESTYLE = "freestyle"

    @classmethod
    def for_topic(cls, topic_id: int) -> Category:
        """Category a topic id belongs to."""
        if topic_id in (1, 2):
            return cls.BEGINNER
        if topic_id in (3, 4):
            return cls.INTERMEDIATE
        if 5 <= topic_id <= 7:
            return cls.ADVANCED
        if topic_id >= 100:
            return cls.FREESTYLE
        return cls.LEGENDARY

    @property
    def previous(self) -> Optional[Category]:
        """Category that must be cleared before this one unlocks."""
        chain = {
            Category.INTERMEDIATE: Category.BEGINNER,
            Category.ADVANCED: Category.INTERMEDIATE,
            Category.LEGENDARY: Category.ADVANCED,
        }
        return chain.get(self)

    @property
    def display(self) -> str:
        return self.value.upper()


@dataclass(frozen=True)
class Thresholds:
    """Keystroke ceilings for grades A through E; anything above E is F."""

    a: int
    b: int
    c: int
    d: int
    e: int

    @classmethod
    def from_par(cls, par: int) -> Thresholds:
        """Derive the default bands from a par keystroke count."""
        return cls(
            a=par,
            b=par * 14 // 10,
            c=par * 18 // 10,
            d=par * 24 // 10,
            e=par * 28 // 10,
        )

    @classmethod
    def from_sequence(cls, values: list[int]) -> Thresholds:
        if len(values) != 5:
            raise ValueError(f"Expected 5 thresholds (A-E), got {len(values)}")
        return cls(*(int(v) for v in values))

    def as_tuple(self) -> tuple[int, int, int, int, int]:
        return (self.a, self.b, self.c, self.d, self.e)

    def as_dict(self) -> dict[str, int]:
        return dict(zip(("A", "B", "C", "D", "E"), self.as_tuple()))

    @property
    def is_ordered(self) -> bool:
        """True when A <= B <= C <= D <= E."""
        values = self.as_tuple()
        return all(lo <= hi for lo, hi in zip(values, values[1:]))

    def ceiling(self, grade: Grade) -> Optional[int]:
        """Highest keystroke count that still earns `grade` (None for F)."""
        return self.as_dict().get(grade.value)


@dataclass
class Challenge:
    """A single editing challenge."""

    id: str
    topic_id: int
    title: str
    hint: str
    start: str
    target: str
    par: int
    thresholds: Thresholds
    fingerprint: str
    number: int = 0  # 1-based position across the whole catalog
    detailed_hint: str = ""
    difficulty: int = 1
    freestyle: bool = False
    perfect_moves: Optional[list[str]] = None
    focused_actions: Optional[list[str]] = None

    @property
    def category(self) -> Category:
        return Category.for_topic(self.topic_id)

    @property
    def keystroke_limit(self) -> Optional[int]:
        """Keystroke count at which the runtime ends a graded session."""
        if self.freestyle:
            return None
        return self.thresholds.e


@dataclass
class Topic:
    """A group of challenges sharing one skill focus."""

    id: int
    dir_name: str
    name: str
    description: str
    challenges: list[Challenge] = field(default_factory=list)

    @property
    def category(self) -> Category:
        return Category.for_topic(self.id)

    @property
    def is_freestyle(self) -> bool:
        return self.category is Category.FREESTYLE


@dataclass
class ScoreRecord:
    """Best known result for one challenge."""

    keystrokes: int
    time_secs: int
    grade: Optional[Grade]
    fingerprint: Optional[str]

    def is_outdated(self, current_fingerprint: str) -> bool:
        """True when the challenge content changed since this score was set."""
        return self.fingerprint != current_fingerprint

    def to_dict(self) -> dict:
        return {
            "grade": self.grade.value if self.grade else None,
            "keystrokes": self.keystrokes,
            "time_secs": self.time_secs,
            "fingerprint": self.fingerprint,
        }


@dataclass
class AttemptRecord:
    """One completed attempt kept in a challenge's history."""

    grade: Optional[Grade]
    keystrokes: int
    time_secs: int
    keys: str = ""

    def to_dict(self) -> dict:
        return {
            "grade": self.grade.value if self.grade else None,
            "keystrokes": self.keystrokes,
            "time_secs": self.time_secs,
            "keys": self.keys,
        }


@dataclass
class Stats:
    total_keystrokes: int = 0
    challenges_attempted: int = 0

    def to_dict(self) -> dict:
        return {
            "total_keystrokes": self.total_keystrokes,
            "challenges_attempted": self.challenges_attempted,
        }


@dataclass
class SaveDocument:
    """Versioned container for all persisted progress."""

    version: int = SAVE_VERSION
    challenges: dict[str, ScoreRecord] = field(default_factory=dict)
    stats: Stats = field(default_factory=Stats)
    history: dict[str, list[AttemptRecord]] = field(default_factory=dict)

    def best(self, challenge_id: str) -> Optional[ScoreRecord]:
        return self.challenges.get(challenge_id)

    def best_grade(self, challenge_id: str) -> Optional[Grade]:
        record = self.challenges.get(challenge_id)
        return record.grade if record else None

    def best_keystrokes(self, challenge_id: str) -> Optional[int]:
        record = self.challenges.get(challenge_id)
        return record.keystrokes if record else None

    def to_dict(self) -> dict:
        return {
            "version": self.version,
            "challenges": {cid: rec.to_dict() for cid, rec in sorted(self.challenges.items())},
            "stats": self.stats.to_dict(),
            "history": {
                cid: [attempt.to_dict() for attempt in attempts]
                for cid, attempts in sorted(self.history.items())
            },
        }
