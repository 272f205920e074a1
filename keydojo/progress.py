"""Progress evaluator - outdated scores and category unlocking."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Iterable, Optional, Union

from keydojo.models import Category, Challenge, Grade, SaveDocument, Topic

if TYPE_CHECKING:
    from keydojo.config import KeyDojoConfig


@dataclass
class UnlockPolicy:
    """
    Rules for opening a category.

    A category opens once ``unlock_fraction`` of the challenges in the
    previous category hold a passing (non-F) score. ``count_outdated``
    decides whether scores set against older challenge content still count.
    """

    unlock_all: bool = False
    unlock_fraction: float = 1.0
    count_outdated: bool = True

    @classmethod
    def from_config(cls, config: KeyDojoConfig) -> UnlockPolicy:
        return cls(
            unlock_all=config.unlock_all,
            unlock_fraction=config.unlock_fraction,
            count_outdated=config.count_outdated,
        )


@dataclass
class TopicProgress:
    """Per-topic numbers shown next to each topic."""

    topic_id: int
    name: str
    category: Category
    total: int
    completed: int = 0
    grade_a: int = 0
    attempts: int = 0
    outdated: int = 0
    unlocked: bool = True

    def to_dict(self) -> dict:
        return {
            "topic_id": self.topic_id,
            "name": self.name,
            "category": self.category.value,
            "total": self.total,
            "completed": self.completed,
            "grade_a": self.grade_a,
            "attempts": self.attempts,
            "outdated": self.outdated,
            "unlocked": self.unlocked,
        }


@dataclass
class ProgressView:
    """Everything a picker needs to decorate the challenge list."""

    topics: list[TopicProgress] = field(default_factory=list)
    unlocked: set[Category] = field(default_factory=set)
    outdated: set[str] = field(default_factory=set)

    def is_outdated(self, challenge_id: str) -> bool:
        return challenge_id in self.outdated

    def is_unlocked(self, target: Union[Category, Topic, Challenge]) -> bool:
        category = target if isinstance(target, Category) else target.category
        return category in self.unlocked

    @property
    def stale_count(self) -> int:
        return len(self.outdated)

    def topic(self, topic_id: int) -> Optional[TopicProgress]:
        for tp in self.topics:
            if tp.topic_id == topic_id:
                return tp
        return None

    @property
    def totals(self) -> dict:
        """Overall completion, excluding freestyle topics."""
        graded = [t for t in self.topics if t.category is not Category.FREESTYLE]
        return {
            "completed": sum(t.completed for t in graded),
            "total": sum(t.total for t in graded),
            "grade_a": sum(t.grade_a for t in graded),
            "attempts": sum(t.attempts for t in self.topics),
            "outdated": self.stale_count,
        }

    def to_dict(self) -> dict:
        return {
            "topics": [t.to_dict() for t in self.topics],
            "unlocked": sorted(c.value for c in self.unlocked),
            "outdated": sorted(self.outdated),
            "totals": self.totals,
        }


def find_outdated(topics: Iterable[Topic], doc: SaveDocument) -> set[str]:
    """IDs whose stored fingerprint no longer matches the current content."""
    outdated = set()
    for topic in topics:
        for challenge in topic.challenges:
            record = doc.best(challenge.id)
            if record is not None and record.is_outdated(challenge.fingerprint):
                outdated.add(challenge.id)
    return outdated


def _counts_toward_unlock(challenge: Challenge, doc: SaveDocument, outdated: set[str], policy: UnlockPolicy) -> bool:
    record = doc.best(challenge.id)
    if record is None or record.grade is None or record.grade is Grade.F:
        return False
    if not policy.count_outdated and challenge.id in outdated:
        return False
    return True


def category_unlocked(
    category: Category,
    topics: list[Topic],
    doc: SaveDocument,
    outdated: set[str],
    policy: UnlockPolicy,
) -> bool:
    """
    Check whether ``category`` is open.

    Beginner and freestyle are always open. Other categories look only at
    the previous category's non-empty topics; if there are none, the
    category is open.
    """
    if policy.unlock_all:
        return True
    previous = category.previous
    if previous is None:
        return True

    challenges = [
        c
        for t in topics
        if t.category is previous
        for c in t.challenges
    ]
    if not challenges:
        return True

    counted = sum(1 for c in challenges if _counts_toward_unlock(c, doc, outdated, policy))
    return counted / len(challenges) + 1e-9 >= policy.unlock_fraction


def evaluate(topics: list[Topic], doc: SaveDocument, policy: Optional[UnlockPolicy] = None) -> ProgressView:
    """
    Compute outdated flags, unlocked categories and per-topic stats.

    Outdated scores are flagged, never removed.
    """
    policy = policy or UnlockPolicy()
    outdated = find_outdated(topics, doc)
    unlocked = {cat for cat in Category if category_unlocked(cat, topics, doc, outdated, policy)}

    view = ProgressView(unlocked=unlocked, outdated=outdated)
    for topic in topics:
        tp = TopicProgress(
            topic_id=topic.id,
            name=topic.name,
            category=topic.category,
            total=len(topic.challenges),
            unlocked=topic.category in unlocked,
        )
        for challenge in topic.challenges:
            record = doc.best(challenge.id)
            if record is not None:
                tp.completed += 1
                if record.grade is Grade.A:
                    tp.grade_a += 1
            if challenge.id in outdated:
                tp.outdated += 1
            tp.attempts += len(doc.history.get(challenge.id, []))
        view.topics.append(tp)
    return view
