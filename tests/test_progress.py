"""Tests for outdated detection, category unlocking and per-topic stats."""

from __future__ import annotations

import pytest

from keydojo.config import KeyDojoConfig
from keydojo.models import AttemptRecord, Category, Grade, SaveDocument, ScoreRecord, Topic
from keydojo.progress import UnlockPolicy, evaluate, find_outdated


@pytest.fixture
def topics(make_challenge):
    def topic(topic_id, *ids):
        return Topic(
            id=topic_id,
            dir_name=f"{topic_id:02d}",
            name=f"Topic {topic_id}",
            description="",
            challenges=[make_challenge(id=cid, topic_id=topic_id) for cid in ids],
        )

    return [
        topic(1, "b1", "b2"),
        topic(2),
        topic(3, "i1"),
        topic(5, "a1"),
        topic(100, "f1"),
    ]


def record(doc, challenge, grade, keystrokes=5, fingerprint=None):
    doc.challenges[challenge.id] = ScoreRecord(
        keystrokes=keystrokes,
        time_secs=10,
        grade=grade,
        fingerprint=fingerprint or challenge.fingerprint,
    )


def by_id(topics, cid):
    for t in topics:
        for c in t.challenges:
            if c.id == cid:
                return c
    raise KeyError(cid)


class TestOutdated:
    """Tests for outdated score detection."""

    def test_matching_fingerprint_is_current(self, topics):
        doc = SaveDocument()
        record(doc, by_id(topics, "b1"), Grade.A)
        assert find_outdated(topics, doc) == set()

    def test_changed_content_is_outdated(self, topics):
        doc = SaveDocument()
        record(doc, by_id(topics, "b1"), Grade.A, fingerprint="0000000000000000")
        view = evaluate(topics, doc)
        assert view.is_outdated("b1")
        assert view.stale_count == 1
        # Flagged, not removed
        assert doc.best("b1") is not None

    def test_migrated_record_without_fingerprint_is_outdated(self, topics):
        doc = SaveDocument()
        doc.challenges["b1"] = ScoreRecord(keystrokes=5, time_secs=1, grade=Grade.B, fingerprint=None)
        assert find_outdated(topics, doc) == {"b1"}

    def test_unknown_ids_ignored(self, topics):
        doc = SaveDocument()
        doc.challenges["gone"] = ScoreRecord(keystrokes=5, time_secs=1, grade=Grade.A, fingerprint="x")
        assert find_outdated(topics, doc) == set()


class TestUnlocking:
    """Tests for category unlocking."""

    def test_fresh_save(self, topics):
        view = evaluate(topics, SaveDocument())
        assert view.unlocked == {Category.BEGINNER, Category.FREESTYLE}
        assert not view.is_unlocked(Category.INTERMEDIATE)

    def test_previous_category_cleared(self, topics):
        doc = SaveDocument()
        record(doc, by_id(topics, "b1"), Grade.A)
        record(doc, by_id(topics, "b2"), Grade.E)
        view = evaluate(topics, doc)
        assert view.is_unlocked(Category.INTERMEDIATE)
        assert not view.is_unlocked(Category.ADVANCED)

    def test_failing_grade_does_not_count(self, topics):
        doc = SaveDocument()
        record(doc, by_id(topics, "b1"), Grade.A)
        record(doc, by_id(topics, "b2"), Grade.F)
        assert not evaluate(topics, doc).is_unlocked(Category.INTERMEDIATE)

    def test_freestyle_record_does_not_count(self, topics):
        doc = SaveDocument()
        record(doc, by_id(topics, "b1"), Grade.A)
        record(doc, by_id(topics, "b2"), None)
        assert not evaluate(topics, doc).is_unlocked(Category.INTERMEDIATE)

    def test_unlock_fraction(self, topics):
        doc = SaveDocument()
        record(doc, by_id(topics, "b1"), Grade.C)
        assert evaluate(topics, doc, UnlockPolicy(unlock_fraction=0.5)).is_unlocked(Category.INTERMEDIATE)
        assert not evaluate(topics, doc, UnlockPolicy(unlock_fraction=0.75)).is_unlocked(Category.INTERMEDIATE)

    def test_outdated_counts_by_default(self, topics):
        doc = SaveDocument()
        record(doc, by_id(topics, "b1"), Grade.A, fingerprint="stale")
        record(doc, by_id(topics, "b2"), Grade.A)
        assert evaluate(topics, doc).is_unlocked(Category.INTERMEDIATE)

    def test_outdated_excluded_by_policy(self, topics):
        doc = SaveDocument()
        record(doc, by_id(topics, "b1"), Grade.A, fingerprint="stale")
        record(doc, by_id(topics, "b2"), Grade.A)
        view = evaluate(topics, doc, UnlockPolicy(count_outdated=False))
        assert not view.is_unlocked(Category.INTERMEDIATE)

    def test_unlock_all(self, topics):
        view = evaluate(topics, SaveDocument(), UnlockPolicy(unlock_all=True))
        assert view.unlocked == set(Category)

    def test_empty_previous_category(self, topics):
        """A category whose predecessor has no challenges is open."""
        without_intermediate = [t for t in topics if t.category is not Category.INTERMEDIATE]
        view = evaluate(without_intermediate, SaveDocument())
        assert view.is_unlocked(Category.ADVANCED)

    def test_is_unlocked_accepts_topics_and_challenges(self, topics):
        view = evaluate(topics, SaveDocument())
        assert view.is_unlocked(topics[0])
        assert not view.is_unlocked(by_id(topics, "i1"))

    def test_policy_from_config(self, tmp_path):
        config = KeyDojoConfig(package_root=tmp_path, unlock_fraction=0.5, count_outdated=False)
        policy = UnlockPolicy.from_config(config)
        assert policy == UnlockPolicy(unlock_all=False, unlock_fraction=0.5, count_outdated=False)


class TestTopicStats:
    """Tests for per-topic and overall numbers."""

    def test_topic_stats(self, topics):
        doc = SaveDocument()
        record(doc, by_id(topics, "b1"), Grade.A)
        record(doc, by_id(topics, "b2"), Grade.C, fingerprint="stale")
        doc.history["b1"] = [AttemptRecord(grade=Grade.A, keystrokes=5, time_secs=1)] * 3
        view = evaluate(topics, doc)

        tp = view.topic(1)
        assert tp.total == 2
        assert tp.completed == 2
        assert tp.grade_a == 1
        assert tp.attempts == 3
        assert tp.outdated == 1
        assert tp.unlocked

        assert view.topic(2).total == 0
        assert view.topic(42) is None

    def test_totals_exclude_freestyle(self, topics):
        doc = SaveDocument()
        record(doc, by_id(topics, "b1"), Grade.A)
        record(doc, by_id(topics, "f1"), None)
        totals = evaluate(topics, doc).totals
        assert totals["completed"] == 1
        assert totals["total"] == 4
        assert totals["grade_a"] == 1

    def test_to_dict(self, topics):
        data = evaluate(topics, SaveDocument()).to_dict()
        assert data["unlocked"] == ["beginner", "freestyle"]
        assert len(data["topics"]) == len(topics)
