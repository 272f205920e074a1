"""Challenge loader - loads challenges from YAML files."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Iterator, Optional

import yaml  # type: ignore

from keydojo.curriculum.fingerprint import compute_fingerprint
from keydojo.curriculum.topics import ALL_TOPICS, TopicSpec
from keydojo.exceptions import ChallengeNotFoundError, CurriculumError
from keydojo.models import Challenge, Thresholds, Topic

logger = logging.getLogger(__name__)

REQUIRED_FIELDS = ("id", "title", "hint", "start", "target")


def count_keystrokes(notation: str) -> int:
    """
    Count keystrokes in a vim key notation string.

    Plain characters count as one key, and so does a whole ``<...>`` sequence
    such as ``<Esc>`` or ``<C-r>``. A literal ``<`` has to be written as
    ``<lt>``.
    """
    count = 0
    chars = iter(notation)
    for char in chars:
        if char == "<":
            for inner in chars:
                if inner == ">":
                    break
        count += 1
    return count


def _content(value: object, field_name: str) -> str:
    """Accept either a bare string or a ``{content: ...}`` mapping."""
    if isinstance(value, dict):
        value = value.get("content")
    if not isinstance(value, str):
        raise ValueError(f"'{field_name}' must be a string or a mapping with 'content'")
    return value


class ChallengeLoader:
    """Load challenge definitions from per-topic YAML directories."""

    def __init__(self, challenges_dir: Optional[Path] = None, topics: tuple[TopicSpec, ...] = ALL_TOPICS):
        """
        Initialize the challenge loader.

        Args:
            challenges_dir: Root directory holding one subdirectory per topic.
                If None, uses the challenges bundled with the package.
            topics: Topic table to load.
        """
        if challenges_dir is None:
            challenges_dir = Path(__file__).resolve().parent.parent / "challenges"
        self.challenges_dir = Path(challenges_dir)
        self.topics = topics
        self._curriculum: Optional[list[Topic]] = None
        self.skipped: list[Path] = []

    def _parse_challenge(self, data: dict, topic: TopicSpec, path: Path) -> Challenge:
        """Parse a challenge mapping into a Challenge object."""
        if not isinstance(data, dict):
            raise CurriculumError("Challenge file must contain a mapping", file_path=str(path))

        missing = [name for name in REQUIRED_FIELDS if name not in data]
        if missing:
            raise CurriculumError(
                f"Missing required field(s) in challenge: {', '.join(missing)}",
                file_path=str(path),
            )

        try:
            start = _content(data["start"], "start")
            target = _content(data["target"], "target")

            perfect_moves = data.get("perfect_moves")
            if perfect_moves is not None:
                perfect_moves = [str(m) for m in perfect_moves]
                par = sum(count_keystrokes(m) for m in perfect_moves)
            else:
                par = int(data.get("par_keystrokes", 0))

            freestyle = bool(data.get("freestyle", par == 0 and perfect_moves is None))

            if "thresholds" in data:
                thresholds = Thresholds.from_sequence(list(data["thresholds"]))
            else:
                thresholds = Thresholds.from_par(par)
        except (TypeError, ValueError) as e:
            raise CurriculumError(f"Invalid challenge field: {e}", file_path=str(path), cause=e)

        if not thresholds.is_ordered:
            raise CurriculumError(
                f"Thresholds must be non-decreasing A<=B<=C<=D<=E, got {thresholds.as_tuple()}",
                file_path=str(path),
            )

        return Challenge(
            id=str(data["id"]),
            topic_id=topic.id,
            title=str(data["title"]),
            hint=str(data["hint"]),
            detailed_hint=str(data.get("detailed_hint") or ""),
            start=start,
            target=target,
            par=par,
            thresholds=thresholds,
            fingerprint=compute_fingerprint(start, target, par, thresholds),
            difficulty=int(data.get("difficulty", 1)),
            freestyle=freestyle,
            perfect_moves=perfect_moves,
            focused_actions=data.get("focused_actions"),
        )

    def _load_file(self, path: Path, topic: TopicSpec) -> Challenge:
        try:
            with open(path, "r", encoding="utf-8") as f:
                data = yaml.safe_load(f)
        except yaml.YAMLError as e:
            raise CurriculumError(f"Invalid YAML in challenge file: {e}", file_path=str(path), cause=e)
        except OSError as e:
            raise CurriculumError(f"Cannot read challenge file: {e}", file_path=str(path), cause=e)
        return self._parse_challenge(data, topic, path)

    def load_topic(self, topic: TopicSpec, seen: Optional[set[str]] = None) -> Topic:
        """
        Load every challenge in one topic directory.

        A broken challenge file is logged and skipped; the rest still load.
        So is a challenge whose ID is already in ``seen``. A missing
        directory gives an empty topic.
        """
        seen = set() if seen is None else seen
        result = Topic(id=topic.id, dir_name=topic.dir_name, name=topic.name, description=topic.description)
        topic_dir = self.challenges_dir / topic.dir_name
        if not topic_dir.is_dir():
            return result

        for path in sorted(topic_dir.glob("*.yaml")):
            try:
                challenge = self._load_file(path, topic)
            except CurriculumError as e:
                logger.warning(f"Skipping challenge {path}: {e.message}")
                self.skipped.append(path)
                continue
            if challenge.id in seen:
                logger.warning(f"Skipping challenge {path}: duplicate id '{challenge.id}'")
                self.skipped.append(path)
                continue
            seen.add(challenge.id)
            result.challenges.append(challenge)
        return result

    def load_curriculum(self) -> list[Topic]:
        """
        Load all topics and number the challenges across the whole catalog.

        Returns:
            Topics in table order (cached after the first call).
        """
        if self._curriculum is not None:
            return self._curriculum

        self.skipped = []
        seen: set[str] = set()
        curriculum = [self.load_topic(spec, seen) for spec in sorted(self.topics, key=lambda t: t.id)]
        number = 0
        for topic in curriculum:
            for challenge in topic.challenges:
                number += 1
                challenge.number = number

        logger.info(
            f"Loaded {number} challenges from {self.challenges_dir} "
            f"({len(self.skipped)} skipped)"
        )
        self._curriculum = curriculum
        return curriculum

    def iter_challenges(self) -> Iterator[Challenge]:
        for topic in self.load_curriculum():
            yield from topic.challenges

    def load_challenge(self, challenge_id: str) -> Challenge:
        """
        Load a specific challenge by ID.

        Raises:
            ChallengeNotFoundError: If the challenge doesn't exist.
        """
        for challenge in self.iter_challenges():
            if challenge.id == challenge_id:
                return challenge
        raise ChallengeNotFoundError(challenge_id)

    def get_topic(self, topic_id: int) -> Topic:
        for topic in self.load_curriculum():
            if topic.id == topic_id:
                return topic
        raise ChallengeNotFoundError(f"topic {topic_id}")

    def list_challenges(self, topic_id: Optional[int] = None) -> list[str]:
        """List available challenge IDs, optionally for one topic."""
        if topic_id is not None:
            return [c.id for c in self.get_topic(topic_id).challenges]
        return [c.id for c in self.iter_challenges()]

    def clear_cache(self) -> None:
        """Forget the loaded curriculum so the next call re-reads the files."""
        self._curriculum = None
