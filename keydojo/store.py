"""
Save store - versioned JSON persistence for challenge progress.

Schema (version 2)::

    {
      "version": 2,
      "challenges": {
        "motion_001": {"grade": "B", "keystrokes": 12, "time_secs": 40, "fingerprint": "9f2c..."}
      },
      "stats": {"total_keystrokes": 120, "challenges_attempted": 9},
      "history": {
        "motion_001": [{"grade": "B", "keystrokes": 12, "time_secs": 40, "keys": "jf8cw3000"}]
      }
    }

Version 1 (no top-level ``version`` key, or ``"version": 1``) stored a
``medal`` (Perfect/Gold/Silver/Bronze, or null for no match) instead of a
grade. Later version 1 files store a ``grade`` letter plus per-entry
``version``/``stale`` fields; those fields are ignored and the entry loads
without a fingerprint. Either shape is migrated in memory on load and
written back as version 2 on the next persist.
"""

from __future__ import annotations

import json
import logging
import os
import shutil
import tempfile
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Mapping, Optional, Union

from keydojo.exceptions import CorruptSaveError, IncompatibleSaveVersionError
from keydojo.grading import grade as grade_attempt
from keydojo.models import (
    LEGACY_SAVE_VERSION,
    SAVE_VERSION,
    AttemptRecord,
    Challenge,
    Grade,
    LegacyOutcome,
    SaveDocument,
    ScoreRecord,
    Stats,
)
from keydojo.session.collector import RawResult

logger = logging.getLogger(__name__)

SAVE_FILENAME = "save.json"
APP_DIR = "keydojo"

PathLike = Union[str, Path]


def resolve_save_path(cwd: Optional[Path] = None, env: Optional[Mapping[str, str]] = None) -> Path:
    """
    Locate the save file.

    A ``save.json`` in the working directory wins if it exists; otherwise
    ``$XDG_DATA_HOME/keydojo/save.json`` (``~/.local/share`` when unset).
    """
    env = os.environ if env is None else env
    local = (cwd or Path.cwd()) / SAVE_FILENAME
    if local.exists():
        return local
    if data_home := env.get("XDG_DATA_HOME"):
        data_dir = Path(data_home)
    else:
        data_dir = Path(env.get("HOME") or Path.home()) / ".local" / "share"
    return data_dir / APP_DIR / SAVE_FILENAME


# ─────────────────────────────────────────────────────────────────────────────
# Parsing
# ─────────────────────────────────────────────────────────────────────────────


class _Parser:
    """Strict field readers that turn bad shapes into CorruptSaveError."""

    def __init__(self, path: Path):
        self.path = path

    def fail(self, reason: str, cause: Optional[Exception] = None) -> CorruptSaveError:
        return CorruptSaveError(self.path, reason, cause=cause)

    def mapping(self, value: Any, where: str) -> dict:
        if not isinstance(value, dict):
            raise self.fail(f"{where} must be an object")
        return value

    def count(self, entry: dict, key: str, where: str, default: Optional[int] = None) -> int:
        if key not in entry:
            if default is not None:
                return default
            raise self.fail(f"{where} is missing '{key}'")
        value = entry[key]
        if isinstance(value, bool) or not isinstance(value, int) or value < 0:
            raise self.fail(f"{where}.{key} must be a non-negative integer")
        return value

    def fingerprint(self, entry: dict, where: str) -> Optional[str]:
        value = entry.get("fingerprint")
        if value is not None and not isinstance(value, str):
            raise self.fail(f"{where}.fingerprint must be a string")
        return value

    def grade(self, entry: dict, where: str) -> Optional[Grade]:
        if "grade" not in entry:
            raise self.fail(f"{where} is missing 'grade'")
        value = entry["grade"]
        if value is None:
            return None
        try:
            return Grade.from_string(str(value))
        except ValueError as e:
            raise self.fail(f"{where}.grade is invalid: {value!r}", cause=e)

    def legacy_grade(self, entry: dict, where: str) -> Grade:
        # Later version 1 writers stored the grade itself under "grade"
        if "grade" in entry:
            value = entry["grade"]
            try:
                return Grade.from_string(str(value))
            except ValueError as e:
                raise self.fail(f"{where}.grade is invalid: {value!r}", cause=e)
        if "medal" not in entry:
            raise self.fail(f"{where} is missing 'medal' or 'grade'")
        try:
            return LegacyOutcome.from_value(entry["medal"]).grade
        except ValueError as e:
            raise self.fail(f"{where}.medal is invalid: {entry['medal']!r}", cause=e)

    def stats(self, data: dict) -> Stats:
        raw = self.mapping(data.get("stats", {}), "stats")
        return Stats(
            total_keystrokes=self.count(raw, "total_keystrokes", "stats", default=0),
            challenges_attempted=self.count(raw, "challenges_attempted", "stats", default=0),
        )

    def history(self, data: dict, legacy: bool) -> dict[str, list[AttemptRecord]]:
        raw = self.mapping(data.get("history", {}), "history")
        history: dict[str, list[AttemptRecord]] = {}
        for cid, attempts in raw.items():
            if not isinstance(attempts, list):
                raise self.fail(f"history.{cid} must be a list")
            parsed = []
            for i, attempt in enumerate(attempts):
                where = f"history.{cid}[{i}]"
                attempt = self.mapping(attempt, where)
                keys = attempt.get("keys", "")
                if not isinstance(keys, str):
                    raise self.fail(f"{where}.keys must be a string")
                parsed.append(
                    AttemptRecord(
                        grade=self.legacy_grade(attempt, where) if legacy else self.grade(attempt, where),
                        keystrokes=self.count(attempt, "keystrokes", where),
                        time_secs=self.count(attempt, "time_secs", where, default=0),
                        keys=keys,
                    )
                )
            history[str(cid)] = parsed
        return history


def _parse_document(data: dict, path: Path, legacy: bool) -> SaveDocument:
    parser = _Parser(path)
    challenges = parser.mapping(data.get("challenges", {}), "challenges")
    records: dict[str, ScoreRecord] = {}
    for cid, entry in challenges.items():
        where = f"challenges.{cid}"
        entry = parser.mapping(entry, where)
        records[str(cid)] = ScoreRecord(
            keystrokes=parser.count(entry, "keystrokes", where),
            time_secs=parser.count(entry, "time_secs", where, default=0),
            grade=parser.legacy_grade(entry, where) if legacy else parser.grade(entry, where),
            fingerprint=parser.fingerprint(entry, where),
        )
    return SaveDocument(
        version=SAVE_VERSION,
        challenges=records,
        stats=parser.stats(data),
        history=parser.history(data, legacy=legacy),
    )


def migrate_legacy(data: dict, path: PathLike = "<memory>") -> SaveDocument:
    """
    Convert a version 1 document to the current schema.

    Every medal goes through the fixed ``LEGACY_GRADE_MAP`` table. Keystrokes
    and times carry over unchanged. Entries without a fingerprint keep None,
    so they show as outdated until the challenge is played again.
    """
    return _parse_document(data, Path(path), legacy=True)


def document_from_dict(data: Any, path: PathLike = "<memory>") -> SaveDocument:
    """
    Interpret a decoded save document of any known version.

    Raises:
        CorruptSaveError: If the structure is not a valid save document.
        IncompatibleSaveVersionError: If it was written by a newer version.
    """
    path = Path(path)
    parser = _Parser(path)
    data = parser.mapping(data, "save document")

    version = data.get("version", LEGACY_SAVE_VERSION)
    if isinstance(version, bool) or not isinstance(version, int) or version < LEGACY_SAVE_VERSION:
        raise parser.fail(f"unrecognized version field: {version!r}")
    if version > SAVE_VERSION:
        raise IncompatibleSaveVersionError(path, found=version, supported=SAVE_VERSION)
    if version == LEGACY_SAVE_VERSION:
        doc = migrate_legacy(data, path)
        logger.info(f"Migrated save file {path} from version {version} to {SAVE_VERSION}")
        return doc
    return _parse_document(data, path, legacy=False)


def load_save(path: PathLike) -> SaveDocument:
    """
    Load the save document at ``path``.

    Returns:
        The document at the current version; an empty one if the file does
        not exist.

    Raises:
        CorruptSaveError: If the file cannot be read or parsed.
        IncompatibleSaveVersionError: If the file is from a newer version.
    """
    path = Path(path)
    try:
        text = path.read_text(encoding="utf-8")
    except FileNotFoundError:
        return SaveDocument()
    except OSError as e:
        raise CorruptSaveError(path, f"cannot read file: {e}", cause=e)

    try:
        data = json.loads(text)
    except json.JSONDecodeError as e:
        raise CorruptSaveError(path, f"invalid JSON: {e}", cause=e)
    return document_from_dict(data, path)


def persist_save(path: PathLike, doc: SaveDocument) -> None:
    """
    Write the document atomically.

    The JSON goes to a temp file in the same directory, is fsynced, then
    replaces ``path`` in one ``os.replace``. A crash at any point leaves
    either the old file or the new one on disk.
    """
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    doc.version = SAVE_VERSION
    text = json.dumps(doc.to_dict(), indent=2, ensure_ascii=False)

    fd, tmp_path = tempfile.mkstemp(prefix=f".{path.name}.", suffix=".tmp", dir=path.parent)
    try:
        with os.fdopen(fd, "w", encoding="utf-8") as f:
            f.write(text)
            f.flush()
            os.fsync(f.fileno())
        os.replace(tmp_path, path)
    except BaseException:
        if os.path.exists(tmp_path):
            os.remove(tmp_path)
        raise


# ─────────────────────────────────────────────────────────────────────────────
# Merging attempts
# ─────────────────────────────────────────────────────────────────────────────


@dataclass
class MergeResult:
    """What recording one attempt did to the document."""

    recorded: bool  # attempt completed and was counted
    improved: bool  # best record was replaced
    grade: Optional[Grade]
    previous: Optional[ScoreRecord]


def _is_better(grade: Optional[Grade], keystrokes: int, best: ScoreRecord, freestyle: bool) -> bool:
    if grade is None and best.grade is not None:
        # an ungraded run never displaces a graded record
        return False
    if freestyle:
        return keystrokes < best.keystrokes
    if best.grade is None:
        # previous record came from a freestyle run of this challenge
        return True
    if grade is None:
        return False
    return grade < best.grade or (grade == best.grade and keystrokes < best.keystrokes)


def merge(
    doc: SaveDocument,
    challenge: Challenge,
    raw: RawResult,
    matched: bool,
    freestyle: Optional[bool] = None,
    history_limit: int = 10,
) -> MergeResult:
    """
    Record a finished attempt in ``doc``.

    Attempts that did not reach the target are ignored. Otherwise the attempt
    is graded, counted in stats and history, and replaces the best record
    only if there is none, the stored one is outdated, or the new one is
    strictly better. Ties keep the stored record and its fingerprint.
    """
    freestyle = challenge.freestyle if freestyle is None else freestyle
    previous = doc.challenges.get(challenge.id)
    if not matched:
        return MergeResult(recorded=False, improved=False, grade=None, previous=previous)

    grade = grade_attempt(raw.keystrokes, challenge.thresholds, freestyle)
    stale = previous is not None and previous.is_outdated(challenge.fingerprint)
    improved = previous is None or stale or _is_better(grade, raw.keystrokes, previous, freestyle)

    if improved:
        doc.challenges[challenge.id] = ScoreRecord(
            keystrokes=raw.keystrokes,
            time_secs=raw.elapsed_secs,
            grade=grade,
            fingerprint=challenge.fingerprint,
        )
        if stale:
            doc.history.pop(challenge.id, None)

    doc.stats.total_keystrokes += raw.keystrokes
    doc.stats.challenges_attempted += 1

    # Keep the best attempts by keystrokes
    history = doc.history.setdefault(challenge.id, [])
    history.append(AttemptRecord(grade=grade, keystrokes=raw.keystrokes, time_secs=raw.elapsed_secs, keys=raw.keys))
    history.sort(key=lambda a: a.keystrokes)
    del history[history_limit:]

    return MergeResult(recorded=True, improved=improved, grade=grade, previous=previous)


class SaveStore:
    """Load and persist the save document at one path."""

    def __init__(self, path: Optional[PathLike] = None):
        """
        Initialize the store.

        Args:
            path: Save file location. Resolved with ``resolve_save_path`` if None.
        """
        self.path = Path(path) if path is not None else resolve_save_path()
        self._legacy_on_disk = False

    def load(self) -> SaveDocument:
        """Load the document, noting whether the file on disk is still legacy."""
        doc = load_save(self.path)
        self._legacy_on_disk = self._is_legacy_file()
        return doc

    def _is_legacy_file(self) -> bool:
        try:
            data = json.loads(self.path.read_text(encoding="utf-8"))
        except (OSError, json.JSONDecodeError):
            return False
        return isinstance(data, dict) and data.get("version", LEGACY_SAVE_VERSION) == LEGACY_SAVE_VERSION

    @property
    def backup_path(self) -> Path:
        return self.path.with_name(f"{self.path.stem}.v{LEGACY_SAVE_VERSION}-backup{self.path.suffix}")

    def persist(self, doc: SaveDocument) -> None:
        """Write ``doc``; the first write over a legacy file keeps a backup copy."""
        if self._legacy_on_disk and self.path.exists() and not self.backup_path.exists():
            shutil.copy2(self.path, self.backup_path)
            logger.info(f"Backed up legacy save file to {self.backup_path}")
        persist_save(self.path, doc)
        self._legacy_on_disk = False

    def record(
        self,
        doc: SaveDocument,
        challenge: Challenge,
        raw: RawResult,
        matched: bool,
        freestyle: Optional[bool] = None,
        history_limit: int = 10,
    ) -> MergeResult:
        """Merge an attempt and persist if anything was recorded."""
        result = merge(doc, challenge, raw, matched, freestyle=freestyle, history_limit=history_limit)
        if result.recorded:
            self.persist(doc)
        return result
