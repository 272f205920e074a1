"""Results collector - reads the artifact the runtime leaves behind."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Optional

from keydojo.exceptions import ResultsFormatError
from keydojo.session.workspace import SessionWorkspace

logger = logging.getLogger(__name__)


@dataclass
class RawResult:
    """Telemetry reported by the runtime for one session."""

    keystrokes: int
    elapsed_secs: int
    keys: str = ""

    def to_dict(self) -> dict:
        return {
            "keystrokes": self.keystrokes,
            "elapsed_secs": self.elapsed_secs,
            "keys": self.keys,
        }


def _parse_count(raw: str, line: int, name: str) -> int:
    value = raw.strip()
    if not (value.isascii() and value.isdigit()):
        raise ResultsFormatError(f"Line {line} ({name}) is not a non-negative integer: {value!r}", line=line)
    return int(value)


def parse_results(text: str) -> RawResult:
    """
    Parse the three-field results format.

    Raises:
        ResultsFormatError: If either count line is missing or not an integer.
    """
    parts = text.split("\n", 2)
    if len(parts) < 2:
        raise ResultsFormatError("Missing elapsed seconds line", line=2)
    keystrokes = _parse_count(parts[0], 1, "keystrokes")
    elapsed = _parse_count(parts[1], 2, "elapsed seconds")
    keys = parts[2] if len(parts) > 2 else ""
    return RawResult(keystrokes=keystrokes, elapsed_secs=elapsed, keys=keys)


def collect(workspace: SessionWorkspace) -> Optional[RawResult]:
    """
    Read the session's results artifact.

    Returns:
        The parsed result, or None when the attempt counts as abandoned.
        A missing or empty artifact is an expected outcome (the user quit
        without saving, or the editor was killed). A present but malformed
        artifact breaks the runtime contract and is logged as a warning.
        Neither case raises.
    """
    try:
        text = workspace.results.read_text(encoding="utf-8", errors="replace")
    except FileNotFoundError:
        logger.debug(f"No results artifact in {workspace.root}; session abandoned")
        return None

    if not text.strip():
        logger.debug(f"Empty results artifact in {workspace.root}; session abandoned")
        return None

    try:
        return parse_results(text)
    except ResultsFormatError as e:
        logger.warning(f"Malformed results artifact {workspace.results}: {e.message}")
        return None


def normalize(content: str) -> str:
    """Trim trailing whitespace per line and drop trailing blank lines."""
    return "\n".join(line.rstrip() for line in content.splitlines()).rstrip("\n")


def buffer_matches(workspace: SessionWorkspace, target: str) -> bool:
    """True when the edited buffer equals the target, ignoring trailing whitespace."""
    return normalize(workspace.read_buffer()) == normalize(target)
