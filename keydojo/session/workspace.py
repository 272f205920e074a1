"""Per-attempt scratch directory shared with the editor."""

from __future__ import annotations

import logging
import shutil
import tempfile
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from keydojo.models import Challenge

logger = logging.getLogger(__name__)


@dataclass
class SessionWorkspace:
    """
    Files for one attempt, all inside a private temporary directory.

    - buffer: what the editor opens and the user edits
    - start: pristine copy of the start content, used by the runtime to retry
    - target: the content to reach
    - results: artifact the runtime writes when the session ends
    - contract: JSON configuration handed to the runtime
    """

    root: Path
    keep: bool = False

    @property
    def buffer(self) -> Path:
        return self.root / "challenge_buffer"

    @property
    def start(self) -> Path:
        return self.root / "challenge_start"

    @property
    def target(self) -> Path:
        return self.root / "challenge_target"

    @property
    def results(self) -> Path:
        return self.root / "results"

    @property
    def contract(self) -> Path:
        return self.root / "contract.json"

    @classmethod
    def create(cls, challenge: Challenge, base_dir: Optional[Path] = None, keep: bool = False) -> SessionWorkspace:
        """Make a fresh directory and materialize the challenge's content in it."""
        root = Path(tempfile.mkdtemp(prefix="keydojo-", dir=base_dir))
        workspace = cls(root=root, keep=keep)
        try:
            workspace.buffer.write_text(challenge.start, encoding="utf-8")
            workspace.start.write_text(challenge.start, encoding="utf-8")
            workspace.target.write_text(challenge.target, encoding="utf-8")
        except BaseException:
            shutil.rmtree(root, ignore_errors=True)
            raise
        logger.debug(f"Created workspace {root} for {challenge.id}")
        return workspace

    def read_buffer(self) -> str:
        """Final buffer content, or an empty string if the editor removed it."""
        try:
            return self.buffer.read_text(encoding="utf-8", errors="replace")
        except FileNotFoundError:
            return ""

    def cleanup(self) -> None:
        if self.keep:
            logger.info(f"Keeping session workspace at {self.root}")
            return
        shutil.rmtree(self.root, ignore_errors=True)

    def __enter__(self) -> SessionWorkspace:
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.cleanup()
