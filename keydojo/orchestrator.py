"""
keydojo Orchestrator

The loop that runs one challenge attempt end to end:
1. Load Challenge
2. Launch Editor (runtime loaded, contract written)
3. Collect Telemetry
4. Grade & Merge into the save document
5. Persist
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Optional, Union

from keydojo.config import KeyDojoConfig, get_config
from keydojo.curriculum import ChallengeLoader
from keydojo.models import Challenge, SaveDocument
from keydojo.progress import ProgressView, UnlockPolicy, evaluate
from keydojo.session import SessionLauncher, SessionOutcome
from keydojo.store import MergeResult, SaveStore

logger = logging.getLogger(__name__)


@dataclass
class PlayResult:
    """Outcome of one orchestrated attempt."""

    outcome: SessionOutcome
    merge: Optional[MergeResult] = None

    @property
    def recorded(self) -> bool:
        return self.merge is not None and self.merge.recorded

    def to_dict(self) -> dict:
        data = self.outcome.to_dict()
        data["recorded"] = self.recorded
        if self.merge is not None:
            data["improved"] = self.merge.improved
            data["grade"] = self.merge.grade.value if self.merge.grade else None
        return data


class Orchestrator:
    """Wires the catalog, launcher and save store together."""

    def __init__(
        self,
        loader: ChallengeLoader,
        launcher: SessionLauncher,
        store: SaveStore,
        policy: Optional[UnlockPolicy] = None,
        history_limit: int = 10,
    ):
        self.loader = loader
        self.launcher = launcher
        self.store = store
        self.policy = policy or UnlockPolicy()
        self.history_limit = history_limit
        self._doc: Optional[SaveDocument] = None

    @classmethod
    def from_config(cls, config: Optional[KeyDojoConfig] = None) -> Orchestrator:
        config = config or get_config()
        return cls(
            loader=ChallengeLoader(config.challenges_dir),
            launcher=SessionLauncher.from_config(config),
            store=SaveStore(config.save_path),
            policy=UnlockPolicy.from_config(config),
            history_limit=config.history_limit,
        )

    @property
    def document(self) -> SaveDocument:
        """The save document, loaded on first use."""
        if self._doc is None:
            self._doc = self.store.load()
            logger.debug(f"Loaded save file {self.store.path} ({len(self._doc.challenges)} records)")
        return self._doc

    def progress(self) -> ProgressView:
        return evaluate(self.loader.load_curriculum(), self.document, self.policy)

    def play(self, challenge: Union[str, Challenge], freestyle: Optional[bool] = None) -> PlayResult:
        """
        Run a single attempt and record it.

        Args:
            challenge: Challenge or its ID.
            freestyle: Force freestyle (True) or graded (False) scoring.

        Returns:
            PlayResult; ``merge`` is None when the session was abandoned.

        Raises:
            ChallengeNotFoundError: Unknown challenge ID.
            LaunchError: The editor could not be started.
            SaveError: The save file could not be read or written.
        """
        if isinstance(challenge, str):
            challenge = self.loader.load_challenge(challenge)

        doc = self.document
        outcome = self.launcher.launch(challenge, freestyle=freestyle)

        if outcome.abandoned:
            logger.info(f"No results for {challenge.id}; nothing recorded")
            return PlayResult(outcome=outcome)

        merge_result = self.store.record(
            doc,
            challenge,
            outcome.result,
            outcome.matched,
            freestyle=outcome.freestyle,
            history_limit=self.history_limit,
        )
        if merge_result.recorded:
            logger.info(
                f"Recorded {challenge.id}: {outcome.result.keystrokes} keys, "
                f"grade={merge_result.grade.value if merge_result.grade else '-'}, "
                f"improved={merge_result.improved}"
            )
        else:
            logger.info(f"{challenge.id} did not reach the target; nothing recorded")
        return PlayResult(outcome=outcome, merge=merge_result)
