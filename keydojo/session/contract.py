"""
Configuration contract handed to the in-editor runtime.

The core writes ``contract.json`` once before spawning the editor and never
reads it back. The runtime writes the results artifact in return::

    <keystroke count>
    <elapsed seconds>
    <raw key log, may be empty>

The runtime flushes a partial result from its own stop handler, but that is
best effort: a killed editor can leave no artifact at all, and the collector
treats that as an abandoned session.
"""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from typing import Optional

from keydojo.models import Challenge
from keydojo.session.workspace import SessionWorkspace

PROTOCOL_VERSION = 1
CONTRACT_ENV_VAR = "KEYDOJO_CONTRACT"


@dataclass
class SessionContract:
    """Flat set of named values the runtime reads at startup."""

    number: int
    title: str
    par: int
    hint: str
    detailed_hint: str
    freestyle: bool
    limit: Optional[int]
    results_path: str
    target_path: str
    start_path: str
    thresholds: dict[str, int] = field(default_factory=dict)
    protocol_version: int = PROTOCOL_VERSION

    @classmethod
    def build(cls, challenge: Challenge, workspace: SessionWorkspace, freestyle: bool) -> SessionContract:
        return cls(
            number=challenge.number,
            title=challenge.title,
            par=challenge.par,
            hint=challenge.hint,
            detailed_hint=challenge.detailed_hint,
            freestyle=freestyle,
            limit=None if freestyle else challenge.thresholds.e,
            results_path=str(workspace.results),
            target_path=str(workspace.target),
            start_path=str(workspace.start),
            thresholds=challenge.thresholds.as_dict(),
        )

    def to_dict(self) -> dict:
        return {
            "protocol_version": self.protocol_version,
            "number": self.number,
            "title": self.title,
            "par": self.par,
            "hint": self.hint,
            "detailed_hint": self.detailed_hint,
            "freestyle": self.freestyle,
            "limit": self.limit,
            "results_path": self.results_path,
            "target_path": self.target_path,
            "start_path": self.start_path,
            "thresholds": self.thresholds,
        }

    def to_json(self) -> str:
        return json.dumps(self.to_dict(), indent=2, ensure_ascii=False)

    def write(self, workspace: SessionWorkspace) -> None:
        workspace.contract.write_text(self.to_json(), encoding="utf-8")
