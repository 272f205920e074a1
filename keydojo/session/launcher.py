"""Launcher - runs one challenge attempt inside the user's editor."""

from __future__ import annotations

import logging
import os
import shlex
import subprocess
import time
from dataclasses import dataclass
from pathlib import Path
from typing import TYPE_CHECKING, Optional

from keydojo.exceptions import LaunchError
from keydojo.models import Challenge
from keydojo.session.collector import RawResult, buffer_matches, collect
from keydojo.session.contract import CONTRACT_ENV_VAR, SessionContract
from keydojo.session.workspace import SessionWorkspace

if TYPE_CHECKING:
    from keydojo.config import KeyDojoConfig

logger = logging.getLogger(__name__)

DEFAULT_RUNTIME = Path(__file__).parent / "runtime.lua"


def _vim_path(path: Path) -> str:
    """Escape a path for use inside an Ex command."""
    return str(path).replace("\\", "\\\\").replace(" ", "\\ ")


@dataclass
class SessionOutcome:
    """What came out of one editor session."""

    challenge: Challenge
    freestyle: bool
    result: Optional[RawResult]
    matched: bool
    exit_code: Optional[int]
    duration: float
    interrupted: bool = False

    @property
    def abandoned(self) -> bool:
        """No usable telemetry; nothing gets recorded."""
        return self.result is None

    @property
    def completed(self) -> bool:
        """Telemetry is present and the buffer reached the target."""
        return self.result is not None and self.matched

    def to_dict(self) -> dict:
        return {
            "challenge_id": self.challenge.id,
            "freestyle": self.freestyle,
            "result": self.result.to_dict() if self.result else None,
            "matched": self.matched,
            "exit_code": self.exit_code,
            "duration": round(self.duration, 3),
            "interrupted": self.interrupted,
        }


class SessionLauncher:
    """Spawn the editor with the runtime loaded and wait for it to exit."""

    def __init__(
        self,
        editor: str = "nvim",
        runtime_script: Optional[Path] = None,
        keep_workspace: bool = False,
        workspace_dir: Optional[Path] = None,
    ):
        """
        Initialize the launcher.

        Args:
            editor: Editor command line; may include arguments.
            runtime_script: Lua runtime to load. Defaults to the bundled one.
            keep_workspace: Leave the temp directory behind for debugging.
            workspace_dir: Parent for temp directories (system default if None).
        """
        self.editor = editor
        self.runtime_script = Path(runtime_script) if runtime_script else DEFAULT_RUNTIME
        self.keep_workspace = keep_workspace
        self.workspace_dir = workspace_dir

    @classmethod
    def from_config(cls, config: KeyDojoConfig) -> SessionLauncher:
        return cls(
            editor=config.editor,
            runtime_script=config.runtime_script,
            keep_workspace=config.keep_workspace,
        )

    @property
    def editor_argv(self) -> list[str]:
        return shlex.split(self.editor)

    def check_editor(self) -> bool:
        """
        Check the editor binary is installed and runnable.

        Returns:
            True if ``<editor> --version`` ran successfully.
        """
        try:
            result = subprocess.run(
                self.editor_argv + ["--version"],
                capture_output=True,
                text=True,
                timeout=10,
            )
        except (OSError, subprocess.TimeoutExpired):
            return False
        return result.returncode == 0

    def build_command(self, workspace: SessionWorkspace) -> list[str]:
        """Full argv: target split in diff mode, runtime loaded, quit on write."""
        target = _vim_path(workspace.target)
        buffer = _vim_path(workspace.buffer)
        return self.editor_argv + [
            # Disable swap files and undo files to avoid noise
            "--cmd",
            "set noswapfile noundofile nobackup nowritebackup",
            "-c",
            (
                f"split {target} | setlocal readonly nomodifiable noswapfile buftype=nofile | "
                "let &l:winbar = '  [TARGET]' | "
                "diffthis | set diffopt+=context:99999 | setlocal wrap nocursorbind | "
                "wincmd j | diffthis | set diffopt+=context:99999 | setlocal wrap nocursorbind"
            ),
            "-c",
            f"luafile {_vim_path(self.runtime_script)}",
            # Stop counting keystrokes and quit on :w
            "-c",
            f"autocmd BufWritePost {buffer} lua _G._ks_stop(); vim.cmd('qall!')",
            str(workspace.buffer),
        ]

    def _spawn(self, argv: list[str], env: dict) -> subprocess.Popen:
        try:
            return subprocess.Popen(argv, env=env)
        except OSError as e:
            raise LaunchError(f"Could not start editor '{argv[0]}': {e}", editor=argv[0], cause=e)

    def _wait(self, proc: subprocess.Popen) -> tuple[int, bool]:
        """
        Block until the editor exits.

        There is no timeout: the session ends when the runtime finishes it,
        the user quits, or something kills the process. Ctrl-C stops the
        editor and still lets collection run.
        """
        try:
            return proc.wait(), False
        except KeyboardInterrupt:
            logger.info("Interrupted; stopping editor")
            proc.terminate()
            return proc.wait(), True

    def launch(self, challenge: Challenge, freestyle: Optional[bool] = None) -> SessionOutcome:
        """
        Run one attempt and collect its telemetry.

        Args:
            challenge: The challenge to play.
            freestyle: Override the challenge's own freestyle flag.

        Returns:
            SessionOutcome; ``result`` is None for abandoned sessions.

        Raises:
            LaunchError: If the runtime script is missing or the editor
                cannot be spawned.
        """
        freestyle = challenge.freestyle if freestyle is None else freestyle
        if not self.runtime_script.is_file():
            raise LaunchError(f"Runtime script not found: {self.runtime_script}", editor=self.editor)

        workspace = SessionWorkspace.create(challenge, base_dir=self.workspace_dir, keep=self.keep_workspace)
        try:
            SessionContract.build(challenge, workspace, freestyle).write(workspace)
            argv = self.build_command(workspace)
            env = {**os.environ, CONTRACT_ENV_VAR: str(workspace.contract)}

            logger.info(f"Launching {challenge.id} ({'freestyle' if freestyle else 'graded'})")
            start_time = time.time()
            proc = self._spawn(argv, env)
            exit_code, interrupted = self._wait(proc)
            duration = time.time() - start_time

            if exit_code != 0:
                logger.info(f"Editor exited with status {exit_code} for {challenge.id}")

            result = collect(workspace)
            matched = buffer_matches(workspace, challenge.target)
            return SessionOutcome(
                challenge=challenge,
                freestyle=freestyle,
                result=result,
                matched=matched,
                exit_code=exit_code,
                duration=duration,
                interrupted=interrupted,
            )
        finally:
            workspace.cleanup()
