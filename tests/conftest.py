"""Pytest fixtures for keydojo tests."""

from __future__ import annotations

import shlex
import sys
import textwrap
from pathlib import Path
from typing import Callable

import pytest
import yaml

from keydojo.config import set_config
from keydojo.curriculum import compute_fingerprint
from keydojo.models import Challenge, Thresholds

FAKE_EDITOR = textwrap.dedent(
    '''
    """Stand-in for nvim: reads the contract, edits the buffer, writes results."""
    import json
    import os
    import shutil
    import sys

    args = sys.argv[1:]
    if args == ["--version"]:
        print("FakeVim 1.0")
        sys.exit(0)

    mode = os.environ.get("FAKE_EDITOR_MODE", "solve")
    keys = int(os.environ.get("FAKE_EDITOR_KEYS", "7"))
    with open(os.environ["KEYDOJO_CONTRACT"], encoding="utf-8") as f:
        contract = json.load(f)

    capture = os.environ.get("FAKE_EDITOR_CAPTURE")
    if capture:
        with open(capture, "w", encoding="utf-8") as f:
            json.dump({"argv": args, "contract": contract}, f)

    buffer = args[-1]
    if mode in ("solve", "solve_then_fail"):
        shutil.copyfile(contract["target_path"], buffer)

    if mode == "garbage":
        with open(contract["results_path"], "w", encoding="utf-8") as f:
            f.write("lots\\nof keys\\n")
    elif mode != "abandon":
        with open(contract["results_path"], "w", encoding="utf-8") as f:
            f.write(f"{keys}\\n3\\n" + "x" * keys)

    sys.exit(2 if mode == "solve_then_fail" else 0)
    '''
)


@pytest.fixture(autouse=True)
def reset_config():
    """Keep the global config from leaking between tests."""
    set_config(None)
    yield
    set_config(None)


@pytest.fixture
def make_challenge() -> Callable[..., Challenge]:
    """Factory for in-memory challenges with a correct fingerprint."""

    def _make(**overrides) -> Challenge:
        start = overrides.pop("start", "hello world\n")
        target = overrides.pop("target", "hello there\n")
        par = overrides.pop("par", 5)
        thresholds = overrides.pop("thresholds", Thresholds(5, 10, 15, 20, 25))
        fields = {
            "id": "test_001",
            "topic_id": 1,
            "title": "Test Challenge",
            "hint": "cw",
            "start": start,
            "target": target,
            "par": par,
            "thresholds": thresholds,
            "fingerprint": compute_fingerprint(start, target, par, thresholds),
            "number": 1,
        }
        fields.update(overrides)
        return Challenge(**fields)

    return _make


@pytest.fixture
def challenge(make_challenge) -> Challenge:
    return make_challenge()


def write_challenge(root: Path, topic_dir: str, filename: str, data) -> Path:
    """Write one challenge YAML file under ``root/topic_dir``."""
    path = root / topic_dir / filename
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(yaml.safe_dump(data, sort_keys=False), encoding="utf-8")
    return path


@pytest.fixture
def challenge_writer() -> Callable[..., Path]:
    return write_challenge


@pytest.fixture
def challenges_dir(tmp_path) -> Path:
    """A small catalog: two beginner, one intermediate and one freestyle challenge."""
    root = tmp_path / "challenges"
    write_challenge(
        root,
        "01_motions",
        "001_find.yaml",
        {
            "id": "motion_001",
            "title": "Find char",
            "hint": "f,",
            "perfect_moves": ["f,", "dt)"],
            "start": "compute(alpha, beta);\n",
            "target": "compute(alpha);\n",
        },
    )
    write_challenge(
        root,
        "01_motions",
        "002_word.yaml",
        {
            "id": "motion_002",
            "title": "Change word",
            "hint": "cw",
            "par_keystrokes": 10,
            "start": {"content": "hello world\n"},
            "target": {"content": "hello there\n"},
        },
    )
    write_challenge(
        root,
        "03_registers",
        "001_swap.yaml",
        {
            "id": "register_001",
            "title": "Swap lines",
            "hint": "ddp",
            "perfect_moves": ["dd", "p"],
            "start": "b\na\n",
            "target": "a\nb\n",
        },
    )
    write_challenge(
        root,
        "f01_refactoring",
        "001_rename.yaml",
        {
            "id": "free_001",
            "title": "Rename",
            "hint": "anything goes",
            "start": "tmp = 1\n",
            "target": "result = 1\n",
        },
    )
    return root


@pytest.fixture
def fake_editor(tmp_path) -> str:
    """Editor command line running the fake editor script."""
    script = tmp_path / "fake_nvim.py"
    script.write_text(FAKE_EDITOR, encoding="utf-8")
    return f"{shlex.quote(sys.executable)} {shlex.quote(str(script))}"


@pytest.fixture
def runtime_script(tmp_path) -> Path:
    """Placeholder runtime file; the fake editor never loads it."""
    path = tmp_path / "runtime.lua"
    path.write_text("-- test runtime\n", encoding="utf-8")
    return path
