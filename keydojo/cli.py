#!/usr/bin/env python3
"""
keydojo command line.

Usage:
    keydojo topics
    keydojo list [--topic N]
    keydojo play CHALLENGE_ID [--freestyle | --graded]
    keydojo status [--json]
"""

from __future__ import annotations

import argparse
import json
import logging
import sys
from pathlib import Path
from typing import Optional

from keydojo.config import KeyDojoConfig, set_config
from keydojo.exceptions import KeyDojoError
from keydojo.models import Category
from keydojo.orchestrator import Orchestrator, PlayResult

logger = logging.getLogger(__name__)

LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="keydojo",
        description="Keystroke-efficiency challenges for Neovim",
    )
    parser.add_argument("--env-file", type=Path, help="Path to a .env file")
    parser.add_argument("--save", type=Path, help="Save file path (overrides discovery)")
    parser.add_argument("--challenges", type=Path, help="Challenges directory")
    parser.add_argument("--editor", help="Editor command (default: nvim)")
    parser.add_argument("--unlock-all", action="store_true", help="Unlock every category")
    parser.add_argument("-v", "--verbose", action="store_true", help="Debug logging")

    sub = parser.add_subparsers(dest="command", required=True)

    sub.add_parser("topics", help="List topics with progress")

    list_parser = sub.add_parser("list", help="List challenges")
    list_parser.add_argument("--topic", type=int, help="Only this topic")

    play_parser = sub.add_parser("play", help="Play one challenge")
    play_parser.add_argument("challenge_id", help="Challenge ID")
    mode = play_parser.add_mutually_exclusive_group()
    mode.add_argument("--freestyle", dest="freestyle", action="store_const", const=True, help="Ungraded run, no limit")
    mode.add_argument("--graded", dest="freestyle", action="store_const", const=False, help="Force graded scoring")

    status_parser = sub.add_parser("status", help="Show overall progress")
    status_parser.add_argument("--json", action="store_true", help="Print JSON")

    return parser


def _load_config(args: argparse.Namespace) -> KeyDojoConfig:
    config = KeyDojoConfig.from_env(str(args.env_file) if args.env_file else None)
    if args.save:
        config.save_path = args.save
    if args.challenges:
        config.challenges_dir = args.challenges
    if args.editor:
        config.editor = args.editor
    if args.unlock_all:
        config.unlock_all = True
    if args.verbose:
        config.log_level = "DEBUG"
    config.validate()
    return config


def cmd_topics(orch: Orchestrator) -> int:
    view = orch.progress()
    current: Optional[Category] = None
    for topic in orch.loader.load_curriculum():
        if topic.category is not current:
            current = topic.category
            lock = "" if view.is_unlocked(current) else "  [locked]"
            print(f"\n{current.display}{lock}")
        tp = view.topic(topic.id)
        stale = f"  ({tp.outdated} outdated)" if tp.outdated else ""
        print(f"  {topic.id:>3}  {topic.name:<28} {tp.completed}/{tp.total} done  {tp.grade_a} A{stale}")
    return 0


def cmd_list(orch: Orchestrator, topic_id: Optional[int]) -> int:
    view = orch.progress()
    doc = orch.document
    topics = [orch.loader.get_topic(topic_id)] if topic_id is not None else orch.loader.load_curriculum()
    for topic in topics:
        locked = not view.is_unlocked(topic)
        for challenge in topic.challenges:
            best = doc.best(challenge.id)
            if best is None:
                score = "-"
            else:
                grade = best.grade.value if best.grade else "free"
                score = f"{grade} {best.keystrokes}k {best.time_secs}s"
            flags = []
            if locked:
                flags.append("locked")
            if view.is_outdated(challenge.id):
                flags.append("outdated")
            suffix = f"  [{', '.join(flags)}]" if flags else ""
            print(f"  #{challenge.number:03d} {challenge.id:<28} par {challenge.par:>3}  {score}{suffix}")
    return 0


def _print_play_result(result: PlayResult) -> None:
    outcome = result.outcome
    if outcome.abandoned:
        print("Session ended without results; nothing recorded.")
        return
    if not result.recorded:
        print(f"Target not reached ({outcome.result.keystrokes} keys); nothing recorded.")
        return
    grade = result.merge.grade.value if result.merge.grade else "freestyle"
    line = f"{outcome.challenge.id}: {outcome.result.keystrokes} keys in {outcome.result.elapsed_secs}s, {grade}"
    if result.merge.improved:
        line += "  (new best)"
    print(line)


def cmd_play(orch: Orchestrator, challenge_id: str, freestyle: Optional[bool]) -> int:
    challenge = orch.loader.load_challenge(challenge_id)
    if not orch.progress().is_unlocked(challenge):
        print(
            f"{challenge.category.display} is locked; finish {challenge.category.previous.display} first",
            file=sys.stderr,
        )
        return 1
    if not orch.launcher.check_editor():
        print(f"Editor not available: {orch.launcher.editor}", file=sys.stderr)
        return 1
    _print_play_result(orch.play(challenge, freestyle=freestyle))
    return 0


def cmd_status(orch: Orchestrator, as_json: bool) -> int:
    view = orch.progress()
    doc = orch.document
    if as_json:
        data = view.to_dict()
        data["stats"] = doc.stats.to_dict()
        data["save_path"] = str(orch.store.path)
        print(json.dumps(data, indent=2))
        return 0

    totals = view.totals
    print(f"Save file: {orch.store.path}")
    print(f"Completed: {totals['completed']}/{totals['total']}  Grade A: {totals['grade_a']}")
    print(f"Attempts: {doc.stats.challenges_attempted}  Keystrokes: {doc.stats.total_keystrokes}")
    print(f"Unlocked: {', '.join(c.display for c in Category if view.is_unlocked(c))}")
    if view.stale_count:
        print(f"Outdated scores: {view.stale_count}")
    return 0


def main(argv: Optional[list[str]] = None) -> int:
    parser = _build_parser()
    args = parser.parse_args(argv)

    try:
        config = _load_config(args)
        logging.basicConfig(level=config.log_level, format=LOG_FORMAT)
        logger.debug(f"Configuration: {config.to_dict()}")
        set_config(config)
        orch = Orchestrator.from_config(config)

        if args.command == "topics":
            return cmd_topics(orch)
        if args.command == "list":
            return cmd_list(orch, args.topic)
        if args.command == "play":
            return cmd_play(orch, args.challenge_id, args.freestyle)
        return cmd_status(orch, args.json)
    except KeyDojoError as e:
        print(f"keydojo: {e}", file=sys.stderr)
        return 1


if __name__ == "__main__":
    sys.exit(main())
