"""Topic table. Each topic's challenge files live in its own subdirectory."""

from __future__ import annotations

from typing import NamedTuple


class TopicSpec(NamedTuple):
    id: int
    dir_name: str
    name: str
    description: str


TOPICS: tuple[TopicSpec, ...] = (
    TopicSpec(1, "01_motions", "Advanced Motions", "f/t/;, %, [{, ]m, H/M/L, g;/g,"),
    TopicSpec(2, "02_text_objects", "Text Objects", 'ci", da(, vit, ciw, cip'),
    TopicSpec(3, "03_registers", "Registers", '"a-z, "0-9, "+, "., "_'),
    TopicSpec(4, "04_marks_jumps", "Marks & Jumps", "ma, `a, '', g;, Ctrl-O/I"),
    TopicSpec(5, "05_macros", "Macros", "qa, @a, @@, recursive macros, macro editing"),
    TopicSpec(6, "06_ex_commands", "Ex Commands", ":g, :s, :norm, ranges, :sort, :!"),
    TopicSpec(7, "07_advanced_combos", "Advanced Combos", "Combining all techniques"),
    TopicSpec(8, "08_legendary", "Legendary Combos", "The ultimate vim challenges"),
)

# No par, no grades, personal-best tracking only.
FREESTYLE_TOPICS: tuple[TopicSpec, ...] = (
    TopicSpec(100, "f01_refactoring", "Code Refactoring", "Rename, restructure, and clean up code"),
    TopicSpec(101, "f02_data_wrangling", "Data Wrangling", "Transform CSV, JSON, and tabular data"),
    TopicSpec(102, "f03_bug_fixing", "Bug Fixing", "Find and fix multiple bugs in code"),
    TopicSpec(103, "f04_pattern_power", "Pattern Power", "Repetitive transformations at scale"),
    TopicSpec(104, "f05_format_alchemy", "Format Alchemy", "Convert between data formats"),
    TopicSpec(105, "f06_legacy_cleanup", "Legacy Cleanup", "Modernize and clean messy legacy code"),
    TopicSpec(106, "f07_multi_edit", "Multi-Edit Mastery", "Complex edits across many locations"),
    TopicSpec(107, "f08_grand", "Grand Challenges", "Long, complex mixed-skill challenges"),
)

ALL_TOPICS: tuple[TopicSpec, ...] = TOPICS + FREESTYLE_TOPICS
