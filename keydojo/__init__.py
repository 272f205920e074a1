"""
keydojo

Keystroke-efficiency challenges for Neovim: challenge catalog, editor
session orchestration, grading and a versioned save file.
"""

from keydojo.config import KeyDojoConfig, get_config, set_config
from keydojo.curriculum import ChallengeLoader, compute_fingerprint, count_keystrokes
from keydojo.exceptions import (
    ChallengeNotFoundError,
    ConfigurationError,
    CorruptSaveError,
    CurriculumError,
    IncompatibleSaveVersionError,
    KeyDojoError,
    LaunchError,
    ResultsFormatError,
    SaveError,
)
from keydojo.grading import grade
from keydojo.models import (
    AttemptRecord,
    Category,
    Challenge,
    Grade,
    LegacyOutcome,
    SaveDocument,
    ScoreRecord,
    Stats,
    Thresholds,
    Topic,
)
from keydojo.orchestrator import Orchestrator, PlayResult
from keydojo.progress import ProgressView, TopicProgress, UnlockPolicy, evaluate
from keydojo.session import RawResult, SessionLauncher, SessionOutcome, collect
from keydojo.store import MergeResult, SaveStore, load_save, merge, persist_save, resolve_save_path

__version__ = "0.2.0"

__all__ = [
    # Config
    "KeyDojoConfig",
    "get_config",
    "set_config",
    # Models
    "Grade",
    "LegacyOutcome",
    "Category",
    "Thresholds",
    "Challenge",
    "Topic",
    "ScoreRecord",
    "AttemptRecord",
    "Stats",
    "SaveDocument",
    # Exceptions
    "KeyDojoError",
    "ChallengeNotFoundError",
    "CurriculumError",
    "LaunchError",
    "ResultsFormatError",
    "SaveError",
    "CorruptSaveError",
    "IncompatibleSaveVersionError",
    "ConfigurationError",
    # Curriculum
    "ChallengeLoader",
    "compute_fingerprint",
    "count_keystrokes",
    # Session
    "SessionLauncher",
    "SessionOutcome",
    "RawResult",
    "collect",
    # Grading & save
    "grade",
    "SaveStore",
    "MergeResult",
    "load_save",
    "persist_save",
    "merge",
    "resolve_save_path",
    # Progress
    "UnlockPolicy",
    "ProgressView",
    "TopicProgress",
    "evaluate",
    # Orchestration
    "Orchestrator",
    "PlayResult",
]
