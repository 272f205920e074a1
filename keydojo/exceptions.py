"""Custom exceptions for keydojo."""

from __future__ import annotations

from pathlib import Path
from typing import Optional, Union


class KeyDojoError(Exception):
    """Base exception for all keydojo errors."""

    def __init__(self, message: str, details: Optional[dict] = None):
        super().__init__(message)
        self.message = message
        self.details = details or {}


class ChallengeNotFoundError(KeyDojoError):
    """Raised when a challenge ID doesn't exist."""

    def __init__(self, challenge_id: str, topic: Optional[str] = None):
        self.challenge_id = challenge_id
        self.topic = topic
        message = f"Challenge not found: {challenge_id}"
        if topic:
            message += f" (topic: {topic})"
        super().__init__(message, {"challenge_id": challenge_id, "topic": topic})


class CurriculumError(KeyDojoError):
    """Raised when a challenge definition cannot be loaded."""

    def __init__(self, message: str, file_path: Optional[str] = None, cause: Optional[Exception] = None):
        self.file_path = file_path
        self.cause = cause
        details = {"file_path": file_path}
        if cause:
            details["cause"] = str(cause)
        super().__init__(message, details)


class LaunchError(KeyDojoError):
    """Raised when the editor process cannot be started."""

    def __init__(self, message: str, editor: Optional[str] = None, cause: Optional[Exception] = None):
        self.editor = editor
        self.cause = cause
        details = {"editor": editor}
        if cause:
            details["cause"] = str(cause)
        super().__init__(message, details)


class ResultsFormatError(KeyDojoError):
    """Raised when a results artifact exists but violates the three-line format."""

    def __init__(self, message: str, line: Optional[int] = None):
        self.line = line
        super().__init__(message, {"line": line})


class SaveError(KeyDojoError):
    """Base for save file failures."""

    def __init__(self, message: str, path: Union[str, Path, None] = None, cause: Optional[Exception] = None):
        self.path = Path(path) if path is not None else None
        self.cause = cause
        details = {"path": str(path) if path is not None else None}
        if cause:
            details["cause"] = str(cause)
        super().__init__(message, details)


class CorruptSaveError(SaveError):
    """Raised when the save file exists but cannot be interpreted."""

    def __init__(self, path: Union[str, Path], reason: str, cause: Optional[Exception] = None):
        self.reason = reason
        super().__init__(
            f"Failed to load save file '{path}': {reason}. "
            "Fix or move the file aside; it was left untouched.",
            path=path,
            cause=cause,
        )


class IncompatibleSaveVersionError(SaveError):
    """Raised when the save file was written by a newer keydojo."""

    def __init__(self, path: Union[str, Path], found: int, supported: int):
        self.found = found
        self.supported = supported
        super().__init__(
            f"Save file '{path}' has version {found}, but this keydojo only understands "
            f"versions up to {supported}. Upgrade keydojo to continue; the file was left untouched.",
            path=path,
        )
        self.details.update({"found": found, "supported": supported})


class ConfigurationError(KeyDojoError):
    """Raised when configuration is invalid."""

    def __init__(self, message: str, config_key: Optional[str] = None):
        self.config_key = config_key
        super().__init__(message, {"config_key": config_key})
