"""
Error kinds and exceptions raised by the task execution engine.

Executors raise subclasses of PackflowError; the orchestrator converts them
into FAILURE results at the task boundary.
"""

from __future__ import annotations

from enum import Enum
from typing import Any, Optional


class ErrorKind(Enum):
    """Categories of errors in the engine."""
    INVALID_PATH = "invalid_path"
    SOURCE_NOT_FOUND = "source_not_found"
    TARGET_NOT_FOUND = "target_not_found"
    ENCODING_ERROR = "encoding_error"
    PATTERN_ERROR = "pattern_error"
    IO_ERROR = "io_error"
    PROCESS_ERROR = "process_error"
    CONFIGURATION_ERROR = "configuration_error"


class PackflowError(Exception):
    """Base error carrying a kind and the path, command or code it concerns."""

    kind: ErrorKind = ErrorKind.IO_ERROR

    def __init__(self, message: str, detail: Optional[Any] = None):
        super().__init__(message)
        self.message = message
        self.detail = detail

    def __str__(self) -> str:
        return self.message


class InvalidPathError(PackflowError):
    kind = ErrorKind.INVALID_PATH


class SourceNotFoundError(PackflowError):
    kind = ErrorKind.SOURCE_NOT_FOUND


class TargetNotFoundError(PackflowError):
    kind = ErrorKind.TARGET_NOT_FOUND


class EncodingError(PackflowError):
    kind = ErrorKind.ENCODING_ERROR


class PatternError(PackflowError):
    kind = ErrorKind.PATTERN_ERROR


class IoError(PackflowError):
    kind = ErrorKind.IO_ERROR

    @classmethod
    def from_os_error(cls, exc: OSError, path: Any = None) -> "IoError":
        where = path if path is not None else (exc.filename or "?")
        reason = exc.strerror or str(exc)
        return cls(f"I/O error on {where}: {reason}", detail=str(where))


class ProcessError(PackflowError):
    """Non-zero exit code (detail is the int code) or spawn failure (detail is the message)."""
    kind = ErrorKind.PROCESS_ERROR


class ConfigurationError(PackflowError):
    kind = ErrorKind.CONFIGURATION_ERROR
