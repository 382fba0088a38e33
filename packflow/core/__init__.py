"""
Core modules: task models, configuration loading, path resolution, ignore
matching and orchestration.
"""

from .errors import (
    ErrorKind, PackflowError, InvalidPathError, SourceNotFoundError,
    TargetNotFoundError, EncodingError, PatternError, IoError, ProcessError,
    ConfigurationError,
)
from .models import (
    CopyTask, ReplaceTask, RunTask, Task, ExecutionResult, Outcome,
    RunReport, RunStatus,
)
from .paths import ResolvedContext, resolve
from .ignore import IgnoreRule, IgnoreRuleSet, compile_rules, load_rules
from .configuration import ConfigurationLoader, parse_tasks

__all__ = [
    "ErrorKind",
    "PackflowError",
    "InvalidPathError",
    "SourceNotFoundError",
    "TargetNotFoundError",
    "EncodingError",
    "PatternError",
    "IoError",
    "ProcessError",
    "ConfigurationError",
    "CopyTask",
    "ReplaceTask",
    "RunTask",
    "Task",
    "ExecutionResult",
    "Outcome",
    "RunReport",
    "RunStatus",
    "ResolvedContext",
    "resolve",
    "IgnoreRule",
    "IgnoreRuleSet",
    "compile_rules",
    "load_rules",
    "ConfigurationLoader",
    "parse_tasks",
]
