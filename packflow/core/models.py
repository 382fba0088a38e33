"""
Pydantic models for the task list (copy / replace / run) and dataclasses for
per-task results and the run report.
"""

from __future__ import annotations

import time
from dataclasses import dataclass, field
from enum import Enum
from typing import Annotated, Any, List, Literal, Optional, Union

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, field_validator

from .errors import ErrorKind


class _TaskBase(BaseModel):
    # Tasks are immutable once loaded and carry no execution state
    model_config = ConfigDict(frozen=True, extra="forbid", populate_by_name=True)


class CopyTask(_TaskBase):
    kind: Literal["copy"] = "copy"
    source: str
    destination: str = Field(validation_alias=AliasChoices("destination", "dest"))
    # Override for the ignore file; defaults to <source>/.gitignore
    gitignore: Optional[str] = Field(default=None, validation_alias=AliasChoices("gitignore", "gitignore_path"))
    use_gitignore: bool = True

    def describe(self) -> str:
        return f"copy {self.source} -> {self.destination}"


class ReplaceTask(_TaskBase):
    kind: Literal["replace"] = "replace"
    # 'source' is the original tool's key for the rewritten file
    target: str = Field(validation_alias=AliasChoices("target", "source"))
    pattern: str = Field(validation_alias=AliasChoices("pattern", "regex"))
    replacement: str
    encoding: str = "utf-8"

    @field_validator("replacement", mode="before")
    @classmethod
    def replacement_scalar(cls, v: Any) -> Any:
        # YAML turns `replacement: 2.0` into a float
        if isinstance(v, (int, float)) and not isinstance(v, bool):
            return str(v)
        return v

    def describe(self) -> str:
        return f"replace /{self.pattern}/ in {self.target}"


class RunTask(_TaskBase):
    kind: Literal["run"] = "run"
    command: str
    args: List[str] = Field(default_factory=list)

    @field_validator("command")
    @classmethod
    def command_not_blank(cls, v: str) -> str:
        if not v.strip():
            raise ValueError("command must not be empty")
        return v

    @field_validator("args", mode="before")
    @classmethod
    def args_as_strings(cls, v: Any) -> Any:
        if v is None:
            return []
        if isinstance(v, (list, tuple)):
            return [str(a) if isinstance(a, (int, float)) and not isinstance(a, bool) else a for a in v]
        return v

    def describe(self) -> str:
        return "run " + " ".join([self.command, *self.args])


Task = Annotated[Union[CopyTask, ReplaceTask, RunTask], Field(discriminator="kind")]

TASK_KINDS = ("copy", "replace", "run")


class PackflowConfig(BaseModel):
    """Validated configuration document: the ordered task list."""
    model_config = ConfigDict(extra="forbid")

    tasks: List[Task] = Field(default_factory=list)


# ----- Execution results -----

class Outcome(Enum):
    SUCCESS = "success"
    FAILURE = "failure"


class RunStatus(Enum):
    NOT_STARTED = "not_started"
    RUNNING = "running"
    COMPLETED = "completed"
    ABORTED = "aborted"


@dataclass
class ExecutionResult:
    index: int
    kind: str
    outcome: Outcome = Outcome.SUCCESS
    error_kind: Optional[ErrorKind] = None
    detail: Optional[Any] = None
    message: str = ""
    duration: float = 0.0

    @property
    def ok(self) -> bool:
        return self.outcome is Outcome.SUCCESS

    @classmethod
    def success(cls, index: int, kind: str, message: str = "") -> "ExecutionResult":
        return cls(index=index, kind=kind, outcome=Outcome.SUCCESS, message=message)

    @classmethod
    def failure(
        cls, index: int, kind: str, error_kind: ErrorKind, detail: Any = None, message: str = ""
    ) -> "ExecutionResult":
        return cls(
            index=index,
            kind=kind,
            outcome=Outcome.FAILURE,
            error_kind=error_kind,
            detail=detail,
            message=message,
        )


@dataclass
class RunReport:
    status: RunStatus = RunStatus.NOT_STARTED
    results: List[ExecutionResult] = field(default_factory=list)
    current_index: Optional[int] = None
    started_at: Optional[float] = None
    finished_at: Optional[float] = None

    @property
    def failed(self) -> Optional[ExecutionResult]:
        for r in self.results:
            if not r.ok:
                return r
        return None

    @property
    def failed_index(self) -> Optional[int]:
        f = self.failed
        return f.index if f else None

    def mark_running(self, index: int) -> None:
        if self.started_at is None:
            self.started_at = time.time()
        self.status = RunStatus.RUNNING
        self.current_index = index

    def finish(self, status: RunStatus) -> None:
        self.status = status
        self.current_index = None
        self.finished_at = time.time()
