"""
Task boundary shared by the executors: turns raised engine errors into
FAILURE results.
"""

from __future__ import annotations

import logging
import time
from typing import Any, Callable, Optional

from packflow.core.errors import IoError, PackflowError
from packflow.core.models import ExecutionResult
from packflow.core.paths import ResolvedContext

logger = logging.getLogger(__name__)

TaskBody = Callable[[Any, ResolvedContext], Optional[str]]


def run_guarded(kind: str, body: TaskBody, task: Any, context: ResolvedContext, index: int = 0) -> ExecutionResult:
    """Run ``body`` and report its outcome as an ExecutionResult.

    PackflowError and OSError become FAILURE results; anything else is a bug
    and propagates.
    """
    started = time.time()
    try:
        message = body(task, context)
    except PackflowError as e:
        result = ExecutionResult.failure(index, kind, e.kind, e.detail, str(e))
    except OSError as e:
        err = IoError.from_os_error(e)
        result = ExecutionResult.failure(index, kind, err.kind, err.detail, str(err))
    else:
        result = ExecutionResult.success(index, kind, message or "")
    result.duration = time.time() - started
    return result
