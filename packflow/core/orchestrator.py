"""
Task orchestrator: runs the task list strictly in order and stops at the
first failure.

State machine per run: NOT_STARTED -> RUNNING(index) -> COMPLETED | ABORTED.
There is no retry; re-running the whole configuration is the operator's call.
"""

from __future__ import annotations

import logging
from typing import Callable, List, Optional, Sequence

from packflow.executors import get_executor

from .models import ExecutionResult, RunReport, RunStatus, Task
from .paths import ResolvedContext

logger = logging.getLogger(__name__)

ResultCallback = Callable[[Task, ExecutionResult], None]


class TaskOrchestrator:
    def __init__(
        self,
        tasks: Sequence[Task],
        context: ResolvedContext,
        *,
        on_result: Optional[ResultCallback] = None,
        dry_run: bool = False,
    ):
        self.tasks: List[Task] = list(tasks)
        self.context = context
        self.on_result = on_result
        self.dry_run = dry_run
        self.report = RunReport()

    @property
    def status(self) -> RunStatus:
        return self.report.status

    def _execute(self, index: int, task: Task) -> ExecutionResult:
        if self.dry_run:
            logger.info(f"[dry-run] task {index}: {task.describe()}")
            return ExecutionResult.success(index, task.kind, "dry-run")
        executor = get_executor(task.kind)
        return executor(task, self.context, index)

    def run(self) -> RunReport:
        if self.report.status is not RunStatus.NOT_STARTED:
            raise RuntimeError("TaskOrchestrator.run() may only be called once")

        logger.info(f"Running {len(self.tasks)} task(s) in {self.context.base_dir}")
        for index, task in enumerate(self.tasks):
            self.report.mark_running(index)
            logger.info(f"Task {index}: {task.describe()}")
            result = self._execute(index, task)
            self.report.results.append(result)
            if self.on_result is not None:
                self.on_result(task, result)

            if not result.ok:
                logger.error(
                    f"Task {index} ({task.kind}) failed: {result.error_kind.value}: {result.message}"
                )
                self.report.finish(RunStatus.ABORTED)
                skipped = len(self.tasks) - index - 1
                if skipped:
                    logger.warning(f"Skipping {skipped} remaining task(s)")
                return self.report
            logger.debug(f"Task {index} done in {result.duration:.2f}s: {result.message}")

        self.report.finish(RunStatus.COMPLETED)
        logger.info("All tasks executed successfully")
        return self.report


def run_tasks(tasks: Sequence[Task], context: ResolvedContext, **kwargs) -> RunReport:
    """Convenience wrapper executing through the TaskOrchestrator class."""
    return TaskOrchestrator(tasks, context, **kwargs).run()
