import sys

import pytest

from packflow.core import orchestrator as orch_mod
from packflow.core.errors import ErrorKind
from packflow.core.models import CopyTask, ExecutionResult, ReplaceTask, RunStatus, RunTask
from packflow.core.orchestrator import TaskOrchestrator, run_tasks

from .conftest import tree


class _Recorder:
    """Stand-in executor table: records calls and fails on demand."""

    def __init__(self, fail_at=()):
        self.calls = []
        self.fail_at = set(fail_at)

    def __call__(self, kind):
        def execute(task, context, index):
            self.calls.append(index)
            if index in self.fail_at:
                return ExecutionResult.failure(index, kind, ErrorKind.PROCESS_ERROR, 1, "boom")
            return ExecutionResult.success(index, kind)
        return execute


def test_fail_fast_stops_after_failure(context, monkeypatch):
    rec = _Recorder(fail_at={1})
    monkeypatch.setattr(orch_mod, "get_executor", rec)
    tasks = [RunTask(command="a"), RunTask(command="b"), RunTask(command="c")]
    report = TaskOrchestrator(tasks, context).run()
    assert rec.calls == [0, 1]
    assert report.status is RunStatus.ABORTED
    assert report.failed_index == 1
    assert report.failed.error_kind is ErrorKind.PROCESS_ERROR
    assert len(report.results) == 2


def test_all_success_completes_in_order(context, monkeypatch):
    rec = _Recorder()
    monkeypatch.setattr(orch_mod, "get_executor", rec)
    tasks = [RunTask(command=str(i)) for i in range(4)]
    report = run_tasks(tasks, context)
    assert rec.calls == [0, 1, 2, 3]
    assert report.status is RunStatus.COMPLETED
    assert report.failed is None
    assert report.started_at is not None and report.finished_at >= report.started_at


def test_empty_task_list_completes(context):
    report = TaskOrchestrator([], context).run()
    assert report.status is RunStatus.COMPLETED
    assert report.results == []


def test_run_only_once(context):
    orch = TaskOrchestrator([], context)
    orch.run()
    with pytest.raises(RuntimeError):
        orch.run()


def test_on_result_callback(context, monkeypatch):
    monkeypatch.setattr(orch_mod, "get_executor", _Recorder())
    seen = []
    tasks = [RunTask(command="x"), RunTask(command="y")]
    TaskOrchestrator(tasks, context, on_result=lambda t, r: seen.append((t.command, r.index))).run()
    assert seen == [("x", 0), ("y", 1)]


def test_dry_run_touches_nothing(tmp_path, context):
    (tmp_path / "src").mkdir()
    (tmp_path / "src" / "a.txt").write_text("a")
    tasks = [CopyTask(source="src", destination="dst"), RunTask(command="exit 1")]
    report = TaskOrchestrator(tasks, context, dry_run=True).run()
    assert report.status is RunStatus.COMPLETED
    assert not (tmp_path / "dst").exists()


@pytest.mark.skipif(sys.platform.startswith("win"), reason="uses sh -c")
def test_end_to_end_pipeline(tmp_path, context):
    src = tmp_path / "src"
    (src / "sub").mkdir(parents=True)
    (src / "a.txt").write_text("version=1.0.0")
    (src / "b.log").write_text("log")
    (src / "sub" / "c.txt").write_text("c")
    (src / ".gitignore").write_text("*.log\n")
    tasks = [
        CopyTask(source="src", destination="dst"),
        ReplaceTask(target="dst/a.txt", pattern=r"version=\d+\.\d+\.\d+", replacement="version=2.0.0"),
        RunTask(command="test -f dst/a.txt"),
    ]
    report = TaskOrchestrator(tasks, context).run()
    assert report.status is RunStatus.COMPLETED
    assert tree(tmp_path / "dst") == ["a.txt", "sub/c.txt"]
    assert (tmp_path / "dst" / "a.txt").read_text() == "version=2.0.0"
    assert (src / "a.txt").read_text() == "version=1.0.0"


@pytest.mark.skipif(sys.platform.startswith("win"), reason="uses sh -c")
def test_failing_command_aborts_and_earlier_effects_stand(tmp_path, context):
    (tmp_path / "f.txt").write_text("foo")
    tasks = [
        ReplaceTask(target="f.txt", pattern="foo", replacement="bar"),
        RunTask(command="exit 1"),
        RunTask(command="touch never.txt"),
    ]
    report = TaskOrchestrator(tasks, context).run()
    assert report.status is RunStatus.ABORTED
    assert report.failed_index == 1
    assert report.failed.detail == 1
    assert (tmp_path / "f.txt").read_text() == "bar"
    assert not (tmp_path / "never.txt").exists()
