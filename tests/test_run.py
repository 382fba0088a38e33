import sys

import pytest

from packflow.core.errors import ErrorKind, ProcessError
from packflow.core.models import RunTask
from packflow.executors import run as run_mod
from packflow.executors.run import build_platform_argv, execute_run, spawn_platform_command

posix_only = pytest.mark.skipif(sys.platform.startswith("win"), reason="uses sh -c")


def test_argv_per_platform():
    assert build_platform_argv("echo hi", ["a"], windows=True) == ["cmd", "/C", "echo hi", "a"]
    assert build_platform_argv("echo hi", ["a", "b c"], windows=False) == ["sh", "-c", "echo hi", "a", "b c"]


def test_argv_follows_host(monkeypatch):
    monkeypatch.setattr(run_mod, "is_windows", lambda: True)
    assert build_platform_argv("dir")[:2] == ["cmd", "/C"]
    monkeypatch.setattr(run_mod, "is_windows", lambda: False)
    assert build_platform_argv("ls")[:2] == ["sh", "-c"]


@posix_only
def test_exit_zero_is_success(context):
    result = execute_run(RunTask(command="exit 0"), context)
    assert result.ok
    assert result.kind == "run"


@posix_only
def test_exit_one_is_process_error(context):
    result = execute_run(RunTask(command="exit 1"), context, index=2)
    assert not result.ok
    assert result.index == 2
    assert result.error_kind is ErrorKind.PROCESS_ERROR
    assert result.detail == 1


@posix_only
def test_runs_in_base_dir(tmp_path, context):
    assert execute_run(RunTask(command="pwd -P > where.txt"), context).ok
    assert (tmp_path / "where.txt").read_text().strip() == str(tmp_path.resolve())


@posix_only
def test_args_are_appended_not_interpolated(tmp_path, context):
    task = RunTask(command='printf "%s|%s" "$0" "$1" > args.txt', args=["first", "two words; rm -rf x"])
    assert execute_run(task, context).ok
    assert (tmp_path / "args.txt").read_text() == "first|two words; rm -rf x"


def test_spawn_failure_is_process_error(tmp_path, monkeypatch):
    def boom(*a, **kw):
        raise FileNotFoundError(2, "No such file or directory", "sh")

    monkeypatch.setattr(run_mod.subprocess, "run", boom)
    with pytest.raises(ProcessError) as exc:
        spawn_platform_command("anything", cwd=tmp_path)
    assert "No such file" in str(exc.value.detail)


def test_spawn_failure_result(context, monkeypatch):
    def boom(*a, **kw):
        raise PermissionError(13, "Permission denied", "sh")

    monkeypatch.setattr(run_mod.subprocess, "run", boom)
    result = execute_run(RunTask(command="x"), context)
    assert result.error_kind is ErrorKind.PROCESS_ERROR
