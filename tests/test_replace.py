import os
import stat
import sys

import pytest

from packflow.core.errors import ErrorKind, PatternError
from packflow.core.models import ReplaceTask
from packflow.executors.replace import compile_pattern, compile_replacement, execute_replace, parse_template


def test_version_bump(tmp_path, context):
    f = tmp_path / "version.txt"
    f.write_text("version=1.0.0")
    task = ReplaceTask(target="version.txt", pattern=r"version=\d+\.\d+\.\d+", replacement="version=2.0.0")
    result = execute_replace(task, context)
    assert result.ok
    assert f.read_text() == "version=2.0.0"


def test_all_matches_replaced_with_groups(tmp_path, context):
    f = tmp_path / "deps.txt"
    f.write_text("a-1\nb-2\nc-3\n")
    task = ReplaceTask(target="deps.txt", pattern=r"(\w)-(\d)", replacement="$2:$1 [$0]")
    assert execute_replace(task, context).ok
    assert f.read_text() == "1:a [a-1]\n2:b [b-2]\n3:c [c-3]\n"


def test_named_groups_and_literal_dollar(tmp_path, context):
    f = tmp_path / "price.txt"
    f.write_text("cost: 10")
    task = ReplaceTask(target="price.txt", pattern=r"(?P<n>\d+)", replacement="$$${n}.00")
    assert execute_replace(task, context).ok
    assert f.read_text() == "cost: $10.00"


def test_zero_matches_is_success_and_untouched(tmp_path, context):
    f = tmp_path / "f.txt"
    f.write_bytes(b"nothing here\r\n")
    before = f.stat().st_mtime_ns
    result = execute_replace(ReplaceTask(target="f.txt", pattern="foo", replacement="bar"), context)
    assert result.ok
    assert f.read_bytes() == b"nothing here\r\n"
    assert f.stat().st_mtime_ns == before


def test_idempotent_fixed_point(tmp_path, context):
    f = tmp_path / "f.txt"
    f.write_text("foo foo")
    task = ReplaceTask(target="f.txt", pattern="foo", replacement="bar")
    assert execute_replace(task, context).ok
    once = f.read_text()
    assert execute_replace(task, context).ok
    assert f.read_text() == once == "bar bar"


def test_line_endings_preserved(tmp_path, context):
    f = tmp_path / "f.txt"
    f.write_bytes(b"a=1\r\nb=2\r\n")
    assert execute_replace(ReplaceTask(target="f.txt", pattern="=", replacement=": "), context).ok
    assert f.read_bytes() == b"a: 1\r\nb: 2\r\n"


def test_missing_target(context):
    result = execute_replace(ReplaceTask(target="missing.txt", pattern="a", replacement="b"), context)
    assert result.error_kind is ErrorKind.TARGET_NOT_FOUND


def test_directory_target(tmp_path, context):
    (tmp_path / "d").mkdir()
    result = execute_replace(ReplaceTask(target="d", pattern="a", replacement="b"), context)
    assert result.error_kind is ErrorKind.TARGET_NOT_FOUND


def test_invalid_pattern_leaves_file(tmp_path, context):
    f = tmp_path / "f.txt"
    f.write_text("abc")
    result = execute_replace(ReplaceTask(target="f.txt", pattern="(unclosed", replacement="x"), context)
    assert result.error_kind is ErrorKind.PATTERN_ERROR
    assert f.read_text() == "abc"


def test_unknown_group_reference_expands_empty(tmp_path, context):
    f = tmp_path / "f.txt"
    f.write_text("abc")
    result = execute_replace(ReplaceTask(target="f.txt", pattern="(b)", replacement="[$2]"), context)
    assert result.ok
    assert f.read_text() == "a[]c"


def test_dollar_word_in_replacement(tmp_path, context):
    f = tmp_path / "run.sh"
    f.write_text("PATH=old\n")
    result = execute_replace(ReplaceTask(target="run.sh", pattern="old", replacement="$HOME/bin"), context)
    assert result.ok
    assert f.read_text() == "PATH=/bin\n"


def test_undecodable_bytes(tmp_path, context):
    f = tmp_path / "bin.dat"
    f.write_bytes(b"\xff\xfe\x00abc")
    result = execute_replace(ReplaceTask(target="bin.dat", pattern="abc", replacement="x"), context)
    assert result.error_kind is ErrorKind.ENCODING_ERROR
    assert f.read_bytes() == b"\xff\xfe\x00abc"


def test_declared_encoding(tmp_path, context):
    f = tmp_path / "latin.txt"
    f.write_bytes("café".encode("latin-1"))
    task = ReplaceTask(target="latin.txt", pattern="é", replacement="e", encoding="latin-1")
    assert execute_replace(task, context).ok
    assert f.read_bytes() == b"cafe"


def test_glob_target_rewrites_every_match(tmp_path, context):
    (tmp_path / "conf").mkdir()
    (tmp_path / "conf" / "a.ini").write_text("host=old")
    (tmp_path / "conf" / "b.ini").write_text("host=old\nport=1")
    (tmp_path / "conf" / "c.txt").write_text("host=old")
    task = ReplaceTask(target="conf/*.ini", pattern="old", replacement="new")
    assert execute_replace(task, context).ok
    assert (tmp_path / "conf" / "a.ini").read_text() == "host=new"
    assert (tmp_path / "conf" / "b.ini").read_text() == "host=new\nport=1"
    assert (tmp_path / "conf" / "c.txt").read_text() == "host=old"


def test_glob_without_matches(context):
    result = execute_replace(ReplaceTask(target="conf/*.ini", pattern="a", replacement="b"), context)
    assert result.error_kind is ErrorKind.TARGET_NOT_FOUND


@pytest.mark.skipif(sys.platform.startswith("win"), reason="POSIX permission bits")
def test_mode_preserved(tmp_path, context):
    f = tmp_path / "run.sh"
    f.write_text("echo old\n")
    os.chmod(f, 0o755)
    assert execute_replace(ReplaceTask(target="run.sh", pattern="old", replacement="new"), context).ok
    assert stat.S_IMODE(f.stat().st_mode) == 0o755
    assert [p.name for p in tmp_path.iterdir()] == ["run.sh"]


def test_parse_template():
    assert parse_template("a$1b") == ["a", 1, "b"]
    assert parse_template("${10}x") == [10, "x"]
    assert parse_template("$$") == ["$"]
    assert parse_template("cost $") == ["cost $"]
    assert parse_template("${}") == ["${}"]
    pieces = parse_template("$name!")
    assert pieces[0] == "name" and pieces[1] == "!"


def test_unmatched_optional_group_expands_empty():
    regex = compile_pattern(r"a(b)?")
    expand = compile_replacement(regex, "[$1]")
    assert regex.sub(expand, "a ab") == "[] [b]"


def test_compile_pattern_error():
    with pytest.raises(PatternError):
        compile_pattern("[")


def test_glob_target_undecodable_file_leaves_all_untouched(tmp_path, context):
    conf = tmp_path / "conf"
    conf.mkdir()
    (conf / "a.ini").write_bytes(b"host=old\n")
    (conf / "b.ini").write_bytes(b"\xff host=old\n")
    (conf / "c.ini").write_bytes(b"host=old\n")
    task = ReplaceTask(target="conf/*.ini", pattern="old", replacement="new")
    result = execute_replace(task, context)
    assert result.error_kind is ErrorKind.ENCODING_ERROR
    assert "b.ini" in str(result.detail)
    assert (conf / "a.ini").read_bytes() == b"host=old\n"
    assert (conf / "b.ini").read_bytes() == b"\xff host=old\n"
    assert (conf / "c.ini").read_bytes() == b"host=old\n"
