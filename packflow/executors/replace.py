"""
Replace executor: regex substitution over the full text of one or more files.

Replacement templates use ``$`` references:

- ``$0`` / ``${0}``: the whole match
- ``$1`` ... ``$n`` / ``${n}``: numbered groups
- ``$name`` / ``${name}``: named groups
- ``$$``: a literal dollar sign

Groups that did not participate in the match, and references to groups the
pattern does not define, expand to the empty string.
"""

from __future__ import annotations

import glob
import logging
import re
import stat
from pathlib import Path
from typing import Callable, List, Tuple, Union

from packflow.core.errors import EncodingError, IoError, PatternError, TargetNotFoundError
from packflow.core.models import ExecutionResult, ReplaceTask
from packflow.core.paths import ResolvedContext, resolve
from packflow.utils.file_management import FileManager

from .base import run_guarded

logger = logging.getLogger(__name__)

_NAME_RE = re.compile(r"[A-Za-z_][A-Za-z0-9_]*")
_DIGITS_RE = re.compile(r"[0-9]+")

_MAGIC_RE = re.compile(r"[*?[]")


class _Named(str):
    """Named group reference inside a parsed template."""


GroupRef = Union[int, _Named]


def parse_template(template: str) -> List[Union[str, GroupRef]]:
    """Split a replacement template into literal strings and group references
    (``int`` for numbered groups, ``_Named`` for named ones)."""
    pieces: List[Union[str, GroupRef]] = []
    literal = []
    i = 0
    n = len(template)
    while i < n:
        c = template[i]
        if c != "$" or i + 1 >= n:
            literal.append(c)
            i += 1
            continue
        nxt = template[i + 1]
        ref: Union[GroupRef, None] = None
        if nxt == "$":
            literal.append("$")
            i += 2
            continue
        if nxt == "{":
            close = template.find("}", i + 2)
            if close != -1:
                name = template[i + 2:close]
                if name.isdigit():
                    ref = int(name)
                elif _NAME_RE.fullmatch(name):
                    ref = _Named(name)
                if ref is not None:
                    i = close + 1
        else:
            m = _DIGITS_RE.match(template, i + 1)
            if m:
                ref = int(m.group(0))
                i = m.end()
            else:
                m = _NAME_RE.match(template, i + 1)
                if m:
                    ref = _Named(m.group(0))
                    i = m.end()
        if ref is None:
            literal.append(c)
            i += 1
            continue
        if literal:
            pieces.append("".join(literal))
            literal = []
        pieces.append(ref)
    if literal:
        pieces.append("".join(literal))
    return pieces


def compile_replacement(regex: re.Pattern, template: str) -> Callable[[re.Match], str]:
    """Build a ``re.sub`` callback expanding ``template``; unknown groups expand to ''."""
    pieces: List[Union[str, GroupRef]] = []
    for p in parse_template(template):
        if isinstance(p, _Named) and p not in regex.groupindex:
            logger.warning(f"Replacement references unknown group '{p}'; it expands to nothing")
            continue
        if isinstance(p, int) and p > regex.groups:
            logger.warning(f"Replacement references group {p} but the pattern has {regex.groups}; it expands to nothing")
            continue
        pieces.append(p)

    def expand(m: re.Match) -> str:
        out = []
        for p in pieces:
            if isinstance(p, (int, _Named)):
                out.append(m.group(p) or "")
            else:
                out.append(p)
        return "".join(out)

    return expand


def compile_pattern(pattern: str) -> re.Pattern:
    try:
        return re.compile(pattern)
    except re.error as e:
        raise PatternError(f"Invalid regular expression {pattern!r}: {e}", detail=pattern) from e


def _resolve_targets(task: ReplaceTask, context: ResolvedContext) -> List[Path]:
    target = resolve(task.target, context)
    if target.is_file():
        return [target]
    if _MAGIC_RE.search(task.target):
        matches = sorted(Path(p) for p in glob.glob(str(target), recursive=True))
        files = [p for p in matches if p.is_file()]
        if files:
            return files
        raise TargetNotFoundError(f"No regular file matches {target}", detail=str(target))
    if target.exists():
        raise TargetNotFoundError(f"Replace target is not a regular file: {target}", detail=str(target))
    raise TargetNotFoundError(f"Replace target does not exist: {target}", detail=str(target))


def _read_text(path: Path, encoding: str) -> str:
    try:
        data = path.read_bytes()
    except OSError as e:
        raise IoError.from_os_error(e, path) from e
    try:
        return data.decode(encoding)
    except LookupError as e:
        raise EncodingError(f"Unknown encoding {encoding!r} for {path}", detail=str(path)) from e
    except UnicodeDecodeError as e:
        raise EncodingError(
            f"{path} is not valid {encoding} (byte offset {e.start})", detail=str(path)
        ) from e


def replace_text(task: ReplaceTask, context: ResolvedContext) -> str:
    targets = _resolve_targets(task, context)
    logger.info(f"Replacing {task.pattern} with {task.replacement} in {task.target}")

    loaded: List[Tuple[Path, str]] = [(p, _read_text(p, task.encoding)) for p in targets]
    regex = compile_pattern(task.pattern)
    expand = compile_replacement(regex, task.replacement)

    # Transform everything first so a failure leaves every file untouched
    pending: List[Tuple[Path, str]] = []
    total = 0
    for path, text in loaded:
        new_text, count = regex.subn(expand, text)
        total += count
        if count == 0:
            logger.info(f"No match for {task.pattern!r} in {path}; left unchanged")
            continue
        try:
            new_text.encode(task.encoding)
        except UnicodeEncodeError as e:
            raise EncodingError(
                f"Replacement cannot be encoded as {task.encoding} in {path}", detail=str(path)
            ) from e
        pending.append((path, new_text))

    for path, new_text in pending:
        try:
            mode = stat.S_IMODE(path.stat().st_mode)
            FileManager.atomic_write_text(path, new_text, encoding=task.encoding, mode=mode)
        except OSError as e:
            raise IoError.from_os_error(e, path) from e

    return f"{total} replacement(s) in {len(pending)} of {len(targets)} file(s)"


def execute_replace(task: ReplaceTask, context: ResolvedContext, index: int = 0) -> ExecutionResult:
    return run_guarded("replace", replace_text, task, context, index)
