"""
Gitignore-style path filtering for copy tasks.

Supported subset:
- blank lines and ``#`` comments are skipped, ``\\#`` / ``\\!`` escape them
- ``!pattern`` re-includes a path excluded by an earlier rule
- ``pattern/`` only matches directories
- a leading or inner ``/`` anchors the pattern to the tree root,
  otherwise it matches at any depth
- ``*``, ``?`` and ``[...]`` match inside one segment, ``**`` across segments

Rules are evaluated in file order and the last matching rule wins. A path
whose ancestor directory is excluded is excluded as well.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from pathlib import Path, PurePath
from typing import Iterable, Optional, Tuple, Union

logger = logging.getLogger(__name__)

IGNORE_FILE_NAME = ".gitignore"


@dataclass(frozen=True)
class IgnoreRule:
    pattern: str
    regex: re.Pattern
    negated: bool = False
    directory_only: bool = False
    anchored: bool = False

    def matches(self, path: str, is_dir: bool) -> bool:
        if self.directory_only and not is_dir:
            return False
        return self.regex.fullmatch(path) is not None


def _translate_class(segment: str, start: int) -> Tuple[Optional[str], int]:
    """Translate ``[...]`` starting at ``start``; returns (regex, next index) or (None, start) if unclosed."""
    i = start + 1
    out = "["
    if i < len(segment) and segment[i] in "!^":
        # a negated class never matches the separator
        out += "^/"
        i += 1
    first = True
    while i < len(segment):
        c = segment[i]
        if c == "]" and not first:
            return out + "]", i + 1
        first = False
        if c == "\\" and i + 1 < len(segment):
            out += re.escape(segment[i + 1])
            i += 2
            continue
        if c == "-":
            out += "-"
        else:
            out += re.escape(c)
        i += 1
    return None, start


def _translate_segment(segment: str) -> str:
    out = []
    i = 0
    while i < len(segment):
        c = segment[i]
        if c == "*":
            # a run of stars inside a segment behaves like one
            while i < len(segment) and segment[i] == "*":
                i += 1
            out.append("[^/]*")
            continue
        if c == "?":
            out.append("[^/]")
        elif c == "[":
            cls, nxt = _translate_class(segment, i)
            if cls is not None:
                out.append(cls)
                i = nxt
                continue
            out.append(re.escape(c))
        elif c == "\\" and i + 1 < len(segment):
            out.append(re.escape(segment[i + 1]))
            i += 2
            continue
        else:
            out.append(re.escape(c))
        i += 1
    return "".join(out)


def _translate_body(body: str, anchored: bool) -> str:
    segments = body.split("/")
    out = []
    need_sep = False
    for i, seg in enumerate(segments):
        last = i == len(segments) - 1
        if seg == "**":
            if last:
                out.append("/.+" if need_sep else ".+")
            else:
                out.append("/(?:.+/)?" if need_sep else "(?:.+/)?")
                need_sep = False
            continue
        if need_sep:
            out.append("/")
        out.append(_translate_segment(seg))
        need_sep = True
    regex = "".join(out)
    if not anchored:
        regex = "(?:.+/)?" + regex
    return regex


def _strip_trailing_space(line: str) -> str:
    stripped = line.rstrip(" \t\r\n")
    # "foo\ " keeps its escaped trailing space
    if stripped.endswith("\\") and len(line.rstrip("\r\n")) > len(stripped):
        stripped += " "
    return stripped


def parse_rule(line: str) -> Optional[IgnoreRule]:
    """Compile one ignore-file line, or return None for blanks and comments."""
    text = _strip_trailing_space(line)
    if not text or text.startswith("#"):
        return None

    negated = False
    if text.startswith("!"):
        negated = True
        text = text[1:]

    directory_only = False
    if text.endswith("/") and not text.endswith("\\/"):
        directory_only = True
        text = text.rstrip("/")

    anchored = False
    if text.startswith("/"):
        anchored = True
        text = text.lstrip("/")
    elif "/" in text:
        anchored = True

    if not text:
        return None

    regex = re.compile(_translate_body(text, anchored))
    return IgnoreRule(
        pattern=line.strip(),
        regex=regex,
        negated=negated,
        directory_only=directory_only,
        anchored=anchored,
    )


def _normalize(path: Union[str, PurePath]) -> str:
    p = str(path).replace("\\", "/")
    while p.startswith("./"):
        p = p[2:]
    return p.strip("/")


@dataclass(frozen=True)
class IgnoreRuleSet:
    """Ordered, immutable set of compiled ignore rules."""
    rules: Tuple[IgnoreRule, ...] = ()

    def __len__(self) -> int:
        return len(self.rules)

    def __bool__(self) -> bool:
        return bool(self.rules)

    def _excluded_leaf(self, path: str, is_dir: bool) -> bool:
        excluded = False
        for rule in self.rules:
            if rule.matches(path, is_dir):
                excluded = not rule.negated
        return excluded

    def included(self, path: Union[str, PurePath], is_dir: bool = False) -> bool:
        """Return True if ``path`` (relative to the tree root) survives filtering."""
        if not self.rules:
            return True
        rel = _normalize(path)
        if not rel:
            return True
        parts = rel.split("/")
        for i in range(1, len(parts)):
            if self._excluded_leaf("/".join(parts[:i]), True):
                return False
        return not self._excluded_leaf(rel, is_dir)


EMPTY_RULE_SET = IgnoreRuleSet()


def compile_rules(contents: Union[str, Iterable[str]]) -> IgnoreRuleSet:
    """Compile ignore-file contents (text or lines) into a rule set."""
    lines = contents.splitlines() if isinstance(contents, str) else contents
    rules = []
    for line in lines:
        rule = parse_rule(line)
        if rule is not None:
            rules.append(rule)
    return IgnoreRuleSet(tuple(rules))


def load_rules(ignore_file: Optional[Path]) -> IgnoreRuleSet:
    """Read and compile an ignore file; a missing file yields the empty set."""
    if ignore_file is None:
        return EMPTY_RULE_SET
    p = Path(ignore_file)
    if not p.is_file():
        logger.debug(f"No ignore file at {p}")
        return EMPTY_RULE_SET
    rule_set = compile_rules(p.read_text(encoding="utf-8", errors="replace"))
    logger.debug(f"Loaded {len(rule_set)} ignore rules from {p}")
    return rule_set


def included(rule_set: IgnoreRuleSet, path: Union[str, PurePath], is_dir: bool = False) -> bool:
    return rule_set.included(path, is_dir)
