"""Filesystem walking with include/exclude glob patterns."""

import logging
import os
import re
from collections.abc import Iterator
from dataclasses import dataclass, field
from functools import lru_cache
from pathlib import Path
from typing import Optional

logger = logging.getLogger(__name__)

# Never navigable, whatever the include patterns say
SKIP_EXTENSIONS = (".map",)


def _expand_braces(pattern: str) -> list[str]:
    """Expand the first {a,b} group recursively: 'x.{a,b}' -> ['x.a', 'x.b']."""
    match = re.search(r"\{([^{}]*)\}", pattern)
    if not match:
        return [pattern]
    head, tail = pattern[: match.start()], pattern[match.end() :]
    expanded: list[str] = []
    for option in match.group(1).split(","):
        expanded.extend(_expand_braces(head + option + tail))
    return expanded


def _translate(pattern: str) -> str:
    """Translate one brace-free glob into a regex body for '/'-separated paths."""
    out: list[str] = []
    i, n = 0, len(pattern)
    while i < n:
        c = pattern[i]
        if c == "*":
            if pattern.startswith("**", i):
                i += 2
                if i < n and pattern[i] == "/":
                    # '**/' spans zero or more whole directories
                    out.append("(?:[^/]+/)*")
                    i += 1
                else:
                    out.append(".*")
                continue
            out.append("[^/]*")
        elif c == "?":
            out.append("[^/]")
        elif c == "[":
            end = pattern.find("]", i + 1)
            if end == -1:
                out.append(re.escape(c))
            else:
                body = pattern[i + 1 : end]
                if body.startswith("!"):
                    body = "^" + body[1:]
                out.append(f"[{body}]")
                i = end
        else:
            out.append(re.escape(c))
        i += 1
    return "".join(out)


@lru_cache(maxsize=256)
def compile_glob(pattern: str) -> "re.Pattern[str]":
    """
    Compile a path glob into an anchored regex.

    Supports '**' (any number of directories), '*' and '?' (within one
    path segment), '[seq]'/'[!seq]' and '{a,b}' alternation.

    Example:
        >>> bool(compile_glob("**/*.html").match("index.html"))
        True
        >>> bool(compile_glob("**/*.html").match("blog/2024/post.html"))
        True
    """
    pattern = pattern.strip()
    if pattern.startswith("./"):
        pattern = pattern[2:]
    pattern = pattern.lstrip("/")
    bodies = [_translate(p) for p in _expand_braces(pattern)]
    return re.compile("^(?:" + "|".join(bodies) + ")$")


def matches_any(rel_path: str, patterns: list[str]) -> bool:
    """Check if a POSIX relative path matches any glob pattern."""
    return any(compile_glob(p).match(rel_path) for p in patterns)


@dataclass
class WalkResult:
    """
    Outcome of walking the content root.

    Attributes:
        files: Matched files as sorted POSIX paths relative to the root
        skipped: Files matched by the globs but dropped by the skip list
    """

    files: list[str] = field(default_factory=list)
    skipped: list[str] = field(default_factory=list)

    @property
    def skipped_count(self) -> int:
        return len(self.skipped)


class FileWalker:
    """
    Enumerate files under a root directory by glob patterns.

    Hidden entries (names starting with '.') are never matched, symlinked
    directories are not descended, and directories themselves are never
    returned.

    Example:
        walker = FileWalker(Path("dist"), include_patterns=["**/*.html"])
        for rel in walker.walk().files:
            print(rel)
    """

    def __init__(
        self,
        root: Path,
        include_patterns: Optional[list[str]] = None,
        exclude_patterns: Optional[list[str]] = None,
    ):
        """
        Initialize the walker.

        Args:
            root: Content root directory
            include_patterns: Globs a file must match (default: everything)
            exclude_patterns: Globs a file must not match
        """
        self.root = Path(root)
        self.include_patterns = include_patterns or ["**/*"]
        self.exclude_patterns = exclude_patterns or []

    def _iter_files(self) -> Iterator[str]:
        for dirpath, dirnames, filenames in os.walk(self.root, followlinks=False):
            dirnames[:] = sorted(d for d in dirnames if not d.startswith("."))
            rel_dir = os.path.relpath(dirpath, self.root)
            for name in sorted(filenames):
                if name.startswith("."):
                    continue
                full = os.path.join(dirpath, name)
                if not os.path.isfile(full):
                    continue
                rel = name if rel_dir == "." else f"{rel_dir}/{name}"
                yield rel.replace(os.sep, "/")

    def walk(self) -> WalkResult:
        """
        Walk the root and apply include, exclude and skip-list rules.

        Returns:
            WalkResult with sorted, deduplicated relative paths
        """
        result = WalkResult()
        seen: set[str] = set()

        for rel in self._iter_files():
            if rel in seen:
                continue
            if not matches_any(rel, self.include_patterns):
                continue
            if matches_any(rel, self.exclude_patterns):
                continue
            seen.add(rel)

            if rel.lower().endswith(SKIP_EXTENSIONS):
                logger.debug(f"Skipping (excluded by extension): {rel}")
                result.skipped.append(rel)
                continue

            result.files.append(rel)

        result.files.sort()
        logger.debug(f"Walked {self.root}: {len(result.files)} file(s), {result.skipped_count} skipped")
        return result
