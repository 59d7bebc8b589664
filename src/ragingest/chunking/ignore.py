"""A practical subset of ``.gitignore`` matching."""

from __future__ import annotations

import fnmatch
import logging
from dataclasses import dataclass
from pathlib import Path

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class IgnorePattern:
    pattern: str
    negate: bool = False
    dir_only: bool = False
    anchored: bool = False

    @classmethod
    def parse(cls, line: str) -> IgnorePattern:
        negate = line.startswith("!")
        if negate:
            line = line[1:]
        dir_only = line.endswith("/")
        line = line.rstrip("/")
        anchored = "/" in line
        return cls(pattern=line.lstrip("/"), negate=negate, dir_only=dir_only, anchored=anchored)

    def matches(self, path: str, is_dir: bool) -> bool:
        segments = [s for s in path.split("/") if s]
        if not segments:
            return False
        # Segments eligible for a directory-only pattern: all parents, plus
        # the path itself when it is a directory.
        last = len(segments) if is_dir or not self.dir_only else len(segments) - 1
        if self.anchored:
            # Compared segment by segment so `*` never crosses a `/`.
            parts = self.pattern.split("/")
            return len(parts) <= last and all(
                fnmatch.fnmatchcase(segment, part) for segment, part in zip(segments, parts)
            )
        return any(fnmatch.fnmatchcase(segment, self.pattern) for segment in segments[:last])


class IgnoreMatcher:
    """Ordered ignore patterns; the last matching pattern decides."""

    def __init__(self, patterns: list[str] | None = None):
        self.patterns = [IgnorePattern.parse(p) for p in patterns or []]

    @classmethod
    def from_lines(cls, lines: list[str]) -> IgnoreMatcher:
        patterns = []
        for line in lines:
            line = line.strip()
            if not line or line.startswith("#"):
                continue
            patterns.append(line)
        return cls(patterns)

    @classmethod
    def from_file(cls, path: str | Path) -> IgnoreMatcher:
        """Load patterns from ``path``; a missing file gives an empty matcher."""
        path = Path(path)
        try:
            text = path.read_text(encoding="utf-8", errors="replace")
        except FileNotFoundError:
            return cls()
        matcher = cls.from_lines(text.splitlines())
        logger.debug("Loaded %d ignore patterns from %s", len(matcher.patterns), path)
        return matcher

    def match(self, path: str, is_dir: bool = False) -> bool:
        """Return ``True`` if the ``/``-separated relative ``path`` is ignored."""
        ignored = False
        for pattern in self.patterns:
            if pattern.matches(path, is_dir):
                ignored = not pattern.negate
        return ignored

    def __bool__(self) -> bool:
        return bool(self.patterns)
