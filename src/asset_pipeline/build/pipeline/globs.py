"""
Glob helpers: file set resolution and event path matching.

File sets are resolved fresh on every call; nothing is cached between runs.
"""
import glob
import re
from pathlib import Path
from typing import Iterable, List, Optional, Union

WILDCARD_CHARS = '*?['


def has_magic(pattern: str) -> bool:
    return any(ch in pattern for ch in WILDCARD_CHARS)


def glob_base(pattern: str) -> Path:
    """Return the leading directory of a glob that contains no wildcards.

    ``src/scss/**/*.scss`` -> ``src/scss``; ``js/app.js`` -> ``js``.
    """
    parts = Path(pattern).parts
    base_parts = []
    for part in parts:
        if has_magic(part):
            break
        base_parts.append(part)
    else:
        # Plain file path
        base_parts = base_parts[:-1]
    return Path(*base_parts) if base_parts else Path('.')


def resolve_file_set(patterns: Iterable[str], root: Optional[Union[str, Path]] = None) -> List[Path]:
    """Expand an ordered list of globs into an ordered list of files.

    Matches of each pattern are sorted and appended in pattern order; a file
    matched by an earlier pattern keeps its first position. Patterns
    prefixed with ``!`` exclude previously matched files.
    """
    root = Path(root) if root is not None else Path.cwd()
    # the root is literal; only the patterns carry wildcards
    anchor = Path(glob.escape(str(root)))
    ordered: List[Path] = []
    seen = set()
    for pattern in patterns:
        if pattern.startswith('!'):
            excluded = {Path(p) for p in glob.glob(str(anchor / pattern[1:]), recursive=True)}
            ordered = [p for p in ordered if p not in excluded]
            seen -= excluded
            continue
        for match in sorted(glob.glob(str(anchor / pattern), recursive=True)):
            path = Path(match)
            if not path.is_file() or path in seen:
                continue
            seen.add(path)
            ordered.append(path)
    return ordered


def translate(pattern: str) -> str:
    """Translate a glob (with ``**`` support) into a regular expression."""
    out = []
    i, n = 0, len(pattern)
    while i < n:
        ch = pattern[i]
        if pattern.startswith('**/', i):
            out.append('(?:.*/)?')
            i += 3
        elif pattern.startswith('**', i):
            out.append('.*')
            i += 2
        elif ch == '*':
            out.append('[^/]*')
            i += 1
        elif ch == '?':
            out.append('[^/]')
            i += 1
        elif ch == '[':
            end = pattern.find(']', i + 1)
            if end == -1:
                out.append(re.escape(ch))
                i += 1
            else:
                body = pattern[i + 1:end]
                if body.startswith('!'):
                    body = '^' + body[1:]
                out.append(f'[{body}]')
                i = end + 1
        else:
            out.append(re.escape(ch))
            i += 1
    return '(?s:' + ''.join(out) + r')\Z'


class GlobMatcher:
    """Matches absolute paths against a list of globs anchored at a root."""

    def __init__(self, patterns: Iterable[str], root: Optional[Union[str, Path]] = None):
        root = Path(root) if root is not None else Path.cwd()
        self.root = root.resolve()
        self.patterns = list(patterns)
        self._include = []
        self._exclude = []
        for pattern in self.patterns:
            target = self._exclude if pattern.startswith('!') else self._include
            target.append(re.compile(self._anchor(pattern.lstrip('!'))))

    def _anchor(self, pattern: str) -> str:
        relative = Path(pattern)
        if relative.is_absolute():
            return translate(relative.as_posix())
        prefix = self.root.as_posix().rstrip('/') + '/'
        return re.escape(prefix) + translate(relative.as_posix())

    def bases(self) -> List[Path]:
        """Directories that need watching to observe every include pattern."""
        return [self.root / glob_base(p) for p in self.patterns if not p.startswith('!')]

    def matches(self, path: Union[str, Path]) -> bool:
        candidate = Path(path).resolve().as_posix()
        if not any(rx.match(candidate) for rx in self._include):
            return False
        return not any(rx.match(candidate) for rx in self._exclude)
