"""
Artifact model: the unit of data flowing through pipeline stages.
"""
from pathlib import Path, PurePosixPath
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict

from .exceptions import StageError
from .globs import glob_base, resolve_file_set


class Artifact(BaseModel):
    """File contents plus metadata, as produced by one pipeline stage.

    ``path`` is relative to ``base`` and uses forward slashes. Stages never
    mutate an artifact; they return a copy via ``replace``.
    """
    model_config = ConfigDict(frozen=True)

    path: str
    contents: bytes
    base: str = '.'
    source_map: Optional[str] = None
    meta: Dict[str, Any] = {}

    @classmethod
    def from_file(cls, file_path: Path, base: Path, **meta) -> 'Artifact':
        file_path = Path(file_path)
        try:
            relative = file_path.relative_to(base)
        except ValueError:
            relative = Path(file_path.name)
        return cls(
            path=PurePosixPath(*relative.parts).as_posix(),
            contents=file_path.read_bytes(),
            base=str(base),
            meta={'source': str(file_path), **meta},
        )

    @property
    def text(self) -> str:
        """Contents decoded as UTF-8.

        Raises:
            StageError: If the contents are not valid UTF-8.
        """
        try:
            return self.contents.decode('utf-8')
        except UnicodeDecodeError as e:
            raise StageError(f"Not valid UTF-8 text (byte {e.start})", path=self.path) from e

    @property
    def source_path(self) -> Path:
        """Location of the file this artifact was read from, surviving renames."""
        if 'source' in self.meta:
            return Path(self.meta['source'])
        return Path(self.base) / self.path

    @property
    def name(self) -> str:
        return PurePosixPath(self.path).name

    @property
    def stem(self) -> str:
        return PurePosixPath(self.path).stem

    @property
    def suffix(self) -> str:
        return PurePosixPath(self.path).suffix

    def replace(self, **changes) -> 'Artifact':
        """Return a copy with the given fields changed.

        A ``text`` keyword is accepted as a shortcut for UTF-8 ``contents``.
        """
        if 'text' in changes:
            changes['contents'] = changes.pop('text').encode('utf-8')
        if 'meta' in changes:
            changes['meta'] = {**self.meta, **changes['meta']}
        return self.model_copy(update=changes)

    def renamed(self, name: str) -> 'Artifact':
        """Return a copy with the file name (not the directory) replaced."""
        return self.replace(path=PurePosixPath(self.path).with_name(name).as_posix())


def load_artifacts(patterns: List[str], root: Optional[Path] = None, **meta) -> List[Artifact]:
    """Resolve globs freshly and read each matching file into an Artifact.

    Each artifact's base is the wildcard-free prefix of the glob it came
    from, so relative paths survive into the output directory.
    """
    root = Path(root) if root is not None else Path.cwd()
    artifacts: List[Artifact] = []
    seen = set()
    for pattern in patterns:
        if pattern.startswith('!'):
            continue
        base = root / glob_base(pattern)
        for file_path in resolve_file_set([pattern] + [p for p in patterns if p.startswith('!')], root):
            if file_path in seen:
                continue
            seen.add(file_path)
            artifacts.append(Artifact.from_file(file_path, base, **meta))
    return artifacts
