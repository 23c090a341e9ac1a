"""
Stages shared by several pipelines.
"""
import logging
import re
import sys
from pathlib import Path
from typing import Callable, List, Union

from ..pipeline import Artifact, Each, StageError

logger = logging.getLogger(__name__)

_LINE_BREAK = re.compile(rb'\r\n|\r|\n')


def require_text() -> Each:
    """Drop artifacts that are not UTF-8; the runner reports each one."""
    def utf8_check(artifact: Artifact) -> Artifact:
        artifact.text  # decoding raises StageError
        return artifact
    return Each(utf8_check, name='utf-8')


def correct_line_endings(newline: str = '\n') -> Each:
    """Normalise every line break in text artifacts to ``newline``."""
    replacement = newline.encode('ascii')

    def line_ending_corrector(artifact: Artifact) -> Artifact:
        return artifact.replace(contents=_LINE_BREAK.sub(replacement, artifact.contents))
    return Each(line_ending_corrector)


def rename(name_for: Callable[[Artifact], str]) -> Each:
    """Rename artifacts; ``name_for`` returns the new file name."""
    def renamer(artifact: Artifact) -> Artifact:
        return artifact.renamed(name_for(artifact))
    return Each(renamer, name='rename')


def add_suffix_variant(transform: Callable[[str], str], extension: str,
                       suffix: str = '.min') -> Each:
    """Emit the artifact unchanged plus a transformed ``<stem><suffix><ext>`` copy.

    Only artifacts ending in ``extension`` (and not already suffixed) get a variant.
    An artifact that cannot be decoded is kept without its variant.
    """
    def variant(artifact: Artifact) -> List[Artifact]:
        if not artifact.name.endswith(extension) or artifact.name.endswith(suffix + extension):
            return [artifact]
        try:
            minified = artifact.replace(text=transform(artifact.text), source_map=None)
        except StageError as e:
            logger.warning(f"No {suffix}{extension} variant for {artifact.path}: {e}")
            print(f"⚠️  Skipped {artifact.stem}{suffix}{extension}: {e}", file=sys.stderr)
            return [artifact]
        return [artifact, minified.renamed(f"{artifact.stem}{suffix}{artifact.suffix}")]
    return Each(variant, name=f'variant{suffix}')


def write_to(dest: Union[str, Path]) -> Each:
    """Write artifacts below ``dest``; the written location is recorded in meta."""
    dest_dir = Path(dest)

    def dest_writer(artifact: Artifact) -> Artifact:
        target = dest_dir / artifact.path
        target.parent.mkdir(parents=True, exist_ok=True)
        target.write_bytes(artifact.contents)
        logger.debug(f"Wrote {target} ({len(artifact.contents)} bytes)")
        return artifact.replace(meta={'written': str(target)})
    return Each(dest_writer, name='dest')
