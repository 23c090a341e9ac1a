"""
Style pipeline stages: bulk imports, Sass compilation, sourcemaps,
vendor prefixing and media query merging.
"""
import glob
import logging
import re
from pathlib import Path, PurePosixPath
from typing import Dict, Iterable, List, Optional, Sequence, Set

import rcssmin
import sass
import tinycss2

from ..pipeline import Artifact, Each, StageError
from ..pipeline.globs import has_magic

logger = logging.getLogger(__name__)

SASS_EXTENSIONS = ('.scss', '.sass', '.css')

_GLOB_IMPORT = re.compile(r'''@import\s+(["'])([^"']*[*?\[][^"']*)\1\s*;''')


# ---------------------------------------------------------------------------
# Bulk imports
# ---------------------------------------------------------------------------

def _expand_import_glob(pattern: str, relative_to: Path) -> List[str]:
    matches = glob.glob(str(relative_to / pattern), recursive=True)
    return sorted(m for m in matches if m.endswith(SASS_EXTENSIONS) and Path(m).is_file())


def bulk_import() -> Each:
    """Resolve ``@import "dir/*"`` directives into the concrete files they match.

    Matches are recorded in ``meta['bulk_imports']`` (pattern -> sorted file
    list) and fed to the compiler's importer.
    """
    def bulk_sass(artifact: Artifact) -> Artifact:
        source_dir = artifact.source_path.parent
        resolved: Dict[str, List[str]] = {}
        for match in _GLOB_IMPORT.finditer(artifact.text):
            pattern = match.group(2)
            files = _expand_import_glob(pattern, source_dir)
            if not files:
                logger.warning(f"{artifact.path}: @import \"{pattern}\" matched no files")
            resolved[pattern] = files
        if not resolved:
            return artifact
        return artifact.replace(meta={'bulk_imports': resolved})
    return Each(bulk_sass)


def _make_importer(known: Dict[str, List[str]]):
    def import_glob(path: str, prev: str):
        if not has_magic(path):
            return None
        if path in known:
            files = known[path]
        else:
            base = Path(prev).parent if prev and prev != 'stdin' else Path.cwd()
            files = _expand_import_glob(path, base)
        if not files:
            return [(path, '')]
        return [(f, Path(f).read_text(encoding='utf-8')) for f in files]
    return import_glob


# ---------------------------------------------------------------------------
# Compilation
# ---------------------------------------------------------------------------

def compile_sass(output_style: str = 'compressed', precision: int = 10,
                 include_paths: Sequence[str] = (), source_maps: bool = False,
                 dest: Optional[str] = None) -> Each:
    """Compile each stylesheet with libsass.

    Compiles from the source file on disk so relative imports and source
    maps resolve against real locations. A compile error is raised as a
    StageError: it is reported and only that stylesheet is dropped.
    """
    extra_paths = [str(Path(p).resolve()) for p in include_paths]

    def sass_compiler(artifact: Artifact) -> Artifact:
        source = artifact.source_path
        css_path = PurePosixPath(artifact.path).with_suffix('.css')
        kwargs = dict(
            filename=str(source),
            output_style=output_style,
            precision=precision,
            include_paths=[str(source.parent)] + extra_paths,
            importers=[(0, _make_importer(artifact.meta.get('bulk_imports', {})))],
        )
        if source_maps:
            out_css = Path(dest or '.') / css_path
            kwargs.update(
                source_map_filename=f"{out_css}.map",
                output_filename_hint=str(out_css),
                omit_source_map_url=True,
            )

        try:
            result = sass.compile(**kwargs)
        except sass.CompileError as e:
            raise StageError(str(e).strip(), path=str(source), stage='sass')

        if source_maps:
            css, source_map = result
        else:
            css, source_map = result, None
        return artifact.replace(path=css_path.as_posix(), text=css, source_map=source_map)
    return Each(sass_compiler)


def write_sourcemaps() -> Each:
    """Emit a ``<name>.css.map`` artifact next to every CSS artifact with a map."""
    def sourcemaps(artifact: Artifact):
        if not artifact.source_map:
            return artifact
        map_name = f"{artifact.name}.map"
        css = artifact.text.rstrip('\n') + f"\n/*# sourceMappingURL={map_name} */\n"
        map_artifact = artifact.replace(text=artifact.source_map, source_map=None).renamed(map_name)
        return [artifact.replace(text=css, source_map=None), map_artifact]
    return Each(sourcemaps)


def minify_css(text: str) -> str:
    return rcssmin.cssmin(text)


# ---------------------------------------------------------------------------
# Autoprefixer
# ---------------------------------------------------------------------------

BROWSER_FAMILIES = ('chrome', 'safari', 'ios_saf', 'android', 'opera', 'firefox', 'ie', 'edge')

FAMILY_PREFIXES = {
    'chrome': {'webkit'},
    'safari': {'webkit'},
    'ios_saf': {'webkit'},
    'android': {'webkit'},
    'opera': {'webkit'},
    'firefox': {'moz'},
    'ie': {'ms'},
    'edge': {'ms', 'webkit'},
}

FAMILY_ALIASES = {
    'ios': 'ios_saf',
    'iossafari': 'ios_saf',
    'ff': 'firefox',
    'firefoxandroid': 'firefox',
    'and_chr': 'android',
    'chromeandroid': 'android',
    'explorer': 'ie',
    'ie_mob': 'ie',
    'op_mob': 'opera',
}

PROPERTY_PREFIXES = {
    'appearance': ('webkit', 'moz'),
    'user-select': ('webkit', 'moz', 'ms'),
    'backface-visibility': ('webkit',),
    'backdrop-filter': ('webkit',),
    'box-decoration-break': ('webkit',),
    'clip-path': ('webkit',),
    'hyphens': ('webkit', 'ms'),
    'mask': ('webkit',),
    'mask-image': ('webkit',),
    'tab-size': ('moz',),
    'text-size-adjust': ('webkit', 'moz', 'ms'),
    'text-decoration-skip': ('webkit',),
    'flex': ('webkit', 'ms'),
    'flex-direction': ('webkit', 'ms'),
    'flex-wrap': ('webkit', 'ms'),
    'flex-flow': ('webkit', 'ms'),
    'flex-grow': ('webkit',),
    'flex-shrink': ('webkit',),
    'flex-basis': ('webkit',),
    'order': ('webkit',),
    'align-items': ('webkit',),
    'align-self': ('webkit',),
    'align-content': ('webkit',),
    'justify-content': ('webkit',),
    'grid-template-columns': ('ms',),
    'grid-template-rows': ('ms',),
}

VALUE_PREFIXES = {
    ('display', 'flex'): {'webkit': '-webkit-flex', 'ms': '-ms-flexbox'},
    ('display', 'inline-flex'): {'webkit': '-webkit-inline-flex', 'ms': '-ms-inline-flexbox'},
    ('display', 'grid'): {'ms': '-ms-grid'},
    ('display', 'inline-grid'): {'ms': '-ms-inline-grid'},
    ('position', 'sticky'): {'webkit': '-webkit-sticky'},
}

PREFIX_ORDER = ('webkit', 'moz', 'ms')


def target_prefixes(browsers: Iterable[str]) -> Set[str]:
    """Vendor prefixes needed for a browserslist-style list of queries.

    Queries naming a family (``ie >= 9``, ``Safari 8``) select that family;
    generic queries (``last 2 versions``, ``> 1%``) select every family.
    """
    prefixes: Set[str] = set()
    for query in browsers:
        words = query.strip().lower().split()
        if not words:
            continue
        family = FAMILY_ALIASES.get(words[0], words[0])
        if family in FAMILY_PREFIXES:
            prefixes |= FAMILY_PREFIXES[family]
        elif family in ('not', 'dead'):
            continue
        else:
            for family_prefixes in FAMILY_PREFIXES.values():
                prefixes |= family_prefixes
    return prefixes


def _prefixed_declarations(decl, prefixes: Set[str], existing: Set[str]) -> List[str]:
    name = decl.lower_name
    if name.startswith('-'):
        return []
    value = tinycss2.serialize(decl.value).strip()
    important = '!important' if decl.important else ''
    out = []
    for prefix in PREFIX_ORDER:
        if prefix not in prefixes:
            continue
        if prefix in PROPERTY_PREFIXES.get(name, ()):
            prefixed_name = f"-{prefix}-{name}"
            if prefixed_name not in existing:
                out.append(f"{prefixed_name}:{value}{important}")
        value_map = VALUE_PREFIXES.get((name, value.lower()))
        if value_map and prefix in value_map:
            prefixed_value = value_map[prefix]
            if (name, prefixed_value) not in existing:
                out.append(f"{name}:{prefixed_value}{important}")
    return out


def _prefix_block(content, prefixes: Set[str]) -> str:
    nodes = tinycss2.parse_declaration_list(content, skip_comments=False, skip_whitespace=False)
    declarations = [n for n in nodes if n.type == 'declaration']
    existing: Set = set()
    for decl in declarations:
        existing.add(decl.lower_name)
        existing.add((decl.lower_name, tinycss2.serialize(decl.value).strip()))

    out = []
    indent = ''
    for node in nodes:
        if node.type == 'whitespace':
            indent = node.value
            out.append(node.serialize())
        elif node.type == 'declaration':
            for extra in _prefixed_declarations(node, prefixes, existing):
                out.append(f"{extra};{indent}")
            out.append(node.serialize() + ';')
        elif node.type == 'error':
            raise StageError(f"CSS parse error at line {node.source_line}: {node.message}",
                             line=node.source_line, stage='autoprefixer')
        else:
            out.append(node.serialize())
    return ''.join(out)


def _prefix_rules(rules, prefixes: Set[str]) -> str:
    out = []
    for rule in rules:
        if rule.type == 'qualified-rule':
            prelude = tinycss2.serialize(rule.prelude)
            out.append(f"{prelude}{{{_prefix_block(rule.content, prefixes)}}}")
        elif rule.type == 'at-rule' and rule.content is not None and rule.lower_at_keyword in (
                'media', 'supports', 'document'):
            nested = tinycss2.parse_rule_list(rule.content, skip_comments=False, skip_whitespace=False)
            out.append(f"@{rule.at_keyword}{tinycss2.serialize(rule.prelude)}{{{_prefix_rules(nested, prefixes)}}}")
        elif rule.type == 'error':
            raise StageError(f"CSS parse error at line {rule.source_line}: {rule.message}",
                             line=rule.source_line, stage='autoprefixer')
        else:
            out.append(rule.serialize())
    return ''.join(out)


def prefix_css(css: str, browsers: Iterable[str]) -> str:
    """Add vendor-prefixed declarations needed by ``browsers`` to ``css``."""
    prefixes = target_prefixes(browsers)
    if not prefixes:
        return css
    rules = tinycss2.parse_stylesheet(css, skip_comments=False, skip_whitespace=False)
    return _prefix_rules(rules, prefixes)


def autoprefix(browsers: Sequence[str]) -> Each:
    browsers = list(browsers)

    def autoprefixer(artifact: Artifact) -> Artifact:
        try:
            css = prefix_css(artifact.text, browsers)
        except StageError as e:
            e.path = artifact.path
            raise
        return artifact.replace(text=css)
    return Each(autoprefixer)


# ---------------------------------------------------------------------------
# Merge media queries
# ---------------------------------------------------------------------------

def _media_key(prelude) -> str:
    return ' '.join(tinycss2.serialize(prelude).split())


def merge_media_queries_css(css: str) -> str:
    """Merge ``@media`` blocks with identical conditions, moving them to the end.

    Blocks keep the order in which each condition first appears.
    """
    rules = tinycss2.parse_stylesheet(css, skip_comments=False, skip_whitespace=False)
    kept = []
    merged: Dict[str, List[str]] = {}
    for rule in rules:
        if rule.type == 'at-rule' and rule.lower_at_keyword == 'media' and rule.content is not None:
            key = _media_key(rule.prelude)
            merged.setdefault(key, []).append(tinycss2.serialize(rule.content).strip())
        else:
            kept.append(rule.serialize())
    if not merged:
        return css

    separator = '\n' if '\n' in css.strip() else ''
    body = ''.join(kept).rstrip()
    blocks = [f"@media {key}{{{separator.join(parts)}}}" for key, parts in merged.items()]
    return separator.join([body] + blocks) + ('\n' if css.endswith('\n') else '')


def merge_media_queries() -> Each:
    def merge_mq(artifact: Artifact) -> Artifact:
        return artifact.replace(text=merge_media_queries_css(artifact.text))
    return Each(merge_mq)
