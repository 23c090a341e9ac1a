"""
Pipeline stages. Each factory returns a Stage configured from plain values.
"""

from .common import correct_line_endings, rename, add_suffix_variant, require_text, write_to
from .styles import (
    bulk_import,
    compile_sass,
    write_sourcemaps,
    autoprefix,
    merge_media_queries,
    minify_css,
)
from .scripts import lint, lint_source, concat, minify_js, LintViolation
from .images import optimize_images
from .i18n import make_pot, extract_messages

__all__ = [
    'correct_line_endings',
    'rename',
    'add_suffix_variant',
    'require_text',
    'write_to',
    'bulk_import',
    'compile_sass',
    'write_sourcemaps',
    'autoprefix',
    'merge_media_queries',
    'minify_css',
    'lint',
    'lint_source',
    'concat',
    'minify_js',
    'LintViolation',
    'optimize_images',
    'make_pot',
    'extract_messages',
]
