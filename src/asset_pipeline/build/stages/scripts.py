"""
Script pipeline stages: linting, concatenation and minification.
"""
import logging
import sys
from typing import Callable, List, Optional

import esprima
import rjsmin
from pydantic import BaseModel

from ..pipeline import Artifact, Batch, LintFailedError, Tap

logger = logging.getLogger(__name__)

SCRIPT_GROUPS = ('vendor', 'custom')


def _is_loose_literal(node) -> bool:
    """Operands jshint warns about when compared with == or !=."""
    node_type = getattr(node, 'type', None)
    if node_type == 'Identifier':
        return getattr(node, 'name', None) == 'undefined'
    if node_type != 'Literal' or getattr(node, 'regex', None):
        return False
    value = getattr(node, 'value', object())
    if value is None or isinstance(value, bool):
        return True
    if isinstance(value, (int, float)):
        return value == 0
    return value == ''


class LintViolation(BaseModel):
    """A single lint finding."""
    path: str
    line: int = 0
    column: int = 0
    code: str
    message: str


def _position(node):
    loc = getattr(node, 'loc', None)
    start = getattr(loc, 'start', None)
    if start is None:
        return 0, 0
    return getattr(start, 'line', 0), getattr(start, 'column', 0) + 1


def _check_node(node, path: str) -> Optional[LintViolation]:
    node_type = getattr(node, 'type', None)
    line, column = _position(node)

    if node_type == 'DebuggerStatement':
        return LintViolation(path=path, line=line, column=column, code='W087',
                             message="Forgotten 'debugger' statement?")
    if node_type == 'WithStatement':
        return LintViolation(path=path, line=line, column=column, code='W085',
                             message="Don't use 'with'.")
    if node_type == 'CallExpression':
        callee = getattr(node, 'callee', None)
        if getattr(callee, 'type', None) == 'Identifier' and getattr(callee, 'name', None) == 'eval':
            return LintViolation(path=path, line=line, column=column, code='W061',
                                 message="eval can be harmful.")
    if node_type == 'BinaryExpression' and getattr(node, 'operator', None) in ('==', '!='):
        for side in (getattr(node, 'left', None), getattr(node, 'right', None)):
            if _is_loose_literal(side):
                strict = node.operator + '='
                literal = getattr(side, 'raw', None) or getattr(side, 'name', 'literal')
                return LintViolation(path=path, line=line, column=column, code='W041',
                                     message=f"Use '{strict}' to compare with '{literal}'.")
    return None


def lint_source(text: str, path: str) -> List[LintViolation]:
    """Lint JavaScript source. Syntax errors are reported as a single E001 finding."""
    violations: List[LintViolation] = []

    def delegate(node, metadata):
        violation = _check_node(node, path)
        if violation:
            violations.append(violation)

    try:
        esprima.parseScript(text, {'loc': True}, delegate)
    except esprima.Error as e:
        return [LintViolation(
            path=path,
            line=getattr(e, 'lineNumber', 0) or 0,
            column=getattr(e, 'column', 0) or 0,
            code='E001',
            message=getattr(e, 'description', None) or str(e),
        )]
    violations.sort(key=lambda v: (v.line, v.column))
    return violations


def report_violations(violations: List[LintViolation]):
    """Print findings grouped per file, in the style of a stylish reporter."""
    if not violations:
        return
    current = None
    for violation in violations:
        if violation.path != current:
            current = violation.path
            print(f"\n{current}", file=sys.stderr)
        print(f"  line {violation.line}  col {violation.column}  "
              f"{violation.message}  ({violation.code})", file=sys.stderr)
    count = len(violations)
    print(f"\n⚠️  {count} problem{'s' if count != 1 else ''}\n", file=sys.stderr)
    logger.warning(f"Lint found {count} problem(s)")


def lint(fail_on_error: bool = False,
         reporter: Callable[[List[LintViolation]], None] = report_violations,
         found: Optional[List[LintViolation]] = None) -> Tap:
    """Lint every artifact; escalate to LintFailedError only when configured to.

    Findings are appended to ``found`` when given.
    """
    def jshint(artifacts: List[Artifact]):
        violations: List[LintViolation] = []
        for artifact in artifacts:
            violations.extend(lint_source(artifact.text, str(artifact.source_path)))
        reporter(violations)
        if found is not None:
            found.extend(violations)
        if violations and fail_on_error:
            raise LintFailedError(
                f"Linting failed with {len(violations)} problem(s)", violations=violations
            )
    return Tap(jshint)


def concat(file_name: str, separator: str = '\n') -> Batch:
    """Join artifacts into one file: vendor group first, then custom, each in input order."""
    def concat_scripts(artifacts: List[Artifact]) -> List[Artifact]:
        if not artifacts:
            return []
        ordered = sorted(
            artifacts,
            key=lambda a: SCRIPT_GROUPS.index(a.meta.get('group', 'custom'))
        )
        # joined as bytes so non-UTF-8 vendor files pass through untouched
        joined = separator.encode('utf-8').join(a.contents for a in ordered)
        return [Artifact(
            path=file_name,
            contents=joined,
            meta={'sources': [str(a.source_path) for a in ordered]},
        )]
    return Batch(concat_scripts)


def minify_js(text: str) -> str:
    return rjsmin.jsmin(text)
