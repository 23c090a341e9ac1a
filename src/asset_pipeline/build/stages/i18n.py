"""
Translation template (.pot) generation from WordPress-style gettext calls.
"""
import io
import logging
import re
from typing import Iterator, List, Optional, Tuple

from babel.messages.catalog import Catalog
from babel.messages.pofile import write_po
from pydantic import BaseModel

from ..pipeline import Artifact, Batch

logger = logging.getLogger(__name__)

# Argument roles per function; None marks an argument that is ignored.
GETTEXT_KEYWORDS = {
    '__': ('msgid', 'domain'),
    '_e': ('msgid', 'domain'),
    'esc_html__': ('msgid', 'domain'),
    'esc_html_e': ('msgid', 'domain'),
    'esc_attr__': ('msgid', 'domain'),
    'esc_attr_e': ('msgid', 'domain'),
    '_x': ('msgid', 'msgctxt', 'domain'),
    '_ex': ('msgid', 'msgctxt', 'domain'),
    'esc_html_x': ('msgid', 'msgctxt', 'domain'),
    'esc_attr_x': ('msgid', 'msgctxt', 'domain'),
    '_n': ('msgid', 'msgid_plural', None, 'domain'),
    '_n_noop': ('msgid', 'msgid_plural', 'domain'),
    '_nx': ('msgid', 'msgid_plural', None, 'msgctxt', 'domain'),
    '_nx_noop': ('msgid', 'msgid_plural', 'msgctxt', 'domain'),
}

_CALL = re.compile(
    r'(?<![\w$>:])(' + '|'.join(sorted(map(re.escape, GETTEXT_KEYWORDS), key=len, reverse=True)) + r')\s*\('
)

_DOUBLE_QUOTE_ESCAPES = {'n': '\n', 't': '\t', 'r': '\r', '"': '"', '\\': '\\', '$': '$'}


class ExtractedMessage(BaseModel):
    msgid: str
    msgid_plural: Optional[str] = None
    msgctxt: Optional[str] = None
    domain: Optional[str] = None
    path: str
    line: int


def _read_string(text: str, pos: int) -> Tuple[str, int]:
    quote = text[pos]
    out = []
    i = pos + 1
    while i < len(text):
        ch = text[i]
        if ch == '\\' and i + 1 < len(text):
            nxt = text[i + 1]
            if quote == "'":
                out.append(nxt if nxt in "'\\" else ch + nxt)
            else:
                out.append(_DOUBLE_QUOTE_ESCAPES.get(nxt, ch + nxt))
            i += 2
            continue
        if ch == quote:
            return ''.join(out), i + 1
        out.append(ch)
        i += 1
    raise ValueError('unterminated string')


def _skip_expression(text: str, pos: int) -> int:
    depth = 0
    i = pos
    while i < len(text):
        ch = text[i]
        if ch in '\'"':
            _, i = _read_string(text, i)
            continue
        if ch in '([{':
            depth += 1
        elif ch in ')]}':
            if depth == 0:
                return i
            depth -= 1
        elif ch == ',' and depth == 0:
            return i
        i += 1
    return i


def _parse_arguments(text: str, pos: int) -> List[Optional[str]]:
    """Parse call arguments starting after '('. Non-literal arguments become None."""
    args: List[Optional[str]] = []
    i = pos
    while i < len(text):
        while i < len(text) and text[i].isspace():
            i += 1
        if i >= len(text) or text[i] == ')':
            break
        if text[i] in '\'"':
            value, end = _read_string(text, i)
            after = end
            while after < len(text) and text[after].isspace():
                after += 1
            if after < len(text) and text[after] in ',)':
                args.append(value)
                i = after
            else:
                # Concatenation or other expression
                args.append(None)
                i = _skip_expression(text, i)
        else:
            args.append(None)
            i = _skip_expression(text, i)
        if i < len(text) and text[i] == ',':
            i += 1
        else:
            break
    return args


def extract_messages(text: str, path: str) -> Iterator[ExtractedMessage]:
    """Yield gettext calls with literal arguments found in ``text``."""
    for match in _CALL.finditer(text):
        roles = GETTEXT_KEYWORDS[match.group(1)]
        try:
            args = _parse_arguments(text, match.end())
        except ValueError:
            logger.debug(f"{path}: could not parse call at offset {match.start()}")
            continue
        values = {}
        for role, value in zip(roles, args):
            if role is not None:
                values[role] = value
        if not values.get('msgid'):
            continue
        if 'msgid_plural' in roles and not values.get('msgid_plural'):
            continue
        if 'msgctxt' in roles and values.get('msgctxt') is None:
            continue
        yield ExtractedMessage(
            path=path,
            line=text.count('\n', 0, match.start()) + 1,
            **values,
        )


def build_catalog(messages: List[ExtractedMessage], domain: Optional[str] = None,
                  package: Optional[str] = None, bug_report: Optional[str] = None,
                  team: Optional[str] = None) -> Catalog:
    catalog = Catalog(
        domain=domain,
        project=package or domain,
        msgid_bugs_address=bug_report,
        language_team=team,
        charset='utf-8',
        fuzzy=False,
    )
    for message in messages:
        if domain and message.domain and message.domain != domain:
            continue
        msgid = (message.msgid, message.msgid_plural) if message.msgid_plural else message.msgid
        catalog.add(msgid, locations=[(message.path, message.line)], context=message.msgctxt)
    return catalog


def make_pot(file_name: str, domain: Optional[str] = None, package: Optional[str] = None,
             bug_report: Optional[str] = None, team: Optional[str] = None) -> Batch:
    """Collapse source artifacts into a single .pot template artifact."""
    def wp_pot(artifacts: List[Artifact]) -> List[Artifact]:
        messages: List[ExtractedMessage] = []
        for artifact in sorted(artifacts, key=lambda a: a.path):
            messages.extend(extract_messages(artifact.text, artifact.path))
        catalog = build_catalog(messages, domain=domain, package=package,
                                bug_report=bug_report, team=team)
        buffer = io.BytesIO()
        write_po(buffer, catalog, width=79)
        logger.debug(f"Extracted {len(catalog)} message(s) from {len(artifacts)} file(s)")
        return [Artifact(path=file_name, contents=buffer.getvalue(),
                         meta={'messages': len(catalog)})]
    return Batch(wp_pot)
