"""Locating and rewriting link targets in Markdown text.

Link and attachment resolution both work on link targets as written in the
source: inline links and images, reference definitions, and src/href
attributes of inline HTML. Rewriting replaces the target only and leaves
everything else byte-identical.
"""

import bisect
import re
from typing import List, Mapping, Tuple
from urllib.parse import urlparse

# [text](target "title") and ![alt](<target>)
INLINE_TARGET_PATTERN = re.compile(
    r'(?P<prefix>!?\[[^\]]*\]\(\s*)'
    r'(?:<(?P<angled>[^>\n]+)>|(?P<target>[^)\s]+))'
    r'(?P<suffix>(?:\s+(?:"[^"]*"|\'[^\']*\'))?\s*\))'
)

# [label]: target "title"
REFERENCE_TARGET_PATTERN = re.compile(
    r'^(?P<prefix>[ ]{0,3}\[[^\]]+\]:[ \t]*)'
    r'(?:<(?P<angled>[^>\n]+)>|(?P<target>\S+))',
    re.MULTILINE
)

# <img src="target"> and <a href='target'>
HTML_TARGET_PATTERN = re.compile(
    r'(?P<prefix>\b(?:src|href)=(?P<quote>["\']))(?P<target>[^"\']+)(?P=quote)',
    re.IGNORECASE
)

PATTERNS = (INLINE_TARGET_PATTERN, REFERENCE_TARGET_PATTERN, HTML_TARGET_PATTERN)

# ```lang ... ``` and ~~~ ... ~~~; an unclosed fence runs to the end
FENCED_CODE_PATTERN = re.compile(
    r'^[ ]{0,3}(?P<fence>`{3,}|~{3,})[^\n]*\n.*?(?:^[ ]{0,3}(?P=fence)[`~]*[ \t]*$|\Z)',
    re.MULTILINE | re.DOTALL
)

# Lines indented by four spaces or a tab, after a blank line
INDENTED_CODE_PATTERN = re.compile(
    r'(?:\A|\n[ \t]*\n)'
    r'(?P<code>(?:(?:[ ]{4}|\t)[^\n]*(?:\n|\Z)|[ \t]*\n(?=[ ]{4}|\t))+)'
)

# Indented lines after a list item continue the item
LIST_ITEM_PATTERN = re.compile(r'^[ \t]*(?:[-+*]|\d+[.)])[ \t]+')

# `code` and ``code with ` inside``; never across a blank line
INLINE_CODE_PATTERN = re.compile(
    r'(?<!`)(?P<ticks>`+)(?!`)(?:(?!\n[ \t]*\n).)+?(?<!`)(?P=ticks)(?!`)',
    re.DOTALL
)


def _target(match: re.Match) -> str:
    groups = match.groupdict()
    return groups.get('angled') or groups.get('target') or ''


def _blank(text: str, spans: List[Tuple[int, int]]) -> str:
    """Replace spans of text with spaces, keeping line breaks and offsets."""
    for start, end in spans:
        text = text[:start] + re.sub(r'[^\n]', ' ', text[start:end]) + text[end:]
    return text


def _continues_list_item(text: str, start: int) -> bool:
    for line in reversed(text[:start].splitlines()):
        if line.strip():
            return bool(LIST_ITEM_PATTERN.match(line))
    return False


def code_spans(markdown: str) -> List[Tuple[int, int]]:
    """Return the (start, end) offsets of code blocks and inline code, sorted.

    Link-like text inside code is literal and must not be rewritten.
    """
    spans = [match.span() for match in FENCED_CODE_PATTERN.finditer(markdown)]

    text = _blank(markdown, spans)
    for match in INDENTED_CODE_PATTERN.finditer(text):
        if not _continues_list_item(text, match.start('code')):
            spans.append(match.span('code'))

    text = _blank(text, spans)
    spans.extend(match.span() for match in INLINE_CODE_PATTERN.finditer(text))

    merged: List[Tuple[int, int]] = []
    for start, end in sorted(spans):
        if merged and start <= merged[-1][1]:
            merged[-1] = (merged[-1][0], max(end, merged[-1][1]))
        else:
            merged.append((start, end))
    return merged


def _in_code(position: int, spans: List[Tuple[int, int]]) -> bool:
    index = bisect.bisect_right(spans, (position, float('inf'))) - 1
    return index >= 0 and spans[index][0] <= position < spans[index][1]


def find_link_targets(markdown: str) -> List[str]:
    """Return the distinct link targets of markdown in document order."""
    targets: List[str] = []
    spans = code_spans(markdown)
    for pattern in PATTERNS:
        for match in pattern.finditer(markdown):
            if not _in_code(match.start(), spans):
                targets.append(_target(match))
    return list(dict.fromkeys(t for t in targets if t))


def replace_link_targets(markdown: str, mapping: Mapping[str, str]) -> str:
    """Replace link targets found in mapping; leave all other text untouched."""
    if not mapping:
        return markdown

    def _replace(match: re.Match) -> str:
        target = _target(match)
        if target not in mapping or _in_code(match.start(), spans):
            return match.group(0)
        start, end = match.span('angled') if match.groupdict().get('angled') else match.span('target')
        offset = match.start()
        text = match.group(0)
        return text[:start - offset] + mapping[target] + text[end - offset:]

    for pattern in PATTERNS:
        spans = code_spans(markdown)
        markdown = pattern.sub(_replace, markdown)
    return markdown


def is_relative_reference(target: str) -> bool:
    """True for targets that name a local file relative to the document."""
    if not target or target.startswith(('/', '#')):
        return False
    parsed = urlparse(target)
    return not parsed.scheme and not parsed.netloc


def split_anchor(target: str) -> tuple:
    """Split "path#anchor" into ("path", "#anchor")."""
    path, sep, anchor = target.partition('#')
    return path, sep + anchor

