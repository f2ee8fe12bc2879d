"""Macro extraction and application.

A macro binds a regular expression to a registry template:

    <!-- Macro: :ticket:(\\w+-\\d+):
         Template: ac:jira:ticket
         Ticket: ${1} -->

Extraction removes such definitions from the body. Application then
rewrites every match of each macro's pattern with its rendered template,
one macro after another, over the whole body. Parameters may refer to
capture groups as ${1} or ${name}.
"""

import logging
import re
import textwrap
from dataclasses import dataclass, field
from typing import Any, List, Match, Optional, Pattern, Sequence, Tuple

import jinja2
import yaml
from jinja2 import Template

from mdpublish.confluence_client.errors import PublishError

from .errors import MacroRenderError
from .registry import Registry

logger = logging.getLogger(__name__)

MACRO_PATTERN = re.compile(
    r'<!--[ \t]*Macro:[ \t]*(?P<pattern>[^\n]*?)[ \t]*\n(?P<config>.*?)-->\n?',
    re.DOTALL
)

GROUP_REFERENCE_PATTERN = re.compile(r'\$\{(\w+)\}')


def expand_groups(value: Any, match: Match) -> Any:
    """Replace ${N} / ${name} references in value with groups of match."""
    if isinstance(value, str):
        def _group(ref: Match) -> str:
            key = ref.group(1)
            try:
                group = match.group(int(key) if key.isdigit() else key)
            except IndexError:
                # Unknown group; leave the reference as written
                return ref.group(0)
            return group or ""
        return GROUP_REFERENCE_PATTERN.sub(_group, value)
    if isinstance(value, list):
        return [expand_groups(item, match) for item in value]
    if isinstance(value, dict):
        return {key: expand_groups(item, match) for key, item in value.items()}
    return value


@dataclass
class Macro:
    """A macro definition bound to a registry template.

    Attributes:
        pattern: Compiled regular expression matching call-sites
        template_name: Name of the bound registry template
        template: The bound template
        parameters: Template parameters, possibly referencing capture groups
        span: (start, end) of the definition in the source it came from
    """
    pattern: Pattern
    template_name: str
    template: Template
    parameters: dict = field(default_factory=dict)
    span: Tuple[int, int] = (0, 0)

    @property
    def name(self) -> str:
        return self.pattern.pattern

    def apply(self, body: str) -> str:
        """Rewrite every match of the pattern in body with the rendered template.

        Matches are found once, left to right and non-overlapping; rendered
        output is never re-scanned by the same macro.

        Raises:
            MacroRenderError: If the template fails to render at a call-site
        """
        def _render(match: Match) -> str:
            context = expand_groups(self.parameters, match)
            try:
                return self.template.render(**context)
            except (jinja2.TemplateError, PublishError) as e:
                raise MacroRenderError(self.name, match.start(), str(e)) from e

        return self.pattern.sub(_render, body)


class MacroEngine:
    """Extracts macro definitions and applies macros in order.

    The engine holds no state between runs other than the registry it
    binds templates from.
    """

    def __init__(self, registry: Registry):
        self.registry = registry

    def extract(self, body: str) -> Tuple[List[Macro], str]:
        """Collect macro definitions bound to registry templates.

        Definitions naming an unknown template, or with an invalid pattern
        or parameters, are left in the body untouched.

        Returns:
            Tuple of (macros in document order, body without their definitions)
        """
        macros: List[Macro] = []
        parts: List[str] = []
        cursor = 0

        for match in MACRO_PATTERN.finditer(body):
            macro = self._build(match)
            if macro is None:
                continue
            macros.append(macro)
            parts.append(body[cursor:match.start()])
            cursor = match.end()

        parts.append(body[cursor:])
        logger.debug(f"Extracted {len(macros)} macro(s)")
        return macros, "".join(parts)

    def _build(self, match: Match) -> Optional[Macro]:
        source = match.group('pattern')
        try:
            config = yaml.safe_load(textwrap.dedent(match.group('config'))) or {}
        except yaml.YAMLError as e:
            logger.warning(f"Ignoring macro '{source}': invalid parameters: {e}")
            return None

        if not isinstance(config, dict):
            logger.warning(f"Ignoring macro '{source}': parameters must be a mapping")
            return None

        template_name = str(config.pop('Template', '') or '')
        if template_name not in self.registry:
            logger.warning(f"Ignoring macro '{source}': unknown template '{template_name}'")
            return None

        try:
            pattern = re.compile(source)
        except re.error as e:
            logger.warning(f"Ignoring macro '{source}': invalid pattern: {e}")
            return None

        return Macro(
            pattern=pattern,
            template_name=template_name,
            template=self.registry.get(template_name),
            parameters=config,
            span=(match.start(), match.end()),
        )

    def apply(self, body: str, macros: Sequence[Macro], builtins: Sequence[Macro] = ()) -> str:
        """Apply document macros, then built-in macros, to body.

        Raises:
            MacroRenderError: If any call-site fails to render; no partially
                              rewritten body is returned
        """
        for macro in list(macros) + list(builtins):
            logger.debug(f"Applying macro '{macro.name}' ({macro.template_name})")
            body = macro.apply(body)
        return body
