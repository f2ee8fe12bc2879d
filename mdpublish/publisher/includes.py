"""Include directive expansion.

    <!-- Include: snippets/header.md
         Owner: platform-team -->

The reference is a registry template name or a path relative to the
document directory. A path is loaded once and registered under that path;
the directive is replaced by the template rendered with the YAML
parameters that follow the reference.

An included file may also define named templates for later stages, such as
a page layout used by the compositor:

    {% define "ac:layout:wide" %}
    <ac:layout>...{{ Body }}...</ac:layout>
    {% enddefine %}

Definitions are registered when the file is first loaded, with the same
first-registration-wins rule as any other name, and are removed from the
file's own template.

Expansion runs in passes. Each pass expands the directives present in the
body and reports whether the rendered output introduced new ones, so N
levels of nesting converge in N passes. Every directive carries the chain
of includes that produced it; revisiting a reference of its own chain is a
cycle.
"""

import logging
import os
import re
import textwrap
from typing import List, Tuple

import yaml

from .errors import IncludeCycleError, TemplateError
from .models import IncludeDirective
from .registry import Registry

logger = logging.getLogger(__name__)

INCLUDE_PATTERN = re.compile(
    r'<!--[ \t]*Include:[ \t]*(?P<reference>[^\s>]+?)(?=\s|-->)(?P<parameters>.*?)-->',
    re.DOTALL
)

# {% define "name" %}...{% enddefine %} in included files
DEFINE_PATTERN = re.compile(
    r'\{%-?\s*define\s+(?P<quote>["\'])(?P<name>[^"\']+)(?P=quote)\s*-?%\}\n?'
    r'(?P<source>.*?)'
    r'\{%-?\s*enddefine\s*-?%\}\n?',
    re.DOTALL
)

# Hard bound on nesting, whatever the chains say
MAX_INCLUDE_DEPTH = 32


class IncludeResolver:
    """Expands include directives against a registry.

    A resolver instance tracks the include chains of one document; use a
    new instance per document.

    Example:
        >>> resolver = IncludeResolver("/docs")
        >>> registry, body = resolver.resolve(body, registry)
    """

    def __init__(self, base_dir: str, max_depth: int = MAX_INCLUDE_DEPTH):
        self.base_dir = base_dir
        self.max_depth = max_depth
        # Chains of the directives pending in the body, in document order
        self._chains: List[tuple] = []

    def scan(self, body: str) -> List[IncludeDirective]:
        """Parse the include directives of body in document order.

        Raises:
            TemplateError: If the parameters of a directive are not a YAML mapping
        """
        directives = []
        for index, match in enumerate(INCLUDE_PATTERN.finditer(body)):
            reference = match.group('reference')
            directives.append(IncludeDirective(
                reference=reference,
                parameters=self._parse_parameters(reference, match.group('parameters')),
                start=match.start(),
                end=match.end(),
                chain=self._chains[index] if index < len(self._chains) else (),
            ))
        return directives

    def process(self, body: str, registry: Registry) -> Tuple[Registry, str, bool]:
        """Run one expansion pass.

        Returns:
            Tuple of (registry, body, recurse); recurse is True iff the
            rendered output introduced new include directives

        Raises:
            IncludeCycleError: If a directive revisits its own chain or
                               nesting exceeds max_depth
            TemplateError: If a template is missing, invalid, fails to
                           render, or parameters are not a YAML mapping
        """
        parts: List[str] = []
        next_chains: List[tuple] = []
        cursor = 0

        for directive in self.scan(body):
            reference, chain = directive.reference, directive.chain
            if reference in chain or len(chain) >= self.max_depth:
                raise IncludeCycleError(reference, chain)

            self._load(reference, registry)
            rendered = registry.render(reference, **directive.parameters)
            logger.debug(f"Included '{reference}' (depth {len(chain) + 1})")

            nested = chain + (reference,)
            next_chains.extend(nested for _ in INCLUDE_PATTERN.finditer(rendered))

            parts.append(body[cursor:directive.start])
            parts.append(rendered)
            cursor = directive.end

        parts.append(body[cursor:])
        self._chains = next_chains
        return registry, "".join(parts), bool(next_chains)

    def resolve(self, body: str, registry: Registry) -> Tuple[Registry, str]:
        """Expand includes until no pass introduces new directives."""
        passes = 0
        recurse = True
        while recurse:
            registry, body, recurse = self.process(body, registry)
            passes += 1
        logger.debug(f"Includes resolved in {passes} pass(es)")
        return registry, body

    def _load(self, reference: str, registry: Registry) -> None:
        if reference in registry:
            return

        path = os.path.join(self.base_dir, reference)
        try:
            with open(path, 'r', encoding='utf-8') as f:
                source = f.read()
        except OSError as e:
            raise TemplateError(reference, f"unable to read {path}: {e.strerror or e}") from e

        registry.register(reference, self._register_definitions(reference, source, registry))

    @staticmethod
    def _register_definitions(reference: str, source: str, registry: Registry) -> str:
        """Register the named templates defined in source; return the rest."""
        for match in DEFINE_PATTERN.finditer(source):
            name = match.group('name')
            if registry.register(name, match.group('source')):
                logger.debug(f"'{reference}' defined template '{name}'")
            else:
                logger.debug(f"'{reference}' kept existing template '{name}'")
        return DEFINE_PATTERN.sub('', source)

    @staticmethod
    def _parse_parameters(reference: str, text: str) -> dict:
        if not text.strip():
            return {}
        try:
            parameters = yaml.safe_load(textwrap.dedent(text.strip('\n')))
        except yaml.YAMLError as e:
            raise TemplateError(reference, f"invalid include parameters: {e}") from e

        if parameters is None:
            return {}
        if not isinstance(parameters, dict):
            raise TemplateError(reference, "include parameters must be a YAML mapping")
        return parameters
