"""Template registry shared by the pipeline stages.

The registry maps template names to Jinja2 templates. It starts with the
built-in Confluence templates and grows while includes are resolved; a name,
once registered, is never replaced or removed during a run. The same
registry is later used by macros, the storage renderer and the layout
compositor.
"""

import logging
from typing import Any, Callable, Dict, List, Mapping, Optional

import jinja2
from jinja2 import DictLoader, Environment, Template

from .errors import TemplateError

logger = logging.getLogger(__name__)


def cdata(value: Any) -> str:
    """Escape text for embedding inside a CDATA section."""
    return str(value).replace("]]>", "]]]]><![CDATA[>")


class Registry:
    """Named Jinja2 templates with monotonic growth.

    Example:
        >>> registry = Registry()
        >>> registry.register("greeting", "Hello {{ Name }}")
        True
        >>> registry.render("greeting", Name="Ada")
        'Hello Ada'
    """

    def __init__(self, globals: Optional[Mapping[str, Callable[..., Any]]] = None):
        """Initialize an empty registry.

        Args:
            globals: Functions made available to every template
                     (e.g., user lookups bound to the Confluence client)
        """
        self._sources: Dict[str, str] = {}
        self.env = Environment(
            loader=DictLoader(self._sources),
            autoescape=False,  # Templates produce storage format and Markdown
            trim_blocks=True,
            lstrip_blocks=True,
        )
        self.env.filters["cdata"] = cdata
        if globals:
            self.env.globals.update(globals)

    def __contains__(self, name: str) -> bool:
        return name in self._sources

    def __len__(self) -> int:
        return len(self._sources)

    def names(self) -> List[str]:
        return list(self._sources)

    def register(self, name: str, source: str) -> bool:
        """Register a template under name unless the name is taken.

        Args:
            name: Template name (a built-in name or an include path)
            source: Jinja2 template source

        Returns:
            True if the template was added, False if name already existed

        Raises:
            TemplateError: If the source is not a valid template
        """
        if name in self._sources:
            return False

        try:
            self.env.parse(source)
        except jinja2.TemplateSyntaxError as e:
            raise TemplateError(name, f"syntax error at line {e.lineno}: {e.message}") from e

        self._sources[name] = source
        logger.debug(f"Registered template '{name}'")
        return True

    def get(self, name: str) -> Template:
        """Return the compiled template registered under name.

        Raises:
            TemplateError: If no such template is registered
        """
        if name not in self._sources:
            raise TemplateError(name)
        return self.env.get_template(name)

    def render(self, name: str, **context: Any) -> str:
        """Render the template registered under name.

        Raises:
            TemplateError: If the template is missing or fails to render
        """
        template = self.get(name)
        try:
            return template.render(**context)
        except jinja2.TemplateNotFound as e:
            raise TemplateError(e.name or name) from e
        except jinja2.TemplateError as e:
            raise TemplateError(name, str(e)) from e
