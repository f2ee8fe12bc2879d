"""Layout composition of the compiled page body."""

import logging

from .errors import TemplateError
from .registry import Registry

logger = logging.getLogger(__name__)

LAYOUT_TEMPLATE = "ac:layout"


class Compositor:
    """Wraps a compiled body into a named layout.

    The ac:layout template dispatches to ac:layout:<name>, or to
    ac:layout:default when the document names no layout.
    """

    def __init__(self, registry: Registry):
        self.registry = registry

    def compose(self, body: str, layout: str = "") -> str:
        """Render body into the given layout.

        Raises:
            TemplateError: If ac:layout or the named layout is not registered
        """
        if LAYOUT_TEMPLATE not in self.registry:
            raise TemplateError(LAYOUT_TEMPLATE)

        name = f"{LAYOUT_TEMPLATE}:{layout or 'default'}"
        if name not in self.registry:
            raise TemplateError(name)

        logger.debug(f"Composing page body with layout '{name}'")
        return self.registry.render(LAYOUT_TEMPLATE, Layout=layout, Body=body)
