"""Built-in Confluence templates and macros.

Every run starts from a registry holding these templates. Documents may
reference them by name from includes and macros; the storage renderer uses
ac:code and ac:image, and the compositor uses ac:layout.
"""

import logging
from typing import Dict, List, NamedTuple

from .macros import Macro, MacroEngine
from .registry import Registry

logger = logging.getLogger(__name__)


TEMPLATES: Dict[str, str] = {
    'ac:status': (
        '<ac:structured-macro ac:name="status">'
        '<ac:parameter ac:name="colour">{{ Color or "Grey" }}</ac:parameter>'
        '<ac:parameter ac:name="title">{{ Title }}</ac:parameter>'
        '{% if Subtle %}<ac:parameter ac:name="subtle">true</ac:parameter>{% endif %}'
        '</ac:structured-macro>'
    ),
    'ac:box': (
        '<ac:structured-macro ac:name="{{ Name or "info" }}">'
        '{% if Title %}<ac:parameter ac:name="title">{{ Title }}</ac:parameter>{% endif %}'
        '{% if Icon is defined %}<ac:parameter ac:name="icon">{{ Icon | lower }}</ac:parameter>{% endif %}'
        '<ac:rich-text-body>{{ Body }}</ac:rich-text-body>'
        '</ac:structured-macro>'
    ),
    'ac:toc': (
        '<ac:structured-macro ac:name="toc">'
        '<ac:parameter ac:name="printable">{{ Printable or "false" }}</ac:parameter>'
        '<ac:parameter ac:name="style">{{ Style or "disc" }}</ac:parameter>'
        '<ac:parameter ac:name="maxLevel">{{ MaxLevel or 7 }}</ac:parameter>'
        '<ac:parameter ac:name="minLevel">{{ MinLevel or 1 }}</ac:parameter>'
        '</ac:structured-macro>'
    ),
    'ac:children': (
        '<ac:structured-macro ac:name="children">'
        '{% if Sort %}<ac:parameter ac:name="sort">{{ Sort }}</ac:parameter>{% endif %}'
        '{% if Reverse %}<ac:parameter ac:name="reverse">true</ac:parameter>{% endif %}'
        '{% if Depth %}<ac:parameter ac:name="depth">{{ Depth }}</ac:parameter>{% endif %}'
        '{% if All %}<ac:parameter ac:name="all">true</ac:parameter>{% endif %}'
        '</ac:structured-macro>'
    ),
    'ac:jira:ticket': (
        '<ac:structured-macro ac:name="jira">'
        '<ac:parameter ac:name="key">{{ Ticket }}</ac:parameter>'
        '</ac:structured-macro>'
    ),
    'ac:link:user': (
        '{% set user = user_lookup(Name) %}'
        '<ac:link><ri:user '
        '{% if user.account_id %}ri:account-id="{{ user.account_id }}"'
        '{% else %}ri:userkey="{{ user.user_key }}"{% endif %}'
        '/></ac:link>'
    ),
    'ac:code': (
        '<ac:structured-macro ac:name="code">'
        '{% if Language %}<ac:parameter ac:name="language">{{ Language }}</ac:parameter>{% endif %}'
        '{% if Title %}<ac:parameter ac:name="title">{{ Title }}</ac:parameter>{% endif %}'
        '<ac:parameter ac:name="collapse">{{ Collapse or "false" }}</ac:parameter>'
        '<ac:plain-text-body><![CDATA[{{ Text | cdata }}]]></ac:plain-text-body>'
        '</ac:structured-macro>'
    ),
    'ac:image': (
        '<ac:image{% if Alt %} ac:alt="{{ Alt | e }}"{% endif %}'
        '{% if Width %} ac:width="{{ Width }}"{% endif %}>'
        '<ri:attachment ri:filename="{{ Filename | e }}"/>'
        '</ac:image>'
    ),
    'ac:layout': '{% include "ac:layout:" ~ (Layout or "default") %}',
    'ac:layout:default': '{{ Body }}',
    'ac:layout:article': (
        '<ac:layout>'
        '<ac:layout-section ac:type="two_right_sidebar">'
        '<ac:layout-cell>{{ Body }}</ac:layout-cell>'
        '<ac:layout-cell>'
        '<ac:structured-macro ac:name="toc"/>'
        '</ac:layout-cell>'
        '</ac:layout-section>'
        '</ac:layout>'
    ),
}


# Built-in macros, applied after the document's own macros
BUILTIN_MACROS = """\
<!-- Macro: @\\{([^}]+)\\}
     Template: ac:link:user
     Name: ${1} -->
<!-- Macro: \\[jira:([A-Z][A-Z0-9]+-\\d+)\\]
     Template: ac:jira:ticket
     Ticket: ${1} -->
"""


class Stdlib(NamedTuple):
    """The starting registry of a run and the built-in macros bound to it."""
    registry: Registry
    macros: List[Macro]


def build_stdlib(api) -> Stdlib:
    """Build the built-in registry and macros.

    Args:
        api: ContentService used by ac:link:user to look up users

    Returns:
        Stdlib with a fresh registry and the built-in macros
    """
    # Lookup failures are RemoteErrors and surface as MacroRenderError
    registry = Registry(globals={'user_lookup': api.get_user})
    for name, source in TEMPLATES.items():
        registry.register(name, source)

    macros, _ = MacroEngine(registry).extract(BUILTIN_MACROS)
    logger.debug(f"Loaded {len(registry)} built-in templates and {len(macros)} built-in macros")
    return Stdlib(registry=registry, macros=macros)
