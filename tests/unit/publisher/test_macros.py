"""Unit tests for publisher.macros and publisher.stdlib modules."""

import logging
import re

import pytest
from unittest.mock import Mock

from mdpublish.confluence_client.errors import PageNotFoundError
from mdpublish.confluence_client.models import UserInfo
from mdpublish.publisher.errors import MacroRenderError
from mdpublish.publisher.macros import Macro, MacroEngine, expand_groups
from mdpublish.publisher.registry import Registry
from mdpublish.publisher.stdlib import TEMPLATES, build_stdlib


def registry_with(**templates):
    registry = Registry()
    for name, source in templates.items():
        registry.register(name, source)
    return registry


class TestExpandGroups:
    """Test cases for capture group expansion in parameters."""

    def test_numbered_and_named_groups(self):
        match = re.search(r'(?P<key>[A-Z]+)-(\d+)', "see ABC-12")

        assert expand_groups("${key}/${2}", match) == "ABC/12"

    def test_nested_structures(self):
        match = re.search(r'(\w+)', "word")

        assert expand_groups({'a': ['${1}', 3]}, match) == {'a': ['word', 3]}

    def test_unknown_group_is_left_as_written(self):
        match = re.search(r'(\w+)', "word")

        assert expand_groups("${9}", match) == "${9}"


class TestMacroEngineExtract:
    """Test cases for MacroEngine.extract."""

    def test_extracts_definitions_in_document_order(self):
        registry = registry_with(first="1", second="2")
        body = (
            "<!-- Macro: :one:\n     Template: first -->\n"
            "text\n"
            "<!-- Macro: :two:\n     Template: second -->\n"
            "more\n"
        )

        macros, rest = MacroEngine(registry).extract(body)

        assert [m.name for m in macros] == [":one:", ":two:"]
        assert [m.template_name for m in macros] == ["first", "second"]
        assert rest == "text\nmore\n"

    def test_parameters_exclude_template_key(self):
        registry = registry_with(t="{{ A }}")

        macros, _ = MacroEngine(registry).extract("<!-- Macro: x\n  Template: t\n  A: ${1} -->")

        assert macros[0].parameters == {'A': '${1}'}

    def test_unknown_template_is_left_untouched(self, caplog):
        body = "<!-- Macro: x\n  Template: nope -->\nrest"

        with caplog.at_level(logging.WARNING, logger="mdpublish"):
            macros, rest = MacroEngine(Registry()).extract(body)

        assert macros == []
        assert rest == body
        assert "unknown template 'nope'" in caplog.text

    def test_invalid_pattern_is_left_untouched(self, caplog):
        registry = registry_with(t="x")
        body = "<!-- Macro: ([unclosed\n  Template: t -->"

        with caplog.at_level(logging.WARNING, logger="mdpublish"):
            macros, rest = MacroEngine(registry).extract(body)

        assert macros == []
        assert rest == body


class TestMacroEngineApply:
    """Test cases for MacroEngine.apply."""

    def test_rewrites_every_match_with_groups(self):
        registry = registry_with(ticket='<t key="{{ Key }}"/>')
        macros, body = MacroEngine(registry).extract(
            "<!-- Macro: :t:(\\w+-\\d+):\n  Template: ticket\n  Key: ${1} -->\n"
            "see :t:AB-1: and :t:CD-2:"
        )

        result = MacroEngine(registry).apply(body, macros)

        assert result == 'see <t key="AB-1"/> and <t key="CD-2"/>'

    def test_document_macros_run_before_builtins(self):
        """Later macros see the output of earlier ones as plain text."""
        registry = registry_with(to_b="B", b_to_c="C")
        engine = MacroEngine(registry)
        custom = Macro(re.compile("A"), "to_b", registry.get("to_b"))
        builtin = Macro(re.compile("B"), "b_to_c", registry.get("b_to_c"))

        assert engine.apply("A", [custom], [builtin]) == "C"
        assert engine.apply("A", [builtin], [custom]) == "B"

    def test_output_is_not_rescanned_by_same_macro(self):
        registry = registry_with(dup="xx")
        macro = Macro(re.compile("x"), "dup", registry.get("dup"))

        assert MacroEngine(registry).apply("x", [macro]) == "xx"

    def test_render_failure_raises_with_offset(self):
        registry = registry_with(strict="{{ Missing.attribute }}")
        macro = Macro(re.compile("!"), "strict", registry.get("strict"))

        with pytest.raises(MacroRenderError) as exc_info:
            MacroEngine(registry).apply("ok!", [macro])

        assert exc_info.value.macro == "!"
        assert exc_info.value.offset == 2


class TestStdlib:
    """Test cases for the built-in templates and macros."""

    def test_registry_contains_builtin_templates(self):
        stdlib = build_stdlib(Mock())

        for name in TEMPLATES:
            assert name in stdlib.registry
        assert len(stdlib.macros) == 2

    def test_jira_builtin_macro(self):
        stdlib = build_stdlib(Mock())

        result = MacroEngine(stdlib.registry).apply("Fixes [jira:OPS-42].", [], stdlib.macros)

        assert '<ac:parameter ac:name="key">OPS-42</ac:parameter>' in result
        assert "[jira:" not in result

    def test_user_mention_builtin_macro(self):
        api = Mock()
        api.get_user.return_value = UserInfo(username='jdoe', account_id='acc-1')
        stdlib = build_stdlib(api)

        result = MacroEngine(stdlib.registry).apply("ping @{jdoe}", [], stdlib.macros)

        assert result == 'ping <ac:link><ri:user ri:account-id="acc-1"/></ac:link>'
        api.get_user.assert_called_once_with('jdoe')

    def test_user_lookup_failure_is_a_render_error(self):
        api = Mock()
        api.get_user.side_effect = PageNotFoundError('unknown')
        stdlib = build_stdlib(api)

        with pytest.raises(MacroRenderError):
            MacroEngine(stdlib.registry).apply("@{ghost}", [], stdlib.macros)

    def test_code_template_escapes_cdata_end(self):
        stdlib = build_stdlib(Mock())

        result = stdlib.registry.render("ac:code", Language="xml", Text="a]]>b")

        assert "<![CDATA[a]]]]><![CDATA[>b]]>" in result
        assert '<ac:parameter ac:name="language">xml</ac:parameter>' in result
