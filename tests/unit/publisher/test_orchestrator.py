"""Unit tests for publisher.orchestrator module.

The Confluence API is a Mock; the storage renderer is replaced with a fake
that records the Markdown it receives, so Pandoc is never invoked.
"""

import logging

import pytest
from unittest.mock import Mock

from mdpublish.confluence_client.models import PageInfo, RemoteAttachment
from mdpublish.publisher.errors import ConfigurationError, VersionConflictError
from mdpublish.publisher.models import PublishOptions
from mdpublish.publisher.orchestrator import Orchestrator, drop_leading_h1, resolve_target


BASE_URL = "https://example.com/wiki"
HOME = PageInfo("1", "Home", "DOCS", 4)
FRONTMATTER = "---\ntitle: Guide\nspace: DOCS\nlabels: [ops]\n---\n"


class FakeRenderer:
    """Records the Markdown handed to the storage renderer."""

    received = []

    def __init__(self, registry, base_path):
        self.registry = registry
        self.base_path = base_path

    def markdown_to_storage(self, markdown):
        FakeRenderer.received.append(markdown)
        return f"<p>{markdown.strip()}</p>"


@pytest.fixture(autouse=True)
def reset_renderer():
    FakeRenderer.received = []


def create_mock_api(existing=None, update_version=2):
    api = Mock()
    api.base_url = BASE_URL
    api.base_path = "/wiki"
    api.find_page.return_value = existing
    api.get_space_homepage.return_value = HOME
    api.create_page.return_value = PageInfo("9", "Guide", "DOCS", 1, link="/spaces/DOCS/pages/9/Guide")
    api.get_page_by_id.return_value = existing
    api.get_attachments.return_value = []
    api.update_page.return_value = update_version
    return api


def write_doc(tmp_path, text):
    path = tmp_path / "doc.md"
    path.write_text(text, encoding='utf-8')
    return str(path)


class TestHelpers:
    """Test cases for module-level helpers."""

    def test_drop_leading_h1(self):
        assert drop_leading_h1("\n# Title\nBody\n") == "Body\n"
        assert drop_leading_h1("Intro\n# Title\n") == "Intro\n# Title\n"
        assert drop_leading_h1("## Sub\n") == "## Sub\n"

    def test_resolve_target_without_metadata_or_id(self):
        with pytest.raises(ConfigurationError):
            resolve_target(None, None)


class TestOrchestrator:
    """Test cases for Orchestrator.run."""

    def test_no_metadata_and_no_page_id_fails_before_any_remote_call(self, tmp_path):
        api = create_mock_api()
        file_path = write_doc(tmp_path, "just text\n")

        with pytest.raises(ConfigurationError) as exc_info:
            Orchestrator(api, FakeRenderer).run(PublishOptions(file_path=file_path))

        assert exc_info.value.stage == "target"
        assert api.method_calls == []

    def test_unreadable_file_is_a_configuration_error(self, tmp_path):
        with pytest.raises(ConfigurationError):
            Orchestrator(create_mock_api(), FakeRenderer).run(
                PublishOptions(file_path=str(tmp_path / "missing.md"))
            )

    def test_new_page_is_created_then_published(self, tmp_path):
        api = create_mock_api(existing=None, update_version=2)
        file_path = write_doc(tmp_path, FRONTMATTER + "Hello\n")

        result = Orchestrator(api, FakeRenderer).run(PublishOptions(file_path=file_path))

        api.create_page.assert_called_once_with("DOCS", HOME, "Guide", "")
        page, storage = api.update_page.call_args.args
        assert page.page_id == "9"
        assert storage == "<p>Hello</p>"
        assert api.update_page.call_args.kwargs == {'minor_edit': False, 'labels': ['ops']}
        assert result.version == 2
        assert result.url == f"{BASE_URL}/spaces/DOCS/pages/9/Guide"

    def test_existing_page_is_updated_in_place(self, tmp_path):
        existing = PageInfo("5", "Guide", "DOCS", 3)
        api = create_mock_api(existing=existing, update_version=4)
        file_path = write_doc(tmp_path, FRONTMATTER + "Hello\n")

        result = Orchestrator(api, FakeRenderer).run(PublishOptions(file_path=file_path, minor_edit=True))

        api.create_page.assert_not_called()
        assert api.update_page.call_args.args[0] is existing
        assert api.update_page.call_args.kwargs['minor_edit'] is True
        assert result.url == f"{BASE_URL}/pages/viewpage.action?pageId=5"

    def test_page_id_wins_over_metadata(self, tmp_path, caplog):
        existing = PageInfo("77", "Other", "OPS", 3)
        api = create_mock_api(existing=existing)
        file_path = write_doc(tmp_path, FRONTMATTER + "Hello\n")

        with caplog.at_level(logging.WARNING, logger="mdpublish"):
            Orchestrator(api, FakeRenderer).run(PublishOptions(file_path=file_path, page_id="77"))

        assert "will be ignored due to specified page URL" in caplog.text
        api.get_page_by_id.assert_called_once_with("77")
        api.find_page.assert_not_called()
        assert api.update_page.call_args.kwargs['labels'] is None

    def test_compile_only_returns_storage_without_touching_pages(self, tmp_path):
        api = create_mock_api()
        file_path = write_doc(tmp_path, "# Title\nHello\n")

        result = Orchestrator(api, FakeRenderer).run(
            PublishOptions(file_path=file_path, compile_only=True, drop_h1=True)
        )

        assert result.storage == "<p>Hello</p>"
        assert result.version is None
        api.find_page.assert_not_called()
        api.create_page.assert_not_called()
        api.update_page.assert_not_called()

    def test_dry_run_resolves_read_only(self, tmp_path):
        api = create_mock_api(existing=None)
        file_path = write_doc(tmp_path, FRONTMATTER + "Hello\n")

        result = Orchestrator(api, FakeRenderer).run(PublishOptions(file_path=file_path, dry_run=True))

        assert result.storage == "<p>Hello</p>"
        api.find_page.assert_called_once_with("DOCS", "Guide")
        api.create_page.assert_not_called()
        api.update_page.assert_not_called()

    def test_version_conflict_stops_before_publish(self, tmp_path):
        existing = PageInfo("5", "Guide", "DOCS", 3)
        api = create_mock_api(existing=existing)
        file_path = write_doc(tmp_path, FRONTMATTER + "Hello\n")
        version_file = tmp_path / ".version"
        version_file.write_text("2\n")

        with pytest.raises(VersionConflictError) as exc_info:
            Orchestrator(api, FakeRenderer).run(
                PublishOptions(file_path=file_path, version_file=str(version_file))
            )

        assert exc_info.value.stage == "version check"
        api.update_page.assert_not_called()
        assert version_file.read_text() == "2\n"

    def test_version_file_records_published_version(self, tmp_path):
        existing = PageInfo("5", "Guide", "DOCS", 3)
        api = create_mock_api(existing=existing, update_version=4)
        file_path = write_doc(tmp_path, FRONTMATTER + "Hello\n")
        version_file = tmp_path / ".version"
        version_file.write_text("3\n")

        Orchestrator(api, FakeRenderer).run(PublishOptions(file_path=file_path, version_file=str(version_file)))

        assert version_file.read_text() == "4\n"

    def test_edit_lock_restricts_page(self, tmp_path):
        existing = PageInfo("5", "Guide", "DOCS", 3)
        api = create_mock_api(existing=existing)
        file_path = write_doc(tmp_path, FRONTMATTER + "Hello\n")

        Orchestrator(api, FakeRenderer).run(
            PublishOptions(file_path=file_path, edit_lock=True, username="jdoe")
        )

        api.restrict_page_updates.assert_called_once_with(existing, "jdoe")

    def test_attachments_are_uploaded_and_links_rewritten(self, tmp_path):
        existing = PageInfo("5", "Guide", "DOCS", 3)
        api = create_mock_api(existing=existing)
        api.create_attachment.return_value = RemoteAttachment("att-1", "img.png")
        (tmp_path / "img.png").write_bytes(b"png")
        file_path = write_doc(tmp_path, FRONTMATTER + "![pic](img.png)\n")

        Orchestrator(api, FakeRenderer).run(PublishOptions(file_path=file_path))

        assert api.create_attachment.call_args.args[:3] == ("5", "img.png", b"png")
        assert FakeRenderer.received == ["![pic](/wiki/download/attachments/5/img.png)\n"]

    def test_restricted_mode_rewrites_only_scheme_references(self, tmp_path):
        api = create_mock_api(existing=PageInfo("5", "Guide", "DOCS", 3))
        api.create_attachment.return_value = RemoteAttachment("att-1", "image.png")
        (tmp_path / "image.png").write_bytes(b"png")
        file_path = write_doc(tmp_path, FRONTMATTER + "![a](image.png) ![b](attachment://image.png)\n")

        Orchestrator(api, FakeRenderer).run(PublishOptions(file_path=file_path, raw_attachments=False))

        assert api.create_attachment.call_count == 1
        assert FakeRenderer.received == [
            "![a](image.png) ![b](/wiki/download/attachments/5/image.png)\n"
        ]

    def test_raw_mode_uploads_scheme_references(self, tmp_path):
        api = create_mock_api(existing=PageInfo("5", "Guide", "DOCS", 3))
        api.create_attachment.return_value = RemoteAttachment("att-1", "img_b.png")
        (tmp_path / "img").mkdir()
        (tmp_path / "img" / "b.png").write_bytes(b"png")
        file_path = write_doc(tmp_path, FRONTMATTER + "![b](attachment://img/b.png)\n")

        Orchestrator(api, FakeRenderer).run(PublishOptions(file_path=file_path))

        assert api.create_attachment.call_args.args[:3] == ("5", "img_b.png", b"png")
        assert FakeRenderer.received == ["![b](/wiki/download/attachments/5/img_b.png)\n"]

    @pytest.mark.parametrize("raw", [True, False])
    def test_metadata_attachment_also_referenced_in_body_is_created_once(self, tmp_path, raw):
        api = create_mock_api(existing=PageInfo("5", "Guide", "DOCS", 3))
        api.create_attachment.return_value = RemoteAttachment("att-1", "diagram.png")
        (tmp_path / "diagram.png").write_bytes(b"svg")
        file_path = write_doc(
            tmp_path,
            "---\ntitle: Guide\nspace: DOCS\nattachments: [diagram.png]\n---\n"
            "![d](attachment://diagram.png)\n",
        )

        Orchestrator(api, FakeRenderer).run(PublishOptions(file_path=file_path, raw_attachments=raw))

        assert api.create_attachment.call_count == 1
        api.update_attachment.assert_not_called()
        assert FakeRenderer.received == ["![d](/wiki/download/attachments/5/diagram.png)\n"]

    def test_included_file_can_define_the_page_layout(self, tmp_path):
        api = create_mock_api(existing=PageInfo("5", "Guide", "DOCS", 3))
        (tmp_path / "layouts.md").write_text(
            '{% define "ac:layout:wide" %}\n<ac:layout>{{ Body }}</ac:layout>\n{% enddefine %}\n',
            encoding='utf-8',
        )
        file_path = write_doc(
            tmp_path,
            "---\ntitle: Guide\nspace: DOCS\nlayout: wide\n---\n"
            "<!-- Include: layouts.md -->\nHello\n",
        )

        Orchestrator(api, FakeRenderer).run(PublishOptions(file_path=file_path))

        storage = api.update_page.call_args.args[1]
        assert storage == "<ac:layout><p>Hello</p></ac:layout>"

    def test_macros_and_includes_run_before_rendering(self, tmp_path):
        api = create_mock_api(existing=PageInfo("5", "Guide", "DOCS", 3))
        (tmp_path / "footer.md").write_text("Owned by {{ Team }}", encoding='utf-8')
        file_path = write_doc(
            tmp_path,
            FRONTMATTER
            + "<!-- Macro: :done:\n     Template: ac:status\n     Title: DONE\n     Color: Green -->\n"
            + "State :done:\n"
            + "<!-- Include: footer.md\n     Team: platform -->\n",
        )

        Orchestrator(api, FakeRenderer).run(PublishOptions(file_path=file_path))

        rendered = FakeRenderer.received[0]
        assert "Owned by platform" in rendered
        assert ":done:" not in rendered
        assert "ac:structured-macro" in rendered
