"""Unit tests for main CLI entry point (main.py).

Tests the Typer CLI application using CliRunner.
"""

import logging

import pytest
from unittest.mock import Mock, patch
from typer.testing import CliRunner

from mdpublish import __version__
from mdpublish.cli.main import _configure_logging, app
from mdpublish.cli.models import ExitCode


runner = CliRunner()


@pytest.fixture
def mock_publish_command():
    with patch('mdpublish.cli.main.PublishCommand') as mock_cls, \
            patch('mdpublish.cli.main._configure_logging'):
        instance = Mock()
        instance.run.return_value = ExitCode.SUCCESS
        mock_cls.return_value = instance
        yield mock_cls


class TestConfigureLogging:
    """Test cases for _configure_logging function."""

    def teardown_method(self):
        for name in ("mdpublish", "atlassian", "urllib3"):
            logger = logging.getLogger(name)
            logger.handlers.clear()
            logger.setLevel(logging.NOTSET)

    def test_default_sets_warning_level(self):
        _configure_logging(debug=False, trace=False)

        assert logging.getLogger("mdpublish").level == logging.WARNING
        assert logging.getLogger("urllib3").level == logging.NOTSET

    def test_debug_sets_debug_level(self):
        _configure_logging(debug=True, trace=False)

        assert logging.getLogger("mdpublish").level == logging.DEBUG

    def test_trace_enables_http_loggers(self):
        _configure_logging(debug=False, trace=True)

        assert logging.getLogger("mdpublish").level == logging.DEBUG
        assert logging.getLogger("atlassian").level == logging.DEBUG
        assert logging.getLogger("urllib3").level == logging.DEBUG


class TestMainCommand:
    """Test cases for the mdpublish command."""

    def test_version_flag(self):
        result = runner.invoke(app, ["--version"])

        assert result.exit_code == 0
        assert f"mdpublish version {__version__}" in result.output

    def test_missing_file_option_fails(self, mock_publish_command):
        result = runner.invoke(app, [])

        assert result.exit_code == ExitCode.GENERAL_ERROR
        mock_publish_command.assert_not_called()

    def test_options_are_passed_to_pipeline(self, mock_publish_command, tmp_path):
        result = runner.invoke(app, [
            "-f", "doc.md", "--config", str(tmp_path / "none.yaml"),
            "-k", "--drop-h1", "--minor-edit", "--no-raw-attachments",
            "--page-version", ".version",
        ])

        assert result.exit_code == ExitCode.SUCCESS
        options = mock_publish_command.return_value.run.call_args.args[0]
        assert options.file_path == "doc.md"
        assert options.edit_lock is True
        assert options.drop_h1 is True
        assert options.minor_edit is True
        assert options.raw_attachments is False
        assert options.version_file == ".version"
        assert options.dry_run is False

    def test_exit_code_of_command_is_returned(self, mock_publish_command, tmp_path):
        mock_publish_command.return_value.run.return_value = ExitCode.CONFLICTS

        result = runner.invoke(app, ["-f", "doc.md", "--config", str(tmp_path / "none.yaml")])

        assert result.exit_code == ExitCode.CONFLICTS

    def test_password_from_stdin(self, mock_publish_command, tmp_path):
        runner.invoke(
            app,
            ["-f", "doc.md", "-u", "jdoe", "-p", "-", "-b", "https://example.com/wiki", "--config", str(tmp_path / "none.yaml")],
            input="s3cret\n",
        )

        authenticator = mock_publish_command.call_args.kwargs['authenticator']
        assert authenticator.get_credentials().api_token == "s3cret"

    def test_invalid_config_file_fails(self, mock_publish_command, tmp_path):
        config_file = tmp_path / "config.yaml"
        config_file.write_text("- not\n- a mapping\n")

        result = runner.invoke(app, ["-f", "doc.md", "--config", str(config_file)])

        assert result.exit_code == ExitCode.GENERAL_ERROR
        mock_publish_command.assert_not_called()
