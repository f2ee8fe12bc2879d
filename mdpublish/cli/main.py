"""Main CLI entry point for the mdpublish command.

This module provides the Typer application that serves as the entry point
for the mdpublish command-line tool: one command that publishes one
Markdown file to Confluence.
"""

import logging
import sys
from typing import Optional

import typer

from mdpublish import __version__
from mdpublish.cli.config import ConfigLoader
from mdpublish.cli.errors import CLIError
from mdpublish.cli.models import ExitCode
from mdpublish.cli.output import OutputHandler
from mdpublish.cli.publish_command import PublishCommand
from mdpublish.confluence_client.auth import Authenticator
from mdpublish.publisher.models import PublishOptions

app = typer.Typer(
    name="mdpublish",
    help="""Publish a Markdown document to Confluence.

EXAMPLES:
  mdpublish -f README.md                            # Publish using front-matter
  mdpublish -f README.md -l <page_url>              # Publish to an existing page
  mdpublish -f README.md --compile-only             # Print storage format
  mdpublish -f README.md --page-version .version    # Guard against remote edits""",
    add_completion=False,
    rich_markup_mode=None,  # Disable Rich markup to avoid compatibility issues
    no_args_is_help=False,
)

# Module logger
logger = logging.getLogger(__name__)

# Loggers of the HTTP stack, enabled with --trace
TRACE_LOGGERS = ("atlassian", "urllib3")


def _configure_logging(debug: bool, trace: bool) -> None:
    """Configure logging for the mdpublish namespace.

    The root logger is left unchanged; --trace additionally enables the
    loggers of the HTTP stack.

    Args:
        debug: Log pipeline stages and decisions
        trace: Also log HTTP requests made by the Confluence client
    """
    level = logging.DEBUG if debug or trace else logging.WARNING

    log_format = "%(asctime)s [%(levelname)8s] %(message)s"
    date_format = "%Y-%m-%d %H:%M:%S"
    formatter = logging.Formatter(log_format, datefmt=date_format)

    console_handler = logging.StreamHandler(sys.stderr)
    console_handler.setLevel(level)
    console_handler.setFormatter(formatter)

    names = ("mdpublish",) + (TRACE_LOGGERS if trace else ())
    for name in names:
        named_logger = logging.getLogger(name)
        named_logger.setLevel(level)
        named_logger.handlers.clear()
        named_logger.addHandler(console_handler)


def _read_password(password: Optional[str]) -> Optional[str]:
    """Resolve "-" to a password read from stdin."""
    if password != "-":
        return password
    value = sys.stdin.readline().strip()
    return value or None


@app.command()
def main_command(
    file: Optional[str] = typer.Option(
        None,
        "-f",
        "--file",
        help="Markdown file to publish",
        metavar="FILE",
    ),
    username: Optional[str] = typer.Option(
        None,
        "-u",
        "--username",
        help="Confluence user name or email (default: $CONFLUENCE_USER or config file)",
    ),
    password: Optional[str] = typer.Option(
        None,
        "-p",
        "--password",
        help="Confluence API token or password; '-' reads it from stdin",
    ),
    page_url: Optional[str] = typer.Option(
        None,
        "-l",
        "--url",
        help="URL of the target page; its page id wins over the file's metadata",
        metavar="URL",
    ),
    base_url: Optional[str] = typer.Option(
        None,
        "-b",
        "--base-url",
        help="Confluence base URL (default: derived from --url, $CONFLUENCE_URL or config file)",
        metavar="URL",
    ),
    edit_lock: bool = typer.Option(
        False,
        "-k",
        "--edit-lock",
        help="Restrict editing of the page to the publishing user",
    ),
    drop_h1: bool = typer.Option(
        False,
        "--drop-h1",
        help="Remove the leading H1 heading; Confluence shows the title already",
    ),
    dry_run: bool = typer.Option(
        False,
        "--dry-run",
        help="Resolve the page and its ancestry without changes, then print storage format",
    ),
    compile_only: bool = typer.Option(
        False,
        "--compile-only",
        help="Print storage format without touching the page",
    ),
    minor_edit: bool = typer.Option(
        False,
        "--minor-edit",
        help="Publish as a minor edit (no notifications to watchers)",
    ),
    debug: bool = typer.Option(
        False,
        "--debug",
        help="Enable debug logging",
    ),
    trace: bool = typer.Option(
        False,
        "--trace",
        help="Enable debug logging including HTTP requests",
    ),
    no_raw_attachments: bool = typer.Option(
        False,
        "--no-raw-attachments",
        help="Only treat attachment:// links as attachments",
    ),
    page_version: Optional[str] = typer.Option(
        None,
        "--page-version",
        help="File recording the published page version; publish fails if the page changed since",
        metavar="FILE",
    ),
    config: str = typer.Option(
        ConfigLoader.DEFAULT_CONFIG_PATH,
        "--config",
        help="Config file with default credentials",
        metavar="FILE",
    ),
    no_color: bool = typer.Option(
        False,
        "--no-color",
        help="Disable colored output",
    ),
    version: bool = typer.Option(
        False,
        "--version",
        "-V",
        help="Show version and exit",
    ),
) -> None:
    """Publish a Markdown document to Confluence.

    \b
    The target page comes from the file's front-matter (title, space,
    parents) or from an explicit page URL given with -l.
    """
    if version:
        typer.echo(f"mdpublish version {__version__}")
        raise typer.Exit()

    if not file:
        typer.echo("Error: Missing option '-f' / '--file'", err=True)
        raise typer.Exit(ExitCode.GENERAL_ERROR)

    _configure_logging(debug, trace)
    output = OutputHandler(no_color=no_color)

    try:
        file_config = ConfigLoader.load(config)
    except CLIError as e:
        logger.error(str(e))
        output.error(str(e))
        raise typer.Exit(ExitCode.GENERAL_ERROR)

    authenticator = Authenticator(
        username=username,
        api_token=_read_password(password),
        base_url=base_url,
        page_url=page_url,
        file_config=file_config,
    )

    options = PublishOptions(
        file_path=file,
        dry_run=dry_run,
        compile_only=compile_only,
        edit_lock=edit_lock,
        drop_h1=drop_h1,
        minor_edit=minor_edit,
        raw_attachments=not no_raw_attachments,
        version_file=page_version,
    )

    exit_code = PublishCommand(authenticator=authenticator, output_handler=output).run(options)
    raise typer.Exit(exit_code)


def main() -> None:
    """Main entry point for the CLI application.

    This function is called when the module is executed directly or
    when the console script is invoked.
    """
    app()


# Allow running as: python -m mdpublish.cli.main
if __name__ == "__main__":
    main()
