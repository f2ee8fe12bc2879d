"""Publish command orchestration for CLI.

This module provides the PublishCommand class that wires credentials, the
Confluence client and the publish pipeline together, prints the result,
and maps every failure to an exit code.
"""

import logging
from typing import Optional

from mdpublish.cli.models import ExitCode
from mdpublish.cli.output import OutputHandler
from mdpublish.confluence_client.api_wrapper import APIWrapper
from mdpublish.confluence_client.auth import Authenticator
from mdpublish.confluence_client.errors import (
    APIAccessError,
    APIUnreachableError,
    InvalidCredentialsError,
    PublishError,
    StaleVersionError,
)
from mdpublish.publisher.errors import VersionConflictError
from mdpublish.publisher.models import PublishOptions, PublishResult
from mdpublish.publisher.orchestrator import Orchestrator

logger = logging.getLogger(__name__)


class PublishCommand:
    """Runs one publish and reports its outcome.

    Exit codes:
        SUCCESS: Page published, or compiled output printed
        CONFLICTS: Page version differs from the recorded or expected one
        AUTH_ERROR: Credentials missing or rejected
        NETWORK_ERROR: Confluence unreachable or the API failed
        GENERAL_ERROR: Any other failure

    Example:
        >>> output = OutputHandler()
        >>> cmd = PublishCommand(authenticator=Authenticator(), output_handler=output)
        >>> exit_code = cmd.run(PublishOptions(file_path="README.md"))
        >>> sys.exit(exit_code)
    """

    def __init__(
        self,
        authenticator: Authenticator,
        output_handler: Optional[OutputHandler] = None,
        api: Optional[APIWrapper] = None,
        orchestrator: Optional[Orchestrator] = None,
    ):
        """Initialize publish command with dependencies.

        Args:
            authenticator: Resolves credentials and the explicit page id
            output_handler: OutputHandler for terminal output (optional)
            api: ContentService; created from the authenticator if omitted
            orchestrator: Pipeline to run; created from api if omitted
        """
        self.authenticator = authenticator
        self.output_handler = output_handler or OutputHandler()
        self.api = api
        self.orchestrator = orchestrator

    def run(self, options: PublishOptions) -> ExitCode:
        """Publish the document and print the result.

        Returns:
            ExitCode describing the outcome
        """
        output = self.output_handler
        try:
            result = self._publish(options)
        except InvalidCredentialsError as e:
            logger.error(f"Authentication failed: {e}")
            output.error(f"Authentication failed: {e}")
            return ExitCode.AUTH_ERROR
        except (VersionConflictError, StaleVersionError) as e:
            logger.error(f"Version conflict: {e}")
            output.error(f"Version conflict: {e}")
            return ExitCode.CONFLICTS
        except (APIUnreachableError, APIAccessError) as e:
            logger.error(f"Confluence API error: {e}")
            output.error(f"Confluence API error: {e}")
            return ExitCode.NETWORK_ERROR
        except PublishError as e:
            stage = getattr(e, 'stage', None)
            prefix = f"Publish failed at {stage}" if stage else "Publish failed"
            logger.error(f"{prefix}: {e}")
            output.error(f"{prefix}: {e}")
            return ExitCode.GENERAL_ERROR
        except Exception as e:
            logger.exception("Unexpected error during publish")
            output.error(f"Unexpected error: {e}")
            return ExitCode.GENERAL_ERROR

        self._report(options, result)
        return ExitCode.SUCCESS

    def _publish(self, options: PublishOptions) -> PublishResult:
        creds = self.authenticator.get_credentials()
        if not options.page_id:
            options.page_id = creds.page_id
        if not options.username:
            options.username = creds.user

        api = self.api or APIWrapper(self.authenticator)
        orchestrator = self.orchestrator or Orchestrator(api)
        return orchestrator.run(options)

    def _report(self, options: PublishOptions, result: PublishResult) -> None:
        if options.compile_only or options.dry_run:
            self.output_handler.result(result.storage)
            return

        self.output_handler.result(f"version {result.version}")
        self.output_handler.result(result.url)
        if options.version_file:
            logger.debug(f"Recorded page version {result.version} in {options.version_file}")
