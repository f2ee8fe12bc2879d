"""Typed exception hierarchy for CLI-related errors.

All exceptions inherit from CLIError, which inherits from PublishError so
the command maps them to an exit code like any other failure.
"""

from typing import Optional

from mdpublish.confluence_client.errors import PublishError


class CLIError(PublishError):
    """Base exception for all CLI-related errors."""
    pass


class ConfigFileError(CLIError):
    """Raised when the user config file exists but cannot be used."""

    def __init__(self, config_path: str, reason: Optional[str] = None):
        message = f"Unable to load config file {config_path}"
        if reason:
            message += f": {reason}"
        super().__init__(message)
        self.config_path = config_path
        self.reason = reason
