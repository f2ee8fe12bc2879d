"""Data models for CLI operations."""

from enum import IntEnum


class ExitCode(IntEnum):
    """Exit codes of the mdpublish command.

    - SUCCESS (0): Page published (or compiled) successfully
    - GENERAL_ERROR (1): Configuration or pipeline failure
    - CONFLICTS (2): Page was modified since the recorded version
    - AUTH_ERROR (3): Missing or rejected credentials
    - NETWORK_ERROR (4): Network connectivity or API availability issues

    Example:
        >>> exit_code = ExitCode.SUCCESS
        >>> sys.exit(exit_code)
    """
    SUCCESS = 0
    GENERAL_ERROR = 1
    CONFLICTS = 2
    AUTH_ERROR = 3
    NETWORK_ERROR = 4
