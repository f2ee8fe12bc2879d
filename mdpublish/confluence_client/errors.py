"""Typed exception hierarchy for Confluence-related errors.

This module defines the root of the mdpublish exception hierarchy and the
errors raised by the Confluence client (the ContentService collaborator).
All remote failures inherit from RemoteError so the pipeline can treat
transport, authentication and not-found conditions uniformly.
"""

from typing import Optional


class PublishError(Exception):
    """Base exception for all mdpublish errors.

    Use this to catch any application-level error from the publish tool.
    """
    pass


class RemoteError(PublishError):
    """Base exception for all Confluence transport/auth/not-found errors."""
    pass


class InvalidCredentialsError(RemoteError):
    """Raised when API credentials are invalid or authentication fails."""

    def __init__(self, user: str, endpoint: str):
        super().__init__(
            f"API key is invalid (user: {user}, endpoint: {endpoint})"
        )
        self.user = user
        self.endpoint = endpoint


class PageNotFoundError(RemoteError):
    """Raised when a requested page does not exist."""

    def __init__(self, page_id: str):
        super().__init__(f"Page {page_id} not found")
        self.page_id = page_id


class InvalidPageIdError(RemoteError):
    """Raised when a page id is empty or not numeric."""

    def __init__(self, page_id: str):
        super().__init__(
            f"Invalid page_id format: '{page_id}'. "
            f"Page IDs must contain only numeric characters."
        )
        self.page_id = page_id


class APIUnreachableError(RemoteError):
    """Raised when the Confluence API is not available or unreachable."""

    def __init__(self, endpoint: str):
        super().__init__(f"API is not available at {endpoint}")
        self.endpoint = endpoint


class APIAccessError(RemoteError):
    """Raised when API access fails after retries or due to access restrictions."""

    def __init__(self, message: str = "Confluence API failure (after 3 retries)"):
        super().__init__(message)


class StaleVersionError(APIAccessError):
    """Raised when Confluence rejects an update with 409 (stale version)."""

    def __init__(self, page_id: str, version: int):
        super().__init__(
            f"Version conflict updating page {page_id} "
            f"(version {version} is stale)"
        )
        self.page_id = page_id
        self.version = version


class ConversionError(PublishError):
    """Raised when Markdown to storage format conversion fails."""

    def __init__(self, message: str, source: Optional[str] = None):
        if source:
            message = f"{message} ({source})"
        super().__init__(message)
        self.source = source
