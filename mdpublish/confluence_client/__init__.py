"""Confluence client library for mdpublish.

This package provides the ContentService used by the publish pipeline: a
thin wrapper over the Confluence REST API (atlassian-python-api) with typed
errors and page/attachment models.
"""

from .api_wrapper import APIWrapper
from .auth import Authenticator, Credentials, parse_page_url
from .errors import (
    PublishError,
    RemoteError,
    InvalidCredentialsError,
    InvalidPageIdError,
    PageNotFoundError,
    APIUnreachableError,
    APIAccessError,
    StaleVersionError,
    ConversionError,
)
from .models import Ancestor, PageInfo, RemoteAttachment, UserInfo

__all__ = [
    "APIWrapper",
    "Authenticator",
    "Credentials",
    "parse_page_url",
    "PublishError",
    "RemoteError",
    "InvalidCredentialsError",
    "InvalidPageIdError",
    "PageNotFoundError",
    "APIUnreachableError",
    "APIAccessError",
    "StaleVersionError",
    "ConversionError",
    "Ancestor",
    "PageInfo",
    "RemoteAttachment",
    "UserInfo",
]
