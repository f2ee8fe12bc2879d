"""Authentication module for loading Confluence credentials.

Credentials are resolved from three sources, in order of precedence:
explicit values (command-line flags), environment variables (a .env file
is loaded with python-dotenv), and values from the user's config file.
An explicit page URL may also supply the base URL and the target page id.
"""

import os
import re
from typing import Mapping, NamedTuple, Optional, Tuple
from urllib.parse import parse_qs, urlparse

from dotenv import load_dotenv

from .errors import InvalidCredentialsError


class Credentials(NamedTuple):
    """Confluence API credentials plus the optional explicit page id."""
    url: str
    user: str
    api_token: str
    page_id: Optional[str] = None


# Format: https://domain/wiki/spaces/{space-key}/pages/{page-id}[/{title}]
PAGE_PATH_PATTERN = re.compile(
    r'^(?P<base>.*?)/spaces/[^/]+/pages/(?P<page_id>\d+)(?:/.*)?$'
)

# Path prefixes that mark the end of the base URL in a page URL
BASE_URL_MARKERS = ('/pages/', '/display/', '/spaces/')


def parse_page_url(url: str) -> Tuple[str, Optional[str]]:
    """Split a Confluence page URL into (base_url, page_id).

    Supports both the legacy form with a pageId GET-parameter
    (.../pages/viewpage.action?pageId=123) and the modern
    .../spaces/KEY/pages/123/Title form.

    Args:
        url: Confluence page URL

    Returns:
        Tuple of (base_url, page_id); page_id is None if the URL carries none
    """
    parsed = urlparse(url)
    origin = f"{parsed.scheme}://{parsed.netloc}"
    page_id = (parse_qs(parsed.query).get('pageId') or [None])[0]

    match = PAGE_PATH_PATTERN.match(parsed.path)
    if match:
        return origin + match.group('base'), page_id or match.group('page_id')

    for marker in BASE_URL_MARKERS:
        index = parsed.path.find(marker)
        if index != -1:
            return origin + parsed.path[:index], page_id

    return origin + parsed.path.rstrip('/'), page_id


class Authenticator:
    """Resolves and validates Confluence credentials.

    Credentials are never cached or logged.

    Environment variables:
        CONFLUENCE_URL: Confluence base URL (e.g., https://example.atlassian.net/wiki)
        CONFLUENCE_USER: Confluence user name or email address
        CONFLUENCE_API_TOKEN: Confluence API token or password

    Example:
        >>> auth = Authenticator(page_url="https://example.com/wiki/pages/viewpage.action?pageId=42")
        >>> creds = auth.get_credentials()
        >>> creds.page_id
        '42'
    """

    def __init__(
        self,
        username: Optional[str] = None,
        api_token: Optional[str] = None,
        base_url: Optional[str] = None,
        page_url: Optional[str] = None,
        file_config: Optional[Mapping[str, str]] = None,
    ):
        """Initialize the authenticator and load environment variables from .env.

        Args:
            username: Explicit user name (highest precedence)
            api_token: Explicit API token or password
            base_url: Explicit Confluence base URL
            page_url: Explicit page URL, may carry base URL and page id
            file_config: Values from the config file (username, password, base_url)
        """
        load_dotenv()
        self._username = username
        self._api_token = api_token
        self._base_url = base_url
        self._page_url = page_url
        self._file_config = file_config or {}

    def get_credentials(self) -> Credentials:
        """Resolve credentials from flags, environment and config file.

        Returns:
            Credentials with url, user, api_token and the optional page_id

        Raises:
            InvalidCredentialsError: If base URL, user or token is missing
        """
        page_id = None
        url_from_page = None
        if self._page_url:
            url_from_page, page_id = parse_page_url(self._page_url)

        url = (
            self._base_url
            or os.getenv('CONFLUENCE_URL')
            or self._file_config.get('base_url')
            or url_from_page
        )
        user = (
            self._username
            or os.getenv('CONFLUENCE_USER')
            or self._file_config.get('username')
        )
        api_token = (
            self._api_token
            or os.getenv('CONFLUENCE_API_TOKEN')
            or self._file_config.get('password')
        )

        if not url or not user or not api_token:
            raise InvalidCredentialsError(
                user=user if user else "unknown",
                endpoint=url if url else "unknown"
            )

        return Credentials(
            url=url.rstrip('/'),
            user=user,
            api_token=api_token,
            page_id=page_id,
        )
