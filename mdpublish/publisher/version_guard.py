"""Optimistic concurrency guard backed by a page version file.

The version file holds the page version produced by the last publish, as a
decimal integer followed by a newline. Before publishing, the recorded
version must still match the page; otherwise somebody edited the page in
Confluence since then.
"""

import logging

from mdpublish.confluence_client.models import PageInfo

from .errors import VersionConflictError, VersionFileError

logger = logging.getLogger(__name__)


class VersionGuard:
    """Compares and records page versions in a local file."""

    def __init__(self, file_path: str):
        self.file_path = file_path

    def pre_check(self, page: PageInfo) -> None:
        """Verify the recorded version matches the page.

        A missing file is accepted only for a page at version 1 (a page
        that was just created).

        Raises:
            VersionFileError: If the file cannot be read or parsed
            VersionConflictError: If the recorded version differs from the page
        """
        try:
            with open(self.file_path, 'r', encoding='utf-8') as f:
                text = f.read()
        except FileNotFoundError as e:
            if page.version == 1:
                logger.debug(f"No page version file at {self.file_path}; page is new")
                return
            raise VersionFileError(self.file_path, 'read', "file does not exist") from e
        except OSError as e:
            raise VersionFileError(self.file_path, 'read', e.strerror or str(e)) from e

        try:
            known_version = int(text.strip())
        except ValueError as e:
            raise VersionFileError(self.file_path, 'parse', f"not a version number: {text.strip()!r}") from e

        if known_version != page.version:
            raise VersionConflictError(known_version, page.version)

        logger.debug(f"Page version {page.version} matches {self.file_path}")

    def persist(self, version: int) -> None:
        """Record version, overwriting the file.

        Raises:
            VersionFileError: If the file cannot be written
        """
        try:
            with open(self.file_path, 'w', encoding='utf-8') as f:
                f.write(f"{version}\n")
        except OSError as e:
            raise VersionFileError(self.file_path, 'write', e.strerror or str(e)) from e
