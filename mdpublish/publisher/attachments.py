"""Attachment discovery, upload and link rewriting.

Local files referenced by a document are uploaded to its page. Each upload
records the SHA-256 of the content in the attachment comment; a file whose
checksum matches the stored one is not uploaded again.

Targets written as attachment://img/diagram.png are attachments in every
mode. Raw mode (the default) additionally treats bare relative paths to
existing non-Markdown files, e.g. ![diagram](img/diagram.png), as
attachments.
"""

import hashlib
import logging
import os
from typing import Dict, Iterable, List

from mdpublish.confluence_client.errors import RemoteError
from mdpublish.confluence_client.models import PageInfo, RemoteAttachment

from .errors import AttachmentError
from .links import MARKDOWN_EXTENSIONS
from .markdown_links import find_link_targets, is_relative_reference, replace_link_targets
from .models import Attachment

logger = logging.getLogger(__name__)

ATTACHMENT_SCHEME = "attachment://"

CHECKSUM_PREFIX = "mdpublish:checksum:"


def remote_filename(reference: str) -> str:
    """Attachment name on the page for a local reference."""
    return reference.replace("/", "_")


def checksum_comment(checksum: str) -> str:
    return f"{CHECKSUM_PREFIX}{checksum}"


def strip_scheme(reference: str) -> str:
    if reference.startswith(ATTACHMENT_SCHEME):
        return reference[len(ATTACHMENT_SCHEME):]
    return reference


def discover(body: str, base_dir: str, raw: bool = True) -> List[str]:
    """Collect attachment references from link targets of body.

    Args:
        body: Document body
        base_dir: Directory relative references are resolved against
        raw: Also collect bare relative paths of existing files

    Returns:
        References as written, in document order
    """
    references = []
    for target in find_link_targets(body):
        if target.startswith(ATTACHMENT_SCHEME):
            references.append(target)
            continue
        if not raw or not is_relative_reference(target):
            continue
        if target.lower().endswith(MARKDOWN_EXTENSIONS):
            continue
        if os.path.isfile(os.path.join(base_dir, target)):
            references.append(target)
    return references


class AttachmentResolver:
    """Uploads referenced files to a page, skipping unchanged ones."""

    def __init__(self, api):
        self.api = api

    def resolve(self, page: PageInfo, base_dir: str, references: Iterable[str]) -> List[Attachment]:
        """Create or update attachments of page for the given references.

        Args:
            page: Target page
            base_dir: Directory relative references are resolved against
            references: References from metadata and body; spellings of the
                        same file (img/a.png, attachment://img/a.png) are
                        uploaded once

        Returns:
            One attachment per file with remote id and rewrite link, in
            reference order

        Raises:
            AttachmentError: If a file cannot be read or uploaded
        """
        unique = dict.fromkeys(strip_scheme(reference) for reference in references)
        attachments = [self._load(relative, base_dir) for relative in unique]
        if not attachments:
            return []

        try:
            existing: Dict[str, RemoteAttachment] = {
                remote.filename: remote for remote in self.api.get_attachments(page.page_id)
            }
        except RemoteError as e:
            raise AttachmentError("*", f"unable to list attachments of page {page.page_id}: {e}") from e

        base_path = self.api.base_path
        for attachment in attachments:
            remote = existing.get(attachment.filename)
            try:
                remote = self._upload(page, attachment, remote)
            except RemoteError as e:
                raise AttachmentError(attachment.reference, f"upload failed: {e}") from e

            existing[attachment.filename] = remote
            attachment.remote_id = remote.attachment_id
            attachment.link = f"{base_path}/download/attachments/{page.page_id}/{attachment.filename}"

        return attachments

    def _upload(self, page: PageInfo, attachment: Attachment, remote) -> RemoteAttachment:
        comment = checksum_comment(attachment.checksum)

        if remote is None:
            logger.info(f"Creating attachment '{attachment.filename}'")
            return self.api.create_attachment(
                page.page_id, attachment.filename, self._read(attachment), comment
            )

        if remote.comment != comment:
            logger.info(f"Updating attachment '{attachment.filename}'")
            return self.api.update_attachment(
                page.page_id, remote.attachment_id, attachment.filename,
                self._read(attachment), comment
            )

        logger.debug(f"Attachment '{attachment.filename}' is unchanged")
        return remote

    def _load(self, reference: str, base_dir: str) -> Attachment:
        relative = strip_scheme(reference)
        path = os.path.abspath(os.path.join(base_dir, relative))
        try:
            with open(path, 'rb') as f:
                checksum = hashlib.sha256(f.read()).hexdigest()
        except OSError as e:
            raise AttachmentError(reference, f"unable to read {path}: {e.strerror or e}") from e

        return Attachment(
            reference=reference,
            path=path,
            filename=remote_filename(relative),
            checksum=checksum,
        )

    @staticmethod
    def _read(attachment: Attachment) -> bytes:
        try:
            with open(attachment.path, 'rb') as f:
                return f.read()
        except OSError as e:
            raise AttachmentError(attachment.reference, f"unable to read {attachment.path}: {e.strerror or e}") from e


def compile_attachment_links(body: str, attachments: Iterable[Attachment], raw: bool = True) -> str:
    """Rewrite attachment references of body to their download links.

    attachment:// references are always rewritten; bare references only
    in raw mode.
    """
    mapping = {}
    for attachment in attachments:
        relative = strip_scheme(attachment.reference)
        mapping[ATTACHMENT_SCHEME + relative] = attachment.link
        if raw:
            mapping[relative] = attachment.link
    return replace_link_targets(body, mapping)
