"""Resolution of relative links between Markdown documents.

A link such as [setup](../guides/setup.md#install) points at another
document that is (or will be) published as its own page. The linked
document's front-matter names that page; the link is rewritten to its URL.
"""

import logging
import os
from typing import Dict, Optional
from urllib.parse import quote, quote_plus

from mdpublish.confluence_client.errors import RemoteError

from .errors import MalformedMetadataError
from .markdown_links import (
    find_link_targets,
    is_relative_reference,
    replace_link_targets,
    split_anchor,
)
from .metadata import MetadataExtractor
from .models import Metadata

logger = logging.getLogger(__name__)

MARKDOWN_EXTENSIONS = ('.md', '.markdown')


class LinkResolver:
    """Maps relative Markdown links to Confluence page URLs.

    Resolution is best-effort: a link that cannot be resolved is logged and
    left as written.
    """

    def __init__(self, api):
        """
        Args:
            api: ContentService used for page lookups
        """
        self.api = api

    def resolve(self, body: str, base_dir: str, metadata: Optional[Metadata]) -> Dict[str, str]:
        """Resolve the relative .md links of body.

        Args:
            body: Document body (after includes and macros)
            base_dir: Directory the relative links are resolved against
            metadata: The document's own metadata, for the default space

        Returns:
            Mapping of link target as written to resolved URL
        """
        links: Dict[str, str] = {}
        for target in find_link_targets(body):
            if not is_relative_reference(target):
                continue
            path, anchor = split_anchor(target)
            if not path.lower().endswith(MARKDOWN_EXTENSIONS):
                continue

            url = self._resolve_one(os.path.join(base_dir, path), target, metadata)
            if url is not None:
                links[target] = url + anchor

        logger.debug(f"Resolved {len(links)} relative link(s)")
        return links

    def _resolve_one(self, path: str, target: str, own: Optional[Metadata]) -> Optional[str]:
        try:
            with open(path, 'r', encoding='utf-8') as f:
                content = f.read()
        except OSError as e:
            logger.warning(f"Unable to resolve link '{target}': {e.strerror or e}")
            return None

        try:
            linked, _ = MetadataExtractor.extract(content, path)
        except MalformedMetadataError as e:
            logger.warning(f"Unable to resolve link '{target}': {e}")
            return None

        if linked is None:
            logger.warning(f"Unable to resolve link '{target}': linked document has no metadata")
            return None

        space = linked.space or (own.space if own else "")
        if not space:
            logger.warning(f"Unable to resolve link '{target}': no space for '{linked.title}'")
            return None

        try:
            page = self.api.find_page(space, linked.title)
        except RemoteError as e:
            logger.warning(f"Unable to resolve link '{target}': {e}")
            return None

        base_url = self.api.base_url
        if page is not None:
            return page.url(base_url)

        # Where the page will live once published
        return f"{base_url}/display/{quote(space)}/{quote_plus(linked.title)}"


def substitute_links(body: str, links: Dict[str, str]) -> str:
    """Rewrite resolved link targets in body; everything else is untouched."""
    return replace_link_targets(body, links)
