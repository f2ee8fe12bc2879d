"""Target page and ancestry resolution."""

import logging
from typing import List, Optional, Tuple

from mdpublish.confluence_client.models import PageInfo

from .errors import PageResolutionError
from .models import Metadata

logger = logging.getLogger(__name__)


class PageResolver:
    """Finds the target page of a document and ensures its ancestry exists.

    Ancestors are matched by title within the document's space. Missing
    ancestors are created as empty pages, each under the previous ancestor
    (the first under the space homepage). Page creation is not
    transactional: pages created before a later failure are left in place.
    """

    def __init__(self, api):
        self.api = api

    def resolve(self, metadata: Metadata, dry_run: bool = False) -> Tuple[Optional[PageInfo], Optional[PageInfo]]:
        """Resolve (parent, page) for a document.

        Args:
            metadata: Metadata naming space, title and ancestors
            dry_run: Never create pages; log what would be created

        Returns:
            Tuple of (parent, page); page is None if it does not exist yet,
            parent is None only in dry-run when the ancestry is incomplete

        Raises:
            PageResolutionError: If no space is given or the space has no homepage
            RemoteError: On API failure
        """
        if not metadata.space:
            raise PageResolutionError(metadata.title, "space is not set")

        page = self.api.find_page(metadata.space, metadata.title)

        if metadata.ancestors:
            parent = self.ensure_ancestry(metadata.space, metadata.ancestors, dry_run)
        else:
            parent = self._homepage(metadata)

        if page is not None and metadata.ancestors:
            actual = page.ancestor_titles[-len(metadata.ancestors):]
            if actual != metadata.ancestors:
                logger.warning(
                    f"Page '{page.title}' ({page.page_id}) has ancestry "
                    f"{' > '.join(page.ancestor_titles) or '<none>'}, "
                    f"declared ancestry is {' > '.join(metadata.ancestors)}; "
                    f"the page will not be moved"
                )

        return parent, page

    def ensure_ancestry(self, space: str, ancestors: List[str], dry_run: bool = False) -> Optional[PageInfo]:
        """Find or create the ancestor chain and return its last page.

        In dry-run, returns None if any ancestor is missing.
        """
        parent: Optional[PageInfo] = None
        missing: List[str] = []

        for index, title in enumerate(ancestors):
            page = self.api.find_page(space, title)
            if page is not None:
                logger.debug(f"Found ancestor '{title}' ({page.page_id})")
                parent = page
                continue

            if dry_run:
                missing = ancestors[index:]
                break

            if parent is None:
                parent = self._homepage_of(space, title)
            logger.info(f"Creating missing ancestor '{title}' in space {space}")
            parent = self.api.create_page(space, parent, title, "")

        if missing:
            logger.info(f"Dry run: would create ancestor pages {' > '.join(missing)} in space {space}")
            return None
        return parent

    def _homepage(self, metadata: Metadata) -> PageInfo:
        return self._homepage_of(metadata.space, metadata.title)

    def _homepage_of(self, space: str, title: str) -> PageInfo:
        homepage = self.api.get_space_homepage(space)
        if homepage is None:
            raise PageResolutionError(title, f"space {space} has no homepage")
        return homepage
