"""Confluence data models.

Plain dataclasses describing remote state as returned by the Confluence
REST API. These are built only from API responses; nothing in mdpublish
fabricates ids or version numbers.
"""

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional


@dataclass
class Ancestor:
    """A single entry of a page's ancestor chain."""
    page_id: str
    title: str


@dataclass
class PageInfo:
    """Remote identity of a Confluence page.

    Attributes:
        page_id: Unique identifier for the page
        title: Page title
        space_key: Space key where the page resides (e.g., "DOCS")
        version: Current version number (starts at 1 on creation)
        ancestors: Ancestor chain ordered from root to immediate parent
        link: Canonical web UI link relative to the base URL
            (e.g., "/spaces/DOCS/pages/123/Foo")
    """
    page_id: str
    title: str
    space_key: str
    version: int
    ancestors: List[Ancestor] = field(default_factory=list)
    link: str = ""

    @classmethod
    def from_api(cls, data: Dict[str, Any]) -> 'PageInfo':
        """Build a PageInfo from a content response of the REST API.

        Args:
            data: Page dict as returned by /rest/api/content with
                  version, space and ancestors expanded

        Returns:
            PageInfo for the page
        """
        ancestors = [
            Ancestor(page_id=str(a.get("id", "")), title=a.get("title", ""))
            for a in data.get("ancestors") or []
        ]
        return cls(
            page_id=str(data["id"]),
            title=data.get("title", ""),
            space_key=(data.get("space") or {}).get("key", ""),
            version=int((data.get("version") or {}).get("number", 0)),
            ancestors=ancestors,
            link=(data.get("_links") or {}).get("webui", ""),
        )

    @property
    def ancestor_titles(self) -> List[str]:
        return [a.title for a in self.ancestors]

    def url(self, base_url: str) -> str:
        """Absolute web URL of the page under base_url."""
        link = self.link or f"/pages/viewpage.action?pageId={self.page_id}"
        return base_url.rstrip('/') + link


@dataclass
class RemoteAttachment:
    """An attachment already stored on a Confluence page.

    Attributes:
        attachment_id: Attachment content id (e.g., "att123")
        filename: Attachment title (its file name on the page)
        comment: Attachment comment, used to store the content checksum
        link: Download link relative to the base URL
    """
    attachment_id: str
    filename: str
    comment: str = ""
    link: str = ""

    @classmethod
    def from_api(cls, data: Dict[str, Any]) -> 'RemoteAttachment':
        metadata = data.get("metadata") or {}
        return cls(
            attachment_id=str(data.get("id", "")),
            filename=data.get("title", ""),
            comment=metadata.get("comment") or "",
            link=(data.get("_links") or {}).get("download", ""),
        )


@dataclass
class UserInfo:
    """Confluence user identity used by user mention templates."""
    username: str
    account_id: Optional[str] = None
    user_key: Optional[str] = None
    display_name: str = ""
