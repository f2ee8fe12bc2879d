"""Data models for the publish pipeline.

All models use dataclasses. Everything here lives for a single run of the
pipeline and is discarded after publish.
"""

from dataclasses import dataclass, field
from typing import List, Optional, Union


@dataclass
class Metadata:
    """Front-matter of a document.

    Attributes:
        title: Page title (required whenever front-matter is present)
        space: Space key of the target page (e.g., "DOCS")
        ancestors: Parent page titles ordered from root to immediate parent
        labels: Page labels, de-duplicated, in declaration order
        layout: Name of the layout template the body is composed into
        attachments: Local file paths to attach, in declaration order
    """
    title: str
    space: str = ""
    ancestors: List[str] = field(default_factory=list)
    labels: List[str] = field(default_factory=list)
    layout: str = ""
    attachments: List[str] = field(default_factory=list)


@dataclass(frozen=True)
class ByMetadata:
    """Publish target identified by the document's own metadata."""
    metadata: Metadata


@dataclass(frozen=True)
class ByExternalID:
    """Publish target identified by an explicitly supplied page id."""
    page_id: str


PublishTarget = Union[ByMetadata, ByExternalID]


@dataclass
class IncludeDirective:
    """An include directive found in a document body.

    Attributes:
        reference: Registry template name or path relative to the document
        parameters: Parameters passed to the template when rendering
        start: Offset of the directive in the body
        end: Offset just past the directive
        chain: References of the includes that produced this directive
    """
    reference: str
    parameters: dict
    start: int
    end: int
    chain: tuple = ()


@dataclass
class Attachment:
    """A local file attached to the target page.

    Attributes:
        reference: Path relative to the document, without the attachment://
            scheme (e.g., "img/a.png")
        path: Absolute path of the local file
        filename: Attachment name on the page
        checksum: SHA-256 of the file content
        remote_id: Attachment id once it exists on the page
        link: Link that replaces the reference in the body
    """
    reference: str
    path: str
    filename: str
    checksum: str
    remote_id: Optional[str] = None
    link: str = ""


@dataclass
class PublishOptions:
    """Options of a single pipeline run.

    Attributes:
        file_path: Markdown file to publish
        page_id: Explicit target page id (wins over the document's metadata)
        username: User that edit restrictions are granted to
        dry_run: Resolve page and ancestry read-only, print the result and stop
        compile_only: Print the compiled storage format and stop
        edit_lock: Restrict editing of the page to the publishing user
        drop_h1: Remove the document's leading H1 heading
        minor_edit: Publish without notifying watchers
        raw_attachments: Treat bare relative paths as attachment references
        version_file: Page version file for optimistic concurrency checks
    """
    file_path: str
    page_id: Optional[str] = None
    username: str = ""
    dry_run: bool = False
    compile_only: bool = False
    edit_lock: bool = False
    drop_h1: bool = False
    minor_edit: bool = False
    raw_attachments: bool = True
    version_file: Optional[str] = None


@dataclass
class PublishResult:
    """Outcome of a pipeline run.

    For compile-only and dry runs, version and url are unset and
    storage holds the compiled page body.
    """
    version: Optional[int] = None
    url: str = ""
    storage: str = ""
