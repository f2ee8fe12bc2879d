"""Typed exception hierarchy for publish pipeline errors.

Every pipeline stage raises one of these; none of them is recovered
locally. All inherit from PipelineError, which itself inherits from
PublishError, so the CLI can map any failure to an exit code.
"""

from typing import Optional

from mdpublish.confluence_client.errors import PublishError


class PipelineError(PublishError):
    """Base exception for all publish pipeline errors."""
    pass


class MalformedMetadataError(PipelineError):
    """Raised when a front-matter block is present but cannot be parsed."""

    def __init__(self, file_path: str, message: str):
        super().__init__(f"Malformed metadata in {file_path}: {message}")
        self.file_path = file_path
        self.message = message


class IncludeCycleError(PipelineError):
    """Raised when an include chain revisits an already expanded reference."""

    def __init__(self, reference: str, chain: tuple = ()):
        path = " -> ".join(list(chain) + [reference])
        super().__init__(f"Include cycle detected: {path}")
        self.reference = reference
        self.chain = chain


class TemplateError(PipelineError):
    """Raised when a template is missing or cannot be loaded or rendered."""

    def __init__(self, name: str, reason: Optional[str] = None):
        message = f"Template '{name}'"
        message += f": {reason}" if reason else " not found"
        super().__init__(message)
        self.name = name
        self.reason = reason


class MacroRenderError(PipelineError):
    """Raised when a macro template fails to render at one of its call-sites."""

    def __init__(self, macro: str, offset: int, reason: str):
        super().__init__(
            f"Macro '{macro}' failed to render at offset {offset}: {reason}"
        )
        self.macro = macro
        self.offset = offset
        self.reason = reason


class PageResolutionError(PipelineError):
    """Raised when the target page or its ancestry cannot be resolved."""

    def __init__(self, title: str, reason: str):
        super().__init__(f"Unable to resolve page '{title}': {reason}")
        self.title = title
        self.reason = reason


class AttachmentError(PipelineError):
    """Raised when an attachment cannot be read, created or updated."""

    def __init__(self, name: str, reason: str):
        super().__init__(f"Attachment '{name}': {reason}")
        self.name = name
        self.reason = reason


class VersionFileError(PipelineError):
    """Raised when the page version file cannot be read, parsed or written."""

    def __init__(self, file_path: str, operation: str, reason: Optional[str] = None):
        message = f"Page version file operation '{operation}' failed for {file_path}"
        if reason:
            message += f": {reason}"
        super().__init__(message)
        self.file_path = file_path
        self.operation = operation
        self.reason = reason


class VersionConflictError(PipelineError):
    """Raised when the page was modified since the last recorded publish."""

    def __init__(self, known_version: int, page_version: int):
        super().__init__(
            f"Page version mismatch. Known version {known_version}, "
            f"page version {page_version}"
        )
        self.known_version = known_version
        self.page_version = page_version


class ConfigurationError(PipelineError):
    """Raised when the run is not configured well enough to start."""

    def __init__(self, message: str):
        super().__init__(message)
