"""Publish pipeline for Markdown documents.

This package turns a Markdown document into a Confluence page: metadata
extraction, include and macro expansion, link and attachment resolution,
layout composition and the optional page version guard. The Orchestrator
runs the stages in order.
"""

from .errors import (
    PipelineError,
    MalformedMetadataError,
    IncludeCycleError,
    TemplateError,
    MacroRenderError,
    PageResolutionError,
    AttachmentError,
    VersionFileError,
    VersionConflictError,
    ConfigurationError,
)
from .models import (
    Metadata,
    ByMetadata,
    ByExternalID,
    PublishTarget,
    IncludeDirective,
    Attachment,
    PublishOptions,
    PublishResult,
)
from .orchestrator import Orchestrator, resolve_target
from .registry import Registry

__all__ = [
    "PipelineError",
    "MalformedMetadataError",
    "IncludeCycleError",
    "TemplateError",
    "MacroRenderError",
    "PageResolutionError",
    "AttachmentError",
    "VersionFileError",
    "VersionConflictError",
    "ConfigurationError",
    "Metadata",
    "ByMetadata",
    "ByExternalID",
    "PublishTarget",
    "IncludeDirective",
    "Attachment",
    "PublishOptions",
    "PublishResult",
    "Orchestrator",
    "resolve_target",
    "Registry",
]
