"""Publish pipeline orchestration.

This module provides the Orchestrator, which runs one Markdown document
through the publish pipeline:

    metadata -> target -> includes -> macros -> links
        -> [compile-only / dry-run exit]
        -> page -> [placeholder] -> version check -> attachments
        -> [drop H1] -> storage format -> layout -> publish
        -> [edit restriction] -> version record

Every stage is fatal on failure; nothing is retried at this level. The
registry, macro list and link and attachment maps live for one run only.
"""

import logging
import os
import re
from contextlib import contextmanager
from typing import Callable, Iterator, List, Optional, Tuple

from mdpublish.confluence_client.errors import PublishError
from mdpublish.confluence_client.models import PageInfo
from mdpublish.content_converter import MarkdownConverter

from .attachments import AttachmentResolver, compile_attachment_links, discover
from .compositor import Compositor
from .errors import ConfigurationError, PageResolutionError
from .includes import IncludeResolver
from .links import LinkResolver, substitute_links
from .macros import MacroEngine
from .metadata import MetadataExtractor
from .models import ByExternalID, ByMetadata, Metadata, PublishOptions, PublishResult, PublishTarget
from .pages import PageResolver
from .registry import Registry
from .stdlib import build_stdlib
from .version_guard import VersionGuard

logger = logging.getLogger(__name__)

LEADING_H1_PATTERN = re.compile(r'\A(?:[ \t]*\n)*#[ \t]+[^\n]*(?:\n|\Z)')


def drop_leading_h1(body: str) -> str:
    """Remove a level-one ATX heading at the top of body, if any."""
    return LEADING_H1_PATTERN.sub('', body, count=1)


def resolve_target(metadata: Optional[Metadata], page_id: Optional[str]) -> PublishTarget:
    """Decide which page a run publishes to.

    An explicit page id wins over the document's metadata.

    Raises:
        ConfigurationError: If there is neither metadata nor a page id
    """
    if page_id:
        if metadata is not None:
            logger.warning(
                "specified file contains metadata, but it will be ignored due to specified page URL"
            )
        return ByExternalID(page_id)

    if metadata is None:
        raise ConfigurationError(
            "specified file doesn't contain metadata and page URL is not specified"
        )
    return ByMetadata(metadata)


@contextmanager
def stage(name: str) -> Iterator[None]:
    """Label pipeline errors raised inside the block with the stage name."""
    logger.debug(f"Stage: {name}")
    try:
        yield
    except PublishError as e:
        logger.debug(f"Stage '{name}' failed: {e}")
        if getattr(e, 'stage', None) is None:
            e.stage = name
        raise


class Orchestrator:
    """Runs the publish pipeline for one document.

    Example:
        >>> api = APIWrapper(Authenticator())
        >>> result = Orchestrator(api).run(PublishOptions(file_path="README.md"))
        >>> result.version
        3
    """

    def __init__(self, api, renderer_factory: Callable[..., MarkdownConverter] = MarkdownConverter):
        """
        Args:
            api: ContentService (APIWrapper) used for every remote operation
            renderer_factory: Builds the storage renderer from (registry, base_path)
        """
        self.api = api
        self.renderer_factory = renderer_factory

    def run(self, options: PublishOptions) -> PublishResult:
        """Publish (or compile) the document named by options.

        Returns:
            PublishResult with version and url, or with storage for
            compile-only and dry runs

        Raises:
            PublishError: Any failure of any stage
        """
        with stage("read"):
            content = self._read(options.file_path)
        base_dir = os.path.dirname(os.path.abspath(options.file_path))

        with stage("metadata"):
            metadata, body = MetadataExtractor.extract(content, options.file_path)

        # Compile-only needs no target; it never touches the page
        target = None
        if not options.compile_only or options.dry_run:
            with stage("target"):
                target = resolve_target(metadata, options.page_id)

        stdlib = build_stdlib(self.api)
        registry = stdlib.registry

        with stage("includes"):
            registry, body = IncludeResolver(base_dir).resolve(body, registry)

        with stage("macros"):
            engine = MacroEngine(registry)
            macros, body = engine.extract(body)
            body = engine.apply(body, macros, stdlib.macros)

        with stage("links"):
            links = LinkResolver(self.api).resolve(body, base_dir, metadata)
            body = substitute_links(body, links)

        if options.compile_only or options.dry_run:
            if options.dry_run:
                with stage("page"):
                    self._resolve_page(target, dry_run=True)
            with stage("compile"):
                storage = self._compile(registry, body, options.drop_h1)
            return PublishResult(storage=storage)

        with stage("page"):
            page = self._ensure_page(target)

        guard = VersionGuard(options.version_file) if options.version_file else None
        if guard is not None:
            with stage("version check"):
                guard.pre_check(page)

        with stage("attachments"):
            references: List[str] = []
            if isinstance(target, ByMetadata):
                references.extend(target.metadata.attachments)
            references.extend(discover(body, base_dir, options.raw_attachments))
            attachments = AttachmentResolver(self.api).resolve(page, base_dir, references)
            body = compile_attachment_links(body, attachments, options.raw_attachments)

        with stage("compile"):
            storage = self._compile(registry, body, options.drop_h1)

        layout = target.metadata.layout if isinstance(target, ByMetadata) else ""
        with stage("layout"):
            storage = Compositor(registry).compose(storage, layout)

        labels = target.metadata.labels if isinstance(target, ByMetadata) else None
        with stage("publish"):
            version = self.api.update_page(page, storage, minor_edit=options.minor_edit, labels=labels)
            logger.info(f"Published page '{page.title}' ({page.page_id}) as version {version}")

        if options.edit_lock:
            with stage("restrict"):
                self.api.restrict_page_updates(page, options.username)

        if guard is not None:
            with stage("version record"):
                guard.persist(version)

        return PublishResult(version=version, url=page.url(self.api.base_url))

    @staticmethod
    def _read(file_path: str) -> str:
        try:
            with open(file_path, 'r', encoding='utf-8') as f:
                return f.read()
        except OSError as e:
            raise ConfigurationError(f"Unable to read {file_path}: {e.strerror or e}") from e

    def _compile(self, registry: Registry, body: str, drop_h1: bool) -> str:
        if drop_h1:
            body = drop_leading_h1(body)
        renderer = self.renderer_factory(registry, self.api.base_path)
        return renderer.markdown_to_storage(body)

    def _resolve_page(self, target: PublishTarget, dry_run: bool) -> Tuple[Optional[PageInfo], Optional[PageInfo]]:
        if isinstance(target, ByExternalID):
            page = self.api.get_page_by_id(target.page_id)
            return None, page
        return PageResolver(self.api).resolve(target.metadata, dry_run=dry_run)

    def _ensure_page(self, target: PublishTarget) -> PageInfo:
        parent, page = self._resolve_page(target, dry_run=False)
        if page is not None:
            return page

        metadata = target.metadata
        if parent is None:
            raise PageResolutionError(metadata.title, "parent page could not be resolved")
        logger.info(f"Creating page '{metadata.title}' in space {metadata.space}")
        return self.api.create_page(metadata.space, parent, metadata.title, "")
