"""YAML front-matter extraction for Markdown documents.

A document may start with a YAML block between --- delimiters declaring
where and how it is published:

    ---
    title: Deployment Guide
    space: DOCS
    parents: [Engineering, Runbooks]
    labels: [ops, deploy]
    layout: article
    attachments: [diagram.png]
    ---

Documents without front-matter are legal; whether they can be published is
decided later (an explicit page id must then be supplied).
"""

import logging
import re
from typing import Any, Dict, List, Optional, Tuple

import yaml

from .errors import MalformedMetadataError
from .models import Metadata

logger = logging.getLogger(__name__)


class MetadataExtractor:
    """Splits a document into (Metadata or None, body)."""

    # Regex pattern to match YAML front-matter (between --- delimiters)
    FRONTMATTER_PATTERN = re.compile(
        r'^---[ \t]*\n(.*?)\n?---[ \t]*(?:\n|$)',
        re.DOTALL
    )

    # Maximum allowed depth for YAML structures to prevent DoS attacks
    MAX_YAML_DEPTH = 10

    # Accepted keys (lower-cased) and the Metadata field each maps to
    FIELD_ALIASES = {
        'title': 'title',
        'space': 'space',
        'parent': 'ancestors',
        'parents': 'ancestors',
        'ancestors': 'ancestors',
        'label': 'labels',
        'labels': 'labels',
        'layout': 'layout',
        'attachment': 'attachments',
        'attachments': 'attachments',
    }

    LIST_FIELDS = {'ancestors', 'labels', 'attachments'}

    @classmethod
    def _validate_yaml_depth(cls, obj, file_path: str, current_depth: int = 0) -> None:
        """Reject YAML structures nested deeper than MAX_YAML_DEPTH.

        Raises:
            MalformedMetadataError: If depth exceeds maximum
        """
        if current_depth > cls.MAX_YAML_DEPTH:
            raise MalformedMetadataError(
                file_path,
                f"YAML structure exceeds maximum depth of {cls.MAX_YAML_DEPTH}"
            )

        if isinstance(obj, dict):
            for value in obj.values():
                cls._validate_yaml_depth(value, file_path, current_depth + 1)
        elif isinstance(obj, list):
            for item in obj:
                cls._validate_yaml_depth(item, file_path, current_depth + 1)

    @classmethod
    def extract(cls, content: str, file_path: str = "<document>") -> Tuple[Optional[Metadata], str]:
        """Parse front-matter from Markdown content.

        Args:
            content: Full document text including front-matter
            file_path: Path of the document (for error messages)

        Returns:
            Tuple of (Metadata or None if there is no front-matter, body)

        Raises:
            MalformedMetadataError: If front-matter is present but invalid
        """
        match = cls.FRONTMATTER_PATTERN.match(content)
        if not match:
            return None, content

        body = content[match.end():]

        try:
            frontmatter = yaml.safe_load(match.group(1))
        except yaml.YAMLError as e:
            raise MalformedMetadataError(file_path, f"Invalid YAML syntax: {e}")

        if not isinstance(frontmatter, dict):
            raise MalformedMetadataError(
                file_path,
                f"Front-matter must be a YAML mapping, got {type(frontmatter).__name__}"
            )

        cls._validate_yaml_depth(frontmatter, file_path)

        return cls._build(frontmatter, file_path), body

    @classmethod
    def _build(cls, frontmatter: Dict[Any, Any], file_path: str) -> Metadata:
        fields: Dict[str, Any] = {}

        for key, value in frontmatter.items():
            name = cls.FIELD_ALIASES.get(str(key).lower())
            if name is None:
                logger.debug(f"Ignoring unknown front-matter key '{key}' in {file_path}")
                continue
            if value is None:
                continue

            if name in cls.LIST_FIELDS:
                items = cls._as_list(value, key, file_path, split_commas=(name == 'labels'))
                fields.setdefault(name, []).extend(items)
            else:
                fields[name] = cls._as_string(value, key, file_path)

        title = fields.pop('title', '')
        if not title:
            raise MalformedMetadataError(file_path, "'title' is required")

        if 'labels' in fields:
            fields['labels'] = list(dict.fromkeys(fields['labels']))

        return Metadata(title=title, **fields)

    @staticmethod
    def _as_string(value: Any, key: Any, file_path: str) -> str:
        if isinstance(value, (dict, list)):
            raise MalformedMetadataError(
                file_path,
                f"'{key}' must be a string, got {type(value).__name__}"
            )
        return str(value).strip()

    @classmethod
    def _as_list(cls, value: Any, key: Any, file_path: str, split_commas: bool = False) -> List[str]:
        if isinstance(value, str):
            if split_commas:
                return [item.strip() for item in value.split(',') if item.strip()]
            return [value.strip()]
        if isinstance(value, list):
            return [cls._as_string(item, key, file_path) for item in value if item is not None]
        if isinstance(value, dict):
            raise MalformedMetadataError(
                file_path,
                f"'{key}' must be a string or a list, got {type(value).__name__}"
            )
        return [str(value)]
