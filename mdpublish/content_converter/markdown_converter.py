"""Markdown to Confluence storage format conversion.

Pandoc converts Markdown to HTML. The HTML is then post-processed with
BeautifulSoup into storage format: code blocks become code macros,
images of page attachments become ac:image elements, and multi-line
table cells use <p> tags as Confluence stores them. Both macros are
rendered from the run's template registry.
"""

import logging
import re
import subprocess
from typing import Dict, Optional

from bs4 import BeautifulSoup, NavigableString

from ..confluence_client.errors import ConversionError

logger = logging.getLogger(__name__)

PANDOC_COMMAND = [
    "pandoc",
    "-f", "markdown-smart-implicit_figures",
    "-t", "html",
    "--wrap=none",
    "--no-highlight",
]

PANDOC_TIMEOUT = 30

PLACEHOLDER = "MDPUBLISH-PLACEHOLDER-{}"


class MarkdownConverter:
    """Converts Markdown to Confluence storage format.

    Example:
        >>> converter = MarkdownConverter(registry, base_path="/wiki")
        >>> converter.markdown_to_storage("# Title")
        '<h1 id="title">Title</h1>'
    """

    def __init__(self, registry, base_path: str = ""):
        """Initialize MarkdownConverter and verify Pandoc is available.

        Args:
            registry: Template registry providing ac:code and ac:image
            base_path: Path of the Confluence base URL (e.g., "/wiki"),
                       used to recognize attachment download links

        Raises:
            ConversionError: If Pandoc is not found on system PATH
        """
        if not self._pandoc_installed():
            raise ConversionError(
                "Pandoc not found. Install: brew install pandoc (macOS) or "
                "apt-get install pandoc (Linux) or download from "
                "https://pandoc.org/installing.html"
            )
        self.registry = registry
        self.attachment_pattern = re.compile(
            re.escape(base_path.rstrip('/')) + r'/download/attachments/\d+/(?P<filename>[^/?#]+)$'
        )

    def markdown_to_storage(self, markdown: str) -> str:
        """Convert Markdown to Confluence storage format.

        Raises:
            ConversionError: If Pandoc fails or times out
            TemplateError: If a storage macro cannot be rendered
        """
        if not markdown.strip():
            return ""

        logger.debug(f"Converting {len(markdown)} characters of Markdown with Pandoc")
        try:
            result = subprocess.run(
                PANDOC_COMMAND,
                input=markdown,
                text=True,
                capture_output=True,
                check=True,
                timeout=PANDOC_TIMEOUT
            )
        except subprocess.CalledProcessError as e:
            raise ConversionError(f"Pandoc conversion failed: {e.stderr}") from e
        except subprocess.TimeoutExpired as e:
            raise ConversionError(f"Pandoc conversion timed out (>{PANDOC_TIMEOUT}s)") from e

        return self._to_storage(result.stdout)

    def _to_storage(self, html: str) -> str:
        soup = BeautifulSoup(html, "html.parser")
        replacements: Dict[str, str] = {}

        def _substitute(tag, rendered: str) -> None:
            token = PLACEHOLDER.format(len(replacements))
            replacements[token] = rendered
            tag.replace_with(NavigableString(token))

        for pre in soup.find_all("pre"):
            _substitute(pre, self._code_macro(pre))

        for img in soup.find_all("img"):
            rendered = self._image_macro(img)
            if rendered is not None:
                _substitute(img, rendered)

        self._convert_br_to_p_in_cells(soup)

        storage = str(soup).strip()
        for token, rendered in replacements.items():
            storage = storage.replace(token, rendered, 1)
        return storage

    def _code_macro(self, pre) -> str:
        code = pre.find("code") or pre
        classes = list(pre.get("class") or []) + list(code.get("class") or [])
        language = next(
            (c.removeprefix("language-") for c in classes if c != "sourceCode"),
            ""
        )
        return self.registry.render("ac:code", Language=language, Text=code.get_text())

    def _image_macro(self, img) -> Optional[str]:
        match = self.attachment_pattern.search(img.get("src", ""))
        if not match:
            return None
        return self.registry.render(
            "ac:image",
            Filename=match.group("filename"),
            Alt=img.get("alt", ""),
            Width=img.get("width", ""),
        )

    @staticmethod
    def _convert_br_to_p_in_cells(soup) -> None:
        """Convert <br> tags inside table cells to <p> tags.

        Confluence stores multi-line table cell content as multiple <p>
        tags, not <br> tags.
        """
        for cell in soup.find_all(["td", "th"]):
            if not cell.find("br"):
                continue

            paragraphs = [[]]
            for child in list(cell.children):
                child.extract()
                if getattr(child, "name", None) == "br":
                    paragraphs.append([])
                else:
                    paragraphs[-1].append(child)

            for parts in paragraphs:
                if not any(str(part).strip() for part in parts):
                    continue
                p = soup.new_tag("p")
                for part in parts:
                    p.append(part)
                cell.append(p)

    def _pandoc_installed(self) -> bool:
        """Check if Pandoc is installed on system PATH.

        Returns:
            True if Pandoc is available, False otherwise
        """
        try:
            result = subprocess.run(
                ["which", "pandoc"],
                capture_output=True,
                timeout=5
            )
            return result.returncode == 0
        except (subprocess.TimeoutExpired, FileNotFoundError):
            return False
