"""
Site builder service for static HTML pages.
Expands partials in src/html/*.html and writes the pages to dist/html/.
"""

import logging
from pathlib import Path

from models import Document, ErrorPolicy
from services.errors import MissingPartialError
from services.partials import PartialResolver, read_document

logger = logging.getLogger(__name__)

HTML_EXTENSION = ".html"


class SiteBuilder:
    """Builds HTML pages with their partials expanded."""

    def __init__(self, source_dir: Path = None, output_dir: Path = None):
        self.source_dir = source_dir or Path("src/html")
        self.output_dir = output_dir or Path("dist/html")
        self.resolver = PartialResolver(self.source_dir)

    def get_source_pages(self) -> list[Path]:
        """Top-level HTML pages in the source directory."""
        if not self.source_dir.exists():
            return []
        return sorted(
            p for p in self.source_dir.iterdir()
            if p.suffix == HTML_EXTENSION and p.is_file()
        )

    def _render(self, document: Document, policy: ErrorPolicy) -> tuple[str, list[MissingPartialError]]:
        """Expand a document's includes. Pages without markers are passed through."""
        if not document.markers:
            return document.content, []
        logger.debug(f"Expanding {len(document.markers)} include(s) in {document.path.name}")
        return self.resolver.expand(document.content, policy, source=document.path)

    def build(self) -> dict[str, bool]:
        """
        Build every page, continuing past failures.

        A missing partial leaves its marker in the page and an unreadable or
        unwritable page is skipped; both are logged and reported as False.
        """
        results = {}

        for page in self.get_source_pages():
            try:
                document = read_document(page)
                html, failures = self._render(document, ErrorPolicy.CONTINUE_ON_ERROR)
                self.output_dir.mkdir(parents=True, exist_ok=True)
                (self.output_dir / page.name).write_text(html, encoding="utf-8")
            except (OSError, UnicodeDecodeError) as e:
                logger.error(f"✗ Failed to build {page}: {e}")
                results[page.name] = False
                continue

            if failures:
                logger.warning(f"{page.name} built with {len(failures)} unresolved include(s)")
            results[page.name] = not failures

        logger.info(f"⚡ Processed {len(results)} HTML file(s)")
        return results

    def build_all(self) -> dict[str, bool]:
        return self.build()

    def build_page(self, page: Path) -> Path:
        """
        Rebuild a single page, failing fast.

        Nothing is written if a partial cannot be included.

        Returns:
            Path of the written output file

        Raises:
            MissingPartialError: If a referenced partial cannot be read
            OSError: If the page cannot be read or written
        """
        page = Path(page)
        document = read_document(page)
        html, _ = self._render(document, ErrorPolicy.FAIL_FAST)

        self.output_dir.mkdir(parents=True, exist_ok=True)
        output_path = self.output_dir / page.name
        output_path.write_text(html, encoding="utf-8")
        logger.info(f"⚡ Updated {page} in {output_path}")
        return output_path

    def get_built_files(self) -> list[Path]:
        """Get list of built pages."""
        if not self.output_dir.exists():
            return []

        return [f for f in self.output_dir.iterdir() if f.is_file()]
