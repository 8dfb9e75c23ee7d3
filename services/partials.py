"""
Partial resolver: expands `<!-- include "name" -->` markers in HTML pages
with the contents of fragments stored under the partials directory.
"""

import logging
import re
from pathlib import Path
from typing import List, Optional, Tuple

from models import Document, ErrorPolicy, IncludeMarker, Partial
from services.errors import MissingPartialError

logger = logging.getLogger(__name__)

INCLUDE_PATTERN = re.compile(r"<!--\s*include\s+(.*?)\s*-->")
PARTIALS_DIR_NAME = "partials"


def partial_name(reference: str) -> str:
    """Strip quote characters from an include reference."""
    return reference.replace('"', "")


def find_markers(content: str) -> List[IncludeMarker]:
    """Return every include marker in the content, in document order."""
    return [
        IncludeMarker(
            text=match.group(0),
            name=partial_name(match.group(1)),
            start=match.start(),
            end=match.end(),
        )
        for match in INCLUDE_PATTERN.finditer(content)
    ]


def read_document(path: Path) -> Document:
    """Read an HTML source page and collect its include markers."""
    content = path.read_text(encoding="utf-8")
    return Document(path=path, content=content, markers=find_markers(content))


class PartialResolver:
    """Resolves include markers against a partials directory."""

    def __init__(self, base_dir: Path):
        self.base_dir = Path(base_dir)
        self.partials_dir = self.base_dir / PARTIALS_DIR_NAME

    def _partial_path(self, reference: str) -> Path:
        """
        Map a reference to a file inside the partials directory.

        Raises:
            MissingPartialError: If the reference is empty or absolute
        """
        name = partial_name(reference)
        if not name:
            raise MissingPartialError(reference, reason="empty reference")
        if Path(name).is_absolute():
            raise MissingPartialError(reference, reason="absolute path not allowed")
        return self.partials_dir / name

    def load_partial(self, reference: str) -> Partial:
        """
        Read the partial a reference points to.

        Raises:
            MissingPartialError: If the partial cannot be read
        """
        path = self._partial_path(reference)
        try:
            content = path.read_text(encoding="utf-8")
        except (OSError, UnicodeDecodeError) as e:
            raise MissingPartialError(reference, path, reason=str(e)) from e
        return Partial(name=partial_name(reference), content=content)

    def expand(self, content: str, policy: ErrorPolicy = ErrorPolicy.CONTINUE_ON_ERROR,
               source: Optional[Path] = None) -> Tuple[str, List[MissingPartialError]]:
        """
        Replace every include marker with its partial's contents.

        Each match is substituted in place, so duplicate markers all resolve
        and text coming from a partial is never scanned again.

        Args:
            content: HTML text to expand
            policy: CONTINUE_ON_ERROR leaves failed markers verbatim and logs
                an error; FAIL_FAST raises on the first failure
            source: Page the content came from, used in log messages

        Returns:
            The expanded text and the failures that were left unresolved

        Raises:
            MissingPartialError: On an unreadable partial under FAIL_FAST
        """
        where = f" in {source}" if source else ""
        failures: List[MissingPartialError] = []

        def substitute(match: "re.Match[str]") -> str:
            try:
                return self.load_partial(match.group(1)).content
            except MissingPartialError as e:
                if policy is ErrorPolicy.FAIL_FAST:
                    raise
                logger.error(f"✗ {e}{where}")
                failures.append(e)
                return match.group(0)

        return INCLUDE_PATTERN.sub(substitute, content), failures

    def resolve(self, content: str, policy: ErrorPolicy = ErrorPolicy.CONTINUE_ON_ERROR,
                source: Optional[Path] = None) -> str:
        """Expand include markers and return only the resulting text."""
        html, _ = self.expand(content, policy, source)
        return html


def resolve(content: str, base_dir: Path, policy: ErrorPolicy = ErrorPolicy.CONTINUE_ON_ERROR) -> str:
    """Expand include markers in content against `base_dir/partials`."""
    return PartialResolver(base_dir).resolve(content, policy)
