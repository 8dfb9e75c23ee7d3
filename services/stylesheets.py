"""
Stylesheet compiler: builds SCSS entry points into dist/assets/css with libsass.
"""

import logging
from pathlib import Path
from typing import Callable, Iterable, List, Optional

import sass

from services.errors import StylesheetError

logger = logging.getLogger(__name__)


class StylesheetCompiler:
    """Compiles SCSS entry points to CSS files."""

    def __init__(self, source_dir: Path, output_dir: Path, entry_points: Iterable[str] = ("styles.scss",),
                 output_style: str = "expanded", transform: Optional[Callable[[str], str]] = None):
        self.source_dir = Path(source_dir)
        self.output_dir = Path(output_dir)
        self.entry_points = list(entry_points)
        self.output_style = output_style
        # Post-processes compiled CSS before it is written, e.g. a PostCSS/Tailwind pass.
        self.transform = transform

    def output_path_for(self, entry_point: str) -> Path:
        return self.output_dir / f"{Path(entry_point).stem}.css"

    def compile_entry(self, entry_point: str) -> Path:
        """
        Compile a single entry point.

        Raises:
            StylesheetError: If the source is missing, fails to compile or
                transform, or the CSS cannot be written
        """
        source = self.source_dir / entry_point
        if not source.exists():
            raise StylesheetError(f"Missing SCSS file: {source}")

        try:
            css = sass.compile(
                filename=str(source),
                output_style=self.output_style,
                include_paths=[str(self.source_dir)],
            )
        except sass.CompileError as e:
            raise StylesheetError(f"Failed to compile {source}: {e}") from e

        if self.transform is not None:
            try:
                css = self.transform(css)
            except Exception as e:
                raise StylesheetError(f"Failed to transform {source}: {e}") from e

        destination = self.output_path_for(entry_point)
        try:
            destination.parent.mkdir(parents=True, exist_ok=True)
            destination.write_text(css, encoding="utf-8")
        except OSError as e:
            raise StylesheetError(f"Failed to write {destination}: {e}") from e
        return destination

    def compile(self) -> List[Path]:
        """
        Compile every entry point.

        Raises:
            StylesheetError: On the first entry point that fails
        """
        outputs = [self.compile_entry(entry) for entry in self.entry_points]
        logger.info(f"⚡ Styles compiled to {self.output_dir} ⚡")
        return outputs
