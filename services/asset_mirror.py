"""
Asset mirror: recursive, additive copy of src/assets into dist/assets.
"""

import logging
import shutil
from pathlib import Path
from typing import Iterable

logger = logging.getLogger(__name__)

DEFAULT_EXCLUDED_DIRS = frozenset({"css", "scss"})


class AssetMirror:
    """Copies a source tree into a destination tree, skipping excluded directories.

    The mirror only adds and overwrites; files without a source counterpart
    are left in place.
    """

    def __init__(self, source_dir: Path, dest_dir: Path, excluded_dir_names: Iterable[str] = DEFAULT_EXCLUDED_DIRS):
        self.source_dir = Path(source_dir)
        self.dest_dir = Path(dest_dir)
        self.excluded_dir_names = frozenset(excluded_dir_names)

    def mirror(self) -> int:
        """
        Copy every file of the source tree.

        Returns:
            Number of files copied
        """
        if not self.source_dir.is_dir():
            logger.warning(f"Asset directory not found: {self.source_dir}")
            return 0

        self.dest_dir.mkdir(parents=True, exist_ok=True)
        copied = self._copy_tree(self.source_dir, self.dest_dir)
        logger.info(f"⚡ Assets copied: {copied} file(s)")
        return copied

    def _copy_tree(self, src: Path, dest: Path) -> int:
        copied = 0
        for item in sorted(src.iterdir()):
            target = dest / item.name
            if item.is_dir():
                if item.name in self.excluded_dir_names:
                    logger.debug(f"Skipping excluded directory {item}")
                    continue
                target.mkdir(exist_ok=True)
                copied += self._copy_tree(item, target)
            else:
                try:
                    shutil.copyfile(item, target)
                    copied += 1
                except OSError as e:
                    logger.error(f"✗ Failed to copy {item}: {e}")
        return copied


def mirror(source_dir: Path, dest_dir: Path, excluded_dir_names: Iterable[str] = DEFAULT_EXCLUDED_DIRS) -> int:
    """Copy source_dir into dest_dir, skipping directories named in excluded_dir_names."""
    return AssetMirror(source_dir, dest_dir, excluded_dir_names).mirror()
