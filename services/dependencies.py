"""
Front-end dependency mirror.
Copies every runtime dependency declared in package.json from node_modules
into dist/assets/libs/, preferring each package's dist/ directory.
"""

import json
import logging
import shutil
from pathlib import Path
from typing import Dict, List

logger = logging.getLogger(__name__)

DIST_DIR_NAME = "dist"


class DependencyMirror:
    """Copies declared front-end dependencies into the output libs folder."""

    def __init__(self, manifest_path: Path, modules_dir: Path, libs_dir: Path):
        self.manifest_path = Path(manifest_path)
        self.modules_dir = Path(modules_dir)
        self.libs_dir = Path(libs_dir)

    def get_dependencies(self) -> List[str]:
        """
        Names of the runtime dependencies in the manifest.

        Raises:
            ValueError: If the manifest is not valid JSON
        """
        if not self.manifest_path.exists():
            logger.warning(f"Manifest not found: {self.manifest_path}. No libraries to copy.")
            return []

        try:
            with open(self.manifest_path, "r", encoding="utf-8") as f:
                manifest = json.load(f)
        except json.JSONDecodeError as e:
            raise ValueError(f"Invalid JSON in {self.manifest_path}: {e}") from e

        return list((manifest.get("dependencies") or {}).keys())

    def source_for(self, dependency: str) -> Path:
        """The directory copied for a dependency: its dist/ if present, else the package itself."""
        package_dir = self.modules_dir / dependency
        dist_dir = package_dir / DIST_DIR_NAME
        return dist_dir if dist_dir.is_dir() else package_dir

    def copy_dependency(self, dependency: str) -> Path:
        """
        Copy one dependency into the libs folder.

        Raises:
            FileNotFoundError: If the dependency is not installed
            OSError: If the copy fails
        """
        source = self.source_for(dependency)
        if not source.is_dir():
            raise FileNotFoundError(f"Dependency '{dependency}' not found in {self.modules_dir}")

        destination = self.libs_dir / dependency
        shutil.copytree(source, destination, dirs_exist_ok=True)
        return destination

    def mirror(self) -> Dict[str, bool]:
        """Copy every dependency, continuing past failures."""
        results = {}

        for dependency in self.get_dependencies():
            try:
                destination = self.copy_dependency(dependency)
                logger.info(f"✓ Copied {dependency} to {destination}")
                results[dependency] = True
            except OSError as e:
                logger.error(f"✗ Failed to copy dependency {dependency}: {e}")
                results[dependency] = False

        if results:
            logger.info("⚡ libs Compiled! ⚡")
        return results
