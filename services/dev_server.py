"""
Development server: runs the startup build, then keeps dist/ up to date
from source changes while the preview server reloads the browser.
"""

import logging
import shutil
from pathlib import Path
from typing import Any, Callable, Dict, Optional

from models import BuildStep, SiteConfig, WatchCategory, WatchSubscription
from services.asset_mirror import AssetMirror
from services.dependencies import DependencyMirror
from services.errors import SiteBuildError
from services.preview import PreviewServer
from services.site_builder import SiteBuilder
from services.stylesheets import StylesheetCompiler
from services.watcher import WatchOrchestrator

logger = logging.getLogger(__name__)


class DevServer:
    """Owns every builder, watch subscription and the preview channel.

    Construct once, call start() (or build() for a one-shot build), and
    shutdown() when done.
    """

    def __init__(self, config: SiteConfig, orchestrator: Optional[WatchOrchestrator] = None,
                 preview: Optional[PreviewServer] = None,
                 stylesheet_transform: Optional[Callable[[str], str]] = None):
        self.config = config
        self.site_builder = SiteBuilder(config.html_dir, config.html_out_dir)
        self.asset_mirror = AssetMirror(config.assets_dir, config.assets_out_dir, config.excluded_asset_dirs)
        self.dependency_mirror = DependencyMirror(config.manifest_path, config.modules_dir, config.libs_out_dir)
        self.stylesheets = StylesheetCompiler(
            config.scss_dir,
            config.css_out_dir,
            entry_points=config.stylesheet_entry_points,
            output_style=config.stylesheet_output_style,
            transform=stylesheet_transform,
        )
        self.orchestrator = orchestrator or WatchOrchestrator()
        self.orchestrator.steps[BuildStep.STYLESHEETS] = self.compile_stylesheets
        self.preview = preview or PreviewServer(
            config.dist_dir,
            host=config.host,
            port=config.port,
            start_path=config.start_path,
            open_browser=config.open_browser,
            reload_delay=config.reload_delay,
        )
        self._closed = False

    def __enter__(self) -> "DevServer":
        return self

    def __exit__(self, exc_type, exc, tb):
        self.shutdown()

    # Build steps

    def compile_stylesheets(self) -> list[Path]:
        return self.stylesheets.compile()

    def copy_dependencies(self) -> Dict[str, bool]:
        return self.dependency_mirror.mirror()

    def build_html(self) -> Dict[str, bool]:
        return self.site_builder.build_all()

    def copy_assets(self) -> int:
        return self.asset_mirror.mirror()

    def build(self) -> Dict[str, Any]:
        """
        Run the startup sequence: stylesheets, libraries, pages, assets.

        A stylesheet failure is logged and the remaining steps still run.

        Returns:
            Summary with the outcome of each step
        """
        summary: Dict[str, Any] = {}

        try:
            summary["stylesheets"] = [str(p) for p in self.compile_stylesheets()]
            logger.info("⚡ Styles & Scripts Compiled! ⚡")
        except SiteBuildError as e:
            logger.error(f"✗ Stylesheet build failed: {e}")
            summary["stylesheets"] = False

        summary["libs"] = self.copy_dependencies()
        summary["html"] = self.build_html()
        summary["assets"] = self.copy_assets()
        return summary

    # Watch handlers

    def on_stylesheet_change(self, path: Path) -> None:
        logger.info(f"Stylesheet changed: {path}")
        self.compile_stylesheets()

    def on_script_change(self, path: Path) -> None:
        """Copy a changed script into dist/assets/js under its file name."""
        destination = self.config.js_out_dir / path.name
        destination.parent.mkdir(parents=True, exist_ok=True)
        shutil.copyfile(path, destination)
        logger.info(f"⚡ Copied {path.name} to {destination.parent}! ⚡")

    def on_page_change(self, path: Path) -> None:
        self.site_builder.build_page(path)

    def on_partial_change(self, path: Path) -> None:
        logger.info(f"Partial changed: {path}. Rebuilding all pages")
        self.build_html()

    def subscriptions(self) -> list[WatchSubscription]:
        """The four watch subscriptions with their declared also-trigger steps."""
        also_trigger = self.config.also_trigger()
        return [
            WatchSubscription(
                category=WatchCategory.STYLESHEETS,
                directory=self.config.scss_dir,
                patterns=["*.scss", "*.sass"],
                handler=self.on_stylesheet_change,
                also_trigger=also_trigger[WatchCategory.STYLESHEETS],
            ),
            WatchSubscription(
                category=WatchCategory.SCRIPTS,
                directory=self.config.js_dir,
                patterns=["*.js"],
                handler=self.on_script_change,
                also_trigger=also_trigger[WatchCategory.SCRIPTS],
            ),
            WatchSubscription(
                category=WatchCategory.PAGES,
                directory=self.config.html_dir,
                patterns=["*.html"],
                recursive=False,
                handler=self.on_page_change,
                also_trigger=also_trigger[WatchCategory.PAGES],
            ),
            WatchSubscription(
                category=WatchCategory.PARTIALS,
                directory=self.config.partials_dir,
                handler=self.on_partial_change,
                also_trigger=also_trigger[WatchCategory.PARTIALS],
            ),
        ]

    # Lifecycle

    def start(self) -> Dict[str, Any]:
        """Run the startup build and begin watching the source tree."""
        summary = self.build()
        for subscription in self.subscriptions():
            self.orchestrator.subscribe(subscription)
        self.orchestrator.start()
        self._closed = False
        return summary

    def serve(self) -> None:
        """Block serving the preview until interrupted, then shut down."""
        try:
            self.preview.serve()
        except KeyboardInterrupt:
            logger.info("Shutting down...")
        finally:
            self.shutdown()

    def shutdown(self) -> None:
        """Unsubscribe every watcher and close the preview channel."""
        if self._closed:
            return
        self._closed = True
        self.orchestrator.stop()
        self.preview.close()
        logger.info("Dev server stopped")
