"""
Pydantic models for the site build pipeline and its configuration.
"""

from enum import Enum
from pathlib import Path
from typing import Callable, Dict, List
from pydantic import BaseModel, Field, field_validator


class ErrorPolicy(str, Enum):
    """How the partial resolver reacts to a reference it cannot read."""
    CONTINUE_ON_ERROR = "continue_on_error"
    FAIL_FAST = "fail_fast"


class WatchCategory(str, Enum):
    """Source categories observed by the watch orchestrator."""
    STYLESHEETS = "stylesheets"
    SCRIPTS = "scripts"
    PAGES = "pages"
    PARTIALS = "partials"


class BuildStep(str, Enum):
    """Build steps that a watch category can also trigger."""
    STYLESHEETS = "stylesheets"


class SubscriptionState(str, Enum):
    """Per-category build state."""
    IDLE = "idle"
    BUILDING = "building"


class IncludeMarker(BaseModel):
    """An `<!-- include "name" -->` span found in a document."""
    text: str
    name: str
    start: int
    end: int


class Document(BaseModel):
    """An HTML source page read from the source tree."""
    path: Path
    content: str
    markers: List[IncludeMarker] = Field(default_factory=list)


class Partial(BaseModel):
    """A named HTML fragment stored under the partials directory."""
    name: str
    content: str


class WatchSubscription(BaseModel):
    """A watched directory and the handler invoked with each changed file."""
    category: WatchCategory
    directory: Path
    patterns: List[str] = Field(default_factory=lambda: ["*"])
    recursive: bool = True
    handler: Callable[[Path], None]
    also_trigger: List[BuildStep] = Field(default_factory=list)


class SiteConfig(BaseModel):
    """Configuration for the build pipeline and the development server."""
    project_root: Path = Field(default_factory=Path.cwd)
    host: str = "127.0.0.1"
    port: int = 3000
    start_path: str = "html/index.html"
    open_browser: bool = True
    reload_delay: float = 0.5
    stylesheet_entry_points: List[str] = Field(default_factory=lambda: ["styles.scss"])
    stylesheet_output_style: str = "expanded"
    stylesheet_coupling: bool = True
    excluded_asset_dirs: List[str] = Field(default_factory=lambda: ["css", "scss"])
    manifest_file: str = "package.json"
    modules_dir_name: str = "node_modules"

    @field_validator("port")
    @classmethod
    def _check_port(cls, value: int) -> int:
        if not (1 <= value <= 65535):
            raise ValueError(f"Port must be between 1 and 65535, got: {value}")
        return value

    @field_validator("reload_delay")
    @classmethod
    def _check_delay(cls, value: float) -> float:
        if value < 0:
            raise ValueError(f"Reload delay must be >= 0, got: {value}")
        return value

    @field_validator("stylesheet_output_style")
    @classmethod
    def _check_style(cls, value: str) -> str:
        if value not in ("nested", "expanded", "compact", "compressed"):
            raise ValueError(f"Unknown stylesheet output style: {value}")
        return value

    # Source tree
    @property
    def src_dir(self) -> Path:
        return self.project_root / "src"

    @property
    def html_dir(self) -> Path:
        return self.src_dir / "html"

    @property
    def partials_dir(self) -> Path:
        return self.html_dir / "partials"

    @property
    def assets_dir(self) -> Path:
        return self.src_dir / "assets"

    @property
    def scss_dir(self) -> Path:
        return self.assets_dir / "scss"

    @property
    def js_dir(self) -> Path:
        return self.assets_dir / "js"

    # Output tree
    @property
    def dist_dir(self) -> Path:
        return self.project_root / "dist"

    @property
    def html_out_dir(self) -> Path:
        return self.dist_dir / "html"

    @property
    def assets_out_dir(self) -> Path:
        return self.dist_dir / "assets"

    @property
    def css_out_dir(self) -> Path:
        return self.assets_out_dir / "css"

    @property
    def js_out_dir(self) -> Path:
        return self.assets_out_dir / "js"

    @property
    def libs_out_dir(self) -> Path:
        return self.assets_out_dir / "libs"

    # Front-end dependencies
    @property
    def manifest_path(self) -> Path:
        return self.project_root / self.manifest_file

    @property
    def modules_dir(self) -> Path:
        return self.project_root / self.modules_dir_name

    def also_trigger(self) -> Dict[WatchCategory, List[BuildStep]]:
        """Build steps each watch category runs after its own handler succeeds."""
        coupled = [BuildStep.STYLESHEETS] if self.stylesheet_coupling else []
        return {
            WatchCategory.STYLESHEETS: [],
            WatchCategory.SCRIPTS: list(coupled),
            WatchCategory.PAGES: list(coupled),
            WatchCategory.PARTIALS: [],
        }
