"""Domain models for the path table and project configuration."""

from __future__ import annotations

from enum import Enum

from pydantic import BaseModel, ConfigDict, Field, field_validator


class Category(str, Enum):
    """Logical asset categories, named after the task that builds them."""

    STYLES = "styles"
    IMAGES = "images"
    SCRIPTS = "js"
    COPY_ASSETS = "copyAssets"
    COPY_CSS = "copyCss"
    PACKAGE = "package"


IMAGE_GLOB = "{jpg,jpeg,png,gif,svg}"


class PathEntry(BaseModel):
    """Source globs and destination directory for one category."""

    model_config = ConfigDict(frozen=True)

    src: tuple[str, ...] = Field(..., min_length=1, description="Ordered source globs")
    dest: str = Field(..., description="Destination directory")

    @field_validator("src", mode="before")
    @classmethod
    def _single_glob(cls, value: object) -> object:
        if isinstance(value, str):
            return (value,)
        return value


class PathTable(BaseModel):
    """Path table for every category, immutable after startup."""

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    styles: PathEntry = PathEntry(
        src=("src/assets/css/style.css",), dest="dist/assets/css"
    )
    images: PathEntry = PathEntry(
        src=(
            f"src/assets/images/*.{IMAGE_GLOB}",
            f"src/assets/images/**/*.{IMAGE_GLOB}",
        ),
        dest="dist/assets/images",
    )
    js: PathEntry = PathEntry(src=("src/assets/js/**/*.js",), dest="dist/assets/js")
    copy_assets: PathEntry = Field(
        default=PathEntry(src=("src/**/*.html",), dest="dist/"),
        alias="copyAssets",
    )
    copy_css: PathEntry = Field(
        default=PathEntry(
            src=("src/assets/css/*.css", "!src/assets/css/tailwind.css"),
            dest="dist/assets/css/",
        ),
        alias="copyCss",
    )
    package: PathEntry = PathEntry(src=("dist/**/*",), dest="finalproject")

    def entry(self, category: Category) -> PathEntry:
        """Return the entry for a category."""
        return {
            Category.STYLES: self.styles,
            Category.IMAGES: self.images,
            Category.SCRIPTS: self.js,
            Category.COPY_ASSETS: self.copy_assets,
            Category.COPY_CSS: self.copy_css,
            Category.PACKAGE: self.package,
        }[category]


class ProjectConfig(BaseModel):
    """Project level configuration, optionally loaded from YAML."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    paths: PathTable = Field(default_factory=PathTable)
    serve_root: str = Field(default="src", description="Dev server document root")
    content: tuple[str, ...] = Field(
        default=("src/**/*.html",),
        description="Files scanned for selectors used by the stylesheets",
    )
    package_name: str | None = Field(
        default=None, description="Archive name, overrides package.json"
    )

    @field_validator("content", mode="before")
    @classmethod
    def _single_content_glob(cls, value: object) -> object:
        if isinstance(value, str):
            return (value,)
        return value
