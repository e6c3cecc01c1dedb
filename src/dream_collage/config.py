"""
Configuration schema and loader for the collage compositor.

Defines Pydantic models representing structured configuration sections
and a TOML-based config loader with validation support.
"""

from pathlib import Path
from typing import Annotated

import tomlkit
from pydantic import BaseModel, Field

from dream_collage.collage.layout import GridSpec
from dream_collage.config_defaults import (
    DEFAULT_BACKGROUND,
    DEFAULT_BORDER_COLOR,
    DEFAULT_BORDER_WIDTH,
    DEFAULT_CANVAS_SIZE,
    DEFAULT_COLS,
    DEFAULT_CORNER_RADIUS,
    DEFAULT_EXPORT_FILENAME,
    DEFAULT_GAP,
    DEFAULT_MAX_WORKERS,
    DEFAULT_OUTPUT_DIR,
    DEFAULT_ROWS,
    DEFAULT_TITLE,
    DEFAULT_TITLE_COLOR,
    DEFAULT_TITLE_POSITION,
    DEFAULT_TITLE_PX,
)

Channel = Annotated[int, Field(ge=0, le=255)]


class GridConfig(BaseModel):
    """Canvas size, grid dimensions and spacing."""

    canvas_width: int = Field(DEFAULT_CANVAS_SIZE, gt=0)
    canvas_height: int = Field(DEFAULT_CANVAS_SIZE, gt=0)
    rows: int = Field(DEFAULT_ROWS, ge=1)
    cols: int = Field(DEFAULT_COLS, ge=1)
    gap: int = Field(DEFAULT_GAP, ge=0)


class AppearanceConfig(BaseModel):
    """Colors, rounding, border and title label settings."""

    background: tuple[Channel, Channel, Channel] = DEFAULT_BACKGROUND
    corner_radius: float = Field(DEFAULT_CORNER_RADIUS, ge=0)
    border_color: tuple[Channel, Channel, Channel, Channel] = (
        DEFAULT_BORDER_COLOR
    )
    border_width: int = Field(DEFAULT_BORDER_WIDTH, ge=0)
    title: str = DEFAULT_TITLE
    title_position: tuple[int, int] = DEFAULT_TITLE_POSITION
    title_px: int = Field(DEFAULT_TITLE_PX, ge=1)
    title_color: tuple[Channel, Channel, Channel, Channel] = (
        DEFAULT_TITLE_COLOR
    )


class LoaderConfig(BaseModel):
    """Control the parallel decode step."""

    max_workers: int = Field(DEFAULT_MAX_WORKERS, ge=1, le=64)


class ExportConfig(BaseModel):
    """Configure where and under which name the collage is saved."""

    output: str = Field(DEFAULT_OUTPUT_DIR)
    filename: str = Field(DEFAULT_EXPORT_FILENAME, min_length=1)


class CollageConfig(BaseModel):
    """
    Root configuration object combining all supported sections.

    Mirrors the structure of config.toml, grouping related parameters
    under logical categories.
    """

    # model_validate({}) populates every field from its Field(...) default.
    grid: GridConfig = Field(
        default_factory=lambda: GridConfig.model_validate({}),
    )
    appearance: AppearanceConfig = Field(
        default_factory=lambda: AppearanceConfig.model_validate({}),
    )
    loader: LoaderConfig = Field(
        default_factory=lambda: LoaderConfig.model_validate({}),
    )
    export: ExportConfig = Field(
        default_factory=lambda: ExportConfig.model_validate({}),
    )

    def grid_spec(self) -> GridSpec:
        """Build the layout GridSpec described by the grid section."""
        return GridSpec(
            canvas_width=self.grid.canvas_width,
            canvas_height=self.grid.canvas_height,
            rows=self.grid.rows,
            cols=self.grid.cols,
            gap=self.grid.gap,
        )


class ConfigLoader:
    """
    Loads and parses a TOML configuration file into a typed config object.

    Falls back to defaults for any missing subsections or fields.
    """

    @staticmethod
    def load(path: str) -> CollageConfig:
        """
        Load a collage configuration from a TOML file.

        Returns a validated CollageConfig instance based on the file
        contents.
        """
        config_path = Path(path)
        if not config_path.is_file():
            msg = f"Config file not found: {path}"
            raise FileNotFoundError(msg)

        with config_path.open("r", encoding="utf-8") as f:
            doc = tomlkit.load(f)

        return CollageConfig.model_validate(doc.unwrap())


# CLI option name -> (config section, field)
_CLI_FIELD_MAP: dict[str, tuple[str, str]] = {
    "canvas_size": ("grid", "canvas_width"),
    "rows": ("grid", "rows"),
    "cols": ("grid", "cols"),
    "gap": ("grid", "gap"),
    "corner_radius": ("appearance", "corner_radius"),
    "title": ("appearance", "title"),
    "max_workers": ("loader", "max_workers"),
    "output": ("export", "output"),
    "filename": ("export", "filename"),
}


def build_config_from_cli(
    cli_args: dict[str, object],
    base_config: CollageConfig | None = None,
) -> CollageConfig:
    """
    Overlay explicitly provided CLI options onto a base configuration.

    Options absent from ``cli_args`` (suppressed by argparse) keep the
    value from ``base_config``, or the defaults. ``canvas_size`` sets both
    canvas dimensions.
    """
    base = base_config or CollageConfig.model_validate({})
    data = base.model_dump()
    for key, (section, field_name) in _CLI_FIELD_MAP.items():
        if cli_args.get(key) is None:
            continue
        data[section][field_name] = cli_args[key]
        if key == "canvas_size":
            data[section]["canvas_height"] = cli_args[key]
    return CollageConfig.model_validate(data)
