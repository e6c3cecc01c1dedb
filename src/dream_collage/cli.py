"""CLI argument parsing and main entry point."""

from __future__ import annotations

import argparse
from typing import TYPE_CHECKING

import dream_collage.config as dc_config
from dream_collage.config_defaults import DEFAULT_STYLE
from dream_collage.errors import CollageError, ExportError
from dream_collage.logging_utils import logger
from dream_collage.pipeline import CollageRequest, compose_collage
from dream_collage.runtime.validation import (
    validate_input_paths,
    validate_prompts,
)
from dream_collage.runtime.version import resolve_project_version

if TYPE_CHECKING:  # pragma: no cover
    from collections.abc import Callable, Sequence


def positive_int(text: str) -> int:
    """Argparse-style validator that enforces a strictly positive integer."""
    try:
        value = int(text)
    except ValueError as exc:
        msg = "must be an integer"
        raise ValueError(msg) from exc
    if value <= 0:
        msg = "must be positive"
        raise ValueError(msg)
    return value


def non_negative_int(text: str) -> int:
    """Argparse-style validator that accepts zero and positive integers."""
    try:
        value = int(text)
    except ValueError as exc:
        msg = "must be an integer"
        raise ValueError(msg) from exc
    if value < 0:
        msg = "must not be negative"
        raise ValueError(msg)
    return value


def _wrap_validator[T](
    validator: Callable[[str], T],
    error_cls: type[argparse.ArgumentTypeError] = argparse.ArgumentTypeError,
) -> Callable[[str], T]:
    """Convert ``ValueError`` from a validator into ``ArgumentTypeError``."""

    def wrapper(text: str) -> T:
        try:
            return validator(text)
        except ValueError as exc:
            raise error_cls(str(exc)) from exc

    return wrapper


def build_arg_parser() -> argparse.ArgumentParser:
    """Construct the argument parser for the command-line interface."""
    p = argparse.ArgumentParser(
        prog="dream-collage",
        description=(
            "Compose generated images into a rounded-cell grid collage "
            "with a title label and save it as PNG."
        ),
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=(
            "Examples:\n"
            "dream-collage --images a.png b.png c.png d.png\n"
            "dream-collage --images a.png b.png c.png --rows 1 --cols 3 "
            "--canvas-size 1536\n"
        ),
    )
    p.add_argument(
        "--version", action="version",
        version=f"%(prog)s {resolve_project_version()}")

    inputs = p.add_argument_group("inputs")
    inputs.add_argument(
        "--images", nargs="+", required=True,
        help="Image files, in row-major cell order")
    inputs.add_argument(
        "--style", type=str, default=DEFAULT_STYLE,
        help="Style label carried along with the collage")
    inputs.add_argument(
        "--prompt", dest="prompts", action="append", default=[],
        help="Prompt for one image; repeat once per image")

    grid = p.add_argument_group("grid")
    grid.add_argument(
        "--rows", type=_wrap_validator(positive_int),
        default=argparse.SUPPRESS, help="Grid rows")
    grid.add_argument(
        "--cols", type=_wrap_validator(positive_int),
        default=argparse.SUPPRESS, help="Grid columns")
    grid.add_argument(
        "--gap", type=_wrap_validator(non_negative_int),
        default=argparse.SUPPRESS, help="Gap between and around cells (px)")
    grid.add_argument(
        "--canvas-size", type=_wrap_validator(positive_int),
        default=argparse.SUPPRESS, help="Square canvas side length (px)")

    look = p.add_argument_group("appearance")
    look.add_argument(
        "--corner-radius", type=float, default=argparse.SUPPRESS,
        help="Requested cell corner radius (px)")
    look.add_argument(
        "--title", type=str, default=argparse.SUPPRESS,
        help="Title label drawn on top of the collage")

    output = p.add_argument_group("output")
    output.add_argument(
        "--output", type=str, default=argparse.SUPPRESS,
        help="Output directory")
    output.add_argument(
        "--filename", type=str, default=argparse.SUPPRESS,
        help="Output file name (.png is enforced)")

    cfg = p.add_argument_group("config")
    cfg.add_argument(
        "--config", type=str,
        help="Path to config.toml file")
    return p


def log_parameters(
    args: argparse.Namespace,
    cfg: dc_config.CollageConfig,
) -> None:
    """Log the effective collage settings."""
    if getattr(args, "config", None):
        logger.info("Loaded config from: %s", args.config)
    logger.info("Images: %d", len(args.images))
    logger.info("Grid: %dx%d, gap %d px", cfg.grid.rows, cfg.grid.cols,
                cfg.grid.gap)
    logger.info("Canvas: %dx%d", cfg.grid.canvas_width,
                cfg.grid.canvas_height)
    logger.info("Style: %s", args.style)
    logger.info("Output Directory: %s", cfg.export.output)


def run_from_args(args: argparse.Namespace) -> int:
    """Compose and save a collage from parsed command-line arguments."""
    base_cfg: dc_config.CollageConfig | None = None
    if args.config:
        base_cfg = dc_config.ConfigLoader.load(args.config)
    cfg = dc_config.build_config_from_cli(vars(args), base_config=base_cfg)

    paths = validate_input_paths(args.images)
    validate_prompts(args.prompts, len(paths))
    log_parameters(args, cfg)

    request = CollageRequest(
        images=tuple(path.read_bytes() for path in paths),
        style=args.style,
        grid=cfg.grid_spec(),
        prompts=tuple(args.prompts),
    )
    try:
        artifact = compose_collage(request, config=cfg)
    except CollageError:
        # compose_collage has already logged the failure.
        return 1
    try:
        artifact.save(cfg.export.output, cfg.export.filename)
    except ExportError as exc:
        logger.error("%s", exc)
        return 1
    return 0


def main(argv: Sequence[str] | None = None) -> int:
    """Run the command-line interface for collage composition."""
    arg_parser = build_arg_parser()
    args = arg_parser.parse_args(argv)
    try:
        return run_from_args(args)
    except (FileNotFoundError, ValueError) as exc:
        arg_parser.error(str(exc))
    return 2


if __name__ == "__main__":  # pragma: no cover
    raise SystemExit(main())
