"""Version lookup for the ``dream-collage --version`` flag."""

from __future__ import annotations

import tomllib
from importlib import metadata as importlib_metadata
from pathlib import Path

from dream_collage.logging_utils import logger

# Installed name and the import-name spelling editable installs may report
_DISTRIBUTION_NAMES = ("dream-collage", "dream_collage")
_UNKNOWN_VERSION = "0.0.0"


def resolve_project_version() -> str:
    """
    Return the dream-collage version shown by the CLI.

    Prefers the installed distribution. A source checkout run through
    ``run_collage.py`` has no distribution, so the nearest pyproject.toml
    with a ``project.version`` is read instead, and "0.0.0" is returned
    when neither is available.
    """
    for distribution_name in _DISTRIBUTION_NAMES:
        try:
            return importlib_metadata.version(distribution_name)
        except importlib_metadata.PackageNotFoundError:
            continue

    for parent in Path(__file__).resolve().parents:
        pyproject_path = parent / "pyproject.toml"
        if pyproject_path.is_file():
            try:
                with pyproject_path.open("rb") as handle:
                    data = tomllib.load(handle)
            except OSError as exc:
                logger.warning("Error reading %s: %s", pyproject_path, exc)
                break

            version = data.get("project", {}).get("version")
            if isinstance(version, str) and version.strip():
                return version.strip()

    return _UNKNOWN_VERSION
