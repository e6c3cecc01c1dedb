"""Runtime utilities for output, validation, and version helpers."""

from .output import setup_output_directory
from .validation import validate_input_paths, validate_prompts
from .version import resolve_project_version

__all__ = [
    "resolve_project_version",
    "setup_output_directory",
    "validate_input_paths",
    "validate_prompts",
]
