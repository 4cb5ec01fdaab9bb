"""CLI callback functions."""

from pathlib import Path

import typer


def validate_output_dir(value: Path | None) -> Path | None:
    """Validate that the output path is not an existing regular file."""
    if value is None:
        return None

    if value.exists() and not value.is_dir():
        raise typer.BadParameter(f"Output path exists but is not a directory: {value}")

    return value


def validate_input_paths(value: list[Path]) -> list[Path]:
    """Validate that every input path exists."""
    for path in value:
        if not path.exists():
            raise typer.BadParameter(f"Path not found: {path}")
    return value
