"""Shared conversion options for CLI commands."""

from dataclasses import dataclass
from pathlib import Path
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from encoreconv.config.settings import EncoreConvSettings


@dataclass
class ConversionOptions:
    """Conversion options captured from the command line."""

    # Output settings
    output_dir: Path | None = None
    keep_intermediate: bool | None = None  # None => use settings

    # Runtime settings
    verbose: bool = False
    dry_run: bool = False

    def resolve_output_dir(
        self, settings: "EncoreConvSettings", base_path: Path | None = None
    ) -> Path:
        """Resolve output directory with fallback to settings default.

        Args:
            settings: Application settings
            base_path: Optional base path for relative output dir

        Returns:
            Resolved output directory path
        """
        if self.output_dir:
            return self.output_dir
        return settings.get_output_dir(base_path)

    def resolve_keep_intermediate(self, settings: "EncoreConvSettings") -> bool:
        if self.keep_intermediate is None:
            return settings.output.keep_intermediate
        return self.keep_intermediate
