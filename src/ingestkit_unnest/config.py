"""Configuration model for the ingestkit-unnest pipeline.

Provides ``UnnestConfig`` with all tunable parameters and sensible
defaults.  Supports loading overrides from YAML or JSON files via the
``from_file()`` classmethod.
"""

from __future__ import annotations

import json
import pathlib

from pydantic import BaseModel, Field

ONE_GB = 1024 * 1024 * 1024


class UnnestConfig(BaseModel):
    """All tunable parameters with sensible defaults."""

    # --- Identity ---
    parser_version: str = "ingestkit_unnest:1.0.0"

    # --- Output ---
    output_dir: str = "./output"
    output_name_prefix: str = "test"
    clean_output_dir: bool = True

    # --- I/O / Resource Limits ---
    buffer_size: int = Field(
        default=8192,
        gt=0,
        description="Size of the buffers allocated when reading/writing files.",
    )
    max_output_size_bytes: int = Field(
        default=ONE_GB,
        gt=0,
        description="Maximum number of bytes written to a single output file.",
    )
    spool_max_memory_bytes: int = Field(
        default=16 * 1024 * 1024,
        ge=0,
        description="Nested archives larger than this are spooled to disk.",
    )

    # --- Content Policy ---
    ignorable_text_bodies: list[str] = []

    # --- Logging ---
    log_level: str = "INFO"

    @classmethod
    def from_file(cls, path: str) -> UnnestConfig:
        """Load configuration from a YAML or JSON file.

        File format is detected by extension: ``.yaml`` / ``.yml`` for YAML,
        ``.json`` for JSON.  Keys present in the file override the
        corresponding defaults; keys not present retain their defaults.
        """
        file_path = pathlib.Path(path)
        if not file_path.exists():
            raise FileNotFoundError(f"Config file not found: {path}")

        suffix = file_path.suffix.lower()

        if suffix in (".yaml", ".yml"):
            import yaml

            with open(file_path) as fh:
                data = yaml.safe_load(fh)
        elif suffix == ".json":
            with open(file_path) as fh:
                data = json.load(fh)
        else:
            raise ValueError(
                f"Unsupported config file extension '{suffix}'. "
                "Use .yaml, .yml, or .json."
            )

        if data is None:
            data = {}

        return cls(**data)
