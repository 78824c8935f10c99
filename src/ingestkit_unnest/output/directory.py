"""Destination directory lifecycle."""

from __future__ import annotations

import logging
import shutil
from pathlib import Path

logger = logging.getLogger("ingestkit_unnest")


def prepare_output_directory(path: str | Path, clean: bool = True) -> Path:
    """Create *path* (with parents) and, when *clean*, remove its contents.

    Returns the directory as a ``Path``.
    """
    directory = Path(path)
    directory.mkdir(parents=True, exist_ok=True)
    logger.info("ingestkit_unnest | created_directory=%s", directory)

    if clean:
        for child in directory.iterdir():
            if child.is_dir() and not child.is_symlink():
                shutil.rmtree(child)
            else:
                child.unlink()
        logger.debug("ingestkit_unnest | cleaned_directory=%s", directory)

    return directory
