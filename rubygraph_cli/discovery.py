"""Discovery of Ruby source files under a project root."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Iterable, List, Optional, Sequence

from .config import DEFAULT_SCAN_PATHS, RUBY_EXTENSIONS, SKIP_DIRS

logger = logging.getLogger(__name__)


def default_scan_paths(root: Path, paths: Optional[Sequence[str]] = None) -> List[Path]:
    """Directories to scan for *root*.

    Explicit *paths* are taken relative to the root. Otherwise ``app/`` and
    ``lib/`` are used when present, and the root itself when neither is.
    """
    if paths:
        return [root / p for p in paths]
    found = [root / p for p in DEFAULT_SCAN_PATHS if (root / p).is_dir()]
    return found or [root]


def discover_ruby_files(paths: Iterable[Path]) -> List[Path]:
    """Return a sorted, deduplicated list of ``.rb`` files under *paths*."""
    files = set()
    for path in paths:
        if path.is_dir():
            for ext in RUBY_EXTENSIONS:
                for file_path in path.rglob(f"*{ext}"):
                    if any(part in SKIP_DIRS for part in file_path.relative_to(path).parts):
                        continue
                    if file_path.is_file():
                        files.add(file_path)
        elif path.is_file():
            files.add(path)
        else:
            logger.debug("Scan path %s does not exist", path)
    return sorted(files)
