"""Configuration paths and analysis constants for rubygraph."""

from __future__ import annotations

import os
from pathlib import Path
from typing import Set, Tuple

BASE_DIR = Path(os.environ.get("RUBYGRAPH_HOME", str(Path.home() / ".rubygraph"))).expanduser()
CONFIG_FILE = BASE_DIR / "config.toml"

RUBY_EXTENSIONS: Set[str] = {".rb"}
DEFAULT_SCAN_PATHS: Tuple[str, ...] = ("app", "lib")

SKIP_DIRS: Set[str] = {
    ".git", ".bundle", "vendor", "node_modules", "tmp", "log",
    "coverage", "public", ".rubygraph",
}

DEFAULT_RENDERING_POLICIES: Tuple[str, ...] = ("placeholder", "literal")
DEFAULT_MAX_CALL_DETAILS = 25
DEFAULT_LABEL_LIMIT = 3

