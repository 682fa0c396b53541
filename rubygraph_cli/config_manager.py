"""Settings manager for rubygraph using a TOML file.

The ``[analysis]`` section of ``config.toml`` holds the tunables of the
analysis pipeline. Command-line flags override whatever is stored there.
"""

from __future__ import annotations

import logging
from dataclasses import asdict, dataclass, field, replace
from pathlib import Path
from typing import Any, Dict, List, Optional

import toml

from . import config

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class AnalysisSettings:
    default_rendering: str = "placeholder"
    max_call_details: int = config.DEFAULT_MAX_CALL_DETAILS
    workers: Optional[int] = None
    scan_paths: List[str] = field(default_factory=list)
    label_limit: int = config.DEFAULT_LABEL_LIMIT

    def with_overrides(self, **overrides: Any) -> "AnalysisSettings":
        """Return a copy with every non-None override applied."""
        return replace(self, **{k: v for k, v in overrides.items() if v is not None})


def load_full_config(config_file: Optional[Path] = None) -> Dict[str, Any]:
    """Load the entire TOML config (all sections)."""
    path = config_file or config.CONFIG_FILE
    if not path.exists():
        return {}
    try:
        with open(path, "r") as f:
            return toml.load(f)
    except (OSError, toml.TomlDecodeError) as exc:
        logger.warning("Ignoring unreadable config %s: %s", path, exc)
        return {}


def load_settings(config_file: Optional[Path] = None) -> AnalysisSettings:
    """Load ``[analysis]`` into :class:`AnalysisSettings`.

    Unknown keys are ignored and invalid values fall back to the defaults.
    """
    section = load_full_config(config_file).get("analysis", {})
    defaults = AnalysisSettings()

    rendering = section.get("default_rendering", defaults.default_rendering)
    if rendering not in config.DEFAULT_RENDERING_POLICIES:
        logger.warning("Unknown default_rendering %r, using %r", rendering, defaults.default_rendering)
        rendering = defaults.default_rendering

    workers = section.get("workers")
    if workers is not None and (not isinstance(workers, int) or workers < 1):
        logger.warning("Ignoring invalid workers value %r", workers)
        workers = None

    return AnalysisSettings(
        default_rendering=rendering,
        max_call_details=_positive_int(section.get("max_call_details"), defaults.max_call_details),
        workers=workers,
        scan_paths=[str(p) for p in section.get("scan_paths", [])],
        label_limit=_positive_int(section.get("label_limit"), defaults.label_limit),
    )


def save_settings(settings: AnalysisSettings, config_file: Optional[Path] = None) -> Path:
    """Write *settings* to the ``[analysis]`` section, preserving other sections."""
    path = config_file or config.CONFIG_FILE
    full = load_full_config(path)
    full["analysis"] = {k: v for k, v in asdict(settings).items() if v is not None}
    path.parent.mkdir(parents=True, exist_ok=True)
    with open(path, "w") as f:
        toml.dump(full, f)
    return path


def _positive_int(value: Any, default: int) -> int:
    if isinstance(value, int) and value > 0:
        return value
    return default
