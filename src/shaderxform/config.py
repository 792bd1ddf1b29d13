"""Transform configuration with YAML file and environment support.

Configuration is resolved in this order, later sources winning:

- Built-in defaults
- A YAML file, given explicitly or through the SHADERXFORM_CONFIG
  environment variable
- Explicit overrides (the command line)

Example file:

    threshold: 16
    max_passes: 64
    skip_marker: "/* Skipped */"
    passes: [unroll, conditionals]
"""

from __future__ import annotations

import os
from dataclasses import dataclass, field, fields, replace
from pathlib import Path
from typing import Any, Dict, List, Optional

import yaml

from .errors import error_config
from .transforms.base import DEFAULT_MAX_PASSES
from .transforms.unroll import DEFAULT_THRESHOLD, SKIP_MARKER

__all__ = [
    "SHADERXFORM_CONFIG",
    "PASS_NAMES",
    "TransformConfig",
    "load_config",
    "resolve_config",
]

# Environment variable naming a default configuration file
SHADERXFORM_CONFIG = "SHADERXFORM_CONFIG"

PASS_NAMES = ("unroll", "conditionals")


@dataclass(frozen=True)
class TransformConfig:
    """Settings for the rewrite passes."""
    threshold: int = DEFAULT_THRESHOLD
    max_passes: int = DEFAULT_MAX_PASSES
    skip_marker: str = SKIP_MARKER
    passes: List[str] = field(default_factory=lambda: list(PASS_NAMES))

    def __post_init__(self):
        _check_int("threshold", self.threshold, minimum=0)
        _check_int("max_passes", self.max_passes, minimum=1)
        if not isinstance(self.skip_marker, str) or not (
                self.skip_marker.startswith("/*") and self.skip_marker.endswith("*/")
                and len(self.skip_marker) >= 4):
            raise error_config(f"skip_marker must be a block comment, got {self.skip_marker!r}")
        if not isinstance(self.passes, (list, tuple)):
            raise error_config(f"passes must be a list, got {self.passes!r}")
        for name in self.passes:
            if name not in PASS_NAMES:
                raise error_config(
                    f"unknown pass '{name}' (available: {', '.join(PASS_NAMES)})"
                )

    @classmethod
    def from_dict(cls, data: Dict[str, Any], source: Optional[str] = None) -> "TransformConfig":
        """Build a config from a mapping, rejecting unknown keys."""
        if not isinstance(data, dict):
            raise error_config("configuration must be a mapping", source)
        known = {f.name for f in fields(cls)}
        unknown = sorted(set(data) - known)
        if unknown:
            raise error_config(f"unknown configuration key(s): {', '.join(unknown)}", source)
        return cls(**data)

    def merged(self, **overrides: Any) -> "TransformConfig":
        """Return a copy with every non-None override applied."""
        changes = {k: v for k, v in overrides.items() if v is not None}
        return replace(self, **changes) if changes else self

    def to_dict(self) -> Dict[str, Any]:
        return {
            "threshold": self.threshold,
            "max_passes": self.max_passes,
            "skip_marker": self.skip_marker,
            "passes": list(self.passes),
        }


def _check_int(name: str, value: Any, minimum: int) -> None:
    if isinstance(value, bool) or not isinstance(value, int) or value < minimum:
        raise error_config(f"{name} must be an integer >= {minimum}, got {value!r}")


def load_config(path: Path | str) -> TransformConfig:
    """Load a configuration from a YAML file.

    An empty file yields the defaults.

    Raises:
        ConfigError: If the file is missing, is not valid YAML, or holds
            invalid values.
    """
    config_path = Path(path)
    if not config_path.exists():
        raise error_config(f"configuration file not found: {config_path}")
    try:
        with config_path.open("r", encoding="utf-8") as fp:
            data = yaml.safe_load(fp) or {}
    except yaml.YAMLError as exc:
        raise error_config(f"invalid YAML: {exc}", str(config_path)) from exc
    return TransformConfig.from_dict(data, str(config_path))


def resolve_config(path: Path | str | None = None, **overrides: Any) -> TransformConfig:
    """Resolve defaults, the config file, and explicit overrides."""
    if path is None:
        path = os.environ.get(SHADERXFORM_CONFIG) or None
    config = load_config(path) if path is not None else TransformConfig()
    return config.merged(**overrides)
