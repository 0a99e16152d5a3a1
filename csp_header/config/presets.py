"""Named policy presets loaded from YAML."""

from __future__ import annotations

from pathlib import Path

import yaml
from pydantic import BaseModel, ValidationError

from csp_header.config.loader import get_settings
from csp_header.logging_config import get_logger
from csp_header.model.policy import Policy

logger = get_logger(__name__)


class PolicyPreset(BaseModel):
    """One named policy from the presets file."""

    name: str
    description: str = ""
    policy: str


# Cache loaded presets
_presets: dict[str, PolicyPreset] | None = None


def load_presets() -> dict[str, PolicyPreset]:
    """Load presets from the configured YAML file, caching after first load.

    Entries that don't validate are skipped and logged.
    """
    global _presets
    if _presets is not None:
        return _presets

    path = Path(get_settings().presets_file)
    if not path.exists():
        logger.error("policy_presets_not_found", path=str(path))
        _presets = {}
        return _presets

    with open(path) as f:
        raw = yaml.safe_load(f) or {}

    presets: dict[str, PolicyPreset] = {}
    for name, entry in raw.items():
        try:
            presets[name] = PolicyPreset(name=name, **(entry or {}))
        except (TypeError, ValidationError) as exc:
            logger.error("policy_preset_invalid", preset=name, error=str(exc))
    _presets = presets
    logger.debug("policy_presets_loaded", count=len(presets))
    return _presets


def reset_presets_cache() -> None:
    """Reset the presets cache (for testing)."""
    global _presets
    _presets = None


def get_preset(name: str | None = None) -> Policy:
    """Return a fresh Policy for the named preset (default from settings).

    Raises KeyError for an unknown preset name.
    """
    if name is None:
        name = get_settings().default_preset
    presets = load_presets()
    if name not in presets:
        raise KeyError(f"Unknown policy preset: {name}")
    return Policy.parse(presets[name].policy)
