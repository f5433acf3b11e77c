"""OmegaConf-based configuration loader for vardeps."""

import os
from pathlib import Path
from typing import Any
from importlib import resources as importlib_resources

from omegaconf import DictConfig, OmegaConf

_DEFAULT_CONFIG_RESOURCE_PACKAGE = "vardeps.resources.configs"
_DEFAULT_CONFIG_RESOURCE_NAME = "default.yaml"
CONFIG_ENV_VAR = "VARDEPS_CONFIG"


def _load_default_config() -> DictConfig:
    resource = importlib_resources.files(_DEFAULT_CONFIG_RESOURCE_PACKAGE).joinpath(_DEFAULT_CONFIG_RESOURCE_NAME)
    with importlib_resources.as_file(resource) as path:
        return OmegaConf.load(str(path))


def load_config(
    overrides: dict[str, Any] | None = None,
    config_path: str | Path | None = None,
) -> DictConfig:
    """Load configuration from YAML with optional overrides.

    Priority (highest first):
        1. CLI / programmatic overrides
        2. Custom config_path YAML (falls back to $VARDEPS_CONFIG)
        3. packaged default.yaml

    Args:
        overrides: Dict of dot-notation overrides (e.g. {"archive.deflate_level": 9}).
        config_path: Path to a custom YAML config to merge on top of defaults.

    Returns:
        Merged OmegaConf DictConfig.
    """
    base = _load_default_config()

    if config_path is None:
        config_path = os.environ.get(CONFIG_ENV_VAR) or None

    if config_path is not None:
        custom = OmegaConf.load(str(config_path))
        base = OmegaConf.merge(base, custom)

    if overrides:
        override_conf = OmegaConf.create(_expand_dotted(overrides))
        base = OmegaConf.merge(base, override_conf)

    OmegaConf.resolve(base)
    return base


def _expand_dotted(overrides: dict[str, Any]) -> dict[str, Any]:
    out: dict[str, Any] = {}
    for key, value in overrides.items():
        node = out
        parts = str(key).split(".")
        for part in parts[:-1]:
            node = node.setdefault(part, {})
        node[parts[-1]] = value
    return out
