"""Configuration management for the plugin."""

import asyncio
import logging
import os
from pathlib import Path
from typing import Any, Dict, Mapping, Optional

from ruamel.yaml import YAML
from pydantic import ValidationError

from infrakit_aliyun.models.config import PluginConfig


logger = logging.getLogger(__name__)

DEFAULT_CONFIG_FILE = Path("./config.yaml")

# Environment variables overriding the aliyun section.
ENV_OVERRIDES = {
    "ALIYUN_REGION": "region",
    "ALIYUN_ACCESS_KEY_ID": "access_key_id",
    "ALIYUN_ACCESS_KEY_SECRET": "access_key_secret",
}


class ConfigManager:
    """Loads plugin configuration from YAML, the environment and overrides."""

    def __init__(self, config_file: Optional[Path] = None, environ: Optional[Mapping[str, str]] = None):
        """Initialize configuration manager."""
        self.config_file = Path(config_file) if config_file else None
        self.environ = os.environ if environ is None else environ
        self.yaml = YAML(typ="safe")
        self.config: Optional[PluginConfig] = None

    async def load(self, overrides: Optional[Dict[str, Any]] = None) -> PluginConfig:
        """Load configuration, later sources winning over earlier ones."""
        data = await self._load_file()
        self._apply_environment(data)
        if overrides:
            _deep_update(data, overrides)

        try:
            self.config = PluginConfig.model_validate(data)
        except ValidationError as e:
            logger.error(f"Invalid configuration: {e}")
            raise

        logger.debug(
            f"Loaded configuration (region={self.config.aliyun.region}, "
            f"private_ip_only={self.config.aliyun.private_ip_only})"
        )
        return self.config

    async def _load_file(self) -> Dict[str, Any]:
        """Load the YAML file, if any."""
        config_file = self.config_file
        if config_file is None:
            if not DEFAULT_CONFIG_FILE.exists():
                return {}
            config_file = DEFAULT_CONFIG_FILE
        elif not config_file.exists():
            raise FileNotFoundError(f"Config not found: {config_file}")

        logger.info(f"Loading configuration from {config_file}")
        data = await self._read_yaml(config_file)
        if data is None:
            return {}
        if not isinstance(data, dict):
            raise ValueError(f"Config file {config_file} must contain a mapping")
        return data

    async def _read_yaml(self, file_path: Path) -> Any:
        """Read and parse YAML file."""
        return await asyncio.to_thread(self._parse_yaml, file_path)

    def _parse_yaml(self, file_path: Path) -> Any:
        return self.yaml.load(file_path.read_text())

    def _apply_environment(self, data: Dict[str, Any]) -> None:
        aliyun = data.setdefault("aliyun", {}) or {}
        data["aliyun"] = aliyun
        for variable, key in ENV_OVERRIDES.items():
            value = self.environ.get(variable)
            if value:
                aliyun[key] = value


def _deep_update(base: Dict[str, Any], override: Mapping[str, Any]) -> Dict[str, Any]:
    """Recursively merge override into base, skipping None values."""
    for key, value in override.items():
        if value is None:
            continue
        if isinstance(value, Mapping):
            if not isinstance(base.get(key), dict):
                base[key] = {}
            _deep_update(base[key], value)
        else:
            base[key] = value
    return base
