import os
from pathlib import Path
from string import Template
from typing import Optional

import structlog
import yaml
from dotenv import load_dotenv
from pydantic import ValidationError

from herald.models.config import HeraldConfig
from herald.utils.exceptions import ConfigValidationError

logger = structlog.get_logger()

DEFAULT_CONFIG_PATH = "config/herald.yaml"


class ConfigManager:
    """Loads and validates the herald configuration"""

    def __init__(
        self,
        config_path: str = DEFAULT_CONFIG_PATH,
        load_env: bool = True,
    ):
        self.config_path = Path(config_path)
        self.env_loaded = not load_env
        self._config: Optional[HeraldConfig] = None

    def load_config(self) -> HeraldConfig:
        """Load and validate configuration"""
        if self._config:
            return self._config

        # 1. Load environment
        if not self.env_loaded:  # pragma: no cover
            load_dotenv()
            self.env_loaded = True

        # 2. Check file existence
        if not self.config_path.exists():
            raise FileNotFoundError(f"Configuration file not found: {self.config_path}")

        # 3. Read YAML
        try:
            raw_content = self.config_path.read_text(encoding="utf-8")
        except Exception as e:
            raise ConfigValidationError(f"Failed to read config file: {e}")

        # 4. Substitute env vars
        try:
            # safe_substitute leaves unknown ${VAR} in place
            template = Template(raw_content)
            substituted_content = template.safe_substitute(os.environ)
            config_data = yaml.safe_load(substituted_content) or {}
        except Exception as e:
            raise ConfigValidationError(
                f"Failed to parse YAML or substitute variables: {e}"
            )

        if not isinstance(config_data, dict):
            raise ConfigValidationError("Configuration root must be a mapping")

        # 5. Validate with Pydantic
        try:
            self._config = HeraldConfig(**config_data)
        except ValidationError as e:
            raise ConfigValidationError(f"Invalid configuration: {e}")

        logger.info(
            "config_loaded",
            path=str(self.config_path),
            registry=self._config.watcher.registry,
            feed=self._config.feed.provider.value,
        )
        return self._config
