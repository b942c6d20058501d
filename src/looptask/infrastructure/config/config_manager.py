"""Configuration manager for loading and validating .looptask.yml"""

import copy
import logging
import os
from pathlib import Path
from typing import Any, Dict, Optional

import yaml
from pydantic import ValidationError

from looptask.domain.config import AppConfig, CommandConfig, LoopConfig, SchedulerConfig

logger = logging.getLogger(__name__)

CONFIG_FILE_NAME = ".looptask.yml"

# Environment variable -> (section, key)
ENV_OVERRIDES = {
    "LOOPTASK_DELAY": ("scheduler", "delay"),
    "LOOPTASK_INTERVAL": ("scheduler", "interval"),
    "LOOPTASK_REPEAT": ("scheduler", "repeat"),
    "LOOPTASK_LOOP_BACKEND": ("loop", "backend"),
    "LOOPTASK_STOP_ON": ("command", "stop_on"),
}


class ConfigurationError(Exception):
    """Configuration validation error."""

    pass


class ConfigManager:
    """Manages configuration from .looptask.yml and environment variables

    Loads configuration with validation using Pydantic models. Configuration priority:
    1. Default values (defined in Pydantic models)
    2. .looptask.yml file (searched from current directory upwards)
    3. Environment variables (LOOPTASK_*)
    4. CLI arguments (handled by CLI layer)
    """

    DEFAULT_CONFIG = {
        "scheduler": {
            "delay": 0.0,
            "interval": 0.0,
            "repeat": -1,
        },
        "loop": {
            "backend": "asyncio",
        },
        "command": {
            "stop_on": "success",
            "shell": False,
        },
    }

    def __init__(self, config_path: Optional[Path] = None):
        """Initialize config manager

        Args:
            config_path: Path to .looptask.yml (searches from current dir if None)

        Raises:
            ConfigurationError: If configuration validation fails
        """
        if isinstance(config_path, str):
            config_path = Path(config_path)
        self.config_path = config_path or self._find_config_file()
        try:
            self.config: AppConfig = self._load_config()
        except ValidationError as e:
            errors = []
            for error in e.errors():
                field = ".".join(str(x) for x in error["loc"])
                msg = error["msg"]
                errors.append(f"  - {field}: {msg}")
            raise ConfigurationError(
                "Configuration validation failed:\n" + "\n".join(errors)
            ) from e

    def _find_config_file(self) -> Optional[Path]:
        """Find .looptask.yml starting from current directory

        Returns:
            Path to config file or None if not found
        """
        current = Path.cwd()
        for parent in [current] + list(current.parents):
            config_file = parent / CONFIG_FILE_NAME
            if config_file.exists():
                logger.info(f"Found config file: {config_file}")
                return config_file
        logger.debug(f"No {CONFIG_FILE_NAME} found, using defaults")
        return None

    def _load_config(self) -> AppConfig:
        """Load configuration from file and validate with Pydantic

        Returns:
            Validated AppConfig instance

        Raises:
            ValidationError: If configuration is invalid
        """
        config_dict = copy.deepcopy(self.DEFAULT_CONFIG)

        if self.config_path and self.config_path.exists():
            try:
                with open(self.config_path, "r", encoding="utf-8") as f:
                    file_config = yaml.safe_load(f) or {}
                if isinstance(file_config, dict):
                    config_dict = self._merge_config(config_dict, file_config)
                    logger.info(f"Loaded configuration from {self.config_path}")
                else:
                    logger.warning(
                        f"Ignoring {self.config_path}: expected a mapping at the top level, "
                        f"got {type(file_config).__name__}"
                    )
                    logger.info("Using default configuration")
            except (OSError, yaml.YAMLError) as e:
                logger.warning(f"Failed to load config from {self.config_path}: {e}")
                logger.info("Using default configuration")

        config_dict = self._apply_env_overrides(config_dict)

        return AppConfig(**config_dict)

    def _merge_config(self, base: Dict[str, Any], override: Dict[str, Any]) -> Dict[str, Any]:
        """Recursively merge configuration dictionaries

        Args:
            base: Base configuration
            override: Override configuration

        Returns:
            Merged configuration
        """
        result = base.copy()
        for key, value in override.items():
            if key in result and isinstance(result[key], dict) and isinstance(value, dict):
                result[key] = self._merge_config(result[key], value)
            else:
                result[key] = value
        return result

    def _apply_env_overrides(self, config: Dict[str, Any]) -> Dict[str, Any]:
        """Apply environment variable overrides

        Values are left as strings; Pydantic coerces them.

        Args:
            config: Configuration dictionary

        Returns:
            Configuration with env overrides applied
        """
        for env_name, (section, key) in ENV_OVERRIDES.items():
            value = os.getenv(env_name)
            if value:
                config.setdefault(section, {})[key] = value
        return config

    def get_scheduler_config(self) -> SchedulerConfig:
        """Get scheduler timing configuration

        Returns:
            Scheduler configuration model
        """
        return self.config.scheduler

    def get_loop_config(self) -> LoopConfig:
        """Get event loop configuration

        Returns:
            Loop configuration model
        """
        return self.config.loop

    def get_command_config(self) -> CommandConfig:
        """Get command task configuration

        Returns:
            Command configuration model
        """
        return self.config.command

    def get(self, key: str, default: Any = None) -> Any:
        """Get configuration value by key (supports dot notation)

        Args:
            key: Configuration key (e.g., "scheduler.interval" or "scheduler")
            default: Default value if key not found

        Returns:
            Configuration value or default
        """
        keys = key.split(".")
        value = self.config.model_dump()
        for k in keys:
            if isinstance(value, dict) and k in value:
                value = value[k]
            else:
                return default
        return value
