import logging
import os
import re
from pathlib import Path
from typing import Any

import yaml
from pydantic import ValidationError

from core.schema.notifier_schema import NotificationConfigSchema
from core.schema.system_config_schema import SystemConfig
from exception import ConfigurationError

logger = logging.getLogger("ConfigManager")


class ConfigManager:

    @staticmethod
    def load_yaml_file(path: str) -> dict:
        with open(path, "r", encoding="utf-8") as f:
            return yaml.safe_load(f) or {}

    @staticmethod
    def parse_env_var_with_default(value: str) -> bool | int | float | str | None:
        match = re.match(r"\$\{(\w+)(?::-([^\}]*))?\}", value)  # Match ${VAR_NAME:-default} or ${VAR_NAME}
        if not match:
            return value

        var_name = match.group(1)
        default_value = match.group(2)

        resolved_value = os.getenv(var_name) or default_value
        if resolved_value is not None:
            return ConfigManager._parse_value_by_type(resolved_value)
        return None

    @staticmethod
    def resolve_env_vars(raw: Any) -> Any:
        """Expand ${VAR:-default} placeholders in every string of a loaded YAML tree."""
        if isinstance(raw, dict):
            return {key: ConfigManager.resolve_env_vars(value) for key, value in raw.items()}
        if isinstance(raw, list):
            return [ConfigManager.resolve_env_vars(item) for item in raw]
        if isinstance(raw, str):
            return ConfigManager.parse_env_var_with_default(raw)
        return raw

    @staticmethod
    def load_system_config(path: str | None) -> SystemConfig:
        """Load and validate system configuration; a missing path yields defaults."""
        raw: dict = ConfigManager._load_optional(path)
        try:
            return SystemConfig(**ConfigManager.resolve_env_vars(raw))
        except ValidationError as e:
            raise ConfigurationError(f"Invalid system config {path}: {e}") from e

    @staticmethod
    def load_notification_config(path: str | None) -> NotificationConfigSchema:
        """Load and validate notifier configuration; a missing path yields defaults."""
        raw: dict = ConfigManager.resolve_env_vars(ConfigManager._load_optional(path))

        # Env var takes over when the file does not list anyone
        if not raw.get("default_recipients"):
            env_recipients = os.getenv("ALERT_EMAIL_RECIPIENTS")
            if env_recipients:
                raw["default_recipients"] = env_recipients

        try:
            return NotificationConfigSchema(**raw)
        except ValidationError as e:
            raise ConfigurationError(f"Invalid notifier config {path}: {e}") from e

    @staticmethod
    def _load_optional(path: str | None) -> dict:
        if not path:
            return {}
        if not Path(path).exists():
            logger.warning(f"Config file not found, using defaults: {path}")
            return {}
        try:
            return ConfigManager.load_yaml_file(path)
        except yaml.YAMLError as e:
            raise ConfigurationError(f"Cannot parse YAML {path}: {e}") from e

    @staticmethod
    def _parse_value_by_type(value: str) -> bool | int | float | str:
        if value.lower() in ["true", "false"]:
            return value.lower() == "true"
        if ConfigManager._is_int(value):
            return int(value)
        if ConfigManager._is_float(value):
            return float(value)
        return value

    @staticmethod
    def _is_int(value: str) -> bool:
        try:
            int(value)
            return True
        except ValueError:
            return False

    @staticmethod
    def _is_float(value: str) -> bool:
        try:
            float(value)
            return True
        except ValueError:
            return False
