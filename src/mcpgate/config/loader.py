"""Gateway configuration loader."""

import os
import re
import types
import typing
from dataclasses import fields
from enum import Enum
from pathlib import Path
from typing import Any

import yaml

from mcpgate.errors import create_error
from mcpgate.types import StoreBackend, ValidationIssue, ValidationResult

from .models import GatewayConfig

CONFIG_PATH_ENV = "MCPGATE_CONFIG_PATH"

VALID_SECTIONS = {"server", "store", "auth", "bridge", "logging"}


def resolve_env_vars(value: str) -> str:
    """Resolve environment variable references in string.

    Supports:
    - ${VAR} - Required, error if not set
    - ${VAR:-default} - With default value
    - ${VAR:?error message} - Required with custom error

    Raises:
        GatewayError: If a required variable is not set
    """
    pattern = r"\$\{([^}:]+)(?::([?-])([^}]*))?\}"

    def replacer(match: re.Match[str]) -> str:
        var_name = match.group(1)
        operator = match.group(2)  # '-' or '?' or None
        operand = match.group(3)  # default value or error message

        env_value = os.environ.get(var_name)
        if env_value is not None:
            return env_value

        if operator == "-":
            return operand or ""
        if operator == "?":
            error_msg = operand or f"Required environment variable {var_name} not set"
            raise create_error("CONFIG_INVALID", detail=error_msg)
        raise create_error(
            "CONFIG_INVALID",
            detail=f"Required environment variable {var_name} not set",
        )

    return re.sub(pattern, replacer, value)


def _resolve_env_vars_recursive(data: Any) -> Any:
    if isinstance(data, dict):
        return {k: _resolve_env_vars_recursive(v) for k, v in data.items()}
    if isinstance(data, list):
        return [_resolve_env_vars_recursive(item) for item in data]
    if isinstance(data, str):
        return resolve_env_vars(data)
    return data


def _positive_number(value: Any) -> bool:
    return isinstance(value, int | float) and not isinstance(value, bool) and value > 0


class ConfigLoader:
    """Load and validate gateway configuration."""

    def __init__(self) -> None:
        self._config: GatewayConfig | None = None
        self._config_path: Path | None = None

    def load(self, path: str | Path | None = None, use_defaults: bool = True) -> GatewayConfig:
        """Load configuration from file.

        Resolution order if path not specified:
        1. MCPGATE_CONFIG_PATH environment variable
        2. ./mcpgate.yaml
        3. ~/.mcpgate/config.yaml
        4. If use_defaults=True and no file found, use default configuration

        Raises:
            GatewayError: If file not found (when use_defaults=False) or invalid
        """
        if path is None:
            path = self._resolve_config_path()

        config_path = Path(path)

        if not config_path.exists():
            if use_defaults:
                return self.load_defaults()
            raise create_error(
                "CONFIG_INVALID",
                detail=f"Configuration file not found: {config_path}",
            )

        try:
            with config_path.open() as f:
                data = yaml.safe_load(f) or {}
        except yaml.YAMLError as e:
            raise create_error(
                "CONFIG_INVALID",
                detail=f"Invalid YAML in config file: {e}",
            ) from e

        if not isinstance(data, dict):
            raise create_error("CONFIG_INVALID", detail="Configuration root must be a mapping")

        data = _resolve_env_vars_recursive(data)
        return self.load_from_dict(data, config_path)

    def load_defaults(self) -> GatewayConfig:
        """Load default configuration without a file."""
        return self.load_from_dict({})

    def load_from_dict(self, data: dict[str, Any], config_path: Path | None = None) -> GatewayConfig:
        """Load configuration from dictionary.

        Raises:
            GatewayError: If configuration is invalid
        """
        validation = self.validate(data)
        if not validation.valid:
            error_messages = [f"- {issue.path}: {issue.message}" for issue in validation.errors]
            raise create_error(
                "CONFIG_INVALID",
                detail="Configuration validation failed:\n" + "\n".join(error_messages),
            )

        try:
            config = self._dict_to_config(data)
        except (TypeError, ValueError) as e:
            raise create_error(
                "CONFIG_INVALID",
                detail=f"Failed to parse configuration: {e}",
            ) from e

        self._config = config
        self._config_path = config_path
        return config

    def validate(self, data: dict[str, Any]) -> ValidationResult:
        """Validate config data without loading."""
        errors: list[ValidationIssue] = []
        warnings: list[ValidationIssue] = []

        for key in data:
            if key not in VALID_SECTIONS:
                warnings.append(
                    ValidationIssue(
                        path=key,
                        message=f"Unknown configuration key: {key}",
                        severity="warning",
                    )
                )

        for section in VALID_SECTIONS:
            if section in data and not isinstance(data[section], dict):
                errors.append(ValidationIssue(path=section, message=f"{section} must be a dictionary"))

        server = data.get("server")
        if isinstance(server, dict) and "port" in server and not isinstance(server["port"], int):
            errors.append(ValidationIssue(path="server.port", message="port must be an integer"))

        store = data.get("store")
        if isinstance(store, dict):
            backend = store.get("backend")
            if backend is not None and backend not in {b.value for b in StoreBackend}:
                errors.append(
                    ValidationIssue(
                        path="store.backend",
                        message=f"backend must be one of: {', '.join(b.value for b in StoreBackend)}",
                    )
                )
            retries = store.get("retry_attempts")
            if retries is not None and (not isinstance(retries, int) or not 0 <= retries <= 1):
                errors.append(
                    ValidationIssue(path="store.retry_attempts", message="retry_attempts must be 0 or 1")
                )

        auth = data.get("auth")
        if isinstance(auth, dict):
            for key in ("default_key_expiry_days", "session_ttl_seconds"):
                if key in auth and not (isinstance(auth[key], int) and _positive_number(auth[key])):
                    errors.append(
                        ValidationIssue(path=f"auth.{key}", message=f"{key} must be a positive integer")
                    )
            prefix = auth.get("api_key_prefix")
            if prefix is not None and not re.fullmatch(r"[a-z0-9]{2,16}", str(prefix)):
                errors.append(
                    ValidationIssue(
                        path="auth.api_key_prefix",
                        message="api_key_prefix must be 2-16 lowercase alphanumeric characters",
                    )
                )

        bridge = data.get("bridge")
        if isinstance(bridge, dict):
            for key in ("heartbeat_interval", "max_lifetime"):
                if key in bridge and not _positive_number(bridge[key]):
                    errors.append(
                        ValidationIssue(path=f"bridge.{key}", message=f"{key} must be a positive number")
                    )

        return ValidationResult(valid=True, errors=errors, warnings=warnings)

    def get(self) -> GatewayConfig:
        """Get current configuration.

        Raises:
            GatewayError: If configuration not loaded
        """
        if self._config is None:
            raise create_error("CONFIG_INVALID", detail="Configuration not loaded")
        return self._config

    @property
    def config_path(self) -> Path | None:
        return self._config_path

    def _resolve_config_path(self) -> Path:
        env_path = os.environ.get(CONFIG_PATH_ENV)
        if env_path:
            return Path(env_path)

        local_path = Path("mcpgate.yaml")
        if local_path.exists():
            return local_path

        home_path = Path.home() / ".mcpgate" / "config.yaml"
        if home_path.exists():
            return home_path

        return local_path

    def _dict_to_config(self, data: dict[str, Any]) -> GatewayConfig:
        kwargs: dict[str, Any] = {}
        hints = typing.get_type_hints(GatewayConfig)

        for f in fields(GatewayConfig):
            if f.name in data:
                kwargs[f.name] = self._convert_field(hints[f.name], data[f.name])

        return GatewayConfig(**kwargs)

    def _convert_field(self, field_type: Any, value: Any) -> Any:
        """Convert field value to appropriate type (dataclasses, enums, lists, dicts)."""
        if value is None:
            return None

        origin = typing.get_origin(field_type)

        # Optional[X] / X | None
        if origin in (typing.Union, types.UnionType):
            args = [a for a in typing.get_args(field_type) if a is not type(None)]
            if len(args) == 1:
                return self._convert_field(args[0], value)
            return value

        if origin is list:
            if not isinstance(value, list):
                return value
            args = typing.get_args(field_type)
            if args:
                return [self._convert_field(args[0], item) for item in value]
            return value

        if origin is dict:
            if not isinstance(value, dict):
                return value
            args = typing.get_args(field_type)
            if args and len(args) == 2:
                return {k: self._convert_field(args[1], v) for k, v in value.items()}
            return value

        if hasattr(field_type, "__dataclass_fields__"):
            if isinstance(value, dict):
                hints = typing.get_type_hints(field_type)
                kwargs = {}
                for f in fields(field_type):
                    if f.name in value:
                        kwargs[f.name] = self._convert_field(hints[f.name], value[f.name])
                return field_type(**kwargs)
            return value

        if isinstance(field_type, type) and issubclass(field_type, Enum):
            if isinstance(value, str):
                return field_type(value)
            return value

        if field_type is float and isinstance(value, int) and not isinstance(value, bool):
            return float(value)

        return value
