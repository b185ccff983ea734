# -------------------------------------------------------------------------------------------------
#  Copyright (C) 2015-2025 Nautech Systems Pty Ltd. All rights reserved.
#  https://nautechsystems.io
#
#  Licensed under the GNU Lesser General Public License Version 3.0 (the "License");
#  You may not use this file except in compliance with the License.
#  You may obtain a copy of the License at https://www.gnu.org/licenses/lgpl-3.0.en.html
#
#  Unless required by applicable law or agreed to in writing, software
#  distributed under the License is distributed on an "AS IS" BASIS,
#  WITHOUT WARRANTIES OR CONDITIONS OF ANY KIND, either express or implied.
#  See the License for the specific language governing permissions and
#  limitations under the License.
# -------------------------------------------------------------------------------------------------
"""
Configuration for the application context.

Configuration tunes container behaviour only. Beans are never declared here.
"""

import json
import os
from dataclasses import asdict, dataclass, field
from enum import Enum
from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple, Union

import yaml
from nautilus_trader.common.component import Logger

from beanpod.events import EventLevel
from beanpod.exceptions import ConfigurationError


DEFAULT_ENV_PREFIX = "BEANPOD_"


class LogLevel(str, Enum):
    """Event logging levels."""
    DEBUG = "debug"
    INFO = "info"
    WARNING = "warning"
    ERROR = "error"
    OFF = "off"

    def to_event_level(self) -> EventLevel:
        return EventLevel[self.name]


class SinkKind(str, Enum):
    """Where lifecycle events are delivered."""
    LOGGER = "logger"
    CONSOLE = "console"
    NONE = "none"


@dataclass
class InjectionConfig:
    """Injection configuration."""

    # Raise on unresolved non-optional fields instead of only reporting them
    strict: bool = False


@dataclass
class LifecycleConfig:
    """Lifecycle hook configuration."""

    # Conventional custom hook names, first match wins
    init_method_names: List[str] = field(default_factory=lambda: [
        "initialize",
        "after_properties_set",
    ])
    destroy_method_names: List[str] = field(default_factory=lambda: [
        "close",
        "cleanup",
    ])


@dataclass
class LoggingConfig:
    """Event logging configuration."""

    level: LogLevel = LogLevel.INFO
    sink: SinkKind = SinkKind.LOGGER

    def __post_init__(self) -> None:
        if isinstance(self.level, str) and not isinstance(self.level, LogLevel):
            self.level = LogLevel(self.level.lower())
        if isinstance(self.sink, str) and not isinstance(self.sink, SinkKind):
            self.sink = SinkKind(self.sink.lower())


@dataclass
class ValidationConfig:
    """Dependency graph validation configuration."""

    enable_graph_validation: bool = True
    fail_on_errors: bool = False


@dataclass
class ContextConfig:
    """Complete configuration for an application context."""

    context_name: str = "default"
    description: Optional[str] = None

    injection: InjectionConfig = field(default_factory=InjectionConfig)
    lifecycle: LifecycleConfig = field(default_factory=LifecycleConfig)
    logging: LoggingConfig = field(default_factory=LoggingConfig)
    validation: ValidationConfig = field(default_factory=ValidationConfig)

    enable_env_overrides: bool = True
    env_prefix: str = DEFAULT_ENV_PREFIX

    @classmethod
    def from_file(cls, config_path: Union[str, Path]) -> "ContextConfig":
        """
        Load configuration from file.

        Parameters
        ----------
        config_path : str or Path
            Path to configuration file (JSON or YAML)

        Returns
        -------
        ContextConfig
            Loaded configuration

        Raises
        ------
        ConfigurationError
            If file cannot be loaded or parsed
        """
        path = Path(config_path)

        if not path.exists():
            raise ConfigurationError(
                f"Configuration file not found: {config_path}",
                suggestion="Check the file path and ensure the file exists",
            )

        suffix = path.suffix.lower()
        if suffix not in (".json", ".yml", ".yaml"):
            raise ConfigurationError(
                f"Unsupported configuration file format: {path.suffix}",
                suggestion="Use .json, .yml, or .yaml files",
            )

        try:
            with open(path, "r", encoding="utf-8") as f:
                if suffix == ".json":
                    data = json.load(f)
                else:
                    data = yaml.safe_load(f)
        except (json.JSONDecodeError, yaml.YAMLError) as e:
            raise ConfigurationError(
                f"Failed to parse configuration file '{config_path}': {e}",
                suggestion="Check file syntax and format",
            ) from e
        except OSError as e:
            raise ConfigurationError(
                f"Failed to load configuration from '{config_path}': {e}",
                suggestion="Check file permissions and content",
            ) from e

        return cls.from_dict(data or {})

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "ContextConfig":
        """
        Create configuration from dictionary.

        Parameters
        ----------
        data : Dict[str, Any]
            Configuration data, not modified

        Returns
        -------
        ContextConfig
            Configuration instance
        """
        data = dict(data)
        sections = {
            "injection": InjectionConfig,
            "lifecycle": LifecycleConfig,
            "logging": LoggingConfig,
            "validation": ValidationConfig,
        }

        kwargs: Dict[str, Any] = {}
        for key, section_cls in sections.items():
            try:
                kwargs[key] = section_cls(**(data.pop(key, None) or {}))
            except (TypeError, ValueError) as e:
                raise ConfigurationError(
                    f"Invalid '{key}' configuration section: {e}",
                    suggestion=f"Check the keys and values of the '{key}' section",
                ) from e

        unknown = set(data) - {"context_name", "description", "enable_env_overrides", "env_prefix"}
        if unknown:
            raise ConfigurationError(
                f"Unknown configuration keys: {', '.join(sorted(unknown))}",
                suggestion="Remove the keys or move them into a configuration section",
            )

        return cls(
            context_name=data.get("context_name", "default"),
            description=data.get("description"),
            enable_env_overrides=data.get("enable_env_overrides", True),
            env_prefix=data.get("env_prefix", DEFAULT_ENV_PREFIX),
            **kwargs,
        )

    @classmethod
    def from_environment(cls, prefix: str = DEFAULT_ENV_PREFIX) -> "ContextConfig":
        """Create default configuration with environment overrides applied."""
        config = cls(env_prefix=prefix)
        config._apply_environment_overrides(prefix)
        return config

    def to_dict(self) -> Dict[str, Any]:
        """Convert configuration to a plain dictionary."""
        return asdict(self, dict_factory=_plain_dict)

    def to_file(self, config_path: Union[str, Path], format: str = "yaml") -> None:
        """
        Save configuration to file.

        Parameters
        ----------
        config_path : str or Path
            Output file path
        format : str
            Output format: 'json' or 'yaml'
        """
        path = Path(config_path)
        data = self.to_dict()

        path.parent.mkdir(parents=True, exist_ok=True)

        with open(path, "w", encoding="utf-8") as f:
            if format.lower() == "json":
                json.dump(data, f, indent=2)
            elif format.lower() in ("yml", "yaml"):
                yaml.safe_dump(data, f, default_flow_style=False, allow_unicode=True)
            else:
                raise ValueError(f"Unsupported format: {format}")

    def apply_environment_overrides(self, prefix: Optional[str] = None) -> None:
        """
        Apply environment variable overrides.

        Parameters
        ----------
        prefix : str, optional
            Environment variable prefix (uses config default if not provided)
        """
        if not self.enable_env_overrides:
            return

        self._apply_environment_overrides(prefix or self.env_prefix)

    def _apply_environment_overrides(self, prefix: str) -> None:
        logger = Logger(self.__class__.__name__)

        env_mappings: Dict[str, Tuple[str, str, Any]] = {
            f"{prefix}INJECTION_STRICT": ("injection", "strict", bool),
            f"{prefix}LOGGING_LEVEL": ("logging", "level", LogLevel),
            f"{prefix}LOGGING_SINK": ("logging", "sink", SinkKind),
            f"{prefix}VALIDATION_ENABLE_GRAPH": ("validation", "enable_graph_validation", bool),
            f"{prefix}VALIDATION_FAIL_ON_ERRORS": ("validation", "fail_on_errors", bool),
            f"{prefix}LIFECYCLE_INIT_METHODS": ("lifecycle", "init_method_names", list),
            f"{prefix}LIFECYCLE_DESTROY_METHODS": ("lifecycle", "destroy_method_names", list),
        }

        for env_var, (section, field_name, type_func) in env_mappings.items():
            value = os.environ.get(env_var)
            if value is None:
                continue
            try:
                if type_func is bool:
                    converted: Any = value.lower() in ("true", "1", "yes", "on")
                elif type_func is list:
                    converted = [part.strip() for part in value.split(",") if part.strip()]
                else:
                    converted = type_func(value.lower())

                setattr(getattr(self, section), field_name, converted)
                logger.debug(f"Applied environment override: {env_var} = {converted}")

            except (ValueError, TypeError) as e:
                logger.warning(f"Invalid environment variable value {env_var}={value}: {e}")

    def validate(self) -> List[str]:
        """
        Validate configuration.

        Returns
        -------
        List[str]
            List of validation errors (empty if valid)
        """
        errors = []

        if not self.context_name:
            errors.append("Context: context_name must not be empty")

        for method_name in self.lifecycle.init_method_names + self.lifecycle.destroy_method_names:
            if not method_name.isidentifier():
                errors.append(f"Lifecycle: '{method_name}' is not a valid method name")

        reserved = {"init", "post_construct", "pre_destroy", "destroy", "set_bean_name"}
        overlap = reserved & set(self.lifecycle.init_method_names + self.lifecycle.destroy_method_names)
        if overlap:
            errors.append(
                f"Lifecycle: custom hook names collide with standard hooks: {', '.join(sorted(overlap))}"
            )

        if self.validation.fail_on_errors and not self.validation.enable_graph_validation:
            errors.append("Validation: fail_on_errors requires enable_graph_validation")

        return errors

    def merge(self, other: "ContextConfig") -> "ContextConfig":
        """
        Merge with another configuration.

        Values that `other` sets away from the defaults win. Values it leaves
        at their defaults keep the value from this configuration.

        Parameters
        ----------
        other : ContextConfig
            Configuration to merge

        Returns
        -------
        ContextConfig
            Merged configuration
        """
        def changed(values: Dict, defaults: Dict) -> Dict:
            result = {}
            for key, value in values.items():
                default = defaults.get(key)
                if isinstance(value, dict) and isinstance(default, dict):
                    nested = changed(value, default)
                    if nested:
                        result[key] = nested
                elif value != default:
                    result[key] = value
            return result

        def deep_merge(dict1: Dict, dict2: Dict) -> Dict:
            result = dict1.copy()
            for key, value in dict2.items():
                if key in result and isinstance(result[key], dict) and isinstance(value, dict):
                    result[key] = deep_merge(result[key], value)
                else:
                    result[key] = value
            return result

        overrides = changed(other.to_dict(), ContextConfig().to_dict())
        return ContextConfig.from_dict(deep_merge(self.to_dict(), overrides))


def load_config(
    config_path: Optional[Union[str, Path]] = None,
    config_dict: Optional[Dict[str, Any]] = None,
    apply_env_overrides: bool = True,
) -> ContextConfig:
    """
    Load, override and validate a configuration.

    Raises
    ------
    ConfigurationError
        If the resulting configuration is invalid
    """
    if config_path:
        config = ContextConfig.from_file(config_path)
    elif config_dict:
        config = ContextConfig.from_dict(config_dict)
    else:
        config = ContextConfig()

    if apply_env_overrides:
        config.apply_environment_overrides()

    errors = config.validate()
    if errors:
        raise ConfigurationError(
            f"Configuration validation failed: {'; '.join(errors)}",
            suggestion="Review and fix configuration errors",
        )

    return config


def _plain_dict(items: List[Tuple[str, Any]]) -> Dict[str, Any]:
    return {key: value.value if isinstance(value, Enum) else value for key, value in items}
