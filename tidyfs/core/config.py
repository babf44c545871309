"""Configuration management for TidyFS."""

import json
import logging
from dataclasses import dataclass, field, replace, asdict
from pathlib import Path
from typing import Dict, Any, List, Optional, Tuple

import click

from .exceptions import ConfigurationError, ValidationError

APP_NAME = "tidyfs"
ORGANIZATION_METHODS = ("type", "date", "ext")
MAX_RECENT_DIRECTORIES = 10


def default_config_dir() -> Path:
    """Per-user configuration directory."""
    return Path(click.get_app_dir(APP_NAME))


@dataclass(frozen=True)
class LoggingConfig:
    """Logging configuration settings."""
    level: str = "WARNING"
    format: str = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
    file_enabled: bool = False
    file_path: Optional[Path] = None
    file_max_size_mb: int = 10
    file_backup_count: int = 5
    console_enabled: bool = True

    def __post_init__(self):
        for name in ("level", "format"):
            if not isinstance(getattr(self, name), str):
                raise ConfigurationError(f"'logging.{name}' must be a string")
        for name in ("file_enabled", "console_enabled"):
            if not isinstance(getattr(self, name), bool):
                raise ConfigurationError(f"'logging.{name}' must be true or false")
        for name in ("file_max_size_mb", "file_backup_count"):
            value = getattr(self, name)
            # bool is an int subclass
            if isinstance(value, bool) or not isinstance(value, int) or value < 0:
                raise ConfigurationError(f"'logging.{name}' must be a non-negative integer")

        if self.file_path is None:
            object.__setattr__(self, "file_path", default_config_dir() / "logs" / "tidyfs.log")
        elif isinstance(self.file_path, str):
            object.__setattr__(self, "file_path", Path(self.file_path))
        elif not isinstance(self.file_path, Path):
            raise ConfigurationError("'logging.file_path' must be a string")


@dataclass(frozen=True)
class TidyConfig:
    """Read-only configuration snapshot for a single invocation."""
    ignore_patterns: Tuple[str, ...] = (".git", "node_modules")
    custom_categories: Dict[str, Tuple[str, ...]] = field(default_factory=dict)
    default_organization: str = "type"
    recent_directories: Tuple[str, ...] = ()
    hash_workers: Optional[int] = None
    logging: LoggingConfig = field(default_factory=LoggingConfig)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "TidyConfig":
        """
        Build a configuration from a decoded JSON document.

        Raises:
            ConfigurationError: If a field has the wrong shape
        """
        if not isinstance(data, dict):
            raise ConfigurationError("Configuration root must be a JSON object")

        defaults = cls()
        try:
            ignore_patterns = tuple(str(p) for p in _as_list(data, "ignore_patterns", defaults.ignore_patterns))

            raw_categories = data.get("custom_categories", {})
            if not isinstance(raw_categories, dict):
                raise ConfigurationError("'custom_categories' must be an object")
            custom_categories = {
                str(name): tuple(str(e) for e in _as_list(raw_categories, name, ()))
                for name in raw_categories
            }

            default_organization = str(data.get("default_organization", defaults.default_organization))
            if default_organization not in ORGANIZATION_METHODS:
                raise ConfigurationError(f"Unknown default organization method: {default_organization}")

            recent = tuple(str(d) for d in _as_list(data, "recent_directories", ()))

            hash_workers = data.get("hash_workers")
            if hash_workers is not None:
                hash_workers = int(hash_workers)
                if hash_workers < 1:
                    raise ConfigurationError("'hash_workers' must be at least 1")

            log_data = data.get("logging", {})
            if not isinstance(log_data, dict):
                raise ConfigurationError("'logging' must be an object")
            known = set(LoggingConfig.__dataclass_fields__)
            logging_config = LoggingConfig(**{k: v for k, v in log_data.items() if k in known})
        except (TypeError, ValueError) as e:
            raise ConfigurationError(f"Invalid configuration value: {e}")

        return cls(
            ignore_patterns=ignore_patterns,
            custom_categories=custom_categories,
            default_organization=default_organization,
            recent_directories=recent,
            hash_workers=hash_workers,
            logging=logging_config,
        )

    def to_dict(self) -> Dict[str, Any]:
        logging_dict = asdict(self.logging)
        logging_dict["file_path"] = str(self.logging.file_path)
        return {
            "ignore_patterns": list(self.ignore_patterns),
            "custom_categories": {name: list(exts) for name, exts in self.custom_categories.items()},
            "default_organization": self.default_organization,
            "recent_directories": list(self.recent_directories),
            "hash_workers": self.hash_workers,
            "logging": logging_dict,
        }


def _as_list(data: Dict[str, Any], key: str, default) -> List[Any]:
    value = data.get(key, default)
    if not isinstance(value, (list, tuple)):
        raise ConfigurationError(f"'{key}' must be a list")
    return list(value)


def parse_category_definition(definition: str) -> Tuple[str, Tuple[str, ...]]:
    """
    Parse a ``NAME:EXT1,EXT2`` category definition.

    Raises:
        ValidationError: If the definition is malformed or lists no extensions
    """
    if ":" not in definition:
        raise ValidationError("Invalid category format. Use 'category:ext1,ext2'")

    name, _, ext_part = definition.partition(":")
    name = name.strip()
    if not name:
        raise ValidationError("Category name must not be empty")

    extensions = []
    for ext in ext_part.split(","):
        ext = ext.strip().lower().lstrip(".")
        if ext and ext not in extensions:
            extensions.append(ext)
    if not extensions:
        raise ValidationError("No extensions specified for category")

    return name, tuple(extensions)


class ConfigManager:
    """Loads the persisted configuration and writes new snapshots back."""

    def __init__(self, config_file: Optional[Path] = None):
        """
        Initialize configuration manager.

        Args:
            config_file: Path to configuration file. If None, uses default location.
        """
        if config_file is None:
            config_file = default_config_dir() / "config.json"

        self.config_file = Path(config_file)
        self.config = TidyConfig()
        self.load_error: Optional[ConfigurationError] = None
        self.logger = logging.getLogger(__name__)

        if self.config_file.exists():
            self.load_from_file()

    def load_from_file(self) -> None:
        """Load configuration from the JSON file, falling back to defaults on error."""
        try:
            with open(self.config_file, "r", encoding="utf-8") as f:
                data = json.load(f)
            self.config = TidyConfig.from_dict(data)
            self.load_error = None
            self.logger.info(f"Configuration loaded from {self.config_file}")
        except (OSError, json.JSONDecodeError, ConfigurationError) as e:
            self.load_error = e if isinstance(e, ConfigurationError) else ConfigurationError(str(e))
            self.config = TidyConfig()
            self.logger.warning(f"Error loading configuration from {self.config_file}: {e}; using defaults")

    def save_to_file(self) -> None:
        """Save the current snapshot to the JSON file."""
        try:
            self.config_file.parent.mkdir(parents=True, exist_ok=True)
            with open(self.config_file, "w", encoding="utf-8") as f:
                json.dump(self.config.to_dict(), f, indent=2)
            self.logger.info(f"Configuration saved to {self.config_file}")
        except OSError as e:
            self.logger.error(f"Error saving configuration to {self.config_file}: {e}")
            raise ConfigurationError(f"Could not save configuration: {e}")

    def get_config(self) -> TidyConfig:
        """Get the current configuration."""
        return self.config

    def _commit(self, config: TidyConfig) -> TidyConfig:
        self.config = config
        self.save_to_file()
        return config

    def add_ignore_pattern(self, pattern: str) -> bool:
        """Add an ignore pattern. Returns False if it was already present."""
        if pattern in self.config.ignore_patterns:
            return False
        self._commit(replace(self.config, ignore_patterns=self.config.ignore_patterns + (pattern,)))
        return True

    def remove_ignore_pattern(self, pattern: str) -> bool:
        """Remove an ignore pattern. Returns False if it was not present."""
        if pattern not in self.config.ignore_patterns:
            return False
        remaining = tuple(p for p in self.config.ignore_patterns if p != pattern)
        self._commit(replace(self.config, ignore_patterns=remaining))
        return True

    def add_category(self, name: str, extensions: Tuple[str, ...]) -> TidyConfig:
        """Register a custom category; re-registering moves it to the end."""
        categories = {k: v for k, v in self.config.custom_categories.items() if k != name}
        categories[name] = tuple(extensions)
        return self._commit(replace(self.config, custom_categories=categories))

    def set_default_organization(self, method: str) -> TidyConfig:
        if method not in ORGANIZATION_METHODS:
            raise ValidationError(
                f"Invalid organization method '{method}'. Use one of: {', '.join(ORGANIZATION_METHODS)}"
            )
        return self._commit(replace(self.config, default_organization=method))

    def record_recent_directory(self, directory: Path) -> TidyConfig:
        """Put a directory at the front of the recent list, keeping the newest ten."""
        entry = str(Path(directory).resolve())
        recent = (entry,) + tuple(d for d in self.config.recent_directories if d != entry)
        return self._commit(replace(self.config, recent_directories=recent[:MAX_RECENT_DIRECTORIES]))

    def reset_to_defaults(self) -> None:
        """Reset configuration to default values."""
        self._commit(TidyConfig())
        self.logger.info("Configuration reset to defaults")


# Global configuration instance
_config_manager = None


def get_config() -> TidyConfig:
    """Get the global configuration snapshot."""
    return get_config_manager().get_config()


def get_config_manager() -> ConfigManager:
    """Get the global configuration manager."""
    global _config_manager
    if _config_manager is None:
        _config_manager = ConfigManager()
    return _config_manager


def setup_config(config_file: Optional[Path] = None) -> ConfigManager:
    """
    Set up global configuration.

    Args:
        config_file: Optional path to configuration file

    Returns:
        ConfigManager instance
    """
    global _config_manager
    _config_manager = ConfigManager(config_file)
    return _config_manager
