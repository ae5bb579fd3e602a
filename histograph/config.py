"""Configuration models and loading for histograph."""

import os
import json
import logging
from pathlib import Path
from typing import Optional, Dict, Any, Literal

from pydantic import BaseModel, ConfigDict, Field, ValidationError

from .errors import ConfigurationError

logger = logging.getLogger(__name__)


class ConfigSection(BaseModel):
    """Base for config sections; unknown keys are rejected."""

    model_config = ConfigDict(extra="forbid")


class AnalyticsConfig(ConfigSection):
    """Settings for the enrichment algorithms."""

    pagerank_damping: float = Field(default=0.85, gt=0.0, lt=1.0)
    pagerank_iterations: int = Field(default=20, ge=1)
    balance_node_cap: int = Field(default=300, ge=3)
    modularity_method: Literal["estimate", "partition"] = "estimate"
    modularity_seed: Optional[int] = None


class DeduplicationConfig(ConfigSection):
    """Duplicate detection thresholds and embedding settings."""

    lexical_threshold: float = Field(default=0.7, ge=0.0, le=1.0)
    semantic_threshold: float = Field(default=0.88, ge=0.0, le=1.0)
    semantic_node_limit: int = Field(default=30, ge=0)
    embedding_timeout: Optional[float] = Field(default=None, gt=0.0)
    embedding_cache_size: Optional[int] = Field(default=None, ge=1)


class StorageConfig(ConfigSection):
    """Snapshot persistence configuration."""

    snapshot_path: str = "data/graph_snapshot.json"


class LoggingConfig(ConfigSection):
    """Logging configuration."""

    format: Literal["text", "json"] = "text"
    level: str = "INFO"
    log_file: Optional[str] = None


class HistographConfig(ConfigSection):
    """Main configuration."""

    analytics: AnalyticsConfig = Field(default_factory=AnalyticsConfig)
    deduplication: DeduplicationConfig = Field(default_factory=DeduplicationConfig)
    storage: StorageConfig = Field(default_factory=StorageConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "HistographConfig":
        """Build a validated config from a nested dictionary.

        Raises:
            ConfigurationError: Keyed by the dotted path of the first invalid value
        """
        try:
            return cls.model_validate(data)
        except ValidationError as e:
            first = e.errors()[0]
            key = ".".join(str(part) for part in first["loc"]) or "config"
            raise ConfigurationError(first["msg"], key=key) from e

    def to_dict(self) -> Dict[str, Any]:
        return self.model_dump()


class ConfigManager:
    """Manages configuration loading and validation."""

    DEFAULT_CONFIG = HistographConfig().to_dict()

    def __init__(self, config_path: Optional[str] = None):
        """Initialize config manager.

        Args:
            config_path: Path to config file. If None, uses defaults + env vars
        """
        self.config_path = Path(config_path) if config_path else None
        self._config: Optional[HistographConfig] = None

    def load(self) -> HistographConfig:
        """Load configuration from file and environment."""
        if self._config:
            return self._config

        config_dict = json.loads(json.dumps(self.DEFAULT_CONFIG))

        if self.config_path and self.config_path.exists():
            try:
                with open(self.config_path, "r") as f:
                    file_config = json.load(f)
            except json.JSONDecodeError as e:
                raise ConfigurationError(
                    f"Invalid JSON in {self.config_path}: {e}", key="config_path"
                ) from e
            config_dict = self._deep_merge(config_dict, file_config)
            logger.debug(f"Loaded configuration from {self.config_path}")

        config_dict = self._apply_env_overrides(config_dict)

        self._config = HistographConfig.from_dict(config_dict)
        return self._config

    def _deep_merge(self, base: Dict[str, Any], update: Dict[str, Any]) -> Dict[str, Any]:
        """Deep merge two dictionaries."""
        result = base.copy()

        for key, value in update.items():
            if key in result and isinstance(result[key], dict) and isinstance(value, dict):
                result[key] = self._deep_merge(result[key], value)
            else:
                result[key] = value

        return result

    def _apply_env_overrides(self, config: Dict[str, Any]) -> Dict[str, Any]:
        """Apply environment variable overrides."""
        snapshot_path = os.getenv("HISTOGRAPH_SNAPSHOT_PATH")
        if snapshot_path:
            config.setdefault("storage", {})["snapshot_path"] = snapshot_path

        log_level = os.getenv("HISTOGRAPH_LOG_LEVEL")
        if log_level:
            config.setdefault("logging", {})["level"] = log_level.upper()

        log_format = os.getenv("HISTOGRAPH_LOG_FORMAT")
        if log_format:
            config.setdefault("logging", {})["format"] = log_format.lower()

        node_cap = os.getenv("HISTOGRAPH_BALANCE_NODE_CAP")
        if node_cap:
            config.setdefault("analytics", {})["balance_node_cap"] = self._parse_int(
                node_cap, "HISTOGRAPH_BALANCE_NODE_CAP"
            )

        seed = os.getenv("HISTOGRAPH_MODULARITY_SEED")
        if seed:
            config.setdefault("analytics", {})["modularity_seed"] = self._parse_int(
                seed, "HISTOGRAPH_MODULARITY_SEED"
            )

        return config

    @staticmethod
    def _parse_int(value: str, key: str) -> int:
        try:
            return int(value)
        except ValueError as e:
            raise ConfigurationError(f"expected an integer, got {value!r}", key=key) from e

    def save_template(self, path: str):
        """Save a configuration template file."""
        with open(path, "w") as f:
            json.dump(self.DEFAULT_CONFIG, f, indent=2)

        logger.info(f"Configuration template saved to: {path}")

    @property
    def config(self) -> HistographConfig:
        """Get the loaded configuration."""
        if not self._config:
            self._config = self.load()
        return self._config
