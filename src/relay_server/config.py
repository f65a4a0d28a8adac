"""
Server configuration management.

This module handles loading and accessing server configuration from multiple sources
with a clear priority order:

    1. Environment variables (highest priority) - for containerized deployments
    2. Config file (config/server.ini) - for static deployments
    3. Built-in defaults (lowest priority) - sensible fallbacks

Configuration is loaded once at module import time and cached. The ServerConfig
dataclass provides typed access to all settings.

Usage:
    from relay_server.config import config

    print(config.server.port)
    print(config.history.capacity)

Environment Variable Mapping:
    CHAT_HOST                  -> server.host
    PORT / CHAT_PORT           -> server.port
    CHAT_CORS_ORIGINS          -> server.cors_origins
    CHAT_STORAGE_BACKEND       -> storage.backend
    REDIS_URL                  -> storage.redis_url
    CHAT_HISTORY_LIMIT         -> history.capacity
    CHAT_REPLAY_LIMIT          -> history.replay_limit
    CHAT_TRANSLATION_ENABLED   -> translation.enabled
    CHAT_TRANSLATION_BACKEND   -> translation.backend
    CHAT_TRANSLATION_URL       -> translation.base_url
    CHAT_TRANSLATION_MODEL     -> translation.model
    CHAT_TRANSLATION_API_KEY   -> translation.api_key
    CHAT_TRANSLATION_TIMEOUT   -> translation.timeout_seconds
    CHAT_LOG_LEVEL             -> logging.level
"""

import configparser
import logging
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Literal

logger = logging.getLogger(__name__)

# =============================================================================
# PATH CONFIGURATION
# =============================================================================

# Project root directory (contains src/, config/)
PROJECT_ROOT = Path(__file__).parent.parent.parent

CONFIG_DIR = PROJECT_ROOT / "config"
CONFIG_FILE = CONFIG_DIR / "server.ini"
CONFIG_EXAMPLE = CONFIG_DIR / "server.example.ini"


# =============================================================================
# CONFIGURATION DATACLASSES
# =============================================================================


@dataclass
class ServerSettings:
    """Network server configuration."""

    host: str = "0.0.0.0"  # nosec B104 - intentional for server binding
    port: int = 3000
    cors_origins: list[str] = field(default_factory=lambda: ["*"])


@dataclass
class StorageSettings:
    """Key-value storage backend configuration."""

    backend: Literal["redis", "memory"] = "redis"
    redis_url: str = "redis://127.0.0.1:6379"
    key_prefix: str = "chat"


@dataclass
class HistorySettings:
    """Per-room message history bounds."""

    capacity: int = 200
    replay_limit: int = 50


@dataclass
class TranslationSettings:
    """Machine-translation backend configuration."""

    enabled: bool = True
    backend: Literal["ollama", "libretranslate"] = "ollama"
    base_url: str = "http://localhost:11434"
    model: str = "gemma2:2b"
    api_key: str = ""
    timeout_seconds: float = 10.0
    max_output_chars: int = 1000


@dataclass
class LoggingSettings:
    """Logging configuration."""

    level: str = "INFO"
    format: Literal["simple", "detailed"] = "detailed"


@dataclass
class ServerConfig:
    """
    Complete server configuration.

    This is the main configuration object that aggregates all settings sections.
    Access via the module-level `config` singleton, or build one explicitly
    with `load_config()` and hand it to `create_app()`.
    """

    server: ServerSettings = field(default_factory=ServerSettings)
    storage: StorageSettings = field(default_factory=StorageSettings)
    history: HistorySettings = field(default_factory=HistorySettings)
    translation: TranslationSettings = field(default_factory=TranslationSettings)
    logging: LoggingSettings = field(default_factory=LoggingSettings)


# =============================================================================
# CONFIGURATION LOADING
# =============================================================================


def _parse_bool(value: str) -> bool:
    """Parse a string value to boolean."""
    return value.lower() in ("true", "yes", "1", "on", "enabled")


def _parse_list(value: str) -> list[str]:
    """Parse a comma-separated string to list, stripping whitespace."""
    if not value or value.strip() == "":
        return []
    return [item.strip() for item in value.split(",") if item.strip()]


def _parse_int(value: str, current: int, *, name: str) -> int:
    """Parse an integer, keeping ``current`` when the value is malformed."""
    try:
        return int(value)
    except ValueError:
        logger.warning("config: ignoring non-integer value for %s: %r", name, value)
        return current


def _parse_float(value: str, current: float, *, name: str) -> float:
    """Parse a float, keeping ``current`` when the value is malformed."""
    try:
        return float(value)
    except ValueError:
        logger.warning("config: ignoring non-numeric value for %s: %r", name, value)
        return current


def _load_from_ini(parser: configparser.ConfigParser, cfg: ServerConfig) -> None:
    """Load configuration from parsed INI file into ServerConfig."""
    # Server section
    if parser.has_section("server"):
        if parser.has_option("server", "host"):
            cfg.server.host = parser.get("server", "host")
        if parser.has_option("server", "port"):
            cfg.server.port = _parse_int(
                parser.get("server", "port"), cfg.server.port, name="server.port"
            )
        if parser.has_option("server", "cors_origins"):
            cfg.server.cors_origins = _parse_list(parser.get("server", "cors_origins"))

    # Storage section
    if parser.has_section("storage"):
        if parser.has_option("storage", "backend"):
            val = parser.get("storage", "backend").lower()
            if val in ("redis", "memory"):
                cfg.storage.backend = val  # type: ignore[assignment]
        if parser.has_option("storage", "redis_url"):
            cfg.storage.redis_url = parser.get("storage", "redis_url")
        if parser.has_option("storage", "key_prefix"):
            cfg.storage.key_prefix = parser.get("storage", "key_prefix")

    # History section
    if parser.has_section("history"):
        if parser.has_option("history", "capacity"):
            cfg.history.capacity = _parse_int(
                parser.get("history", "capacity"), cfg.history.capacity, name="history.capacity"
            )
        if parser.has_option("history", "replay_limit"):
            cfg.history.replay_limit = _parse_int(
                parser.get("history", "replay_limit"),
                cfg.history.replay_limit,
                name="history.replay_limit",
            )

    # Translation section
    if parser.has_section("translation"):
        if parser.has_option("translation", "enabled"):
            cfg.translation.enabled = _parse_bool(parser.get("translation", "enabled"))
        if parser.has_option("translation", "backend"):
            val = parser.get("translation", "backend").lower()
            if val in ("ollama", "libretranslate"):
                cfg.translation.backend = val  # type: ignore[assignment]
        if parser.has_option("translation", "base_url"):
            cfg.translation.base_url = parser.get("translation", "base_url")
        if parser.has_option("translation", "model"):
            cfg.translation.model = parser.get("translation", "model")
        if parser.has_option("translation", "api_key"):
            cfg.translation.api_key = parser.get("translation", "api_key")
        if parser.has_option("translation", "timeout_seconds"):
            cfg.translation.timeout_seconds = _parse_float(
                parser.get("translation", "timeout_seconds"),
                cfg.translation.timeout_seconds,
                name="translation.timeout_seconds",
            )
        if parser.has_option("translation", "max_output_chars"):
            cfg.translation.max_output_chars = _parse_int(
                parser.get("translation", "max_output_chars"),
                cfg.translation.max_output_chars,
                name="translation.max_output_chars",
            )

    # Logging section
    if parser.has_section("logging"):
        if parser.has_option("logging", "level"):
            cfg.logging.level = parser.get("logging", "level").upper()
        if parser.has_option("logging", "format"):
            val = parser.get("logging", "format").lower()
            if val in ("simple", "detailed"):
                cfg.logging.format = val  # type: ignore[assignment]


def _apply_env_overrides(cfg: ServerConfig) -> None:
    """Apply environment variable overrides to configuration."""
    # Server settings
    if env_host := os.getenv("CHAT_HOST"):
        cfg.server.host = env_host
    # PORT is honoured for PaaS-style deployments; CHAT_PORT wins when both are set.
    for name in ("PORT", "CHAT_PORT"):
        if env_port := os.getenv(name):
            cfg.server.port = _parse_int(env_port, cfg.server.port, name=name)
    if env_cors := os.getenv("CHAT_CORS_ORIGINS"):
        cfg.server.cors_origins = _parse_list(env_cors)

    # Storage settings
    if env_backend := os.getenv("CHAT_STORAGE_BACKEND"):
        if env_backend.lower() in ("redis", "memory"):
            cfg.storage.backend = env_backend.lower()  # type: ignore[assignment]
    if env_redis := os.getenv("REDIS_URL"):
        cfg.storage.redis_url = env_redis

    # History settings
    if env_limit := os.getenv("CHAT_HISTORY_LIMIT"):
        cfg.history.capacity = _parse_int(env_limit, cfg.history.capacity, name="CHAT_HISTORY_LIMIT")
    if env_replay := os.getenv("CHAT_REPLAY_LIMIT"):
        cfg.history.replay_limit = _parse_int(
            env_replay, cfg.history.replay_limit, name="CHAT_REPLAY_LIMIT"
        )

    # Translation settings
    if env_enabled := os.getenv("CHAT_TRANSLATION_ENABLED"):
        cfg.translation.enabled = _parse_bool(env_enabled)
    if env_tbackend := os.getenv("CHAT_TRANSLATION_BACKEND"):
        if env_tbackend.lower() in ("ollama", "libretranslate"):
            cfg.translation.backend = env_tbackend.lower()  # type: ignore[assignment]
    if env_url := os.getenv("CHAT_TRANSLATION_URL"):
        cfg.translation.base_url = env_url
    if env_model := os.getenv("CHAT_TRANSLATION_MODEL"):
        cfg.translation.model = env_model
    if env_key := os.getenv("CHAT_TRANSLATION_API_KEY"):
        cfg.translation.api_key = env_key
    if env_timeout := os.getenv("CHAT_TRANSLATION_TIMEOUT"):
        cfg.translation.timeout_seconds = _parse_float(
            env_timeout, cfg.translation.timeout_seconds, name="CHAT_TRANSLATION_TIMEOUT"
        )

    # Logging settings
    if env_log := os.getenv("CHAT_LOG_LEVEL"):
        cfg.logging.level = env_log.upper()


def _normalize(cfg: ServerConfig) -> None:
    """Clamp values whose out-of-range forms would break invariants."""
    # The history trim always keeps at least the newest entry.
    cfg.history.capacity = max(1, cfg.history.capacity)
    cfg.history.replay_limit = max(1, min(cfg.history.replay_limit, cfg.history.capacity))


def load_config(config_file: Path | None = None) -> ServerConfig:
    """
    Load configuration from all sources with proper priority.

    Priority (highest wins):
        1. Environment variables
        2. config/server.ini (or ``config_file`` when given)
        3. config/server.example.ini (fallback for development)
        4. Built-in defaults

    Returns:
        ServerConfig: Fully populated configuration object.
    """
    cfg = ServerConfig()

    if config_file is None:
        if CONFIG_FILE.exists():
            config_file = CONFIG_FILE
        elif CONFIG_EXAMPLE.exists():
            config_file = CONFIG_EXAMPLE

    if config_file and Path(config_file).exists():
        parser = configparser.ConfigParser()
        parser.read(config_file)
        _load_from_ini(parser, cfg)

    _apply_env_overrides(cfg)
    _normalize(cfg)

    return cfg


def reload_config() -> "ServerConfig":
    """
    Reload configuration from disk and environment.

    This updates the module-level `config` singleton. Already-running
    servers keep the configuration they were built with.
    """
    global config
    config = load_config()
    return config


# =============================================================================
# MODULE-LEVEL SINGLETON
# =============================================================================

config = load_config()


# =============================================================================
# UTILITY FUNCTIONS
# =============================================================================


def get_config_status(cfg: ServerConfig | None = None) -> dict:
    """
    Get configuration status for diagnostics.

    Returns a dictionary with configuration source information,
    useful for debugging. Secrets (the translation API key) are never
    included.
    """
    cfg = cfg or config
    return {
        "config_file_exists": CONFIG_FILE.exists(),
        "config_file_path": str(CONFIG_FILE),
        "using_example": not CONFIG_FILE.exists() and CONFIG_EXAMPLE.exists(),
        "listen": f"{cfg.server.host}:{cfg.server.port}",
        "storage_backend": cfg.storage.backend,
        "history_capacity": cfg.history.capacity,
        "replay_limit": cfg.history.replay_limit,
        "translation_enabled": cfg.translation.enabled,
        "translation_backend": cfg.translation.backend,
    }


def print_config_summary(cfg: ServerConfig | None = None) -> None:
    """Print a summary of current configuration to stdout."""
    cfg = cfg or config
    status = get_config_status(cfg)
    print("\n" + "=" * 60)
    print("RELAY SERVER CONFIGURATION")
    print("=" * 60)
    print(f"Config file: {status['config_file_path']}")
    print(f"File exists: {status['config_file_exists']}")
    if status["using_example"]:
        print("WARNING: Using example config (copy to server.ini for production)")
    print("-" * 60)
    print(f"Listen:       {status['listen']}")
    print(f"CORS origins: {cfg.server.cors_origins}")
    print(f"Storage:      {cfg.storage.backend} ({cfg.storage.redis_url})")
    print(f"History:      capacity={cfg.history.capacity} replay={cfg.history.replay_limit}")
    translation = cfg.translation.backend if cfg.translation.enabled else "disabled"
    print(f"Translation:  {translation} ({cfg.translation.base_url})")
    print(f"Log level:    {cfg.logging.level}")
    print("=" * 60 + "\n")
