"""YAML configuration loader and validation for mc-status-ping."""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import yaml

from .mc_protocol import MAX_PACKET_LENGTH
from .packets import DEFAULT_PORT, DEFAULT_PROTOCOL_VERSION

# ---------------------------------------------------------------------------
# Data classes
# ---------------------------------------------------------------------------


@dataclass
class QueryConfig:
    """Settings applied to every status query."""

    timeout_seconds: float = 5.0
    protocol_version: int = DEFAULT_PROTOCOL_VERSION
    default_port: int = DEFAULT_PORT
    max_packet_bytes: int = MAX_PACKET_LENGTH
    strict_packet_id: bool = True


@dataclass
class TargetConfig:
    """A server to query."""

    name: str
    host: str
    port: int = DEFAULT_PORT


@dataclass
class LoggingConfig:
    """Logging destination and rotation settings."""

    level: str = "INFO"
    file: str = ""  # empty: stderr only
    max_bytes: int = 10_485_760  # 10 MB
    backup_count: int = 5


@dataclass
class AppConfig:
    """Top-level application configuration."""

    query: QueryConfig = field(default_factory=QueryConfig)
    targets: dict[str, TargetConfig] = field(default_factory=dict)
    logging: LoggingConfig = field(default_factory=LoggingConfig)


# ---------------------------------------------------------------------------
# Errors
# ---------------------------------------------------------------------------


class ConfigError(Exception):
    """Raised when the configuration is invalid or incomplete."""


# ---------------------------------------------------------------------------
# Loader
# ---------------------------------------------------------------------------


def _get(data: dict[str, Any], key: str, expected_type: type, default: Any = None) -> Any:
    """Retrieve *key* from *data*, coerce to *expected_type*, fallback to *default*."""
    value = data.get(key, default)
    if value is None:
        return default
    if expected_type is bool:
        # bool("false") is True; only accept real YAML booleans.
        if not isinstance(value, bool):
            raise ConfigError(f"Config key '{key}': expected true or false, got {value!r}")
        return value
    try:
        return expected_type(value)
    except (ValueError, TypeError) as exc:
        raise ConfigError(
            f"Config key '{key}': cannot convert {value!r} to {expected_type.__name__}"
        ) from exc


def _check_port(port: int, where: str) -> int:
    if not 1 <= port <= 0xFFFF:
        raise ConfigError(f"{where}: port must be between 1 and 65535, got {port}.")
    return port


def _load_query(raw: dict[str, Any]) -> QueryConfig:
    cfg = QueryConfig(
        timeout_seconds=_get(raw, "timeout_seconds", float, QueryConfig.timeout_seconds),
        protocol_version=_get(raw, "protocol_version", int, QueryConfig.protocol_version),
        default_port=_get(raw, "default_port", int, QueryConfig.default_port),
        max_packet_bytes=_get(raw, "max_packet_bytes", int, QueryConfig.max_packet_bytes),
        strict_packet_id=_get(raw, "strict_packet_id", bool, QueryConfig.strict_packet_id),
    )
    if cfg.timeout_seconds <= 0:
        raise ConfigError("query.timeout_seconds must be positive.")
    if cfg.max_packet_bytes <= 0:
        raise ConfigError("query.max_packet_bytes must be positive.")
    _check_port(cfg.default_port, "query.default_port")
    return cfg


def _load_target(name: str, raw: Any, default_port: int) -> TargetConfig:
    if isinstance(raw, str):
        return parse_target(raw, default_port, name=name)
    if not isinstance(raw, dict):
        raise ConfigError(f"Target '{name}' must be a mapping or a 'host[:port]' string.")
    host = raw.get("host")
    if not host:
        raise ConfigError(f"Target '{name}': 'host' is required.")
    port = _check_port(_get(raw, "port", int, default_port), f"Target '{name}'")
    return TargetConfig(name=name, host=str(host), port=port)


def _load_logging(raw: dict[str, Any]) -> LoggingConfig:
    return LoggingConfig(
        level=_get(raw, "level", str, LoggingConfig.level),
        file=_get(raw, "file", str, LoggingConfig.file),
        max_bytes=_get(raw, "max_bytes", int, LoggingConfig.max_bytes),
        backup_count=_get(raw, "backup_count", int, LoggingConfig.backup_count),
    )


def parse_target(text: str, default_port: int = DEFAULT_PORT, name: str | None = None) -> TargetConfig:
    """Parse ``host``, ``host:port`` or ``[ipv6]:port`` into a target."""
    text = text.strip()
    if not text:
        raise ConfigError("Empty target address.")
    host, port = text, default_port
    if text.startswith("["):
        end = text.find("]")
        if end == -1:
            raise ConfigError(f"Target '{text}': unterminated IPv6 address.")
        host = text[1:end]
        rest = text[end + 1 :]
        if rest:
            if not rest.startswith(":"):
                raise ConfigError(f"Target '{text}': unexpected text after IPv6 address.")
            port = _parse_port(rest[1:], text)
    elif text.count(":") == 1:
        host, port_text = text.split(":")
        port = _parse_port(port_text, text)
    if not host:
        raise ConfigError(f"Target '{text}': missing host.")
    return TargetConfig(name=name or text, host=host, port=port)


def _parse_port(port_text: str, where: str) -> int:
    try:
        port = int(port_text)
    except ValueError as exc:
        raise ConfigError(f"Target '{where}': invalid port {port_text!r}.") from exc
    return _check_port(port, f"Target '{where}'")


def load_config(path: str | Path) -> AppConfig:
    """Load and validate configuration from a YAML file.

    Parameters
    ----------
    path:
        Filesystem path to the YAML config file.

    Returns
    -------
    AppConfig
        Fully-validated configuration object.

    Raises
    ------
    ConfigError
        If the file is missing, unparseable, or semantically invalid.
    """
    path = Path(path)
    if not path.is_file():
        raise ConfigError(f"Configuration file not found: {path}")

    try:
        with path.open("r", encoding="utf-8") as fh:
            raw: dict[str, Any] = yaml.safe_load(fh) or {}
    except yaml.YAMLError as exc:
        raise ConfigError(f"Failed to parse YAML config: {exc}") from exc

    if not isinstance(raw, dict):
        raise ConfigError("Config root must be a YAML mapping (dict).")

    # -- Query --
    query = _load_query(raw.get("query") or {})

    # -- Targets --
    raw_targets = raw.get("targets") or {}
    if not isinstance(raw_targets, dict):
        raise ConfigError("'targets' must be a YAML mapping of name to target.")
    targets = {
        str(name): _load_target(str(name), tgt_raw, query.default_port)
        for name, tgt_raw in raw_targets.items()
    }

    # -- Logging --
    logging_cfg = _load_logging(raw.get("logging") or {})

    return AppConfig(query=query, targets=targets, logging=logging_cfg)
