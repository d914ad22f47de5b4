"""Environment-driven runtime settings for the gateway."""

from __future__ import annotations

import os
from pathlib import Path
from types import SimpleNamespace
from typing import Any, Dict, Mapping, Optional, Tuple

import yaml

APP_NAME = "s3proxy"
APP_VERSION = "0.1.0"

DEFAULT_LISTEN = ":2804"
DEFAULT_CONFIG_FILE = "config.yml"
PROXY_MODES = ("redirect", "stream")


class ConfigError(Exception):
    """Raised when configuration is missing or malformed."""


class Settings(SimpleNamespace):
    """Simple attribute container used throughout the codebase."""


def _parse_bool(raw: object, default: bool) -> bool:
    if isinstance(raw, bool):
        return raw
    if raw is None:
        return default
    return str(raw).strip().lower() in {"1", "true", "yes", "on"}


def _parse_int(raw: object, default: int) -> int:
    if raw is None or isinstance(raw, bool):
        return default
    try:
        return int(str(raw).strip())
    except ValueError:
        return default


def _parse_float(raw: object, default: float) -> float:
    if raw is None or isinstance(raw, bool):
        return default
    try:
        return float(str(raw).strip())
    except ValueError:
        return default


def _env_str(name: str, default: Optional[str] = None, *, empty_to_none: bool = True) -> Optional[str]:
    raw = os.getenv(name)
    if raw is None:
        return default
    value = raw.strip()
    if not value and empty_to_none:
        return None if default is None else default
    return value if value else default


def _env_bool(name: str, default: bool) -> bool:
    return _parse_bool(os.getenv(name), default)


def _env_int(name: str, default: int) -> int:
    return _parse_int(os.getenv(name), default)


def _env_float(name: str, default: float) -> float:
    return _parse_float(os.getenv(name), default)


def _yaml_get(document: Mapping[str, Any], *path: str) -> Any:
    node: Any = document
    for part in path:
        if not isinstance(node, Mapping):
            return None
        node = node.get(part)
    return node


def _yaml_str(document: Mapping[str, Any], *path: str, default: Optional[str] = None) -> Optional[str]:
    value = _yaml_get(document, *path)
    if value is None:
        return default
    text = str(value).strip()
    return text or default


def load_yaml_file(path: Optional[str]) -> Dict[str, Any]:
    """Return the parsed YAML document at ``path`` or an empty mapping.

    An explicitly requested file must exist; the default ``config.yml`` is
    optional.
    """

    explicit = path is not None
    candidate = Path(path or DEFAULT_CONFIG_FILE)
    if not candidate.exists():
        if explicit:
            raise ConfigError(f"Configuration file not found: {candidate}")
        return {}

    try:
        with candidate.open("r", encoding="utf-8") as handle:
            document = yaml.safe_load(handle)
    except (OSError, yaml.YAMLError) as exc:
        raise ConfigError(f"Failed to read configuration file {candidate}: {exc}") from exc

    if document is None:
        return {}
    if not isinstance(document, dict):
        raise ConfigError(f"Configuration file {candidate} must contain a mapping")
    return document


def parse_listen_address(listen: str) -> Tuple[str, int]:
    """Split a ``host:port`` listen address; an empty host binds all interfaces."""

    host, sep, port = (listen or "").strip().rpartition(":")
    if not sep:
        host, port = "", listen
    try:
        port_number = int(port)
    except ValueError as exc:
        raise ConfigError(f"Invalid listen address '{listen}'") from exc
    if not 0 < port_number < 65536:
        raise ConfigError(f"Invalid listen port in '{listen}'")
    return host.strip("[]") or "0.0.0.0", port_number


def _compute_values(document: Mapping[str, Any]) -> Dict[str, object]:
    # -----------------------------------------------------------------------
    # HTTP SERVER
    # -----------------------------------------------------------------------
    listen = _env_str("LISTEN", _yaml_str(document, "app", "listen", default=DEFAULT_LISTEN))
    pprof = _env_str("PPROF", _yaml_str(document, "app", "pprof"))
    cloudflare = _env_bool("CLOUDFLARE", _parse_bool(_yaml_get(document, "app", "cloudflare"), True))
    enable_list = _env_bool("ENABLE_LIST", _parse_bool(_yaml_get(document, "app", "enable_list"), True))
    request_timeout = _env_float(
        "REQUEST_TIMEOUT",
        _parse_float(_yaml_get(document, "app", "request_timeout"), 10.0),
    )
    if request_timeout <= 0:
        request_timeout = 10.0

    # -----------------------------------------------------------------------
    # PROXY BEHAVIOUR
    # -----------------------------------------------------------------------
    proxy_mode = (_env_str("PROXY_MODE", _yaml_str(document, "app", "proxy_mode", default="redirect")) or "").lower()
    if proxy_mode not in PROXY_MODES:
        raise ConfigError(f"PROXY_MODE must be one of {', '.join(PROXY_MODES)}; got '{proxy_mode}'")

    presign_expiry_minutes = _env_int(
        "PRESIGN_EXPIRY_MINUTES",
        _parse_int(_yaml_get(document, "app", "presign_expiry_minutes"), 60),
    )
    if presign_expiry_minutes <= 0:
        presign_expiry_minutes = 60

    # -----------------------------------------------------------------------
    # LOGGING & OBSERVABILITY
    # -----------------------------------------------------------------------
    log_level = _env_int("LOG_LEVEL", _parse_int(_yaml_get(document, "app", "log_level"), 1))

    # -----------------------------------------------------------------------
    # S3 STORAGE CONFIGURATION
    # -----------------------------------------------------------------------
    s3_endpoint = _env_str("S3_ENDPOINT", _yaml_str(document, "s3", "endpoint"))
    s3_bucket = _env_str("S3_BUCKET", _yaml_str(document, "s3", "bucket"))
    s3_access_key = _env_str("S3_ACCESS_KEY", _yaml_str(document, "s3", "key", "access"))
    s3_secret_key = _env_str("S3_SECRET_KEY", _yaml_str(document, "s3", "key", "secret"))
    s3_secure = _env_bool("S3_SECURE", _parse_bool(_yaml_get(document, "s3", "secure"), True))
    s3_region = _env_str("S3_REGION", _yaml_str(document, "s3", "region", default="us-east-1"))
    s3_force_path_style = _env_bool(
        "S3_FORCE_PATH_STYLE",
        _parse_bool(_yaml_get(document, "s3", "force_path_style"), False),
    )

    return {
        "app_name": APP_NAME,
        "app_version": APP_VERSION,
        "listen": listen,
        "pprof": pprof,
        "cloudflare": cloudflare,
        "enable_list": enable_list,
        "request_timeout": request_timeout,
        "proxy_mode": proxy_mode,
        "presign_expiry_minutes": presign_expiry_minutes,
        "log_level": log_level,
        "s3_endpoint": s3_endpoint,
        "s3_bucket": s3_bucket,
        "s3_access_key": s3_access_key,
        "s3_secret_key": s3_secret_key,
        "s3_secure": s3_secure,
        "s3_region": s3_region,
        "s3_force_path_style": s3_force_path_style,
    }


_REQUIRED = {
    "s3_endpoint": "S3_ENDPOINT",
    "s3_bucket": "S3_BUCKET",
    "s3_access_key": "S3_ACCESS_KEY",
    "s3_secret_key": "S3_SECRET_KEY",
}


def load_settings(config_file: Optional[str] = None) -> Settings:
    """Build settings from defaults, the YAML file and the environment.

    Raises:
        ConfigError: when a required value is missing or a value is malformed.
    """

    document = load_yaml_file(config_file or _env_str("CONFIG_FILE"))
    values = _compute_values(document)

    missing = [env_name for key, env_name in _REQUIRED.items() if not values.get(key)]
    if missing:
        raise ConfigError(f"Missing required configuration: {', '.join(missing)}")

    values["listen_host"], values["listen_port"] = parse_listen_address(str(values["listen"]))
    return Settings(**values)


def load_envs(global_dir: str) -> None:
    """Load environment variables from the project's ``.env`` file."""
    from dotenv import load_dotenv

    load_dotenv(os.path.join(global_dir, ".env"))


__all__ = [
    "APP_NAME",
    "APP_VERSION",
    "ConfigError",
    "Settings",
    "load_envs",
    "load_settings",
    "parse_listen_address",
]
