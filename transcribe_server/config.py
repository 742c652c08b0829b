"""
Server configuration management for transcribe-server.

Handles loading configuration from YAML files and resolving the
values that may be overridden from the environment.

Configuration Priority (highest to lowest):
    1. Explicit path passed to ServerConfig / get_config
    2. $TRANSCRIBE_SERVER_CONFIG
    3. User config: ~/.config/TranscribeServer/config.yaml
    4. Packaged default: transcribe_server/config.yaml
    5. Fallback: ./config.yaml (current directory)

Environment variables always win over file values for the store
connection string (DATABASE_URL), the provider key (DEEPGRAM_API_KEY),
the CORS allow-list (CORS_ORIGINS) and the listen port (PORT).
"""

import os
from pathlib import Path
from typing import Any, Dict, List, Optional

import yaml

DEFAULT_CORS_ORIGINS = [
    "http://localhost:5173",
    "https://speech-frontend-5zfo.onrender.com",
]
DEFAULT_PORT = 5050
DEFAULT_PROVIDER_BASE_URL = "https://api.deepgram.com"
DEFAULT_CONTENT_TYPE = "audio/webm"
DEFAULT_PROVIDER_TIMEOUT = 60.0
DB_FILENAME = "transcripts.db"

_SQLITE_URL_PREFIXES = ("sqlite:///", "sqlite://")


def get_user_config_dir() -> Path:
    """
    Get the user configuration directory.

    Returns:
        $XDG_CONFIG_HOME/TranscribeServer or ~/.config/TranscribeServer
    """
    xdg_config = os.environ.get("XDG_CONFIG_HOME")
    if xdg_config:
        return Path(xdg_config) / "TranscribeServer"
    return Path.home() / ".config" / "TranscribeServer"


def get_data_dir() -> Path:
    """Base directory for the default database and log locations."""
    env_data_dir = os.environ.get("DATA_DIR")
    if env_data_dir:
        return Path(env_data_dir)
    return Path(__file__).resolve().parent.parent / "data"


class ServerConfig:
    """
    Server configuration manager.

    Loads configuration from the first readable YAML file found.
    """

    def __init__(self, config_path: Optional[Path] = None):
        """
        Initialize configuration.

        Args:
            config_path: Path to config file. If None, searches in priority order.
        """
        self.config: Dict[str, Any] = {}
        self._config_path = config_path
        self._loaded_from: Optional[Path] = None
        self._load_config()

    def _candidate_paths(self) -> list[Path]:
        if self._config_path:
            return [self._config_path]

        candidates = []
        env_path = os.environ.get("TRANSCRIBE_SERVER_CONFIG")
        if env_path:
            candidates.append(Path(env_path))
        candidates += [
            get_user_config_dir() / "config.yaml",
            Path(__file__).parent / "config.yaml",
            Path.cwd() / "config.yaml",
        ]
        return candidates

    def _find_config_candidates(self) -> list[Path]:
        """Return readable config file candidates in priority order."""
        readable: list[Path] = []
        for path in self._candidate_paths():
            if not (path.exists() and path.is_file()):
                continue
            try:
                with path.open("r", encoding="utf-8"):
                    pass
                readable.append(path)
            except (PermissionError, OSError):
                continue
        return readable

    def _load_config(self) -> None:
        """Load configuration from file."""
        candidates = self._find_config_candidates()

        if not candidates:
            searched = "\n".join(f"  - {path}" for path in self._candidate_paths())
            raise RuntimeError(
                "No configuration file found. Expected one of:\n" + searched
            )

        errors: list[tuple[Path, Exception]] = []
        for config_file in candidates:
            try:
                with config_file.open("r", encoding="utf-8") as f:
                    self.config = yaml.safe_load(f) or {}
                self._loaded_from = config_file
                return
            except (yaml.YAMLError, OSError) as e:
                errors.append((config_file, e))
                if self._config_path:
                    break

        details = "\n".join(f"  - {path}: {err}" for path, err in errors)
        raise RuntimeError("Failed to load configuration. Tried:\n" + details)

    @property
    def loaded_from(self) -> Optional[Path]:
        """Return the path of the loaded configuration file."""
        return self._loaded_from

    def get(self, *keys: str, default: Any = None) -> Any:
        """
        Get a configuration value by nested keys.

            config.get("server", "port")
            config.get("logging", "level", default="INFO")
            config.get("provider", default={})

        Args:
            *keys: One or more string configuration keys for nested access
            default: Default value to return if any key in the path is not found

        Raises:
            TypeError: If any key argument is not a string
        """
        if not keys:
            return self.config

        for i, key in enumerate(keys):
            if not isinstance(key, str):
                raise TypeError(
                    f"All configuration keys must be strings, got {type(key).__name__} "
                    f"for keys[{i}]: {repr(key)}. "
                    f"If you want to provide a default value, use the 'default=' keyword argument: "
                    f"cfg.get({', '.join(repr(k) for k in keys[:i] if isinstance(k, str))}, default={repr(key)})"
                )

        value = self.config
        for key in keys:
            if isinstance(value, dict):
                value = value.get(key)
            else:
                return default
            if value is None:
                return default
        return value

    @property
    def server(self) -> Dict[str, Any]:
        """Get server configuration."""
        return self.config.get("server") or {}

    @property
    def database(self) -> Dict[str, Any]:
        """Get database configuration."""
        return self.config.get("database") or {}

    @property
    def provider(self) -> Dict[str, Any]:
        """Get speech provider configuration."""
        return self.config.get("provider") or {}

    @property
    def logging(self) -> Dict[str, Any]:
        """Get logging configuration."""
        return self.config.get("logging") or {}


def _non_empty_string(value: Any) -> Optional[str]:
    """Return a trimmed string only when value is a non-empty string."""
    if not isinstance(value, str):
        return None
    trimmed = value.strip()
    return trimmed if trimmed else None


def resolve_database_path(config: ServerConfig) -> Path:
    """
    Resolve the SQLite file backing the transcript store.

    DATABASE_URL accepts either ``sqlite:///path/to.db`` or a bare path.
    """
    url = _non_empty_string(os.environ.get("DATABASE_URL"))
    if url:
        for prefix in _SQLITE_URL_PREFIXES:
            if url.startswith(prefix):
                url = url[len(prefix):]
                break
        return Path(url)

    configured = _non_empty_string(config.get("database", "path"))
    if configured:
        return Path(configured)

    return get_data_dir() / "database" / DB_FILENAME


def resolve_provider_api_key(config: ServerConfig) -> Optional[str]:
    """Provider key from DEEPGRAM_API_KEY, falling back to provider.api_key."""
    return _non_empty_string(os.environ.get("DEEPGRAM_API_KEY")) or _non_empty_string(
        config.get("provider", "api_key")
    )


def resolve_cors_origins(config: ServerConfig) -> List[str]:
    """CORS allow-list from CORS_ORIGINS (comma-separated) or server.cors_origins."""
    raw = _non_empty_string(os.environ.get("CORS_ORIGINS"))
    if raw:
        return [origin.strip() for origin in raw.split(",") if origin.strip()]

    configured = config.get("server", "cors_origins")
    if isinstance(configured, str):
        configured = configured.split(",")
    if isinstance(configured, list):
        origins = [o for o in (_non_empty_string(item) for item in configured) if o]
        if origins:
            return origins

    return list(DEFAULT_CORS_ORIGINS)


def resolve_port(config: ServerConfig) -> int:
    raw = _non_empty_string(os.environ.get("PORT"))
    if raw:
        return int(raw)
    return int(config.get("server", "port", default=DEFAULT_PORT))


def resolve_log_directory(config: ServerConfig) -> Path:
    configured = _non_empty_string(config.get("logging", "directory"))
    if configured:
        return Path(configured)
    return get_data_dir() / "logs"


# Global config instance
_config: Optional[ServerConfig] = None


def get_config(config_path: Optional[Path] = None) -> ServerConfig:
    """Get or create the global configuration instance."""
    global _config
    if _config is None:
        _config = ServerConfig(config_path)
    return _config
