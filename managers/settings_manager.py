"""Settings management for the generator pipeline"""

import json
import logging
import os
from pathlib import Path
from typing import Any, Callable, Dict, Optional

from exceptions import ConfigurationError
from models.config import (
    EnhancementConfig,
    GeneratorSettings,
    LedgerConfig,
    RasterizerConfig,
    SessionStoreConfig,
    UploadConfig,
)

logger = logging.getLogger("SEO_Server")

# Configuration paths
CONFIG_DIR = Path.home() / ".config" / "seo-asset-mcp"
CONFIG_FILE = CONFIG_DIR / "config.json"

SECRET_KEYS = ("enhance_api_key",)

# key -> type coercion
SETTING_TYPES: Dict[str, Callable[[Any], Any]] = {
    "output_root": str,
    "session_ttl_seconds": float,
    "sweep_interval_seconds": float,
    "max_upload_bytes": int,
    "database_path": str,
    "initial_credits": int,
    "credits_per_call": int,
    "enhance_api_key": str,
    "enhance_model": str,
    "enhance_url": str,
    "enhance_timeout": float,
    "theme_color": str,
    "background_color": str,
    "log_level": str,
}

HARDCODED_DEFAULTS: Dict[str, Any] = {
    "output_root": "generated",
    "session_ttl_seconds": 2 * 60 * 60,
    "sweep_interval_seconds": 60 * 60,
    "max_upload_bytes": 5 * 1024 * 1024,
    "database_path": str(Path("data") / "users.db"),
    "initial_credits": 10,
    "credits_per_call": 1,
    "enhance_api_key": None,
    "enhance_model": "gemini-2.5-flash",
    "enhance_url": "https://generativelanguage.googleapis.com/v1beta",
    "enhance_timeout": 30.0,
    "theme_color": "#ffffff",
    "background_color": "#ffffff",
    "log_level": "INFO",
}

ENV_VARIABLES: Dict[str, str] = {
    "output_root": "SEO_MCP_OUTPUT_ROOT",
    "session_ttl_seconds": "SEO_MCP_SESSION_TTL_SECONDS",
    "sweep_interval_seconds": "SEO_MCP_SWEEP_INTERVAL_SECONDS",
    "max_upload_bytes": "SEO_MCP_MAX_UPLOAD_BYTES",
    "database_path": "SEO_MCP_DATABASE_PATH",
    "initial_credits": "SEO_MCP_INITIAL_CREDITS",
    "enhance_api_key": "SEO_MCP_ENHANCE_API_KEY",
    "enhance_model": "SEO_MCP_ENHANCE_MODEL",
    "enhance_url": "SEO_MCP_ENHANCE_URL",
    "enhance_timeout": "SEO_MCP_ENHANCE_TIMEOUT",
    "theme_color": "SEO_MCP_THEME_COLOR",
    "background_color": "SEO_MCP_BACKGROUND_COLOR",
    "log_level": "SEO_MCP_LOG_LEVEL",
}


class SettingsManager:
    """Resolves settings with precedence: explicit > config file > env > hardcoded"""

    def __init__(
        self,
        overrides: Optional[Dict[str, Any]] = None,
        config_file: Optional[Path] = None,
        environ: Optional[Dict[str, str]] = None,
    ):
        self._overrides = {key: value for key, value in (overrides or {}).items() if value is not None}
        unknown = set(self._overrides) - set(SETTING_TYPES)
        if unknown:
            raise ConfigurationError(f"Unknown settings: {', '.join(sorted(unknown))}")
        self.config_file = Path(config_file) if config_file else CONFIG_FILE
        self._environ = os.environ if environ is None else environ
        self._config_values = self._load_config_values()

    def _load_config_values(self) -> Dict[str, Any]:
        """Load the "settings" object from the config file"""
        if not self.config_file.exists():
            return {}
        try:
            with open(self.config_file, "r", encoding="utf-8") as f:
                config = json.load(f)
        except (json.JSONDecodeError, IOError) as e:
            logger.warning(f"Failed to load config file {self.config_file}: {e}")
            return {}

        settings = config.get("settings", {}) if isinstance(config, dict) else {}
        if not isinstance(settings, dict):
            logger.warning(f"Ignoring non-object 'settings' in {self.config_file}")
            return {}
        for key in settings:
            if key not in SETTING_TYPES:
                logger.warning(f"Ignoring unknown setting '{key}' in {self.config_file}")
        return {key: value for key, value in settings.items() if key in SETTING_TYPES and value is not None}

    def _get_env_values(self) -> Dict[str, Any]:
        values = {}
        for key, variable in ENV_VARIABLES.items():
            raw = self._environ.get(variable)
            if raw:
                values[key] = raw
        if "enhance_api_key" not in values and self._environ.get("GEMINI_API_KEY"):
            values["enhance_api_key"] = self._environ["GEMINI_API_KEY"]
        return values

    def _coerce(self, key: str, value: Any) -> Any:
        if value is None:
            return None
        try:
            return SETTING_TYPES[key](value)
        except (TypeError, ValueError) as e:
            raise ConfigurationError(f"Invalid value for {key}: {value!r}") from e

    def get(self, key: str) -> Any:
        """Effective value for one key"""
        if key not in SETTING_TYPES:
            raise ConfigurationError(f"Unknown setting: {key}")
        for source in (self._overrides, self._config_values, self._get_env_values()):
            if key in source:
                return self._coerce(key, source[key])
        return HARDCODED_DEFAULTS[key]

    def get_all(self, redact_secrets: bool = True) -> Dict[str, Any]:
        """All effective values merged from every source"""
        result = HARDCODED_DEFAULTS.copy()
        result.update(self._get_env_values())
        result.update(self._config_values)
        result.update(self._overrides)
        result = {key: self._coerce(key, value) for key, value in result.items()}
        if redact_secrets:
            for key in SECRET_KEYS:
                if result.get(key):
                    result[key] = "***"
        return result

    def load(self) -> GeneratorSettings:
        """Build the typed settings tree.

        Raises:
            ConfigurationError: If any value fails validation
        """
        values = self.get_all(redact_secrets=False)
        log_level = values["log_level"].upper()
        if log_level not in ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"):
            raise ConfigurationError(f"Invalid log_level: {values['log_level']!r}")

        return GeneratorSettings(
            rasterizer=RasterizerConfig(
                theme_color=values["theme_color"],
                background_color=values["background_color"],
            ),
            sessions=SessionStoreConfig(
                output_root=Path(values["output_root"]),
                ttl_seconds=values["session_ttl_seconds"],
                sweep_interval_seconds=values["sweep_interval_seconds"],
            ),
            upload=UploadConfig(max_bytes=values["max_upload_bytes"]),
            enhancement=EnhancementConfig(
                api_key=values["enhance_api_key"] or None,
                model=values["enhance_model"],
                base_url=values["enhance_url"],
                timeout_seconds=values["enhance_timeout"],
                credits_per_call=values["credits_per_call"],
            ),
            ledger=LedgerConfig(
                database_path=Path(values["database_path"]),
                initial_credits=values["initial_credits"],
            ),
            log_level=log_level,
        )
