"""
Configuration loader with priority: CLI > env > .env > TOML > defaults
"""
import os
import tomllib
from pathlib import Path
from typing import Any, Dict, Mapping, Optional

from dotenv import dotenv_values

from ...core.constants import ENV_PREFIX
from ...core.exceptions import ConfigError


class ConfigLoader:
    """Configuration loader with priority support"""

    # Environment variable suffix → config key (dotted keys are nested)
    ENV_MAPPINGS = {
        "STORE_URL": "store_url",
        "STORE_PREVIEW_URL": "store_preview_url",
        "THEME_ID": "theme_id",
        "API_KEY": "api_key",
        "PASSWORD": "password",
        "API_VERSION": "api_version",
        "PORT": "port",
        "BASE_PATH": "base_path",
        "RELOAD_DELAY": "reload_delay",
        "OPEN_BROWSER": "open_browser",
        "BUCKET_SIZE": "throttle.bucket_size",
        "LEAK_RATE": "throttle.leak_rate",
        "BUCKET_PADDING": "throttle.padding",
    }

    # Keys that stay strings even when they look numeric
    STRING_KEYS = ("theme_id", "api_key", "password", "api_version")

    def __init__(self, env_prefix: str = ENV_PREFIX):
        self._env_prefix = env_prefix

    def load_toml(self, path: Path) -> Dict[str, Any]:
        """Load TOML configuration file"""
        if not path.exists():
            raise ConfigError(f"Configuration file not found: {path}")

        try:
            return tomllib.loads(path.read_text(encoding="utf-8"))
        except (tomllib.TOMLDecodeError, UnicodeDecodeError) as e:
            raise ConfigError(f"Failed to parse TOML configuration {path}: {e}") from e

    def load_dotenv(self, path: Path) -> Dict[str, Any]:
        """Load THEMESYNC_* entries of a .env file (missing file yields {})"""
        if not path.is_file():
            return {}
        values = {k: v for k, v in dotenv_values(path).items() if v is not None}
        return self.load_env(values)

    def load_env(self, environ: Optional[Mapping[str, str]] = None) -> Dict[str, Any]:
        """Load configuration from environment variables"""
        environ = os.environ if environ is None else environ
        config: Dict[str, Any] = {}

        for suffix, config_key in self.ENV_MAPPINGS.items():
            value = environ.get(self._env_prefix + suffix)
            if not value:
                continue
            if config_key in self.STRING_KEYS:
                converted: Any = value
            else:
                converted = self._convert_value(value)

            # Handle nested keys
            if "." in config_key:
                section, key = config_key.split(".", 1)
                config.setdefault(section, {})[key] = converted
            else:
                config[config_key] = converted

        return config

    def _convert_value(self, value: str) -> Any:
        """Convert string value to appropriate type"""
        # Try boolean
        if value.lower() in ("true", "yes", "on"):
            return True
        if value.lower() in ("false", "no", "off"):
            return False

        # Try number
        try:
            return int(value)
        except ValueError:
            pass
        try:
            return float(value)
        except ValueError:
            pass

        # Return as string
        return value

    def merge_configs(self, *configs: Dict[str, Any]) -> Dict[str, Any]:
        """
        Merge multiple configurations with priority.
        Later configs override earlier ones.
        """
        result: Dict[str, Any] = {}

        for config in configs:
            result = self._deep_merge(result, config)

        return result

    def _deep_merge(self, base: Dict[str, Any], override: Dict[str, Any]) -> Dict[str, Any]:
        """Deep merge two dictionaries"""
        result = base.copy()

        for key, value in override.items():
            if key in result and isinstance(result[key], dict) and isinstance(value, dict):
                result[key] = self._deep_merge(result[key], value)
            else:
                result[key] = value

        return result

    def load(
        self,
        toml_path: Optional[Path] = None,
        cli_overrides: Optional[Dict[str, Any]] = None,
        use_env: bool = True,
        environ: Optional[Mapping[str, str]] = None,
    ) -> Dict[str, Any]:
        """
        Load configuration with priority: CLI > env > .env > TOML > defaults

        Args:
            toml_path: Path to TOML configuration file
            cli_overrides: CLI parameter overrides (None values are dropped)
            use_env: Whether to load .env and environment variables
            environ: Environment mapping (defaults to os.environ)

        Returns:
            Merged configuration dictionary
        """
        configs = []

        # 1. Load TOML if provided
        if toml_path:
            configs.append(self.load_toml(toml_path))

        # 2. .env next to the config file (or in the working directory)
        if use_env:
            env_dir = toml_path.parent if toml_path else Path.cwd()
            configs.append(self.load_dotenv(env_dir / ".env"))
            configs.append(self.load_env(environ))

        # 3. Apply CLI overrides (highest priority)
        if cli_overrides:
            configs.append({k: v for k, v in cli_overrides.items() if v is not None})

        # Merge all configs
        return self.merge_configs(*configs)
