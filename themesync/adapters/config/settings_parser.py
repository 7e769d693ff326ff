"""
Settings parser: merged configuration dictionary → ThemeSyncConfig
"""
from pathlib import Path
from typing import Any, Dict, List, Optional

from ...core.config import (
    ProjectPaths,
    ServerConfig,
    StoreConfig,
    StyleConfig,
    ThemeSyncConfig,
    ThrottleConfig,
    ToolConfig,
)
from ...core.constants import (
    DEFAULT_API_VERSION,
    DEFAULT_BINARY_FORMATS,
    DEFAULT_CONFIG_FILE,
    DEFAULT_LOCAL_DATA_DIR,
)
from ...core.exceptions import ConfigError
from .loader import ConfigLoader


def resolve_base_path(cfg: Dict[str, Any], config_path: Optional[Path]) -> Path:
    """
    Resolve the project base directory.

    A relative base_path is taken relative to the config file directory.
    Without base_path, the config file directory (or cwd) is the base.
    """
    anchor = config_path.parent if config_path else Path.cwd()
    base = cfg.get("base_path")
    if not base:
        return anchor.resolve()
    base_path = Path(str(base)).expanduser()
    if not base_path.is_absolute():
        base_path = anchor / base_path
    return base_path.resolve()


def _section(cfg: Dict[str, Any], name: str) -> Dict[str, Any]:
    value = cfg.get(name, {})
    if not isinstance(value, dict):
        raise ConfigError(f"[{name}] must be a table")
    return value


def _command(value: Any, name: str) -> List[str]:
    if isinstance(value, str):
        return value.split()
    if isinstance(value, list) and all(isinstance(v, str) for v in value):
        return list(value)
    raise ConfigError(f"tools.{name} must be a string or a list of strings")


def _binary_formats(value: Any) -> tuple:
    if isinstance(value, str):
        value = value.split()
    formats = []
    for ext in value:
        ext = str(ext).lower()
        formats.append(ext if ext.startswith(".") else f".{ext}")
    return tuple(formats)


def parse_config(cfg: Dict[str, Any], config_path: Optional[Path] = None) -> ThemeSyncConfig:
    """
    Build the typed configuration record.

    Args:
        cfg: Merged configuration dictionary
        config_path: Configuration file the dictionary came from, if any

    Returns:
        ThemeSyncConfig (not yet validated)

    Raises:
        ConfigError: If a value has the wrong type
    """
    store = StoreConfig(
        store_url=str(cfg.get("store_url") or ""),
        theme_id=str(cfg.get("theme_id") or ""),
        api_key=str(cfg.get("api_key") or ""),
        password=str(cfg.get("password") or ""),
        store_preview_url=cfg.get("store_preview_url") or None,
        api_version=str(cfg.get("api_version") or DEFAULT_API_VERSION),
    )
    paths = ProjectPaths(
        base=resolve_base_path(cfg, config_path),
        local_data_dir=str(cfg.get("local_data_dir", DEFAULT_LOCAL_DATA_DIR)),
    )

    throttle_cfg = _section(cfg, "throttle")
    tools_cfg = _section(cfg, "tools")
    styles_cfg = _section(cfg, "styles")

    defaults_throttle = ThrottleConfig()
    defaults_tools = ToolConfig()
    defaults_styles = StyleConfig()
    defaults_server = ServerConfig()

    try:
        throttle = ThrottleConfig(
            bucket_size=int(throttle_cfg.get("bucket_size", defaults_throttle.bucket_size)),
            leak_rate=float(throttle_cfg.get("leak_rate", defaults_throttle.leak_rate)),
            padding=int(throttle_cfg.get("padding", defaults_throttle.padding)),
        )
        server = ServerConfig(
            host=str(cfg.get("host", defaults_server.host)),
            port=int(cfg.get("port", defaults_server.port)),
            open_browser=bool(cfg.get("open_browser", defaults_server.open_browser)),
            reload_delay=float(cfg.get("reload_delay", defaults_server.reload_delay)),
        )
    except (TypeError, ValueError) as e:
        raise ConfigError(f"Invalid numeric setting: {e}") from e

    tools = ToolConfig(
        minifier=_command(tools_cfg.get("minifier", defaults_tools.minifier), "minifier"),
        style_compiler=_command(
            tools_cfg.get("style_compiler", defaults_tools.style_compiler), "style_compiler"
        ),
    )
    styles = StyleConfig(
        entry=str(styles_cfg.get("entry", defaults_styles.entry)),
        output_key=str(styles_cfg.get("output_key", defaults_styles.output_key)),
    )

    return ThemeSyncConfig(
        store=store,
        paths=paths,
        throttle=throttle,
        tools=tools,
        styles=styles,
        server=server,
        binary_formats=_binary_formats(cfg.get("binary_formats", DEFAULT_BINARY_FORMATS)),
    )


def find_config_file(start: Optional[Path] = None) -> Optional[Path]:
    """Look for themesync.toml in start (default cwd) and its parents"""
    current = (start or Path.cwd()).resolve()
    for directory in (current, *current.parents):
        candidate = directory / DEFAULT_CONFIG_FILE
        if candidate.is_file():
            return candidate
    return None


def load_project_config(
    config_path: Optional[Path] = None,
    cli_overrides: Optional[Dict[str, Any]] = None,
    use_env: bool = True,
) -> ThemeSyncConfig:
    """
    Load, parse and validate the project configuration.

    Args:
        config_path: Explicit config file; searched from cwd upwards if omitted
        cli_overrides: Values given on the command line
        use_env: Whether to read .env and THEMESYNC_* variables

    Raises:
        ConfigError: If the file is missing, unreadable or incomplete
    """
    if config_path is not None:
        config_path = Path(config_path).expanduser()
        if not config_path.is_file():
            raise ConfigError(f"Configuration file not found: {config_path}")
    else:
        config_path = find_config_file()

    cfg = ConfigLoader().load(config_path, cli_overrides, use_env=use_env)
    config = parse_config(cfg, config_path)
    config.validate()
    return config
