"""
Typed configuration records
"""
from dataclasses import dataclass, field
from pathlib import Path
from typing import List, Optional, Tuple, Dict, Any

from .constants import (
    DEFAULT_API_VERSION,
    DEFAULT_BINARY_FORMATS,
    DEFAULT_BUCKET_PADDING,
    DEFAULT_BUCKET_SIZE,
    DEFAULT_HOST,
    DEFAULT_LEAK_RATE,
    DEFAULT_LOCAL_DATA_DIR,
    DEFAULT_MINIFIER_COMMAND,
    DEFAULT_PORT,
    DEFAULT_RELOAD_DELAY,
    DEFAULT_STYLE_COMPILER_COMMAND,
    DEFAULT_STYLE_ENTRY,
    DEFAULT_STYLE_OUTPUT_KEY,
    SCRIPTS_DIR_NAME,
    STYLES_DIR_NAME,
    THEME_DIR_NAME,
)
from .exceptions import ConfigError


@dataclass
class StoreConfig:
    """Remote store coordinates and credentials"""
    store_url: str
    theme_id: str
    api_key: str
    password: str
    store_preview_url: Optional[str] = None
    api_version: str = DEFAULT_API_VERSION

    @property
    def storefront_host(self) -> str:
        """Host serving storefront pages (preview host when configured)"""
        return self.store_preview_url or self.store_url

    def validate(self) -> None:
        """Validate configuration"""
        missing = [
            name
            for name in ("store_url", "theme_id", "api_key", "password")
            if not getattr(self, name)
        ]
        if missing:
            raise ConfigError(f"Missing store configuration: {', '.join(missing)}")
        if "://" in self.store_url:
            raise ConfigError(
                f"store_url must be a bare hostname, got: {self.store_url}"
            )

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary (credentials masked)"""
        return {
            "store_url": self.store_url,
            "store_preview_url": self.store_preview_url,
            "theme_id": self.theme_id,
            "api_key": "***" if self.api_key else "",
            "password": "***" if self.password else "",
            "api_version": self.api_version,
        }


@dataclass
class ThrottleConfig:
    """Leaky bucket parameters"""
    bucket_size: int = DEFAULT_BUCKET_SIZE
    leak_rate: float = DEFAULT_LEAK_RATE
    padding: int = DEFAULT_BUCKET_PADDING


@dataclass
class ToolConfig:
    """External transformer commands"""
    minifier: List[str] = field(default_factory=lambda: list(DEFAULT_MINIFIER_COMMAND))
    style_compiler: List[str] = field(
        default_factory=lambda: list(DEFAULT_STYLE_COMPILER_COMMAND)
    )


@dataclass
class StyleConfig:
    """Style compilation entry point and its remote key"""
    entry: str = DEFAULT_STYLE_ENTRY
    output_key: str = DEFAULT_STYLE_OUTPUT_KEY


@dataclass
class ServerConfig:
    """Local live-reload server"""
    host: str = DEFAULT_HOST
    port: int = DEFAULT_PORT
    open_browser: bool = True
    reload_delay: float = DEFAULT_RELOAD_DELAY

    @property
    def url(self) -> str:
        return f"http://{self.host}:{self.port}"


@dataclass
class ProjectPaths:
    """
    Local project layout.

    - {base}/scripts: script modules, minified into theme/assets
    - {base}/styles: SCSS sources, compiled into theme/assets
    - {base}/theme: theme files mirrored to the remote theme
    - {base}/.themesync: transient artifacts
    """
    base: Path
    local_data_dir: str = DEFAULT_LOCAL_DATA_DIR

    @property
    def scripts(self) -> Path:
        return self.base / SCRIPTS_DIR_NAME

    @property
    def styles(self) -> Path:
        return self.base / STYLES_DIR_NAME

    @property
    def theme(self) -> Path:
        return self.base / THEME_DIR_NAME

    @property
    def local_data(self) -> Path:
        return self.base / self.local_data_dir

    def ensure(self) -> None:
        """
        Check the watched roots exist.

        Raises:
            ConfigError: If any watched root is missing
        """
        missing = [
            str(p) for p in (self.scripts, self.styles, self.theme) if not p.is_dir()
        ]
        if missing:
            raise ConfigError(f"Missing project directories: {', '.join(missing)}")


@dataclass
class ThemeSyncConfig:
    """Complete configuration consumed at start-up"""
    store: StoreConfig
    paths: ProjectPaths
    throttle: ThrottleConfig = field(default_factory=ThrottleConfig)
    tools: ToolConfig = field(default_factory=ToolConfig)
    styles: StyleConfig = field(default_factory=StyleConfig)
    server: ServerConfig = field(default_factory=ServerConfig)
    binary_formats: Tuple[str, ...] = DEFAULT_BINARY_FORMATS

    def validate(self) -> None:
        """Validate configuration"""
        self.store.validate()
        if not (1 <= self.server.port <= 65535):
            raise ConfigError(f"Invalid port: {self.server.port}")
        if self.throttle.bucket_size - self.throttle.padding < 1:
            raise ConfigError("throttle.bucket_size must exceed throttle.padding")
        if self.throttle.leak_rate <= 0:
            raise ConfigError("throttle.leak_rate must be positive")
        if not self.tools.minifier or not self.tools.style_compiler:
            raise ConfigError("tools.minifier and tools.style_compiler must not be empty")

    def is_binary(self, path: Path) -> bool:
        """Whether the file must be uploaded as a base64 attachment"""
        return path.suffix.lower() in self.binary_formats
