"""
themesync - theme asset sync toolchain

Keeps a remote storefront theme in sync with local sources:
- Script modules minified (single files or ordered module groups)
- Styles compiled from one entry file
- Theme files mirrored, with nested directories flattened
- Every request through one leaky-bucket rate limiter
- Storefront proxied locally with live reload after each upload
"""

__version__ = "0.1.0"

# Export core components
from .core import (
    Err,
    Ok,
    Outcome,
    RateLimiter,
    ThemeSyncConfig,
    run_parallel,
    run_sequence,
)

# Export API client
from .infrastructure.api import ThemeAPIClient, RemoteAsset, ResourcePage

# Export domain services
from .domain.sync import (
    ChangeDispatcher,
    PathResolver,
    SyncPipeline,
    ThemeDeployer,
    WatchEvent,
    WatchRoot,
    WatchService,
)
from .domain.resources import ResourceService

__all__ = [
    # Version
    "__version__",
    # Task composition
    "Ok",
    "Err",
    "Outcome",
    "run_sequence",
    "run_parallel",
    # Throttle and client
    "RateLimiter",
    "ThemeAPIClient",
    "RemoteAsset",
    "ResourcePage",
    # Configuration
    "ThemeSyncConfig",
    # Sync
    "ChangeDispatcher",
    "PathResolver",
    "SyncPipeline",
    "ThemeDeployer",
    "WatchEvent",
    "WatchRoot",
    "WatchService",
    # Resources
    "ResourceService",
]
