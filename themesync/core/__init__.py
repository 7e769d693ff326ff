"""
Core infrastructure layer
"""
from .config import (
    ProjectPaths,
    ServerConfig,
    StoreConfig,
    StyleConfig,
    ThemeSyncConfig,
    ThrottleConfig,
    ToolConfig,
)
from .constants import *
from .exceptions import *
from .logging import (
    setup_logging,
    get_logger,
    get_stdout_console,
    get_stderr_console,
    log_activity,
)
from .interfaces import ReloadSignal, ScriptMinifier, StyleCompiler
from .tasks import Ok, Err, Outcome, Step, run_sequence, run_parallel
from .throttle import RateLimiter

__all__ = [
    "ProjectPaths",
    "ServerConfig",
    "StoreConfig",
    "StyleConfig",
    "ThemeSyncConfig",
    "ThrottleConfig",
    "ToolConfig",
    "setup_logging",
    "get_logger",
    "get_stdout_console",
    "get_stderr_console",
    "log_activity",
    "ReloadSignal",
    "ScriptMinifier",
    "StyleCompiler",
    "Ok",
    "Err",
    "Outcome",
    "Step",
    "run_sequence",
    "run_parallel",
    "RateLimiter",
]
