"""
Unified exception definitions
"""
from typing import Optional


class ThemeSyncError(Exception):
    """Base exception class"""
    pass


class ConfigError(ThemeSyncError):
    """Configuration error"""
    pass


class RemoteError(ThemeSyncError):
    """Remote API error"""
    pass


class RemoteWriteFailed(RemoteError):
    """Remote endpoint answered with a non-2xx status"""

    def __init__(
        self,
        status_code: int,
        body: str,
        method: str = "",
        target: Optional[str] = None,
    ):
        self.status_code = status_code
        self.body = body
        self.method = method
        self.target = target
        detail = f"{method} {target}: " if method and target else ""
        super().__init__(f"{detail}HTTP {status_code} {body[:200]}".strip())


class RemoteRequestError(RemoteError):
    """Transport-level failure (connection refused, timeout, ...)"""
    pass


class LocalIOError(ThemeSyncError):
    """Local file read/write error"""
    pass


class TransformError(ThemeSyncError):
    """Minifier or style compiler failure"""
    pass


class ModuleGroupError(ThemeSyncError):
    """Script module group could not be assembled"""
    pass


class ThrottleClosed(ThemeSyncError):
    """Rate limiter shut down while a request was still queued"""
    pass


class TaskTimeout(ThemeSyncError):
    """Parallel batch exceeded its time limit"""
    pass
