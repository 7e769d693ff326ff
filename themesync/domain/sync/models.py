"""
Sync domain models
"""
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import List, Optional, Tuple


class EventKind(str, Enum):
    """File-system change kinds"""
    ADD = "add"
    CHANGE = "change"
    UNLINK = "unlink"
    ADD_DIR = "addDir"
    UNLINK_DIR = "unlinkDir"

    @property
    def is_dir(self) -> bool:
        return self in (EventKind.ADD_DIR, EventKind.UNLINK_DIR)


class WatchRoot(str, Enum):
    """Watched local roots, each with its own policy"""
    SCRIPTS = "scripts"
    STYLES = "styles"
    THEME = "theme"


@dataclass(frozen=True)
class WatchEvent:
    """Single file-system change notification"""
    kind: EventKind
    path: Path


class SyncAction(str, Enum):
    UPLOAD = "upload"
    DELETE = "delete"
    IGNORE = "ignore"


class TransformKind(str, Enum):
    NONE = "none"
    MINIFY_JS = "minify_js"
    COMPILE_SCSS = "compile_scss"


class NestingRule(str, Enum):
    """
    Role of a one-level subdirectory inside a top-level theme directory.

    - flatten: subdirectory is dropped from the remote key
    - preserve: subdirectory is kept (the remote allows this nesting)
    - local_only: files are minified and uploaded to the parent directory
    """
    FLATTEN = "flatten"
    PRESERVE = "preserve"
    LOCAL_ONLY = "local_only"


class LogKind(str, Enum):
    """Activity labels reported when a sync job ends"""
    UPLOADED = "Uploaded"
    DELETED = "Deleted"
    UPLOAD_FAILED = "Upload Failed"
    DELETE_FAILED = "Delete Failed"


@dataclass(frozen=True)
class Resolution:
    """
    Decision computed for one watch event.

    Attributes:
        action: upload, delete or ignore
        remote_key: Remote key written or deleted
        transform: Transformation required before upload
        is_group_operation: Event concerns a whole script module group
        sources: Transform inputs (standalone script, style entry)
        group_dir: Module group directory, sources are collected at run time
        upload_path: Local file whose content is uploaded
        is_binary: Upload as base64 attachment
        discard_after_upload: upload_path is a transient artifact
        local_artifact: Generated local file removed along with the remote key
        reason: Why the event is ignored
    """
    action: SyncAction
    remote_key: Optional[str] = None
    transform: TransformKind = TransformKind.NONE
    is_group_operation: bool = False
    sources: Tuple[Path, ...] = ()
    group_dir: Optional[Path] = None
    upload_path: Optional[Path] = None
    is_binary: bool = False
    discard_after_upload: bool = False
    local_artifact: Optional[Path] = None
    reason: str = ""

    @property
    def requires_transform(self) -> bool:
        return self.transform is not TransformKind.NONE

    @classmethod
    def ignore(cls, reason: str) -> "Resolution":
        return cls(action=SyncAction.IGNORE, reason=reason)


@dataclass
class UploadJob:
    """Context threaded through the steps of one upload or delete"""
    key: str
    log_kind: LogKind
    source_path: Optional[Path] = None
    is_binary: bool = False
    inputs: List[Path] = field(default_factory=list)
    group_dir: Optional[Path] = None
    artifact: Optional[Path] = None
    content: Optional[str] = None

    @property
    def failure_kind(self) -> LogKind:
        if self.log_kind is LogKind.DELETED:
            return LogKind.DELETE_FAILED
        return LogKind.UPLOAD_FAILED
