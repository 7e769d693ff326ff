"""
Sync domain: path resolution, upload pipelines, dispatch and deploy
"""
from .deploy import ThemeDeployer
from .dispatcher import ChangeDispatcher
from .models import (
    EventKind,
    LogKind,
    NestingRule,
    Resolution,
    SyncAction,
    TransformKind,
    UploadJob,
    WatchEvent,
    WatchRoot,
)
from .modules import collect_group_sources, list_files, parse_order_manifest
from .pipeline import SyncPipeline
from .resolver import PathResolver, ThemeLayout
from .service import SyncComponents, WatchService, build_components, run_deploy

__all__ = [
    "ThemeDeployer",
    "ChangeDispatcher",
    "EventKind",
    "LogKind",
    "NestingRule",
    "Resolution",
    "SyncAction",
    "TransformKind",
    "UploadJob",
    "WatchEvent",
    "WatchRoot",
    "collect_group_sources",
    "list_files",
    "parse_order_manifest",
    "SyncPipeline",
    "PathResolver",
    "ThemeLayout",
    "SyncComponents",
    "WatchService",
    "build_components",
    "run_deploy",
]
