"""
Path resolution: local change → remote key, transform and group membership
"""
from dataclasses import dataclass, field
from pathlib import Path
from typing import FrozenSet, Iterable, Mapping, Optional, Tuple

from ...core.config import ProjectPaths, StyleConfig
from ...core.constants import (
    ASSETS_DIR,
    AUTHORED_MINIFIED_MARKER,
    DEFAULT_BINARY_FORMATS,
    INLINE_SCRIPTS_DIR,
    MINIFIED_MARKER,
    MINIFIED_SCRIPT_SUFFIX,
    PRESERVED_NESTED_DIRS,
    THEME_DIRS,
)
from ...core.logging import get_logger
from ...core.utils import join_key, relative_parts
from .models import (
    EventKind,
    NestingRule,
    Resolution,
    SyncAction,
    TransformKind,
    WatchEvent,
    WatchRoot,
)

logger = get_logger(__name__)


def _default_nested_roles() -> Mapping[Tuple[str, str], NestingRule]:
    roles = {pair: NestingRule.PRESERVE for pair in PRESERVED_NESTED_DIRS}
    roles[INLINE_SCRIPTS_DIR] = NestingRule.LOCAL_ONLY
    return roles


@dataclass(frozen=True)
class ThemeLayout:
    """
    Theme directory taxonomy, resolved once from configuration.

    Files directly inside a top-level directory map to "<dir>/<name>".
    Files one level deeper map according to the subdirectory's NestingRule
    (FLATTEN unless listed in nested_roles). Deeper nesting is unsupported.
    """
    top_dirs: FrozenSet[str] = frozenset(THEME_DIRS)
    nested_roles: Mapping[Tuple[str, str], NestingRule] = field(
        default_factory=_default_nested_roles
    )

    def role_of(self, top: str, sub: str) -> NestingRule:
        return self.nested_roles.get((top, sub), NestingRule.FLATTEN)


class PathResolver:
    """
    Pure mapping from (watched root, event) to a Resolution.

    Only path arithmetic happens here; module group contents are collected
    when the upload runs.
    """

    def __init__(
        self,
        paths: ProjectPaths,
        styles: Optional[StyleConfig] = None,
        layout: Optional[ThemeLayout] = None,
        binary_formats: Iterable[str] = DEFAULT_BINARY_FORMATS,
    ):
        self.paths = paths
        self.styles = styles or StyleConfig()
        self.layout = layout or ThemeLayout()
        self.binary_formats = tuple(f.lower() for f in binary_formats)

    def resolve(self, root: WatchRoot, event: WatchEvent) -> Resolution:
        if root is WatchRoot.SCRIPTS:
            return self.resolve_script(event)
        if root is WatchRoot.STYLES:
            return self.resolve_style(event)
        return self.resolve_theme(event)

    def is_binary(self, path: Path) -> bool:
        return path.suffix.lower() in self.binary_formats

    # ============================================================
    # Styles
    # ============================================================

    def resolve_style(self, event: WatchEvent) -> Resolution:
        """Any style file change recompiles the single entry file"""
        if event.kind.is_dir:
            return Resolution.ignore("style directory event")

        key = self.styles.output_key
        return Resolution(
            action=SyncAction.UPLOAD,
            remote_key=key,
            transform=TransformKind.COMPILE_SCSS,
            sources=(self.paths.styles / self.styles.entry,),
            upload_path=self.paths.theme.joinpath(*key.split("/")),
        )

    # ============================================================
    # Scripts
    # ============================================================

    def script_key(self, name: str) -> str:
        """Remote key of the minified module named after a file or group"""
        stem = name[: -len(".js")] if name.endswith(".js") else Path(name).stem
        return join_key(ASSETS_DIR, stem + MINIFIED_SCRIPT_SUFFIX)

    def group_of(self, path: Path) -> Optional[str]:
        """Module group owning path, None for standalone scripts"""
        parts = relative_parts(path, self.paths.scripts)
        if not parts or len(parts) < 2:
            return None
        return parts[0]

    def resolve_script(self, event: WatchEvent) -> Resolution:
        """
        Scripts root rules:
        - scripts/<file>: standalone module → assets/<stem>.min.js
        - scripts/<group>/...: every file belongs to <group>, the whole group
          is concatenated and minified into assets/<group>.min.js
        - addDir/unlinkDir of a group re-packages or deletes it
        """
        parts = relative_parts(event.path, self.paths.scripts)
        if not parts:
            return Resolution.ignore("outside scripts root")
        if parts[-1].startswith("."):
            return Resolution.ignore("hidden file")

        if len(parts) == 1 and not event.kind.is_dir:
            return self._standalone_script(event, parts[0])

        group = parts[0]
        key = self.script_key(group)
        artifact = self.paths.theme / ASSETS_DIR / (group + MINIFIED_SCRIPT_SUFFIX)

        if event.kind is EventKind.UNLINK_DIR and len(parts) == 1:
            return Resolution(
                action=SyncAction.DELETE,
                remote_key=key,
                is_group_operation=True,
                local_artifact=artifact,
            )

        return Resolution(
            action=SyncAction.UPLOAD,
            remote_key=key,
            transform=TransformKind.MINIFY_JS,
            is_group_operation=True,
            group_dir=self.paths.scripts / group,
            upload_path=artifact,
        )

    def _standalone_script(self, event: WatchEvent, name: str) -> Resolution:
        key = self.script_key(name)
        artifact = self.paths.theme.joinpath(*key.split("/"))
        if event.kind is EventKind.UNLINK:
            return Resolution(action=SyncAction.DELETE, remote_key=key, local_artifact=artifact)
        return Resolution(
            action=SyncAction.UPLOAD,
            remote_key=key,
            transform=TransformKind.MINIFY_JS,
            sources=(event.path,),
            upload_path=artifact,
        )

    # ============================================================
    # Theme
    # ============================================================

    def theme_key(self, path: Path) -> Optional[Tuple[str, NestingRule]]:
        """
        Remote key of a theme file and the nesting rule that produced it.

        Returns:
            (key, rule), or None if the path has no remote counterpart
        """
        parts = relative_parts(path, self.paths.theme)
        if not parts or len(parts) < 2 or len(parts) > 3:
            return None
        top = parts[0]
        if top not in self.layout.top_dirs:
            return None
        name = parts[-1]
        if len(parts) == 2:
            return join_key(top, name), NestingRule.FLATTEN

        rule = self.layout.role_of(top, parts[1])
        if rule is NestingRule.PRESERVE:
            return join_key(top, parts[1], name), rule
        return join_key(top, name), rule

    def is_generated_asset(self, path: Path) -> bool:
        """Minified files directly in theme/assets are build output"""
        parts = relative_parts(path, self.paths.theme)
        if not parts or len(parts) != 2 or parts[0] != ASSETS_DIR:
            return False
        name = parts[1]
        return MINIFIED_MARKER in name and AUTHORED_MINIFIED_MARKER not in name

    def resolve_theme(self, event: WatchEvent, include_generated: bool = False) -> Resolution:
        """
        Theme root rules:
        - theme/<dir>/<name> → "<dir>/<name>"
        - theme/<dir>/<sub>/<name> → "<dir>/<name>" (flattened), except
          templates/customers which keeps its nesting
        - theme/snippets/inline-scripts/<name> → minified, uploaded as
          "snippets/<name>", the minified copy is discarded afterwards
        - generated minified assets are skipped unless deleted (or when
          include_generated is set, as deploy does)
        """
        if event.kind.is_dir:
            return Resolution.ignore("theme directory event")
        if event.path.name.startswith("."):
            return Resolution.ignore("hidden file")

        mapped = self.theme_key(event.path)
        if mapped is None:
            logger.warning(f"No remote key for {event.path}, ignored")
            return Resolution.ignore("not under a theme directory")
        key, rule = mapped

        if event.kind is EventKind.UNLINK:
            return Resolution(action=SyncAction.DELETE, remote_key=key)

        if not include_generated and self.is_generated_asset(event.path):
            return Resolution.ignore("generated asset")

        if rule is NestingRule.LOCAL_ONLY:
            return Resolution(
                action=SyncAction.UPLOAD,
                remote_key=key,
                transform=TransformKind.MINIFY_JS,
                sources=(event.path,),
                discard_after_upload=True,
            )

        return Resolution(
            action=SyncAction.UPLOAD,
            remote_key=key,
            upload_path=event.path,
            is_binary=self.is_binary(event.path),
        )
