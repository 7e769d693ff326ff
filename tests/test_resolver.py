"""Tests for themesync.domain.sync.resolver."""

from __future__ import annotations

from pathlib import Path

import pytest

from themesync.core.config import ProjectPaths
from themesync.domain.sync.models import (
    EventKind,
    NestingRule,
    SyncAction,
    TransformKind,
    WatchEvent,
    WatchRoot,
)
from themesync.domain.sync.resolver import PathResolver, ThemeLayout

BASE = Path("/work/shop")


@pytest.fixture
def resolver() -> PathResolver:
    return PathResolver(ProjectPaths(base=BASE))


def theme_event(relative: str, kind: EventKind = EventKind.CHANGE) -> WatchEvent:
    return WatchEvent(kind, BASE / "theme" / relative)


def script_event(relative: str, kind: EventKind = EventKind.CHANGE) -> WatchEvent:
    return WatchEvent(kind, BASE / "scripts" / relative)


@pytest.mark.parametrize(
    ("relative", "key"),
    [
        ("snippets/foo.liquid", "snippets/foo.liquid"),
        ("sections/promo/banner.liquid", "sections/banner.liquid"),
        ("templates/customers/login.liquid", "templates/customers/login.liquid"),
        ("layout/theme.liquid", "layout/theme.liquid"),
    ],
)
def test_theme_keys(resolver: PathResolver, relative: str, key: str) -> None:
    resolution = resolver.resolve(WatchRoot.THEME, theme_event(relative))

    assert resolution.action is SyncAction.UPLOAD
    assert resolution.remote_key == key
    assert resolution.transform is TransformKind.NONE
    assert resolution.upload_path == BASE / "theme" / relative


def test_theme_binary_detection(resolver: PathResolver) -> None:
    assert resolver.resolve_theme(theme_event("assets/logo.PNG")).is_binary
    assert not resolver.resolve_theme(theme_event("assets/theme.css")).is_binary


def test_inline_scripts_are_minified_and_discarded(resolver: PathResolver) -> None:
    resolution = resolver.resolve_theme(theme_event("snippets/inline-scripts/tracking.liquid"))

    assert resolution.remote_key == "snippets/tracking.liquid"
    assert resolution.transform is TransformKind.MINIFY_JS
    assert resolution.sources == (BASE / "theme/snippets/inline-scripts/tracking.liquid",)
    assert resolution.discard_after_upload


def test_generated_assets_ignored_except_delete(resolver: PathResolver) -> None:
    assert resolver.resolve_theme(theme_event("assets/app.min.js")).action is SyncAction.IGNORE

    deleted = resolver.resolve_theme(theme_event("assets/app.min.js", EventKind.UNLINK))
    assert deleted.action is SyncAction.DELETE
    assert deleted.remote_key == "assets/app.min.js"

    authored = resolver.resolve_theme(theme_event("assets/slider-tr.min.js"))
    assert authored.action is SyncAction.UPLOAD

    deploy = resolver.resolve_theme(theme_event("assets/app.min.js"), include_generated=True)
    assert deploy.action is SyncAction.UPLOAD


@pytest.mark.parametrize(
    "relative",
    ["README.md", "docs/notes.liquid", "sections/a/b/c.liquid", "snippets/.hidden"],
)
def test_theme_paths_without_remote_counterpart(resolver: PathResolver, relative: str) -> None:
    assert resolver.resolve_theme(theme_event(relative)).action is SyncAction.IGNORE


def test_theme_directory_events_are_noops(resolver: PathResolver) -> None:
    event = theme_event("sections/promo", EventKind.ADD_DIR)

    assert resolver.resolve_theme(event).action is SyncAction.IGNORE


def test_custom_layout_roles() -> None:
    layout = ThemeLayout(nested_roles={("sections", "promo"): NestingRule.PRESERVE})
    resolver = PathResolver(ProjectPaths(base=BASE), layout=layout)

    resolution = resolver.resolve_theme(theme_event("sections/promo/banner.liquid"))

    assert resolution.remote_key == "sections/promo/banner.liquid"


def test_standalone_script(resolver: PathResolver) -> None:
    resolution = resolver.resolve(WatchRoot.SCRIPTS, script_event("checkout.js"))

    assert resolution.action is SyncAction.UPLOAD
    assert resolution.remote_key == "assets/checkout.min.js"
    assert resolution.transform is TransformKind.MINIFY_JS
    assert resolution.sources == (BASE / "scripts/checkout.js",)
    assert resolution.upload_path == BASE / "theme/assets/checkout.min.js"
    assert not resolution.is_group_operation


def test_standalone_script_unlink_deletes_key_and_artifact(resolver: PathResolver) -> None:
    resolution = resolver.resolve_script(script_event("checkout.js", EventKind.UNLINK))

    assert resolution.action is SyncAction.DELETE
    assert resolution.remote_key == "assets/checkout.min.js"
    assert resolution.local_artifact == BASE / "theme/assets/checkout.min.js"


@pytest.mark.parametrize(
    ("relative", "kind"),
    [
        ("widgets/a.js", EventKind.CHANGE),
        ("widgets/a.js", EventKind.UNLINK),
        ("widgets/lib/deep.js", EventKind.ADD),
        ("widgets/lib", EventKind.ADD_DIR),
        ("widgets", EventKind.ADD_DIR),
    ],
)
def test_group_events_repackage_the_group(
    resolver: PathResolver, relative: str, kind: EventKind
) -> None:
    resolution = resolver.resolve_script(script_event(relative, kind))

    assert resolution.action is SyncAction.UPLOAD
    assert resolution.is_group_operation
    assert resolution.remote_key == "assets/widgets.min.js"
    assert resolution.group_dir == BASE / "scripts/widgets"


def test_group_removal_deletes_the_group(resolver: PathResolver) -> None:
    resolution = resolver.resolve_script(script_event("widgets", EventKind.UNLINK_DIR))

    assert resolution.action is SyncAction.DELETE
    assert resolution.is_group_operation
    assert resolution.remote_key == "assets/widgets.min.js"


def test_any_style_change_compiles_the_entry(resolver: PathResolver) -> None:
    event = WatchEvent(EventKind.CHANGE, BASE / "styles/partials/_buttons.scss")

    resolution = resolver.resolve(WatchRoot.STYLES, event)

    assert resolution.transform is TransformKind.COMPILE_SCSS
    assert resolution.sources == (BASE / "styles/main.scss",)
    assert resolution.remote_key == "assets/main.min.css.liquid"
    assert resolution.upload_path == BASE / "theme/assets/main.min.css.liquid"
