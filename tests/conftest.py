from __future__ import annotations

from pathlib import Path
from typing import List, Optional, Sequence, Tuple

import pytest

from themesync.core.config import ProjectPaths, StoreConfig, ThemeSyncConfig
from themesync.core.constants import THEME_DIRS
from themesync.core.exceptions import RemoteWriteFailed, TransformError
from themesync.core.interfaces import ReloadSignal, ScriptMinifier, StyleCompiler
from themesync.core.tasks import Err, Ok, Outcome
from themesync.infrastructure.api.models import RemoteAsset, ResourcePage


class ProjectBuilder:
    """Creates a scripts/styles/theme project tree under a temporary directory."""

    def __init__(self, root: Path) -> None:
        self.paths = ProjectPaths(base=root)
        for directory in (self.paths.scripts, self.paths.styles, self.paths.theme):
            directory.mkdir(parents=True, exist_ok=True)
        for name in THEME_DIRS:
            (self.paths.theme / name).mkdir(exist_ok=True)

    def write(self, relative: str, content: str = "") -> Path:
        path = self.paths.base / relative
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(content, encoding="utf-8")
        return path

    def write_bytes(self, relative: str, content: bytes) -> Path:
        path = self.paths.base / relative
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_bytes(content)
        return path


class FakeAPI:
    """Records asset writes and deletes; optionally fails them."""

    def __init__(self) -> None:
        self.writes: List[Tuple[str, str, bool]] = []
        self.deletes: List[str] = []
        self.fail_writes = False
        self.fail_deletes = False
        self.pages: List[ResourcePage] = []
        self.page_calls: List[Optional[str]] = []
        self.resource_writes: List[Tuple[str, dict, str]] = []

    async def write_asset(self, key: str, content: str, is_binary: bool = False) -> Outcome:
        self.writes.append((key, content, is_binary))
        if self.fail_writes:
            return Err(RemoteWriteFailed(500, "server error", "PUT", key))
        return Ok(RemoteAsset.build(key, content, is_binary))

    async def delete_asset(self, key: str) -> Outcome:
        self.deletes.append(key)
        if self.fail_deletes:
            return Err(RemoteWriteFailed(404, "not found", "DELETE", key))
        return Ok(key)

    async def read_resource_page(self, resource_type, fields=None, cursor=None, query=None) -> Outcome:
        self.page_calls.append(cursor)
        index = len(self.page_calls) - 1
        return Ok(self.pages[index])

    async def write_resource(self, resource_type, payload, method="PUT") -> Outcome:
        self.resource_writes.append((resource_type, payload, method))
        return Ok(dict(payload))


class FakeMinifier(ScriptMinifier):
    """Concatenates sources and tags the result instead of minifying."""

    def __init__(self) -> None:
        self.calls: List[Tuple[List[Path], Path]] = []
        self.fail = False

    async def minify(self, sources: Sequence[Path], output: Path) -> None:
        self.calls.append((list(sources), output))
        if self.fail:
            raise TransformError("minifier exited with 1")
        text = "".join(source.read_text(encoding="utf-8") for source in sources)
        output.parent.mkdir(parents=True, exist_ok=True)
        output.write_text(f"/*min*/{text}", encoding="utf-8")


class FakeCompiler(StyleCompiler):
    def __init__(self) -> None:
        self.calls: List[Tuple[Path, Path]] = []

    async def compile(self, entry: Path, output: Path) -> None:
        self.calls.append((entry, output))
        output.parent.mkdir(parents=True, exist_ok=True)
        output.write_text("body{color:red}", encoding="utf-8")


class FakeReload(ReloadSignal):
    def __init__(self) -> None:
        self.calls: List[Tuple[str, str]] = []

    async def reload(self, log_kind: str, key: str) -> None:
        self.calls.append((log_kind, key))


@pytest.fixture
def project(tmp_path: Path) -> ProjectBuilder:
    return ProjectBuilder(tmp_path / "shop")


@pytest.fixture
def config(project: ProjectBuilder) -> ThemeSyncConfig:
    store = StoreConfig(
        store_url="shop.example.com",
        theme_id="42",
        api_key="key",
        password="secret",
    )
    return ThemeSyncConfig(store=store, paths=project.paths)


@pytest.fixture
def fake_api() -> FakeAPI:
    return FakeAPI()


@pytest.fixture
def minifier() -> FakeMinifier:
    return FakeMinifier()


@pytest.fixture
def compiler() -> FakeCompiler:
    return FakeCompiler()


@pytest.fixture
def reload_signal() -> FakeReload:
    return FakeReload()

