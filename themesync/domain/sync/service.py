"""
Sync domain service - wiring and watch lifecycle
"""
import asyncio
from dataclasses import dataclass
from pathlib import Path
from typing import Callable, Dict, Optional

import httpx

from ...core.config import ThemeSyncConfig
from ...core.interfaces import ScriptMinifier, StyleCompiler
from ...core.logging import get_logger, log_activity
from ...core.throttle import RateLimiter
from ...infrastructure.api import ThemeAPIClient
from ...infrastructure.livereload import LiveReloadServer
from ...infrastructure.state import LocalDataStore
from ...infrastructure.transform import CommandMinifier, CommandStyleCompiler
from ...infrastructure.watch import start_watchers
from .deploy import ThemeDeployer
from .dispatcher import ChangeDispatcher
from .models import EventKind, WatchEvent, WatchRoot
from .pipeline import SyncPipeline
from .resolver import PathResolver

logger = get_logger(__name__)


@dataclass
class SyncComponents:
    """Objects shared by watch and deploy for one configuration"""
    limiter: RateLimiter
    api: ThemeAPIClient
    local_data: LocalDataStore
    resolver: PathResolver
    pipeline: SyncPipeline

    async def aclose(self) -> None:
        await self.limiter.aclose()
        await self.api.aclose()


def build_components(
    config: ThemeSyncConfig,
    minifier: Optional[ScriptMinifier] = None,
    compiler: Optional[StyleCompiler] = None,
    transport: Optional[httpx.AsyncBaseTransport] = None,
) -> SyncComponents:
    """
    Assemble throttle, API client, resolver and pipeline from configuration.

    Args:
        config: Validated configuration
        minifier: Override the configured minifier command
        compiler: Override the configured style compiler command
        transport: Optional httpx transport for the API client
    """
    limiter = RateLimiter(
        bucket_size=config.throttle.bucket_size,
        leak_rate=config.throttle.leak_rate,
        padding=config.throttle.padding,
    )
    api = ThemeAPIClient(
        config.store,
        limiter=limiter,
        binary_formats=config.binary_formats,
        transport=transport,
    )
    local_data = LocalDataStore(config.paths.local_data)
    resolver = PathResolver(
        config.paths,
        styles=config.styles,
        binary_formats=config.binary_formats,
    )
    pipeline = SyncPipeline(
        api,
        minifier or CommandMinifier(config.tools.minifier),
        compiler or CommandStyleCompiler(config.tools.style_compiler),
        local_data,
    )
    return SyncComponents(limiter, api, local_data, resolver, pipeline)


class WatchService:
    """
    Watch service - long-running sync loop.

    Starts the live-reload server, watches the scripts, styles and theme
    roots and hands every event to the ChangeDispatcher until stopped.
    No direct dependency on CLI or Typer.
    """

    def __init__(
        self,
        config: ThemeSyncConfig,
        components: SyncComponents,
        on_ready: Optional[Callable[[str], None]] = None,
        on_stopped: Optional[Callable[[], None]] = None,
    ):
        """
        Initialize watch service.

        Args:
            config: Validated configuration
            components: Shared objects from build_components
            on_ready: Callback once serving and watching (server url)
            on_stopped: Callback after everything was shut down
        """
        self.config = config
        self.components = components
        self.on_ready = on_ready
        self.on_stopped = on_stopped
        self.server = LiveReloadServer(
            components.api,
            components.local_data,
            host=config.server.host,
            port=config.server.port,
        )
        self.dispatcher = ChangeDispatcher(
            components.resolver,
            components.pipeline,
            self.server,
            reload_delay=config.server.reload_delay,
        )

    def watched_roots(self) -> Dict[str, Path]:
        paths = self.config.paths
        return {
            WatchRoot.SCRIPTS.value: paths.scripts,
            WatchRoot.STYLES.value: paths.styles,
            WatchRoot.THEME.value: paths.theme,
        }

    async def run(self, stop: Optional[asyncio.Event] = None) -> None:
        """
        Serve and watch until stop is set (or the task is cancelled).

        Raises:
            ConfigError: If a watched root is missing
            ThemeSyncError: If the server cannot bind its port
        """
        self.config.paths.ensure()
        # Scratch files left behind by an interrupted run
        self.components.local_data.clear()
        stop = stop or asyncio.Event()
        loop = asyncio.get_running_loop()

        def sink(root_name: str, kind: str, path: Path) -> None:
            event = WatchEvent(EventKind(kind), path)
            asyncio.run_coroutine_threadsafe(
                self.dispatcher.handle(WatchRoot(root_name), event), loop
            )

        await self.server.start()
        observer = None
        try:
            observer = start_watchers(self.watched_roots(), sink)
            log_activity("Application ready", self.server.url)
            if self.on_ready:
                self.on_ready(self.server.url)
            await stop.wait()
        finally:
            if observer is not None:
                observer.stop()
                await asyncio.to_thread(observer.join)
            await self.server.aclose()
            await self.components.aclose()
            if self.on_stopped:
                self.on_stopped()


async def run_deploy(components: SyncComponents, time_limit: Optional[float] = None):
    """Deploy the whole theme, closing the components afterwards"""
    deployer = ThemeDeployer(components.resolver, components.pipeline)
    try:
        return await deployer.deploy(time_limit=time_limit)
    finally:
        await components.aclose()
