"""
Change event dispatcher: per-root policy from watch event to sync job
"""
import asyncio
import time
from pathlib import Path
from typing import Callable, Dict, Optional

from ...core.constants import DEFAULT_RELOAD_DELAY, DIRECTORY_EVENT_QUIET_PERIOD
from ...core.interfaces import ReloadSignal
from ...core.logging import get_logger, log_activity
from ...core.tasks import Err, Outcome
from .models import EventKind, LogKind, SyncAction, WatchEvent, WatchRoot
from .pipeline import SyncPipeline
from .resolver import PathResolver

logger = get_logger(__name__)

# File events a directory operation fans out into
_FANOUT_KINDS = (EventKind.ADD, EventKind.UNLINK)


class ChangeDispatcher:
    """
    Consumes watch events and runs the matching upload or delete chain.

    Scripts root only: after a directory event, file-level add/unlink
    events are dropped for quiet_period seconds, since the directory event
    already re-packages (or deletes) the whole module group.

    Theme root only: the unlink of a minified file that a scripts delete
    removed itself is skipped, the remote key is already gone.

    Every finished job ends in an activity line and a reload signal,
    failures included. Nothing raised while handling an event escapes.
    """

    def __init__(
        self,
        resolver: PathResolver,
        pipeline: SyncPipeline,
        reload: ReloadSignal,
        reload_delay: float = DEFAULT_RELOAD_DELAY,
        quiet_period: float = DIRECTORY_EVENT_QUIET_PERIOD,
        clock: Callable[[], float] = time.monotonic,
    ):
        """
        Initialize dispatcher.

        Args:
            resolver: Path resolution engine
            pipeline: Builds and runs upload/delete chains
            reload: Live-reload signal
            reload_delay: Seconds to wait after a successful job before reloading
            quiet_period: Ignore window after a scripts directory event
            clock: Monotonic clock (tests inject a fake one)
        """
        self.resolver = resolver
        self.pipeline = pipeline
        self.reload = reload
        self.reload_delay = reload_delay
        self.quiet_period = quiet_period
        self._clock = clock
        self._quiet_until = 0.0
        # Local artifacts removed by a scripts delete, with expiry
        self._owned_unlinks: Dict[Path, float] = {}

    @property
    def is_quiet(self) -> bool:
        """Whether the scripts ignore window is open"""
        return self._clock() < self._quiet_until

    async def handle(self, root: WatchRoot, event: WatchEvent) -> Optional[Outcome]:
        """
        Handle one watch event.

        Returns:
            Outcome of the chain, or None when the event was a no-op
        """
        try:
            return await self._dispatch(root, event)
        except asyncio.CancelledError:
            raise
        except Exception as e:
            logger.exception(f"Unhandled error for {event.kind.value} {event.path}")
            log_activity("Error", e)
            return Err(e)

    async def _dispatch(self, root: WatchRoot, event: WatchEvent) -> Optional[Outcome]:
        if root is WatchRoot.SCRIPTS and self._suppressed(event):
            logger.debug(f"Suppressed {event.kind.value} {event.path} (directory event)")
            return None
        if root is WatchRoot.THEME and self._owned_unlink(event):
            logger.debug(f"Skipped unlink of {event.path}, removed by the scripts pipeline")
            return None

        resolution = self.resolver.resolve(root, event)
        if resolution.action is SyncAction.IGNORE:
            logger.debug(f"Ignored {event.kind.value} {event.path}: {resolution.reason}")
            return None

        if (
            resolution.action is SyncAction.UPLOAD
            and resolution.group_dir is not None
            and not resolution.group_dir.is_dir()
        ):
            # Leftover file event of a group that is being removed
            logger.debug(f"Module group {resolution.group_dir} is gone, skipped")
            return None

        logger.info(f"{root.value}: {event.kind.value} {event.path}")
        artifact = resolution.local_artifact if resolution.action is SyncAction.DELETE else None
        if artifact is not None:
            self._owned_unlinks[artifact] = float("inf")
        try:
            job, outcome = await self.pipeline.execute(resolution)
        finally:
            if artifact is not None:
                self._owned_unlinks[artifact] = self._clock() + self.quiet_period

        if isinstance(outcome, Err):
            kind = job.failure_kind.value
            log_activity(kind, f"{job.key}: {outcome.reason}")
            await self.reload.reload(kind, job.key)
            return outcome

        if job.log_kind is LogKind.UPLOADED:
            log_activity("Uploading", job.key)
        if self.reload_delay > 0:
            await asyncio.sleep(self.reload_delay)
        log_activity(job.log_kind.value, job.key)
        await self.reload.reload(job.log_kind.value, job.key)
        return outcome

    def _suppressed(self, event: WatchEvent) -> bool:
        if event.kind.is_dir:
            self._quiet_until = self._clock() + self.quiet_period
            return False
        return event.kind in _FANOUT_KINDS and self.is_quiet

    def _owned_unlink(self, event: WatchEvent) -> bool:
        now = self._clock()
        for path, expiry in list(self._owned_unlinks.items()):
            if expiry <= now:
                del self._owned_unlinks[path]
        if event.kind is not EventKind.UNLINK:
            return False
        return self._owned_unlinks.pop(event.path, None) is not None
