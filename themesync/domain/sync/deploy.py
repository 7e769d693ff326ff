"""
Full theme deploy: upload every theme file as one parallel batch
"""
from typing import Any, List, Optional

from ...core.logging import get_logger, log_activity
from ...core.tasks import Err, Ok, Outcome, Step, run_parallel
from .models import EventKind, Resolution, SyncAction, WatchEvent
from .modules import list_files
from .pipeline import SyncPipeline
from .resolver import PathResolver

logger = get_logger(__name__)


class ThemeDeployer:
    """Pushes the whole local theme, generated assets included"""

    def __init__(self, resolver: PathResolver, pipeline: SyncPipeline):
        self.resolver = resolver
        self.pipeline = pipeline

    def plan(self) -> List[Resolution]:
        """Upload resolutions for every file under the theme root"""
        theme = self.resolver.paths.theme
        resolutions = []
        for path in list_files(theme):
            resolution = self.resolver.resolve_theme(
                WatchEvent(EventKind.ADD, path), include_generated=True
            )
            if resolution.action is SyncAction.UPLOAD:
                resolutions.append(resolution)
        return resolutions

    def _upload_step(self, resolution: Resolution) -> Step:
        async def step(_context: Any) -> Outcome:
            job, outcome = await self.pipeline.execute(resolution)
            if isinstance(outcome, Err):
                log_activity(job.failure_kind.value, f"{job.key}: {outcome.reason}")
            else:
                log_activity(job.log_kind.value, job.key)
            return outcome

        step.__name__ = f"deploy[{resolution.remote_key}]"
        return step

    async def deploy(self, time_limit: Optional[float] = None) -> Outcome:
        """
        Upload the planned files concurrently through the shared throttle.

        Args:
            time_limit: Seconds after which the batch is abandoned

        Returns:
            Ok(number of files) or the first Err
        """
        resolutions = self.plan()
        if not resolutions:
            logger.warning(f"No theme files found under {self.resolver.paths.theme}")

        steps = [self._upload_step(r) for r in resolutions]
        outcome = await run_parallel(steps, None, time_limit=time_limit)
        if isinstance(outcome, Err):
            log_activity("Error", f"Deploy aborted: {outcome.reason}")
            return outcome

        log_activity("Deploy complete", f"{len(resolutions)} file(s)")
        return Ok(len(resolutions))
