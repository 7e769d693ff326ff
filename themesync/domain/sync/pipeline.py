"""
Upload and delete pipelines built from a Resolution
"""
import asyncio
from pathlib import Path
from typing import List, Tuple

from ...core.exceptions import LocalIOError, ThemeSyncError
from ...core.interfaces import ScriptMinifier, StyleCompiler
from ...core.logging import get_logger
from ...core.tasks import Err, Ok, Outcome, Step, run_sequence
from ...core.utils import read_asset_content
from ...infrastructure.api import ThemeAPIClient
from ...infrastructure.state import LocalDataStore
from .models import LogKind, Resolution, SyncAction, TransformKind, UploadJob
from .modules import collect_group_sources

logger = get_logger(__name__)


class SyncPipeline:
    """
    Turns a Resolution into an ordered list of steps over an UploadJob.

    Upload chain: [collect group] → [minify | compile] → read → write
    Delete chain: delete remote → [remove local artifact]

    Steps report expected failures as Err; the chain stops at the first one.
    """

    def __init__(
        self,
        api: ThemeAPIClient,
        minifier: ScriptMinifier,
        compiler: StyleCompiler,
        local_data: LocalDataStore,
    ):
        self.api = api
        self.minifier = minifier
        self.compiler = compiler
        self.local_data = local_data

    def build(self, resolution: Resolution) -> Tuple[List[Step], UploadJob]:
        """
        Build the step list and its initial context.

        Raises:
            ValueError: If the resolution is an ignore decision
        """
        if resolution.action is SyncAction.IGNORE or not resolution.remote_key:
            raise ValueError(f"Nothing to run for ignored event ({resolution.reason})")

        if resolution.action is SyncAction.DELETE:
            job = UploadJob(
                key=resolution.remote_key,
                log_kind=LogKind.DELETED,
                artifact=resolution.local_artifact,
            )
            steps: List[Step] = [self.delete_remote]
            if resolution.local_artifact is not None:
                steps.append(self.discard_artifact)
            return steps, job

        job = UploadJob(
            key=resolution.remote_key,
            log_kind=LogKind.UPLOADED,
            source_path=resolution.upload_path,
            is_binary=resolution.is_binary,
            inputs=list(resolution.sources),
            group_dir=resolution.group_dir,
        )
        steps = []
        if resolution.discard_after_upload:
            # Transient artifact in the scratch store, named after the remote file
            job.artifact = self.local_data.artifact_path(Path(resolution.remote_key).name)
            job.source_path = job.artifact
        elif resolution.requires_transform:
            job.artifact = resolution.upload_path

        if resolution.is_group_operation:
            steps.append(self.collect_group)
        if resolution.transform is TransformKind.MINIFY_JS:
            steps.append(self.minify)
        elif resolution.transform is TransformKind.COMPILE_SCSS:
            steps.append(self.compile_styles)
        steps.extend([self.read_source, self.write_remote])
        return steps, job

    async def execute(self, resolution: Resolution) -> Tuple[UploadJob, Outcome]:
        """
        Run the chain for one resolution.

        A transient artifact (inline scripts) is removed afterwards whatever
        the outcome.

        Returns:
            (job, Ok(job) or the first Err)
        """
        steps, job = self.build(resolution)
        try:
            outcome = await run_sequence(steps, job)
        finally:
            if resolution.discard_after_upload and job.artifact is not None:
                self.local_data.discard(job.artifact)
        return job, outcome

    # --------------------
    # Steps
    # --------------------
    async def collect_group(self, job: UploadJob) -> Outcome:
        try:
            job.inputs = await asyncio.to_thread(collect_group_sources, job.group_dir)
        except (ThemeSyncError, OSError) as e:
            logger.error(f"Cannot package {job.key}: {e}")
            return Err(e)
        return Ok(job)

    async def minify(self, job: UploadJob) -> Outcome:
        try:
            await self.minifier.minify(job.inputs, job.artifact)
        except ThemeSyncError as e:
            logger.error(f"Minification for {job.key} failed: {e}")
            return Err(e)
        return Ok(job)

    async def compile_styles(self, job: UploadJob) -> Outcome:
        try:
            await self.compiler.compile(job.inputs[0], job.artifact)
        except ThemeSyncError as e:
            logger.error(f"Style compilation for {job.key} failed: {e}")
            return Err(e)
        return Ok(job)

    async def read_source(self, job: UploadJob) -> Outcome:
        try:
            job.content = await asyncio.to_thread(
                read_asset_content, job.source_path, job.is_binary
            )
        except (OSError, UnicodeDecodeError) as e:
            logger.error(f"Cannot read {job.source_path}: {e}")
            return Err(LocalIOError(f"Cannot read {job.source_path}: {e}"))
        return Ok(job)

    async def write_remote(self, job: UploadJob) -> Outcome:
        outcome = await self.api.write_asset(job.key, job.content or "", job.is_binary)
        if isinstance(outcome, Err):
            return outcome
        return Ok(job)

    async def delete_remote(self, job: UploadJob) -> Outcome:
        outcome = await self.api.delete_asset(job.key)
        if isinstance(outcome, Err):
            return outcome
        return Ok(job)

    async def discard_artifact(self, job: UploadJob) -> Outcome:
        # Failure to remove a generated file never fails the chain
        if job.artifact is not None:
            await asyncio.to_thread(self.local_data.discard, job.artifact)
        return Ok(job)
