"""
SCSS compiler backed by an external binary (dart-sass CLI)
"""
import asyncio
from pathlib import Path
from typing import Sequence

from ...core.exceptions import TransformError
from ...core.interfaces import StyleCompiler
from ...core.logging import get_logger
from .runner import run_tool

logger = get_logger(__name__)


class CommandStyleCompiler(StyleCompiler):
    """Runs `<command> <entry>` and writes the CSS printed on stdout"""

    def __init__(self, command: Sequence[str]):
        if not command:
            raise ValueError("style compiler command must not be empty")
        self.command = list(command)

    async def compile(self, entry: Path, output: Path) -> None:
        if not entry.is_file():
            raise TransformError(f"Style entry not found: {entry}")

        css, _ = await run_tool([*self.command, str(entry)])

        try:
            output.parent.mkdir(parents=True, exist_ok=True)
            await asyncio.to_thread(output.write_bytes, css)
        except OSError as e:
            raise TransformError(f"Cannot write {output}: {e}") from e
        logger.debug(f"Compiled {entry} into {output}")
