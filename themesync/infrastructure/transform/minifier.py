"""
Script minifier backed by an external binary (jsmin-compatible)
"""
import asyncio
from pathlib import Path
from typing import Sequence

from ...core.exceptions import TransformError
from ...core.interfaces import ScriptMinifier
from ...core.logging import get_logger
from .runner import run_tool

logger = get_logger(__name__)


def concatenate_sources(sources: Sequence[Path]) -> bytes:
    """Join source files in order, newline separated"""
    chunks = []
    for source in sources:
        text = source.read_bytes()
        chunks.append(text if text.endswith(b"\n") else text + b"\n")
    return b"".join(chunks)


class CommandMinifier(ScriptMinifier):
    """
    Minifier reading source on stdin and writing the result to stdout.

    A module group is concatenated first and fed as one input, so the
    minifier sees a single script.
    """

    def __init__(self, command: Sequence[str]):
        if not command:
            raise ValueError("minifier command must not be empty")
        self.command = list(command)

    async def minify(self, sources: Sequence[Path], output: Path) -> None:
        if not sources:
            raise TransformError("Nothing to minify")
        try:
            source = await asyncio.to_thread(concatenate_sources, sources)
        except OSError as e:
            raise TransformError(f"Cannot read script sources: {e}") from e

        minified, _ = await run_tool(self.command, stdin=source)

        try:
            output.parent.mkdir(parents=True, exist_ok=True)
            await asyncio.to_thread(output.write_bytes, minified)
        except OSError as e:
            raise TransformError(f"Cannot write {output}: {e}") from e
        logger.debug(f"Minified {len(sources)} file(s) into {output}")
