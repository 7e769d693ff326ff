"""
Subprocess helper shared by the external transformers
"""
import asyncio
from typing import Optional, Sequence, Tuple

from ...core.exceptions import TransformError
from ...core.logging import get_logger

logger = get_logger(__name__)


async def run_tool(
    command: Sequence[str],
    stdin: Optional[bytes] = None,
) -> Tuple[bytes, bytes]:
    """
    Run an external tool and collect its output.

    Args:
        command: Executable followed by its arguments
        stdin: Bytes fed to the tool's standard input

    Returns:
        (stdout, stderr)

    Raises:
        TransformError: If the tool is missing or exits non-zero
    """
    logger.debug(f"Running {' '.join(command)}")
    try:
        process = await asyncio.create_subprocess_exec(
            *command,
            stdin=asyncio.subprocess.PIPE if stdin is not None else asyncio.subprocess.DEVNULL,
            stdout=asyncio.subprocess.PIPE,
            stderr=asyncio.subprocess.PIPE,
        )
    except OSError as e:
        raise TransformError(f"Cannot run {command[0]}: {e}") from e

    out, err = await process.communicate(stdin)
    if process.returncode != 0:
        message = err.decode("utf-8", errors="replace").strip()
        raise TransformError(
            f"{command[0]} exited with {process.returncode}: {message or 'no output'}"
        )
    if err:
        logger.warning(f"{command[0]}: {err.decode('utf-8', errors='replace').strip()}")
    return out, err
