"""
Core interfaces for dependency injection
"""
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Sequence


class ReloadSignal(ABC):
    """Tells a connected browser to reload"""

    @abstractmethod
    async def reload(self, log_kind: str, key: str) -> None:
        """
        Signal reload after a sync job ended.

        Must be safe to call with no client connected.

        Args:
            log_kind: Activity label of the finished job
            key: Remote key the job concerned
        """
        pass


class ScriptMinifier(ABC):
    """Script minifier interface"""

    @abstractmethod
    async def minify(self, sources: Sequence[Path], output: Path) -> None:
        """
        Concatenate sources in order, minify, write the result to output.

        Raises:
            TransformError: If the minifier fails
        """
        pass


class StyleCompiler(ABC):
    """Style compiler interface"""

    @abstractmethod
    async def compile(self, entry: Path, output: Path) -> None:
        """
        Compile entry into compressed CSS written to output.

        Raises:
            TransformError: If the compiler fails
        """
        pass
