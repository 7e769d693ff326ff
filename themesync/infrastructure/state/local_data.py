"""
Project-local scratch storage
"""
from pathlib import Path
from typing import List

from ...core.constants import PAGE_CACHE_FILE
from ...core.logging import get_logger

logger = get_logger(__name__)


class LocalDataStore:
    """
    File-based scratch storage.

    Holds files that only live for the duration of one operation:
    - {data_dir}/{name} - transient minified artifacts (inline scripts)
    - {data_dir}/store_page_content.html - last fetched storefront page
    """

    def __init__(self, data_dir: Path):
        """
        Initialize local data store.

        Args:
            data_dir: Directory for scratch files, created if missing
        """
        self.data_dir = Path(data_dir).expanduser()
        self.data_dir.mkdir(parents=True, exist_ok=True)

    def artifact_path(self, name: str) -> Path:
        """Get scratch path for a transient artifact"""
        return self.data_dir / name

    def page_cache_path(self) -> Path:
        """Get path receiving fetched storefront HTML"""
        return self.data_dir / PAGE_CACHE_FILE

    def discard(self, path: Path) -> bool:
        """
        Remove a local file; failures are logged, never raised.

        Returns:
            True if the file was removed
        """
        try:
            Path(path).unlink()
            return True
        except FileNotFoundError:
            return False
        except OSError as e:
            logger.error(f"Could not remove {path}: {e}")
            return False

    def list(self) -> List[str]:
        """List scratch file names"""
        return sorted(p.name for p in self.data_dir.iterdir() if p.is_file())

    def clear(self) -> None:
        """Remove every scratch file"""
        names = self.list()
        for name in names:
            self.discard(self.data_dir / name)
        if names:
            logger.info(f"Removed {len(names)} stale scratch file(s) from {self.data_dir}")
