"""
Core utility functions
"""
import base64
from pathlib import Path
from typing import Optional, Tuple


# ============================================================
# Path Utilities
# ============================================================

def relative_parts(path: Path, root: Path) -> Optional[Tuple[str, ...]]:
    """
    Split path into components relative to root.

    Args:
        path: Absolute local path
        root: Directory path is expected to live under

    Returns:
        Tuple of components, or None if path is not under root
    """
    try:
        rel = Path(path).relative_to(root)
    except ValueError:
        return None
    return rel.parts


def join_key(*parts: str) -> str:
    """Join components into a slash-separated remote key"""
    return "/".join(p.strip("/") for p in parts if p)


# ============================================================
# Content Encoding
# ============================================================

def read_asset_content(path: Path, is_binary: bool) -> str:
    """
    Read a local file as an asset value.

    Args:
        path: Local file path
        is_binary: Encode as base64 instead of decoding as UTF-8

    Returns:
        UTF-8 text or base64 string
    """
    if is_binary:
        return base64.b64encode(path.read_bytes()).decode("ascii")
    return path.read_text(encoding="utf-8")
