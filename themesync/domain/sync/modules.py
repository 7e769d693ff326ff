"""
Script module groups: collecting and ordering a group's source files
"""
import re
from pathlib import Path
from typing import List

from ...core.constants import SCRIPT_ORDER_FILE
from ...core.exceptions import ModuleGroupError

_BLOCK_COMMENT = re.compile(r"/\*(.*?)\*/", re.DOTALL)
_SEPARATORS = re.compile(r"[,\n]")


def list_files(directory: Path) -> List[Path]:
    """All non-hidden files under directory, sorted by relative path"""
    files = [
        p
        for p in directory.rglob("*")
        if p.is_file()
        and not any(part.startswith(".") for part in p.relative_to(directory).parts)
    ]
    return sorted(files, key=lambda p: p.relative_to(directory).as_posix())


def parse_order_manifest(text: str) -> List[str]:
    """
    Extract entry names from an order manifest.

    The list may sit inside a /* ... */ comment (so the manifest stays valid
    JavaScript) or be the whole file; entries are separated by commas or
    newlines.
    """
    match = _BLOCK_COMMENT.search(text)
    body = match.group(1) if match else text
    names = []
    for entry in _SEPARATORS.split(body):
        name = entry.strip().lstrip("*").strip()
        if name and not name.startswith("//"):
            names.append(name)
    return names


def collect_group_sources(group_dir: Path, order_file: str = SCRIPT_ORDER_FILE) -> List[Path]:
    """
    Source files of a module group in concatenation order.

    Without an order manifest every file is included in lexical order. With
    one, the manifest is authoritative: each entry names a direct file
    (with or without ".js") or a sub-collection directory whose files are
    expanded recursively in lexical order.

    Raises:
        ModuleGroupError: Unknown manifest entry or empty group
    """
    if not group_dir.is_dir():
        raise ModuleGroupError(f"Module group not found: {group_dir}")

    manifest = group_dir / order_file
    if not manifest.is_file():
        sources = [p for p in list_files(group_dir) if p != manifest]
    else:
        direct = {
            p.name: p
            for p in group_dir.iterdir()
            if p.is_file() and p.name != order_file
        }
        sources = []
        for name in parse_order_manifest(manifest.read_text(encoding="utf-8")):
            if name in direct:
                sources.append(direct[name])
            elif f"{name}.js" in direct:
                sources.append(direct[f"{name}.js"])
            elif (group_dir / name).is_dir():
                sources.extend(list_files(group_dir / name))
            else:
                raise ModuleGroupError(
                    f"{manifest.name} in {group_dir.name} references unknown entry: {name}"
                )

    if not sources:
        raise ModuleGroupError(f"Module group {group_dir.name} has no source files")
    return sources
