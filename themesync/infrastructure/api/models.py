"""
Remote API data models
"""
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Literal, Optional


@dataclass
class RemoteAsset:
    """
    Theme asset as stored by the remote platform.

    value_type selects the payload field: "value" for UTF-8 text,
    "attachment" for base64-encoded binary content.
    """
    key: str
    content: str
    value_type: Literal["value", "attachment"] = "value"

    @classmethod
    def build(cls, key: str, content: str, is_binary: bool) -> "RemoteAsset":
        if not key:
            raise ValueError("asset key must not be empty")
        return cls(key=key, content=content, value_type="attachment" if is_binary else "value")

    def to_payload(self) -> Dict[str, Any]:
        """Request body for an asset PUT"""
        return {"asset": {"key": self.key, self.value_type: self.content}}


@dataclass
class ResourcePage:
    """One page of a paginated resource collection"""
    items: List[Dict[str, Any]] = field(default_factory=list)
    next_cursor: Optional[str] = None


@dataclass
class FileUpload:
    """Context for the read-then-upload sequence"""
    path: Path
    key: str
    is_binary: bool = False
    content: Optional[str] = None
