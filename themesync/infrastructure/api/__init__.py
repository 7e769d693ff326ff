"""
Remote admin API access
"""
from .client import ThemeAPIClient
from .models import FileUpload, RemoteAsset, ResourcePage

__all__ = [
    "ThemeAPIClient",
    "FileUpload",
    "RemoteAsset",
    "ResourcePage",
]
