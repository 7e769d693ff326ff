"""
Live-reload server
"""
from .server import LiveReloadServer, inject_reload_script

__all__ = ["LiveReloadServer", "inject_reload_script"]
