"""
Configuration loading
"""
from .loader import ConfigLoader
from .settings_parser import find_config_file, load_project_config, parse_config

__all__ = ["ConfigLoader", "find_config_file", "load_project_config", "parse_config"]
