"""
External transformers (script minifier, style compiler)
"""
from .minifier import CommandMinifier, concatenate_sources
from .compiler import CommandStyleCompiler
from .runner import run_tool

__all__ = [
    "CommandMinifier",
    "CommandStyleCompiler",
    "concatenate_sources",
    "run_tool",
]
