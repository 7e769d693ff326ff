"""
Local state storage
"""
from .local_data import LocalDataStore

__all__ = ["LocalDataStore"]
