"""
Resource domain: products, customers and other store records
"""
from .service import ResourceService

__all__ = ["ResourceService"]
