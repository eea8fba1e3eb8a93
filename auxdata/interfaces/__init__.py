"""
Abstract base classes for the key-value store.
"""

from auxdata.interfaces.simple_cache import SimpleCache

__all__ = ["SimpleCache"]
