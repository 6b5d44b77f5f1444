"""
Provenance — Storage Port Public API
======================================
"""

from provenance.store.base import TrailStore
from provenance.store.memory import InMemoryTrailStore

__all__ = ["TrailStore", "InMemoryTrailStore"]
