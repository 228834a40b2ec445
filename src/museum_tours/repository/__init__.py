"""Repository module.

Exports ``EntityStore``, the in-memory identifier index of the graph.
"""
from __future__ import annotations

from museum_tours.repository.store import EntityStore

__all__ = ["EntityStore"]
