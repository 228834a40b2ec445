"""Service module.

Exports ``MuseumTourService``, the single entry point for mutating the
tour graph.
"""
from __future__ import annotations

from museum_tours.service.tour_service import MuseumTourService

__all__ = ["MuseumTourService"]
