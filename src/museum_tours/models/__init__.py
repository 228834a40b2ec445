"""Domain model: the four entity kinds and their association methods."""
from __future__ import annotations

from museum_tours.models.entities import (
    DEFAULT_INCLUDED_VISITS,
    City,
    Member,
    MuseumVisit,
    Tour,
)

__all__ = ["DEFAULT_INCLUDED_VISITS", "City", "Member", "MuseumVisit", "Tour"]
