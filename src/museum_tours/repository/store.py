"""In-memory entity store.

``EntityStore`` owns the canonical collection of every tour, city,
museum visit and member, keyed by identifier.  It is also the index the
rest of the package uses to turn an identifier held in an association
back into an entity.

The store is deliberately mechanical: ``add_*`` enforces key
uniqueness and ``remove_*`` drops the entity from its collection.
Unlinking an entity from its neighbours before removal is the
service's job, not the store's.

Usage
-----
::

    from museum_tours.models import City, Tour
    from museum_tours.repository import EntityStore

    store = EntityStore()
    store.add_city(City("c1", "Paris"))
    tour = Tour("t1", "Classic France")
    store.add_tour(tour)
    tour.add_city(store.get_city("c1"))
    [c.name for c in store.tour_cities(tour)]   # ['Paris']
"""
from __future__ import annotations

import logging
from collections.abc import Iterable
from typing import TypeVar

from museum_tours.errors import DuplicateKeyError
from museum_tours.models.entities import City, Member, MuseumVisit, Tour

logger = logging.getLogger(__name__)

E = TypeVar("E", Tour, City, MuseumVisit, Member)


class EntityStore:
    """Identifier-keyed collections of all four entity kinds.

    Iteration order of every collection is insertion order, which the
    codec preserves when writing the document.
    """

    def __init__(self) -> None:
        self._tours: dict[str, Tour] = {}
        self._cities: dict[str, City] = {}
        self._visits: dict[str, MuseumVisit] = {}
        self._members: dict[str, Member] = {}
        self._booking_numbers: dict[str, str] = {}

    def __repr__(self) -> str:
        return (
            f"EntityStore(tours={len(self._tours)}, cities={len(self._cities)}, "
            f"visits={len(self._visits)}, members={len(self._members)})"
        )

    @property
    def is_empty(self) -> bool:
        return not (self._tours or self._cities or self._visits or self._members)

    def counts(self) -> dict[str, int]:
        """Return the number of entities of each kind."""
        return {
            "tours": len(self._tours),
            "cities": len(self._cities),
            "visits": len(self._visits),
            "members": len(self._members),
        }

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    @staticmethod
    def _insert(collection: dict[str, E], entity: E, kind: str) -> None:
        if entity.id in collection:
            raise DuplicateKeyError(kind, entity.id)
        collection[entity.id] = entity
        logger.debug("Added %s %r", kind, entity.id)

    @staticmethod
    def _lookup(collection: dict[str, E], entity_id: str | None) -> E | None:
        if not entity_id:
            return None
        return collection.get(entity_id)

    @staticmethod
    def _resolve(collection: dict[str, E], ids: Iterable[str]) -> list[E]:
        return [collection[i] for i in ids if i in collection]

    # ------------------------------------------------------------------
    # Tours
    # ------------------------------------------------------------------

    def add_tour(self, tour: Tour) -> None:
        self._insert(self._tours, tour, "tour")

    def remove_tour(self, tour: Tour) -> None:
        self._tours.pop(tour.id, None)

    def get_tour(self, tour_id: str | None) -> Tour | None:
        return self._lookup(self._tours, tour_id)

    def tours(self) -> list[Tour]:
        return list(self._tours.values())

    # ------------------------------------------------------------------
    # Cities
    # ------------------------------------------------------------------

    def add_city(self, city: City) -> None:
        self._insert(self._cities, city, "city")

    def remove_city(self, city: City) -> None:
        self._cities.pop(city.id, None)

    def get_city(self, city_id: str | None) -> City | None:
        return self._lookup(self._cities, city_id)

    def cities(self) -> list[City]:
        return list(self._cities.values())

    # ------------------------------------------------------------------
    # Museum visits
    # ------------------------------------------------------------------

    def add_visit(self, visit: MuseumVisit) -> None:
        self._insert(self._visits, visit, "museum visit")

    def remove_visit(self, visit: MuseumVisit) -> None:
        self._visits.pop(visit.id, None)

    def get_visit(self, visit_id: str | None) -> MuseumVisit | None:
        return self._lookup(self._visits, visit_id)

    def visits(self) -> list[MuseumVisit]:
        return list(self._visits.values())

    # ------------------------------------------------------------------
    # Members
    # ------------------------------------------------------------------

    def add_member(self, member: Member) -> None:
        """Add ``member``, enforcing unique ID and booking number.

        Raises
        ------
        DuplicateKeyError
            If the ID or the booking number is already in use.
        """
        if member.booking_number in self._booking_numbers:
            raise DuplicateKeyError("member", member.booking_number, field="booking number")
        self._insert(self._members, member, "member")
        self._booking_numbers[member.booking_number] = member.id

    def remove_member(self, member: Member) -> None:
        if self._members.pop(member.id, None) is not None:
            self._booking_numbers.pop(member.booking_number, None)

    def get_member(self, member_id: str | None) -> Member | None:
        return self._lookup(self._members, member_id)

    def get_member_by_booking_number(self, booking_number: str | None) -> Member | None:
        if not booking_number:
            return None
        member_id = self._booking_numbers.get(booking_number)
        return self._members.get(member_id) if member_id is not None else None

    def members(self) -> list[Member]:
        return list(self._members.values())

    # ------------------------------------------------------------------
    # Association resolution
    # ------------------------------------------------------------------

    def tour_cities(self, tour: Tour) -> list[City]:
        return self._resolve(self._cities, tour.city_ids)

    def tour_members(self, tour: Tour) -> list[Member]:
        return self._resolve(self._members, tour.member_ids)

    def city_visits(self, city: City) -> list[MuseumVisit]:
        return self._resolve(self._visits, city.visit_ids)

    def city_tours(self, city: City) -> list[Tour]:
        """Return every tour whose itinerary includes ``city``."""
        return [t for t in self._tours.values() if t.contains_city(city)]

    def visit_city(self, visit: MuseumVisit) -> City | None:
        return self._lookup(self._cities, visit.city_id)

    def visit_members(self, visit: MuseumVisit) -> list[Member]:
        return self._resolve(self._members, visit.member_ids)

    def member_tour(self, member: Member) -> Tour | None:
        return self._lookup(self._tours, member.tour_id)

    def member_visits(self, member: Member) -> list[MuseumVisit]:
        return self._resolve(self._visits, member.visit_ids)


__all__ = ["EntityStore"]
