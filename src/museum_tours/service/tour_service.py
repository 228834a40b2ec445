"""Application service for museum tours.

``MuseumTourService`` is the single entry point for changing the
graph.  Each mutating call follows the same pattern:

1. Resolve every referenced identifier through the ``EntityStore``,
   raising ``EntityNotFoundError`` when one is unknown.
2. Apply business rules (unique keys, cascade unlinking, the
   registration guard on ``remove_city_from_tour``).
3. Change the graph only through the entities' association methods.
4. Checkpoint: re-serialize the whole store through the codec.

Removal cascades always run *before* the entity leaves the store:

- removing a tour detaches its members (clearing their tour and, since
  their registrations no longer satisfy the tour/city rule, their
  museum-visit registrations);
- removing a city detaches it from every tour, unregisters members from
  its visits and leaves those visits without a city;
- removing a museum visit unregisters its members and detaches it from
  its city;
- removing a member detaches it from its tour and all its visits.

Usage
-----
::

    from museum_tours.config import StorageSettings
    from museum_tours.service import MuseumTourService

    service = MuseumTourService.open(StorageSettings.from_env())
    service.add_city("c1", "Paris")
    service.add_tour("t1", "Classic France")
    service.add_city_to_tour("t1", "c1")
"""
from __future__ import annotations

import datetime
import logging
from decimal import Decimal

from museum_tours.config import StorageSettings
from museum_tours.errors import DuplicateKeyError, EntityNotFoundError, RegistrationConflictError
from museum_tours.models.entities import (
    DEFAULT_INCLUDED_VISITS,
    City,
    Member,
    MuseumVisit,
    Tour,
)
from museum_tours.persistence.codec import XmlGraphCodec
from museum_tours.repository.store import EntityStore

logger = logging.getLogger(__name__)


class MuseumTourService:
    """Orchestrates business operations over the entity graph.

    Parameters
    ----------
    store:
        The store holding the graph.  It is owned by the caller and
        shared with nothing else.
    codec:
        Persists the store after every mutation.  With ``None`` the
        service works purely in memory.
    """

    def __init__(self, store: EntityStore, codec: XmlGraphCodec | None = None) -> None:
        self._store = store
        self._codec = codec

    @classmethod
    def open(cls, settings: StorageSettings) -> "MuseumTourService":
        """Load the graph described by ``settings`` and wrap it in a service.

        Raises
        ------
        CorruptDataError
            If an existing data file cannot be loaded.
        """
        codec = XmlGraphCodec(settings.data_path, settings.schema_path)
        return cls(codec.load(), codec)

    @property
    def store(self) -> EntityStore:
        return self._store

    def save(self) -> None:
        """Write the full graph through the codec, if one is configured."""
        if self._codec is not None:
            self._codec.save(self._store)

    # ------------------------------------------------------------------
    # Lookup helpers
    # ------------------------------------------------------------------

    def _require_tour(self, tour_id: str) -> Tour:
        tour = self._store.get_tour(tour_id)
        if tour is None:
            raise EntityNotFoundError("tour", tour_id)
        return tour

    def _require_city(self, city_id: str) -> City:
        city = self._store.get_city(city_id)
        if city is None:
            raise EntityNotFoundError("city", city_id)
        return city

    def _require_visit(self, visit_id: str) -> MuseumVisit:
        visit = self._store.get_visit(visit_id)
        if visit is None:
            raise EntityNotFoundError("museum visit", visit_id)
        return visit

    def _require_member(self, member_id: str) -> Member:
        member = self._store.get_member(member_id)
        if member is None:
            raise EntityNotFoundError("member", member_id)
        return member

    # ------------------------------------------------------------------
    # Tours
    # ------------------------------------------------------------------

    def add_tour(self, tour_id: str, name: str) -> Tour:
        """Create a tour.

        Raises
        ------
        DuplicateKeyError
            If a tour with ``tour_id`` already exists.
        InvalidEntityError
            If ``tour_id`` or ``name`` is blank.
        """
        if self._store.get_tour(tour_id) is not None:
            raise DuplicateKeyError("tour", tour_id)
        tour = Tour(id=tour_id, name=name)
        self._store.add_tour(tour)
        logger.debug("Created tour %r", tour.id)
        self.save()
        return tour

    def remove_tour(self, tour_id: str) -> bool:
        """Delete a tour, releasing its members.  Returns False if unknown."""
        tour = self._store.get_tour(tour_id)
        if tour is None:
            return False
        for member in self._store.tour_members(tour):
            self._unregister_everywhere(member)
            tour.remove_member(member)
        self._store.remove_tour(tour)
        logger.debug("Removed tour %r", tour.id)
        self.save()
        return True

    def get_tour(self, tour_id: str) -> Tour | None:
        return self._store.get_tour(tour_id)

    def list_tours(self) -> list[Tour]:
        return self._store.tours()

    # ------------------------------------------------------------------
    # Cities
    # ------------------------------------------------------------------

    def add_city(self, city_id: str, name: str) -> City:
        if self._store.get_city(city_id) is not None:
            raise DuplicateKeyError("city", city_id)
        city = City(id=city_id, name=name)
        self._store.add_city(city)
        logger.debug("Created city %r", city.id)
        self.save()
        return city

    def remove_city(self, city_id: str) -> bool:
        """Delete a city.

        The city is taken out of every tour that includes it.  Its
        museum visits stay in the store without a city, and their
        registrations are cancelled.  Returns False if unknown.
        """
        city = self._store.get_city(city_id)
        if city is None:
            return False
        for tour in self._store.city_tours(city):
            tour.remove_city(city)
        for visit in self._store.city_visits(city):
            for member in self._store.visit_members(visit):
                visit.unregister_member(member)
            city.remove_visit(visit)
        self._store.remove_city(city)
        logger.debug("Removed city %r", city.id)
        self.save()
        return True

    def get_city(self, city_id: str) -> City | None:
        return self._store.get_city(city_id)

    def list_cities(self) -> list[City]:
        return self._store.cities()

    def add_city_to_tour(self, tour_id: str, city_id: str) -> bool:
        """Include a city in a tour.  Returns False if already included.

        Raises
        ------
        EntityNotFoundError
            If either identifier is unknown.
        """
        tour = self._require_tour(tour_id)
        city = self._require_city(city_id)
        result = tour.add_city(city)
        self.save()
        return result

    def remove_city_from_tour(self, tour_id: str, city_id: str) -> bool:
        """Take a city out of a tour.  Returns False if it was not included.

        Raises
        ------
        EntityNotFoundError
            If either identifier is unknown.
        RegistrationConflictError
            If a member of the tour is registered for a museum visit in
            the city.  Nothing is changed.
        """
        tour = self._require_tour(tour_id)
        city = self._require_city(city_id)
        for member in self._store.tour_members(tour):
            for visit in self._store.member_visits(member):
                if visit.city_id == city.id:
                    raise RegistrationConflictError(tour.id, city.id, member.id)
        result = tour.remove_city(city)
        self.save()
        return result

    # ------------------------------------------------------------------
    # Museum visits
    # ------------------------------------------------------------------

    def add_museum_visit(
        self,
        visit_id: str,
        city_id: str,
        museum_name: str,
        visit_date: datetime.date,
        cost: Decimal | int | str,
    ) -> MuseumVisit:
        """Schedule a museum visit in an existing city.

        Raises
        ------
        DuplicateKeyError
            If a visit with ``visit_id`` already exists.
        EntityNotFoundError
            If ``city_id`` is unknown.
        InvalidEntityError
            If a field is blank, the date is not a date, or the cost is
            negative.
        """
        if self._store.get_visit(visit_id) is not None:
            raise DuplicateKeyError("museum visit", visit_id)
        city = self._require_city(city_id)
        visit = MuseumVisit(id=visit_id, museum_name=museum_name, visit_date=visit_date, cost=cost)
        self._store.add_visit(visit)
        city.add_visit(visit)
        logger.debug("Created museum visit %r in city %r", visit.id, city.id)
        self.save()
        return visit

    def remove_museum_visit(self, visit_id: str) -> bool:
        visit = self._store.get_visit(visit_id)
        if visit is None:
            return False
        for member in self._store.visit_members(visit):
            visit.unregister_member(member)
        city = self._store.visit_city(visit)
        if city is not None:
            city.remove_visit(visit)
        self._store.remove_visit(visit)
        logger.debug("Removed museum visit %r", visit.id)
        self.save()
        return True

    def get_museum_visit(self, visit_id: str) -> MuseumVisit | None:
        return self._store.get_visit(visit_id)

    def list_museum_visits(self) -> list[MuseumVisit]:
        return self._store.visits()

    def visit_revenue(self, visit_id: str) -> Decimal:
        """Return cost × registered members for a visit."""
        return self._require_visit(visit_id).total_revenue()

    # ------------------------------------------------------------------
    # Members
    # ------------------------------------------------------------------

    def add_member(
        self,
        member_id: str,
        tour_id: str,
        name: str,
        booking_number: str,
        included_visits: int = DEFAULT_INCLUDED_VISITS,
    ) -> Member:
        """Create a member and assign it to an existing tour.

        Raises
        ------
        DuplicateKeyError
            If the booking number or the member ID is already in use.
        EntityNotFoundError
            If ``tour_id`` is unknown.
        InvalidEntityError
            If a field is blank or the quota is negative.
        """
        if self._store.get_member_by_booking_number(booking_number) is not None:
            raise DuplicateKeyError("member", booking_number, field="booking number")
        if self._store.get_member(member_id) is not None:
            raise DuplicateKeyError("member", member_id)
        tour = self._require_tour(tour_id)
        member = Member(
            id=member_id,
            name=name,
            booking_number=booking_number,
            included_visits=included_visits,
        )
        self._store.add_member(member)
        tour.add_member(member)
        logger.debug("Created member %r on tour %r", member.id, tour.id)
        self.save()
        return member

    def remove_member(self, member_id: str) -> bool:
        member = self._store.get_member(member_id)
        if member is None:
            return False
        tour = self._store.member_tour(member)
        if tour is not None:
            tour.remove_member(member)
        self._unregister_everywhere(member)
        self._store.remove_member(member)
        logger.debug("Removed member %r", member.id)
        self.save()
        return True

    def get_member(self, member_id: str) -> Member | None:
        return self._store.get_member(member_id)

    def get_member_by_booking_number(self, booking_number: str) -> Member | None:
        return self._store.get_member_by_booking_number(booking_number)

    def list_members(self) -> list[Member]:
        return self._store.members()

    def add_member_to_museum_visit(self, member_id: str, visit_id: str) -> bool:
        """Register a member for a visit.

        Returns False when the member is already registered or when the
        member's tour does not include the visit's city.

        Raises
        ------
        EntityNotFoundError
            If either identifier is unknown.
        """
        member = self._require_member(member_id)
        visit = self._require_visit(visit_id)
        result = visit.register_member(member, self._store.member_tour(member))
        self.save()
        return result

    def remove_member_from_museum_visit(self, member_id: str, visit_id: str) -> bool:
        member = self._require_member(member_id)
        visit = self._require_visit(visit_id)
        result = visit.unregister_member(member)
        self.save()
        return result

    def calculate_additional_cost(self, member_id: str) -> Decimal:
        """Return what a member owes beyond their included visits."""
        member = self._require_member(member_id)
        return member.calculate_additional_cost(self._store.member_visits(member))

    def _unregister_everywhere(self, member: Member) -> None:
        for visit in self._store.member_visits(member):
            visit.unregister_member(member)


__all__ = ["MuseumTourService"]
