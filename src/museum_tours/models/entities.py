"""Domain entities for museum tours.

Four entity kinds make up the graph: ``Tour``, ``City``,
``MuseumVisit`` and ``Member``.  Links between them are held as
identifier collections rather than object references; the
``EntityStore`` is the index that turns an identifier back into an
entity.  Every link is created or broken through a paired association
method that updates both sides at once:

=========================  ===========================================
Link                       Association methods
=========================  ===========================================
City ↔ MuseumVisit         ``City.add_visit`` / ``City.remove_visit``
Tour → City                ``Tour.add_city`` / ``Tour.remove_city``
Tour ↔ Member              ``Tour.add_member`` / ``Tour.remove_member``
MuseumVisit ↔ Member       ``MuseumVisit.register_member`` /
                           ``MuseumVisit.unregister_member``
=========================  ===========================================

Cities carry no tour back-reference because a city may be shared by
any number of tours.

Association methods return ``True`` when they changed the graph and
``False`` when the call was a no-op or a precondition did not hold.
"""
from __future__ import annotations

import datetime
import re
from collections.abc import Iterable
from dataclasses import dataclass, field
from decimal import Decimal, InvalidOperation

from museum_tours.errors import InvalidEntityError

DEFAULT_INCLUDED_VISITS = 2

# Anything outside the XML 1.0 Char production, plus carriage return,
# which XML parsers normalize to a line feed.
_UNSTORABLE = re.compile("[^\t\n\x20-\ud7ff\ue000-\ufffd\U00010000-\U0010ffff]")


def _require_text(value: object, what: str) -> str:
    if not isinstance(value, str) or not value.strip():
        raise InvalidEntityError(f"{what} cannot be empty")
    bad = _UNSTORABLE.search(value)
    if bad is not None:
        raise InvalidEntityError(
            f"{what} contains the unsupported character {bad.group()!r} at position {bad.start()}"
        )
    return value


class _Entity:
    """Identity semantics shared by all entity kinds.

    Two entities of the same kind are equal when their identifiers are
    equal.  The identifier may be assigned once, during construction.
    """

    id: str

    def __setattr__(self, name: str, value: object) -> None:
        if name == "id" and "id" in self.__dict__:
            raise AttributeError(f"{type(self).__name__}.id is immutable")
        super().__setattr__(name, value)

    def __eq__(self, other: object) -> bool:
        if type(other) is not type(self):
            return NotImplemented
        return self.id == other.id

    def __hash__(self) -> int:
        return hash((type(self).__name__, self.id))


# ---------------------------------------------------------------------------
# City
# ---------------------------------------------------------------------------


@dataclass(eq=False)
class City(_Entity):
    """A location hosting museum visits.

    Parameters
    ----------
    id:
        Unique, non-empty identifier.
    name:
        Display name.
    """

    id: str
    name: str
    _visit_ids: list[str] = field(default_factory=list, init=False, repr=False)

    def __post_init__(self) -> None:
        _require_text(self.id, "City ID")
        _require_text(self.name, "City name")

    @property
    def visit_ids(self) -> tuple[str, ...]:
        """Identifiers of the museum visits held in this city."""
        return tuple(self._visit_ids)

    def add_visit(self, visit: MuseumVisit) -> bool:
        """Attach ``visit`` to this city and set its city back-reference.

        Returns ``False`` without changing anything when the visit is
        already here, or when it belongs to a different city and has
        not been detached from it first.
        """
        if visit.id in self._visit_ids:
            return False
        if visit.city_id is not None and visit.city_id != self.id:
            return False
        self._visit_ids.append(visit.id)
        visit._city_id = self.id
        return True

    def remove_visit(self, visit: MuseumVisit) -> bool:
        """Detach ``visit`` from this city, leaving it without a city."""
        if visit.id not in self._visit_ids:
            return False
        self._visit_ids.remove(visit.id)
        if visit.city_id == self.id:
            visit._city_id = None
        return True

    def has_visit(self, visit: MuseumVisit) -> bool:
        return visit.id in self._visit_ids

    def has_museum(self, museum_name: str, visits: Iterable[MuseumVisit]) -> bool:
        """Return True if one of this city's ``visits`` is to ``museum_name``.

        The name comparison ignores case.
        """
        wanted = museum_name.casefold()
        return any(
            v.museum_name.casefold() == wanted for v in visits if v.id in self._visit_ids
        )

    def __str__(self) -> str:
        return f"{self.name} (ID: {self.id})"


# ---------------------------------------------------------------------------
# Tour
# ---------------------------------------------------------------------------


@dataclass(eq=False)
class Tour(_Entity):
    """A named itinerary grouping cities and members."""

    id: str
    name: str
    _city_ids: list[str] = field(default_factory=list, init=False, repr=False)
    _member_ids: list[str] = field(default_factory=list, init=False, repr=False)

    def __post_init__(self) -> None:
        _require_text(self.id, "Tour ID")
        _require_text(self.name, "Tour name")

    @property
    def city_ids(self) -> tuple[str, ...]:
        return tuple(self._city_ids)

    @property
    def member_ids(self) -> tuple[str, ...]:
        return tuple(self._member_ids)

    def add_city(self, city: City) -> bool:
        if city.id in self._city_ids:
            return False
        self._city_ids.append(city.id)
        return True

    def remove_city(self, city: City) -> bool:
        if city.id not in self._city_ids:
            return False
        self._city_ids.remove(city.id)
        return True

    def contains_city(self, city: City) -> bool:
        return city.id in self._city_ids

    def add_member(self, member: Member) -> bool:
        """Assign ``member`` to this tour.

        A member belongs to at most one tour, so a member already
        assigned elsewhere is refused (``False``) until it has been
        removed from that tour.
        """
        if member.id in self._member_ids:
            return False
        if member.tour_id is not None and member.tour_id != self.id:
            return False
        self._member_ids.append(member.id)
        member._tour_id = self.id
        return True

    def remove_member(self, member: Member) -> bool:
        if member.id not in self._member_ids:
            return False
        self._member_ids.remove(member.id)
        if member.tour_id == self.id:
            member._tour_id = None
        return True

    def contains_member(self, member: Member) -> bool:
        return member.id in self._member_ids

    def has_city_named(self, city_name: str, cities: Iterable[City]) -> bool:
        """Return True if one of this tour's ``cities`` is called ``city_name``.

        The name comparison ignores case.
        """
        wanted = city_name.casefold()
        return any(c.name.casefold() == wanted for c in cities if c.id in self._city_ids)

    def has_member_with_booking_number(
        self, booking_number: str, members: Iterable[Member]
    ) -> bool:
        """Return True if one of this tour's ``members`` holds ``booking_number``.

        The comparison ignores case.
        """
        wanted = booking_number.casefold()
        return any(
            m.booking_number.casefold() == wanted for m in members if m.id in self._member_ids
        )

    def __str__(self) -> str:
        return f"{self.name} (ID: {self.id})"


# ---------------------------------------------------------------------------
# MuseumVisit
# ---------------------------------------------------------------------------


@dataclass(eq=False)
class MuseumVisit(_Entity):
    """A scheduled, priced visit to a museum within one city.

    Parameters
    ----------
    id:
        Unique, non-empty identifier.
    museum_name:
        Name of the museum.
    visit_date:
        Calendar date of the visit.  A ``datetime`` is truncated to its
        date.
    cost:
        Non-negative price.  Integers and decimal strings are accepted
        and stored as ``Decimal``.
    """

    id: str
    museum_name: str
    visit_date: datetime.date
    cost: Decimal
    _city_id: str | None = field(default=None, init=False, repr=False)
    _member_ids: list[str] = field(default_factory=list, init=False, repr=False)

    def __post_init__(self) -> None:
        _require_text(self.id, "Museum visit ID")
        _require_text(self.museum_name, "Museum name")
        if isinstance(self.visit_date, datetime.datetime):
            self.visit_date = self.visit_date.date()
        elif not isinstance(self.visit_date, datetime.date):
            raise InvalidEntityError(f"Visit date must be a date, got {self.visit_date!r}")
        if isinstance(self.cost, (bool, float)) or not isinstance(self.cost, (Decimal, int, str)):
            raise InvalidEntityError(f"Cost must be a decimal amount, got {self.cost!r}")
        try:
            cost = Decimal(self.cost) if not isinstance(self.cost, Decimal) else self.cost
        except InvalidOperation:
            raise InvalidEntityError(f"Cost must be a decimal amount, got {self.cost!r}") from None
        if not cost.is_finite():
            raise InvalidEntityError(f"Cost must be a finite amount, got {self.cost!r}")
        if cost < 0:
            raise InvalidEntityError("Cost cannot be negative")
        self.cost = cost

    @property
    def city_id(self) -> str | None:
        """Identifier of the owning city, or ``None`` for an orphaned visit."""
        return self._city_id

    @property
    def member_ids(self) -> tuple[str, ...]:
        """Identifiers of the registered members."""
        return tuple(self._member_ids)

    def register_member(self, member: Member, tour: Tour | None) -> bool:
        """Register ``member`` for this visit.

        ``tour`` is the member's tour as resolved from the index.  The
        registration only happens when this visit has a city, the
        member is assigned to ``tour``, and ``tour`` includes the
        visit's city.  Registering twice is a no-op.

        Returns
        -------
        bool
            ``True`` if both sides were updated, ``False`` otherwise.
        """
        if self._city_id is None:
            return False
        if tour is None or member.tour_id is None or member.tour_id != tour.id:
            return False
        if self._city_id not in tour.city_ids:
            return False
        if member.id in self._member_ids:
            return False
        self._member_ids.append(member.id)
        if self.id not in member._visit_ids:
            member._visit_ids.append(self.id)
        return True

    def unregister_member(self, member: Member) -> bool:
        if member.id not in self._member_ids:
            return False
        self._member_ids.remove(member.id)
        if self.id in member._visit_ids:
            member._visit_ids.remove(self.id)
        return True

    def is_registered(self, member: Member) -> bool:
        return member.id in self._member_ids

    def total_revenue(self) -> Decimal:
        """Return the cost multiplied by the number of registered members."""
        return self.cost * len(self._member_ids)

    def __str__(self) -> str:
        return f"{self.museum_name} on {self.visit_date.isoformat()} (€{self.cost})"


# ---------------------------------------------------------------------------
# Member
# ---------------------------------------------------------------------------


@dataclass(eq=False)
class Member(_Entity):
    """A traveler assigned to one tour and registrable for museum visits.

    Parameters
    ----------
    id:
        Unique, non-empty identifier.
    name:
        Display name.
    booking_number:
        Booking reference, unique across all members.
    included_visits:
        How many of the member's costliest visits are pre-paid.
    """

    id: str
    name: str
    booking_number: str
    included_visits: int = DEFAULT_INCLUDED_VISITS
    _tour_id: str | None = field(default=None, init=False, repr=False)
    _visit_ids: list[str] = field(default_factory=list, init=False, repr=False)

    def __post_init__(self) -> None:
        _require_text(self.id, "Member ID")
        _require_text(self.name, "Member name")
        _require_text(self.booking_number, "Booking number")
        if isinstance(self.included_visits, bool) or not isinstance(self.included_visits, int):
            raise InvalidEntityError(
                f"Included visits must be an integer, got {self.included_visits!r}"
            )
        if self.included_visits < 0:
            raise InvalidEntityError("Included visits cannot be negative")

    @property
    def tour_id(self) -> str | None:
        return self._tour_id

    @property
    def visit_ids(self) -> tuple[str, ...]:
        return tuple(self._visit_ids)

    def is_registered_for(self, visit: MuseumVisit) -> bool:
        return visit.id in self._visit_ids

    def calculate_additional_cost(self, visits: Iterable[MuseumVisit]) -> Decimal:
        """Return what the member owes beyond their included visits.

        ``visits`` are the member's registered visits as resolved from
        the index; visits the member is not registered for are ignored.
        The quota covers the most expensive visits, so the charge is
        the sum of every visit after the ``included_visits`` costliest.
        """
        registered = [v for v in visits if v.id in self._visit_ids]
        if len(registered) <= self.included_visits:
            return Decimal("0")
        by_cost = sorted(registered, key=lambda v: v.cost, reverse=True)
        return sum((v.cost for v in by_cost[self.included_visits:]), Decimal("0"))

    def __str__(self) -> str:
        return f"{self.name} (Booking: {self.booking_number})"


__all__ = [
    "DEFAULT_INCLUDED_VISITS",
    "City",
    "Tour",
    "MuseumVisit",
    "Member",
]
