"""Graph serialization to and from plain records.

``GraphSerializer`` flattens an ``EntityStore`` into four record lists
(``tours``, ``cities``, ``visits``, ``members``) in which every link is
an identifier, and rebuilds a store from such records.  The same record
shape backs the XML codec as well as the JSON and YAML text forms.

Rebuilding happens in two phases:

1. Construct entities with their scalar fields only, in dependency
   order: cities, tours, visits (attached to their city when it
   resolves), members.
2. Walk the reference lists again and relink everything through the
   entities' association methods.  A reference that does not resolve,
   or that the association method refuses because an invariant would
   break, is dropped and logged at DEBUG level.

Usage
-----
::

    from museum_tours.persistence import GraphSerializer

    serializer = GraphSerializer()
    data = serializer.to_dict(store)
    text = serializer.to_yaml(store)
    copy = serializer.from_yaml(text)
"""
from __future__ import annotations

import datetime
import json
import logging
from decimal import Decimal

import yaml

from museum_tours.errors import InvalidEntityError
from museum_tours.models.entities import City, Member, MuseumVisit, Tour
from museum_tours.repository.store import EntityStore

logger = logging.getLogger(__name__)

Record = dict[str, object]
GraphData = dict[str, list[Record]]

SECTIONS: tuple[str, ...] = ("tours", "cities", "visits", "members")


def format_cost(cost: Decimal) -> str:
    """Render ``cost`` as a plain decimal string without exponent."""
    return format(cost, "f")


def _parse_date(value: object) -> datetime.date:
    if isinstance(value, datetime.date):
        return value
    try:
        return datetime.date.fromisoformat(str(value))
    except ValueError:
        raise InvalidEntityError(f"Invalid visit date {value!r}") from None


def _refs(record: Record, key: str) -> list[str]:
    return [str(ref) for ref in record.get(key) or []]


def _dropped(owner_kind: str, owner_id: str, ref_kind: str, ref_id: str) -> None:
    logger.debug(
        "Dropping %s reference %r from %s %r", ref_kind, ref_id, owner_kind, owner_id
    )


class GraphSerializer:
    """Converts between an ``EntityStore`` and plain Python records."""

    # ------------------------------------------------------------------
    # Serialization (store → dict)
    # ------------------------------------------------------------------

    def to_dict(self, store: EntityStore) -> GraphData:
        """Serialize every entity in ``store`` to JSON-compatible records."""
        return {
            "tours": [self._tour_to_dict(t) for t in store.tours()],
            "cities": [self._city_to_dict(c) for c in store.cities()],
            "visits": [self._visit_to_dict(v) for v in store.visits()],
            "members": [self._member_to_dict(m) for m in store.members()],
        }

    def _tour_to_dict(self, tour: Tour) -> Record:
        return {
            "id": tour.id,
            "name": tour.name,
            "city_ids": list(tour.city_ids),
            "member_ids": list(tour.member_ids),
        }

    def _city_to_dict(self, city: City) -> Record:
        return {"id": city.id, "name": city.name, "visit_ids": list(city.visit_ids)}

    def _visit_to_dict(self, visit: MuseumVisit) -> Record:
        return {
            "id": visit.id,
            "museum_name": visit.museum_name,
            "visit_date": visit.visit_date.isoformat(),
            "cost": format_cost(visit.cost),
            "city_id": visit.city_id,
            "member_ids": list(visit.member_ids),
        }

    def _member_to_dict(self, member: Member) -> Record:
        return {
            "id": member.id,
            "name": member.name,
            "booking_number": member.booking_number,
            "included_visits": member.included_visits,
            "tour_id": member.tour_id,
            "visit_ids": list(member.visit_ids),
        }

    # ------------------------------------------------------------------
    # Deserialization (dict → store)
    # ------------------------------------------------------------------

    def from_dict(self, data: GraphData) -> EntityStore:
        """Rebuild an ``EntityStore`` from records.

        Raises
        ------
        InvalidEntityError
            If a record carries invalid scalar fields.
        DuplicateKeyError
            If two records share an ID or a booking number.
        KeyError
            If a record lacks a required field.
        """
        store = EntityStore()
        tours, cities, visits, members = (list(data.get(section) or []) for section in SECTIONS)

        for record in cities:
            store.add_city(City(id=record["id"], name=record["name"]))
        for record in tours:
            store.add_tour(Tour(id=record["id"], name=record["name"]))
        for record in visits:
            self._build_visit(store, record)
        for record in members:
            store.add_member(
                Member(
                    id=record["id"],
                    name=record["name"],
                    booking_number=record["booking_number"],
                    **self._quota(record),
                )
            )

        self._relink(store, tours, cities, visits, members)
        logger.debug("Rebuilt %r", store)
        return store

    @staticmethod
    def _quota(record: Record) -> dict[str, int]:
        value = record.get("included_visits")
        if value is None or value == "":
            return {}
        try:
            return {"included_visits": int(value)}
        except (TypeError, ValueError):
            raise InvalidEntityError(f"Invalid included visits {value!r}") from None

    def _build_visit(self, store: EntityStore, record: Record) -> None:
        visit = MuseumVisit(
            id=record["id"],
            museum_name=record["museum_name"],
            visit_date=_parse_date(record["visit_date"]),
            cost=str(record["cost"]),
        )
        store.add_visit(visit)
        city_id = record.get("city_id")
        if not city_id:
            return
        city = store.get_city(str(city_id))
        if city is None:
            _dropped("museum visit", visit.id, "city", str(city_id))
            return
        city.add_visit(visit)

    def _relink(
        self,
        store: EntityStore,
        tours: list[Record],
        cities: list[Record],
        visits: list[Record],
        members: list[Record],
    ) -> None:
        for record in tours:
            tour = store.get_tour(record["id"])
            for city_id in _refs(record, "city_ids"):
                city = store.get_city(city_id)
                if city is None:
                    _dropped("tour", tour.id, "city", city_id)
                    continue
                tour.add_city(city)

        for record in cities:
            city = store.get_city(record["id"])
            for visit_id in _refs(record, "visit_ids"):
                visit = store.get_visit(visit_id)
                if visit is None or not (city.add_visit(visit) or city.has_visit(visit)):
                    _dropped("city", city.id, "museum visit", visit_id)

        for record in members:
            member = store.get_member(record["id"])
            tour_id = record.get("tour_id")
            if tour_id:
                self._assign(store, member, str(tour_id))
        for record in tours:
            tour = store.get_tour(record["id"])
            for member_id in _refs(record, "member_ids"):
                member = store.get_member(member_id)
                if member is None:
                    _dropped("tour", tour.id, "member", member_id)
                    continue
                self._assign(store, member, tour.id)

        for record in visits:
            visit = store.get_visit(record["id"])
            for member_id in _refs(record, "member_ids"):
                self._register(store, visit, store.get_member(member_id), member_id)
        for record in members:
            member = store.get_member(record["id"])
            for visit_id in _refs(record, "visit_ids"):
                visit = store.get_visit(visit_id)
                if visit is None:
                    _dropped("member", member.id, "museum visit", visit_id)
                    continue
                self._register(store, visit, member, member.id)

    @staticmethod
    def _assign(store: EntityStore, member: Member, tour_id: str) -> None:
        tour = store.get_tour(tour_id)
        if tour is None or not (tour.add_member(member) or tour.contains_member(member)):
            _dropped("member", member.id, "tour", tour_id)

    @staticmethod
    def _register(
        store: EntityStore, visit: MuseumVisit, member: Member | None, member_id: str
    ) -> None:
        if member is None:
            _dropped("museum visit", visit.id, "member", member_id)
            return
        if visit.is_registered(member):
            return
        if not visit.register_member(member, store.member_tour(member)):
            _dropped("museum visit", visit.id, "member", member_id)

    # ------------------------------------------------------------------
    # JSON helpers
    # ------------------------------------------------------------------

    def to_json(self, store: EntityStore, indent: int = 2) -> str:
        """Serialize ``store`` to a JSON string."""
        return json.dumps(self.to_dict(store), indent=indent, ensure_ascii=False)

    def from_json(self, text: str) -> EntityStore:
        """Rebuild a store from a JSON string."""
        data: GraphData = json.loads(text)
        return self.from_dict(data)

    # ------------------------------------------------------------------
    # YAML helpers
    # ------------------------------------------------------------------

    def to_yaml(self, store: EntityStore) -> str:
        """Serialize ``store`` to a YAML string."""
        return yaml.dump(
            self.to_dict(store), default_flow_style=False, allow_unicode=True, sort_keys=False
        )

    def from_yaml(self, text: str) -> EntityStore:
        """Rebuild a store from a YAML string."""
        data: GraphData = yaml.safe_load(text) or {}
        return self.from_dict(data)


__all__ = ["GraphSerializer", "GraphData", "Record", "SECTIONS", "format_cost"]
