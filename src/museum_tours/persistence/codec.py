"""XML persistence for the entity graph.

``XmlGraphCodec`` writes the whole graph to a single XML document and
reads it back.  The document has one ``MuseumTourSystem`` root with
four sections::

    <MuseumTourSystem>
      <Tours>
        <Tour Id="t1">
          <Name>Classic France</Name>
          <Cities><CityRef>c1</CityRef></Cities>
          <Members><MemberRef>m1</MemberRef></Members>
        </Tour>
      </Tours>
      <Cities>...</Cities>
      <MuseumVisits>...</MuseumVisits>
      <Members>...</Members>
    </MuseumTourSystem>

Missing single references (a visit without a city, a member without a
tour) are written as empty ``CityRef`` / ``TourRef`` elements.

Both directions are checked against the schema file.  A document that
fails the check before saving means the codec produced something it
should not have; it raises ``SchemaViolationError`` and the previous
file is left untouched.  A failure while loading means the file
is damaged and raises ``CorruptDataError``.  Loading never returns a
partially built store.
"""
from __future__ import annotations

import logging
from pathlib import Path
from xml.etree import ElementTree

from museum_tours.errors import (
    CorruptDataError,
    MuseumTourError,
    PersistenceError,
    SchemaViolationError,
)
from museum_tours.persistence.schema import ROOT_ELEMENT, SchemaValidator, ensure_schema_file
from museum_tours.persistence.serializer import GraphData, GraphSerializer, Record
from museum_tours.repository.store import EntityStore

logger = logging.getLogger(__name__)


def _child(parent: ElementTree.Element, tag: str, text: object = None) -> ElementTree.Element:
    element = ElementTree.SubElement(parent, tag)
    if text is not None:
        element.text = str(text)
    return element


def _ref_list(parent: ElementTree.Element, tag: str, ref_tag: str, ids: object) -> None:
    container = _child(parent, tag)
    for ref in ids or []:
        _child(container, ref_tag, ref)


def _text(element: ElementTree.Element, tag: str) -> str:
    found = element.find(tag)
    if found is None:
        raise KeyError(tag)
    return found.text or ""


def _refs(element: ElementTree.Element, tag: str, ref_tag: str) -> list[str]:
    container = element.find(tag)
    if container is None:
        return []
    return [ref.text or "" for ref in container.findall(ref_tag)]


class XmlGraphCodec:
    """Saves and loads an ``EntityStore`` as a schema-validated XML file.

    The schema file is created at ``schema_path`` when the codec is
    constructed, if it does not exist yet.

    Parameters
    ----------
    data_path:
        Location of the XML data file.
    schema_path:
        Location of the ``.xsd`` schema file.
    serializer:
        Record converter; a default ``GraphSerializer`` is used when
        omitted.
    """

    def __init__(
        self,
        data_path: Path,
        schema_path: Path,
        serializer: GraphSerializer | None = None,
    ) -> None:
        self._data_path = Path(data_path)
        self._schema_path = Path(schema_path)
        self._serializer = serializer or GraphSerializer()
        ensure_schema_file(self._schema_path)
        self._validator = SchemaValidator(self._schema_path)

    @property
    def data_path(self) -> Path:
        return self._data_path

    @property
    def schema_path(self) -> Path:
        return self._schema_path

    # ------------------------------------------------------------------
    # Save
    # ------------------------------------------------------------------

    def save(self, store: EntityStore) -> None:
        """Overwrite the data file with the full contents of ``store``.

        The document is serialized and checked in memory first; the
        existing file is only replaced by a document that parses and
        satisfies the schema.

        Raises
        ------
        PersistenceError
            If the file cannot be written.
        SchemaViolationError
            If the serialized document is not well-formed or does not
            satisfy the schema.
        """
        root = self.to_element(self._serializer.to_dict(store))
        ElementTree.indent(root)
        payload = ElementTree.tostring(root, encoding="utf-8", xml_declaration=True)
        try:
            reparsed = ElementTree.fromstring(payload)
        except ElementTree.ParseError as exc:
            raise SchemaViolationError([f"Serialized document is not well-formed: {exc}"]) from exc
        problems = self._validator.errors(reparsed)
        if problems:
            raise SchemaViolationError(problems)

        try:
            self._data_path.parent.mkdir(parents=True, exist_ok=True)
            self._data_path.write_bytes(payload)
        except OSError as exc:
            raise PersistenceError(f"Cannot write data file {self._data_path}: {exc}") from exc
        logger.debug("Saved %r to %s", store, self._data_path)

    # ------------------------------------------------------------------
    # Load
    # ------------------------------------------------------------------

    def load(self) -> EntityStore:
        """Read the data file and rebuild the graph.

        A missing data file is not an error; an empty store is returned.

        Raises
        ------
        CorruptDataError
            If the file is not well-formed, violates the schema, or
            describes entities that cannot be rebuilt.
        PersistenceError
            If the file cannot be read.
        """
        if not self._data_path.exists():
            logger.info("No data file at %s; starting with an empty store", self._data_path)
            return EntityStore()

        document = self._parse()
        problems = self._validator.errors(document)
        if problems:
            raise CorruptDataError(
                f"Data file {self._data_path} failed schema validation: " + "; ".join(problems)
            )
        try:
            store = self._serializer.from_dict(self.from_element(document.getroot()))
        except (MuseumTourError, KeyError, ValueError, TypeError) as exc:
            raise CorruptDataError(
                f"Data file {self._data_path} describes an inconsistent graph: {exc}"
            ) from exc
        logger.info("Loaded %r from %s", store, self._data_path)
        return store

    def _parse(self) -> ElementTree.ElementTree:
        try:
            return ElementTree.parse(self._data_path)
        except ElementTree.ParseError as exc:
            raise CorruptDataError(f"Data file {self._data_path} is not well-formed XML: {exc}") from exc
        except OSError as exc:
            raise PersistenceError(f"Cannot read data file {self._data_path}: {exc}") from exc

    # ------------------------------------------------------------------
    # Records → XML
    # ------------------------------------------------------------------

    def to_element(self, data: GraphData) -> ElementTree.Element:
        """Build the document root element from serializer records."""
        root = ElementTree.Element(ROOT_ELEMENT)
        tours = _child(root, "Tours")
        for record in data.get("tours", []):
            element = _child(tours, "Tour")
            element.set("Id", str(record["id"]))
            _child(element, "Name", record["name"])
            _ref_list(element, "Cities", "CityRef", record.get("city_ids"))
            _ref_list(element, "Members", "MemberRef", record.get("member_ids"))

        cities = _child(root, "Cities")
        for record in data.get("cities", []):
            element = _child(cities, "City")
            element.set("Id", str(record["id"]))
            _child(element, "Name", record["name"])
            _ref_list(element, "MuseumVisits", "MuseumVisitRef", record.get("visit_ids"))

        visits = _child(root, "MuseumVisits")
        for record in data.get("visits", []):
            element = _child(visits, "MuseumVisit")
            element.set("Id", str(record["id"]))
            _child(element, "MuseumName", record["museum_name"])
            _child(element, "VisitDate", record["visit_date"])
            _child(element, "Cost", record["cost"])
            _child(element, "CityRef", record.get("city_id") or "")
            _ref_list(element, "RegisteredMembers", "MemberRef", record.get("member_ids"))

        members = _child(root, "Members")
        for record in data.get("members", []):
            element = _child(members, "Member")
            element.set("Id", str(record["id"]))
            _child(element, "Name", record["name"])
            _child(element, "BookingNumber", record["booking_number"])
            _child(element, "TourRef", record.get("tour_id") or "")
            if record.get("included_visits") is not None:
                _child(element, "IncludedVisits", record["included_visits"])
            _ref_list(element, "MuseumVisits", "MuseumVisitRef", record.get("visit_ids"))
        return root

    # ------------------------------------------------------------------
    # XML → records
    # ------------------------------------------------------------------

    def from_element(self, root: ElementTree.Element) -> GraphData:
        """Extract serializer records from a validated document root."""
        return {
            "tours": [self._tour_record(e) for e in root.iterfind("Tours/Tour")],
            "cities": [self._city_record(e) for e in root.iterfind("Cities/City")],
            "visits": [self._visit_record(e) for e in root.iterfind("MuseumVisits/MuseumVisit")],
            "members": [self._member_record(e) for e in root.iterfind("Members/Member")],
        }

    def _tour_record(self, element: ElementTree.Element) -> Record:
        return {
            "id": element.get("Id", ""),
            "name": _text(element, "Name"),
            "city_ids": _refs(element, "Cities", "CityRef"),
            "member_ids": _refs(element, "Members", "MemberRef"),
        }

    def _city_record(self, element: ElementTree.Element) -> Record:
        return {
            "id": element.get("Id", ""),
            "name": _text(element, "Name"),
            "visit_ids": _refs(element, "MuseumVisits", "MuseumVisitRef"),
        }

    def _visit_record(self, element: ElementTree.Element) -> Record:
        return {
            "id": element.get("Id", ""),
            "museum_name": _text(element, "MuseumName"),
            "visit_date": _text(element, "VisitDate").strip(),
            "cost": _text(element, "Cost").strip(),
            "city_id": _text(element, "CityRef") or None,
            "member_ids": _refs(element, "RegisteredMembers", "MemberRef"),
        }

    def _member_record(self, element: ElementTree.Element) -> Record:
        quota = element.find("IncludedVisits")
        return {
            "id": element.get("Id", ""),
            "name": _text(element, "Name"),
            "booking_number": _text(element, "BookingNumber"),
            "included_visits": (quota.text or "").strip() if quota is not None else None,
            "tour_id": _text(element, "TourRef") or None,
            "visit_ids": _refs(element, "MuseumVisits", "MuseumVisitRef"),
        }


__all__ = ["XmlGraphCodec"]
