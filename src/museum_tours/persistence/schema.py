"""XML Schema for the museum-tours data file.

The schema is embedded as ``SCHEMA_XSD`` and written to disk the first
time a data directory is used.  ``SchemaValidator`` loads the schema
file with ``xmlschema`` and checks parsed documents against it,
reporting every violation rather than stopping at the first.

Usage
-----
::

    from pathlib import Path
    from xml.etree import ElementTree

    from museum_tours.persistence.schema import SchemaValidator, ensure_schema_file

    ensure_schema_file(Path("MuseumTourSchema.xsd"))
    validator = SchemaValidator(Path("MuseumTourSchema.xsd"))
    problems = validator.errors(ElementTree.parse("MuseumTourData.xml"))
"""
from __future__ import annotations

import logging
from pathlib import Path
from xml.etree import ElementTree

import xmlschema

from museum_tours.errors import PersistenceError

logger = logging.getLogger(__name__)

ROOT_ELEMENT = "MuseumTourSystem"

SCHEMA_XSD = """<?xml version="1.0" encoding="utf-8"?>
<xs:schema xmlns:xs="http://www.w3.org/2001/XMLSchema">
  <xs:complexType name="CityRefList">
    <xs:sequence>
      <xs:element name="CityRef" type="xs:string" minOccurs="0" maxOccurs="unbounded" />
    </xs:sequence>
  </xs:complexType>
  <xs:complexType name="MemberRefList">
    <xs:sequence>
      <xs:element name="MemberRef" type="xs:string" minOccurs="0" maxOccurs="unbounded" />
    </xs:sequence>
  </xs:complexType>
  <xs:complexType name="MuseumVisitRefList">
    <xs:sequence>
      <xs:element name="MuseumVisitRef" type="xs:string" minOccurs="0" maxOccurs="unbounded" />
    </xs:sequence>
  </xs:complexType>
  <xs:simpleType name="CalendarDate">
    <xs:restriction base="xs:date">
      <xs:pattern value="[0-9]{4}-[0-9]{2}-[0-9]{2}" />
    </xs:restriction>
  </xs:simpleType>
  <xs:complexType name="TourType">
    <xs:sequence>
      <xs:element name="Name" type="xs:string" />
      <xs:element name="Cities" type="CityRefList" />
      <xs:element name="Members" type="MemberRefList" />
    </xs:sequence>
    <xs:attribute name="Id" type="xs:string" use="required" />
  </xs:complexType>
  <xs:complexType name="CityType">
    <xs:sequence>
      <xs:element name="Name" type="xs:string" />
      <xs:element name="MuseumVisits" type="MuseumVisitRefList" />
    </xs:sequence>
    <xs:attribute name="Id" type="xs:string" use="required" />
  </xs:complexType>
  <xs:complexType name="MuseumVisitType">
    <xs:sequence>
      <xs:element name="MuseumName" type="xs:string" />
      <xs:element name="VisitDate" type="CalendarDate" />
      <xs:element name="Cost" type="xs:decimal" />
      <xs:element name="CityRef" type="xs:string" />
      <xs:element name="RegisteredMembers" type="MemberRefList" />
    </xs:sequence>
    <xs:attribute name="Id" type="xs:string" use="required" />
  </xs:complexType>
  <xs:complexType name="MemberType">
    <xs:sequence>
      <xs:element name="Name" type="xs:string" />
      <xs:element name="BookingNumber" type="xs:string" />
      <xs:element name="TourRef" type="xs:string" />
      <xs:element name="IncludedVisits" type="xs:nonNegativeInteger" minOccurs="0" />
      <xs:element name="MuseumVisits" type="MuseumVisitRefList" />
    </xs:sequence>
    <xs:attribute name="Id" type="xs:string" use="required" />
  </xs:complexType>
  <xs:element name="MuseumTourSystem">
    <xs:complexType>
      <xs:sequence>
        <xs:element name="Tours">
          <xs:complexType>
            <xs:sequence>
              <xs:element name="Tour" type="TourType" minOccurs="0" maxOccurs="unbounded" />
            </xs:sequence>
          </xs:complexType>
        </xs:element>
        <xs:element name="Cities">
          <xs:complexType>
            <xs:sequence>
              <xs:element name="City" type="CityType" minOccurs="0" maxOccurs="unbounded" />
            </xs:sequence>
          </xs:complexType>
        </xs:element>
        <xs:element name="MuseumVisits">
          <xs:complexType>
            <xs:sequence>
              <xs:element name="MuseumVisit" type="MuseumVisitType" minOccurs="0" maxOccurs="unbounded" />
            </xs:sequence>
          </xs:complexType>
        </xs:element>
        <xs:element name="Members">
          <xs:complexType>
            <xs:sequence>
              <xs:element name="Member" type="MemberType" minOccurs="0" maxOccurs="unbounded" />
            </xs:sequence>
          </xs:complexType>
        </xs:element>
      </xs:sequence>
    </xs:complexType>
  </xs:element>
</xs:schema>
"""


def ensure_schema_file(path: Path) -> bool:
    """Write ``SCHEMA_XSD`` to ``path`` unless a file already exists there.

    Parent directories are created as needed.

    Returns
    -------
    bool
        ``True`` if the file was created, ``False`` if it already existed.

    Raises
    ------
    PersistenceError
        If the directory or file cannot be written.
    """
    if path.exists():
        return False
    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(SCHEMA_XSD, encoding="utf-8")
    except OSError as exc:
        raise PersistenceError(f"Cannot write schema file {path}: {exc}") from exc
    logger.warning("Schema file %s was missing and has been created", path)
    return True


class SchemaValidator:
    """Validates parsed data documents against the schema file.

    Parameters
    ----------
    schema_path:
        Location of the ``.xsd`` file.  It is compiled lazily on first
        use and then cached.
    """

    def __init__(self, schema_path: Path) -> None:
        self._schema_path = schema_path
        self._schema: xmlschema.XMLSchema | None = None

    @property
    def schema_path(self) -> Path:
        return self._schema_path

    def _compiled(self) -> xmlschema.XMLSchema:
        if self._schema is None:
            if not self._schema_path.is_file():
                raise PersistenceError(f"Schema file {self._schema_path} does not exist")
            try:
                self._schema = xmlschema.XMLSchema(str(self._schema_path))
            except xmlschema.XMLSchemaException as exc:
                raise PersistenceError(
                    f"Schema file {self._schema_path} is not a valid XML schema: {exc}"
                ) from exc
            except OSError as exc:
                raise PersistenceError(
                    f"Cannot read schema file {self._schema_path}: {exc}"
                ) from exc
        return self._schema

    def errors(self, document: ElementTree.ElementTree | ElementTree.Element) -> list[str]:
        """Return one message per schema violation in ``document``.

        An empty list means the document is valid.
        """
        schema = self._compiled()
        messages: list[str] = []
        for error in schema.iter_errors(document):
            location = f" at {error.path}" if error.path else ""
            messages.append(f"{error.reason or error.message}{location}")
        return messages

    def is_valid(self, document: ElementTree.ElementTree | ElementTree.Element) -> bool:
        return not self.errors(document)


__all__ = [
    "ROOT_ELEMENT",
    "SCHEMA_XSD",
    "SchemaValidator",
    "ensure_schema_file",
]
