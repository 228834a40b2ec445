"""Shared test fixtures for museum-tours.

Fixtures defined here are available to all tests in the suite without
needing an explicit import. Add project-wide fixtures here; keep
domain-specific fixtures close to the tests that use them.
"""
from __future__ import annotations

import datetime
from decimal import Decimal
from pathlib import Path

import pytest

from museum_tours.persistence import XmlGraphCodec
from museum_tours.repository import EntityStore
from museum_tours.service import MuseumTourService


@pytest.fixture()
def package_name() -> str:
    """Return the importable package name for assertions."""
    return "museum_tours"


@pytest.fixture()
def expected_version() -> str:
    """Return the current expected version string.

    Update this fixture when cutting a release so that the version
    test immediately catches stale ``__version__`` values.
    """
    return "0.1.0"


@pytest.fixture()
def service() -> MuseumTourService:
    """An in-memory service with no codec attached."""
    return MuseumTourService(EntityStore())


def populate(service: MuseumTourService) -> MuseumTourService:
    """Fill ``service`` with a small but fully linked graph.

    Tours: t1 (France: c1 Paris, c2 Lyon), t2 (Italy: c3 Rome).
    Visits: v1 Louvre/c1/30, v2 Orsay/c1/20, v3 Confluences/c2/10,
    v4 Vatican/c3/25.
    Members: m1 Ada and m2 Bob on t1, m3 Cleo on t2.
    Registrations: m1 → v1, v2, v3; m2 → v1; m3 → v4.
    """
    service.add_city("c1", "Paris")
    service.add_city("c2", "Lyon")
    service.add_city("c3", "Rome")
    service.add_tour("t1", "France")
    service.add_tour("t2", "Italy")
    service.add_city_to_tour("t1", "c1")
    service.add_city_to_tour("t1", "c2")
    service.add_city_to_tour("t2", "c3")
    service.add_museum_visit("v1", "c1", "Louvre", datetime.date(2025, 6, 1), Decimal("30"))
    service.add_museum_visit("v2", "c1", "Orsay", datetime.date(2025, 6, 2), Decimal("20"))
    service.add_museum_visit("v3", "c2", "Confluences", datetime.date(2025, 6, 4), Decimal("10"))
    service.add_museum_visit("v4", "c3", "Vatican Museums", datetime.date(2025, 7, 1), Decimal("25.50"))
    service.add_member("m1", "t1", "Ada", "BK-001")
    service.add_member("m2", "t1", "Bob", "BK-002")
    service.add_member("m3", "t2", "Cleo", "BK-003", included_visits=0)
    service.add_member_to_museum_visit("m1", "v1")
    service.add_member_to_museum_visit("m1", "v2")
    service.add_member_to_museum_visit("m1", "v3")
    service.add_member_to_museum_visit("m2", "v1")
    service.add_member_to_museum_visit("m3", "v4")
    return service


@pytest.fixture()
def populated(service: MuseumTourService) -> MuseumTourService:
    """The in-memory service filled by ``populate``."""
    return populate(service)


@pytest.fixture()
def data_dir(tmp_path: Path) -> Path:
    """A not-yet-existing directory for data and schema files."""
    return tmp_path / "data"


@pytest.fixture()
def codec(data_dir: Path) -> XmlGraphCodec:
    """A codec writing into ``data_dir``."""
    return XmlGraphCodec(data_dir / "MuseumTourData.xml", data_dir / "MuseumTourSchema.xsd")


@pytest.fixture()
def persistent(codec: XmlGraphCodec) -> MuseumTourService:
    """A populated service that saves through ``codec`` after each change."""
    return populate(MuseumTourService(EntityStore(), codec))
