"""museum-tours: tours, cities, museum visits and members, persisted as validated XML.

Public API
----------
The stable public surface is everything exported from this module.
Anything inside submodules not re-exported here is considered private
and may change without notice.

Example
-------
::

    import datetime
    import museum_tours

    service = museum_tours.open_service("~/tours")
    service.add_city("c1", "Florence")
    service.add_tour("t1", "Tuscany")
    service.add_city_to_tour("t1", "c1")
    service.add_museum_visit("v1", "c1", "Uffizi", datetime.date(2025, 5, 2), "25.00")
    service.add_member("m1", "t1", "Ada", "BK-001")
    service.add_member_to_museum_visit("m1", "v1")

    # Dump the graph as YAML
    text = museum_tours.export_graph(service.store, "yaml")

    museum_tours.__version__
    '0.1.0'
"""
from __future__ import annotations

from pathlib import Path
from typing import TYPE_CHECKING

__version__: str = "0.1.0"

if TYPE_CHECKING:
    from museum_tours.repository.store import EntityStore
    from museum_tours.service.tour_service import MuseumTourService


def open_service(data_dir: str | Path | None = None) -> "MuseumTourService":
    """Load the graph from disk and return a service bound to it.

    Parameters
    ----------
    data_dir:
        Directory holding the data and schema files.  When omitted,
        ``MUSEUM_TOURS_HOME`` or the per-user application directory is
        used.

    Returns
    -------
    MuseumTourService
        A service whose mutations are saved to the data file.

    Raises
    ------
    museum_tours.errors.CorruptDataError
        If an existing data file cannot be loaded.
    """
    from museum_tours.config import StorageSettings
    from museum_tours.service.tour_service import MuseumTourService

    if data_dir is None:
        settings = StorageSettings.from_env()
    else:
        settings = StorageSettings(data_dir=Path(data_dir).expanduser())
    return MuseumTourService.open(settings)


def export_graph(store: "EntityStore", output_format: str = "json") -> str:
    """Serialize a store to ``"json"`` or ``"yaml"`` text.

    Raises
    ------
    ValueError
        If ``output_format`` is not supported.
    """
    from museum_tours.persistence.serializer import GraphSerializer

    serializer = GraphSerializer()
    fmt = output_format.lower()
    if fmt == "json":
        return serializer.to_json(store)
    if fmt == "yaml":
        return serializer.to_yaml(store)
    raise ValueError(f"Unsupported export format: {output_format!r}")


__all__ = [
    "__version__",
    "open_service",
    "export_graph",
]
