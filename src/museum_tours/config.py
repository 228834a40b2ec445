"""Storage configuration.

``StorageSettings`` names the directory and file names used for the
data file and its schema.  By default both live in the per-user
application directory for ``museum-tours``; set ``MUSEUM_TOURS_HOME``
to use another directory.
"""
from __future__ import annotations

import os
from collections.abc import Mapping
from dataclasses import dataclass, field
from pathlib import Path

import click

APP_NAME = "museum-tours"
HOME_ENV_VAR = "MUSEUM_TOURS_HOME"
DEFAULT_DATA_FILE = "MuseumTourData.xml"
DEFAULT_SCHEMA_FILE = "MuseumTourSchema.xsd"


@dataclass(frozen=True)
class StorageSettings:
    """Where the graph is persisted.

    Parameters
    ----------
    data_dir:
        Directory holding both files.
    data_file:
        File name of the XML data document.
    schema_file:
        File name of the XML schema.
    """

    data_dir: Path
    data_file: str = field(default=DEFAULT_DATA_FILE)
    schema_file: str = field(default=DEFAULT_SCHEMA_FILE)

    @property
    def data_path(self) -> Path:
        return self.data_dir / self.data_file

    @property
    def schema_path(self) -> Path:
        return self.data_dir / self.schema_file

    @classmethod
    def from_env(cls, environ: Mapping[str, str] | None = None) -> "StorageSettings":
        """Build settings from ``MUSEUM_TOURS_HOME`` or the user app directory."""
        env = os.environ if environ is None else environ
        home = env.get(HOME_ENV_VAR)
        if home:
            return cls(data_dir=Path(home).expanduser())
        return cls(data_dir=Path(click.get_app_dir(APP_NAME)))


__all__ = [
    "APP_NAME",
    "HOME_ENV_VAR",
    "DEFAULT_DATA_FILE",
    "DEFAULT_SCHEMA_FILE",
    "StorageSettings",
]
