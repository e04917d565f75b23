"""Parsing of the ``origin.yaml`` file that describes a downloaded release."""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import yaml

from redcul.error_handling import ConfigurationError, ErrorCategory, RedculError

logger = logging.getLogger(__name__)

ORIGIN_FILENAME = "origin.yaml"


def is_flac_file(name: str | Path) -> bool:
    """Match FLAC files by extension, in any case."""
    return str(name).lower().endswith(".flac")


def _snake_case(key: str) -> str:
    """``"Edition Year"`` -> ``"edition_year"``."""
    return re.sub(r"\s+", "_", key.strip()).lower()


def _optional_str(value: Any) -> str:
    if value is None:
        return ""
    return str(value).strip()


def _optional_year(value: Any) -> int | None:
    if value in (None, ""):
        return None
    try:
        year = int(str(value).strip())
    except ValueError:
        logger.warning("Ignoring unparseable year %r", value)
        return None
    return year or None


def _file_names(entries: Any) -> tuple[str, ...]:
    names = []
    for entry in entries or []:
        if isinstance(entry, dict):
            name = entry.get("Name") or entry.get("name")
        else:
            name = entry
        if name:
            names.append(str(name))
    return tuple(names)


@dataclass(frozen=True)
class OriginDescriptor:
    """Immutable facts about a release as published on the catalogue."""

    artist: str
    name: str
    media: str
    format: str
    encoding: str = ""
    original_year: int | None = None
    edition_year: int | None = None
    edition: str = ""
    catalog_number: str = ""
    record_label: str = ""
    permalink: str = ""
    info_hash: str = ""
    files: tuple[str, ...] = field(default_factory=tuple)

    @property
    def is_flac(self) -> bool:
        return self.format == "FLAC"

    @property
    def is_24bit_lossless(self) -> bool:
        return self.encoding == "24bit Lossless"

    @property
    def flac_files(self) -> list[str]:
        """Names of the FLAC files, relative to the release directory."""
        return [name for name in self.files if is_flac_file(name)]

    @classmethod
    def from_mapping(cls, data: dict[str, Any]) -> OriginDescriptor:
        """Build a descriptor from the raw YAML mapping."""
        fields = {_snake_case(str(key)): value for key, value in data.items()}

        return cls(
            artist=_optional_str(fields.get("artist")),
            name=_optional_str(fields.get("name")),
            media=_optional_str(fields.get("media")),
            format=_optional_str(fields.get("format")),
            encoding=_optional_str(fields.get("encoding")),
            original_year=_optional_year(fields.get("original_year")),
            edition_year=_optional_year(fields.get("edition_year")),
            edition=_optional_str(fields.get("edition")),
            catalog_number=_optional_str(fields.get("catalog_number")),
            record_label=_optional_str(fields.get("record_label")),
            permalink=_optional_str(fields.get("permalink")),
            info_hash=_optional_str(fields.get("info_hash")),
            files=_file_names(fields.get("files")),
        )


def load_origin(release_dir: Path) -> OriginDescriptor:
    """Read ``origin.yaml`` from a release directory."""
    origin_path = release_dir / ORIGIN_FILENAME
    try:
        with open(origin_path, encoding="utf-8") as f:
            data = yaml.safe_load(f)
    except FileNotFoundError as e:
        raise RedculError(
            f"No {ORIGIN_FILENAME} in {release_dir}",
            ErrorCategory.FILESYSTEM,
            solution="Download the release with gazelle-origin support enabled",
            original_error=e,
        ) from e
    except yaml.YAMLError as e:
        raise ConfigurationError(
            f"Could not parse {origin_path}",
            details=str(e),
            original_error=e,
        ) from e

    if not isinstance(data, dict):
        raise ConfigurationError(f"{origin_path} does not contain a mapping")

    return OriginDescriptor.from_mapping(data)
