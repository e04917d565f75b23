"""Directory and file names for transcodes."""

import re
from pathlib import Path

from redcul.origin.descriptor import OriginDescriptor
from redcul.release.edition import EditionIdentity
from redcul.release.planner import VariantPlan

_CONTROL_CHARS = re.compile(r"[\x01-\x1f]")
_RESERVED_CHARS = re.compile(r'[<>:"?*|]')


def sanitize_filename(filename: str) -> str:
    """Make a string safe to use as a single path component."""
    cleaned = filename.replace("/", "∕")  # U+2215 DIVISION SLASH
    cleaned = re.sub(r"^~", "", cleaned)
    cleaned = re.sub(r"\.$", "_", cleaned)
    cleaned = _CONTROL_CHARS.sub("_", cleaned)
    cleaned = _RESERVED_CHARS.sub("_", cleaned)
    return cleaned.strip()


def release_basename(origin: OriginDescriptor, edition: EditionIdentity) -> str:
    """``Artist - Album (Edition) (Year) - Media``.

    The edition part is left out when there is no edition title and the
    year when neither an edition nor an original year is known.
    """
    name = f"{origin.artist} - {origin.name}"
    if edition.remaster_title:
        name += f" ({edition.remaster_title})"

    year = edition.remaster_year or origin.original_year
    if year:
        name += f" ({year})"

    name += f" - {origin.media}"
    return name


def variant_output_dir(
    transcode_dir: Path,
    origin: OriginDescriptor,
    edition: EditionIdentity,
    variant: VariantPlan,
) -> Path:
    basename = f"{release_basename(origin, edition)} {variant.suffix}"
    return transcode_dir / sanitize_filename(basename)


def torrent_path_for(torrent_dir: Path, output_dir: Path) -> Path:
    return torrent_dir / f"{output_dir.name}.torrent"
