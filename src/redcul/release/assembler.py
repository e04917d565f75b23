"""Build the single upload that carries every produced variant."""

from __future__ import annotations

import logging
from collections.abc import Sequence
from dataclasses import dataclass
from pathlib import Path
from typing import Any

from redcul.release.edition import EditionIdentity
from redcul.release.planner import FormatKind, VariantPlan

logger = logging.getLogger(__name__)

# One primary file plus this many extra files per upload.
MAX_EXTRA_FILES = 2


def release_description(permalink: str, method: str) -> str:
    return f"Source: {permalink}. Method: {method}"


@dataclass(frozen=True)
class ProducedPackage:
    """A finished variant: its torrent file and how it was made."""

    format_kind: FormatKind
    label: str
    archive_path: Path
    method_description: str
    release_desc: str = ""

    @classmethod
    def from_plan(
        cls,
        plan: VariantPlan,
        archive_path: Path,
        method: str,
        permalink: str,
    ) -> ProducedPackage:
        return cls(
            format_kind=plan.format_kind,
            label=plan.label,
            archive_path=archive_path,
            method_description=method,
            release_desc=release_description(permalink, method),
        )


@dataclass(frozen=True)
class SubmissionPayload:
    """Everything needed for one upload, packages kept in planning order."""

    group_id: int
    media: str
    edition: EditionIdentity
    packages: tuple[ProducedPackage, ...]
    scene: bool = False
    unknown: bool = False

    @property
    def primary(self) -> ProducedPackage:
        return self.packages[0]

    @property
    def extras(self) -> tuple[ProducedPackage, ...]:
        return self.packages[1:]

    def form_fields(self) -> dict[str, Any]:
        """Flatten into the upload form's primary + indexed extras layout.

        Extra packages become parallel ``extra_*`` lists; index 0 of each
        list belongs to ``packages[1]``, index 1 to ``packages[2]``.
        """
        primary = self.primary
        fields: dict[str, Any] = {
            "groupid": self.group_id,
            "unknown": self.unknown,
            "scene": self.scene,
            "media": self.media,
            "remaster_year": self.edition.remaster_year,
            "remaster_title": self.edition.remaster_title,
            "remaster_record_label": self.edition.remaster_record_label,
            "remaster_catalogue_number": self.edition.remaster_catalogue_number,
            "format": primary.format_kind.value,
            "bitrate": primary.label,
            "release_desc": primary.release_desc,
        }

        if self.extras:
            fields["extra_format"] = [p.format_kind.value for p in self.extras]
            fields["extra_bitrate"] = [p.label for p in self.extras]
            fields["extra_release_desc"] = [p.release_desc for p in self.extras]

        return fields

    def file_fields(self) -> dict[str, Path]:
        """Torrent file for each upload slot, keyed by form field name."""
        files = {"file_input": self.primary.archive_path}
        for index, package in enumerate(self.extras, 1):
            files[f"extra_file_{index}"] = package.archive_path
        return files


def assemble_submission(
    packages: Sequence[ProducedPackage],
    edition: EditionIdentity,
    group_id: int,
) -> SubmissionPayload | None:
    """Combine produced packages into one payload.

    Returns ``None`` when nothing was produced.
    """
    if not packages:
        logger.info("No files made, nothing to upload")
        return None

    if len(packages) > 1 + MAX_EXTRA_FILES:
        msg = (
            f"At most {1 + MAX_EXTRA_FILES} files fit in one upload, "
            f"got {len(packages)}"
        )
        raise ValueError(msg)

    return SubmissionPayload(
        group_id=group_id,
        media=edition.media,
        edition=edition,
        packages=tuple(packages),
    )
