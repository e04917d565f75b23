"""Edition identity and matching against a catalogue group's torrents."""

from __future__ import annotations

from collections.abc import Callable, Iterable
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from redcul.origin.descriptor import OriginDescriptor


@dataclass(frozen=True)
class EditionIdentity:
    """The fields that tell one pressing of an album from another."""

    media: str
    remaster_title: str = ""
    remaster_catalogue_number: str = ""
    remaster_year: int | None = None
    remaster_record_label: str = ""

    @classmethod
    def from_origin(cls, origin: OriginDescriptor) -> EditionIdentity:
        return cls(
            media=origin.media,
            remaster_title=origin.edition,
            remaster_catalogue_number=origin.catalog_number,
            remaster_year=origin.edition_year or origin.original_year,
            remaster_record_label=origin.record_label,
        )


@dataclass(frozen=True)
class ExistingVariant:
    """One torrent already present in the catalogue group."""

    media: str
    encoding: str
    remaster_title: str = ""
    remaster_catalogue_number: str = ""
    remaster_year: int | None = None
    remaster_record_label: str = ""
    format: str = ""
    torrent_id: int | None = None

    @classmethod
    def from_api(cls, torrent: dict[str, Any]) -> ExistingVariant:
        """Build from a ``torrentgroup`` response entry (camelCase keys)."""
        return cls(
            media=torrent.get("media") or "",
            encoding=torrent.get("encoding") or "",
            remaster_title=torrent.get("remasterTitle") or "",
            remaster_catalogue_number=torrent.get("remasterCatalogueNumber") or "",
            remaster_year=torrent.get("remasterYear") or None,
            remaster_record_label=torrent.get("remasterRecordLabel") or "",
            format=torrent.get("format") or "",
            torrent_id=torrent.get("id"),
        )


@dataclass(frozen=True)
class FieldRule:
    """Equality check on one field, optionally skipped when the candidate is blank."""

    name: str
    required: bool = False

    def applies_to(self, identity: EditionIdentity) -> bool:
        return self.required or bool(getattr(identity, self.name))

    def matches(self, identity: EditionIdentity, variant: ExistingVariant) -> bool:
        if not self.applies_to(identity):
            return True
        return getattr(variant, self.name) == getattr(identity, self.name)


EDITION_RULES: tuple[FieldRule, ...] = (
    FieldRule("media", required=True),
    FieldRule("remaster_title"),
    FieldRule("remaster_catalogue_number"),
    FieldRule("remaster_record_label"),
    FieldRule("remaster_year"),
)


def same_edition_as(
    identity: EditionIdentity,
    rules: Iterable[FieldRule] = EDITION_RULES,
) -> Callable[[ExistingVariant], bool]:
    """Predicate accepting variants of the same edition as ``identity``."""
    active = [rule for rule in rules if rule.applies_to(identity)]

    def predicate(variant: ExistingVariant) -> bool:
        return all(rule.matches(identity, variant) for rule in active)

    return predicate


def match_edition(
    identity: EditionIdentity,
    variants: Iterable[ExistingVariant],
) -> list[ExistingVariant]:
    """Variants of the group that belong to the candidate's edition."""
    return list(filter(same_edition_as(identity), variants))
