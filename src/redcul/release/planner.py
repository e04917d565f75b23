"""Decide which variants are missing from an edition and how to make them."""

from __future__ import annotations

import logging
from collections.abc import Sequence
from dataclasses import dataclass, field
from enum import Enum

from redcul.error_handling import BitDepthMismatch, RedculError, ValidationFailure
from redcul.release.edition import ExistingVariant
from redcul.release.validation import ProbeResult, SampleRateCheck

logger = logging.getLogger(__name__)

LOSSLESS = "Lossless"
SOURCE_24BIT_LOSSLESS = "24bit Lossless"


class FormatKind(Enum):
    """Container/codec of a produced variant, as the catalogue names it."""

    FLAC = "FLAC"
    MP3 = "MP3"


@dataclass(frozen=True)
class VariantPlan:
    """A decision to produce one variant.

    ``sample_rate`` is set for FLAC plans, ``preset`` for MP3 plans.
    ``suffix`` is appended to the output directory name.
    """

    format_kind: FormatKind
    label: str
    suffix: str
    sample_rate: int | None = None
    preset: str | None = None


# (preset, encoding label) in planning order
MP3_PRESETS: tuple[tuple[str, str], ...] = (
    ("V0", "V0 (VBR)"),
    ("320", "320"),
)


@dataclass
class TranscodePlan:
    """Ordered variants to produce plus the reasons anything was left out."""

    variants: list[VariantPlan] = field(default_factory=list)
    skipped: list[RedculError] = field(default_factory=list)

    def __bool__(self) -> bool:
        return bool(self.variants)

    @property
    def labels(self) -> list[str]:
        return [variant.label for variant in self.variants]


def target_sample_rate(source_rate: int) -> int:
    """Playback rate of the source's family: 48k family -> 48000, else 44100."""
    return 48000 if source_rate % 48000 == 0 else 44100


def flac16_plan(sample_rate: int) -> VariantPlan:
    return VariantPlan(
        format_kind=FormatKind.FLAC,
        label=LOSSLESS,
        suffix="FLAC",
        sample_rate=target_sample_rate(sample_rate),
    )


def mp3_plan(preset: str, label: str) -> VariantPlan:
    return VariantPlan(
        format_kind=FormatKind.MP3,
        label=label,
        suffix=preset,
        preset=preset,
    )


def _has_encoding(edition_group: Sequence[ExistingVariant], encoding: str) -> bool:
    return any(variant.encoding == encoding for variant in edition_group)


def _plan_flac16(
    edition_group: Sequence[ExistingVariant],
    source_encoding: str,
    probes: Sequence[ProbeResult],
    sample_rate: SampleRateCheck,
    plan: TranscodePlan,
) -> None:
    if _has_encoding(edition_group, LOSSLESS):
        logger.info("Edition already has a 16 bit FLAC")
        return
    if source_encoding != SOURCE_24BIT_LOSSLESS:
        logger.debug("Source is %r, no FLAC transcode needed", source_encoding)
        return

    bad_depths = [
        probe.bits_per_sample for probe in probes if probe.bits_per_sample != 24
    ]
    if bad_depths:
        error = BitDepthMismatch(bad_depths)
        logger.error("%s. Won't transcode this to flac16", error.message)
        plan.skipped.append(error)
        return

    if not sample_rate.ok:
        error = ValidationFailure(
            sample_rate.reason or "Inconsistent sample rate",
            values=list(sample_rate.values),
        )
        logger.error("%s, skipping FLAC transcode", error.message)
        plan.skipped.append(error)
        return

    plan.variants.append(flac16_plan(sample_rate.rate))


def plan_transcodes(
    edition_group: Sequence[ExistingVariant],
    source_encoding: str,
    probes: Sequence[ProbeResult],
    sample_rate: SampleRateCheck,
) -> TranscodePlan:
    """Plan the variants missing from ``edition_group``.

    The result is ordered FLAC, V0, 320. MP3 variants never depend on the
    sample rate or bit depth checks.
    """
    plan = TranscodePlan()

    _plan_flac16(edition_group, source_encoding, probes, sample_rate, plan)

    for preset, label in MP3_PRESETS:
        if _has_encoding(edition_group, label):
            logger.info("Edition already has %s", label)
            continue
        plan.variants.append(mp3_plan(preset, label))

    return plan
