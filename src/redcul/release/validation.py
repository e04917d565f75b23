"""Consistency checks over probe results, run before any transcoding."""

from __future__ import annotations

import logging
from collections.abc import Iterable, Mapping, Sequence
from dataclasses import dataclass, field

logger = logging.getLogger(__name__)

MIN_SAMPLE_RATE = 44100
REQUIRED_TAGS = ("TITLE", "ARTIST", "ALBUM", "TRACK")


@dataclass(frozen=True)
class ProbeResult:
    """Audio facts for one source file."""

    codec: str
    sample_rate: int | None
    bits_per_sample: int | None
    tags: Mapping[str, str] = field(default_factory=dict)

    def __post_init__(self) -> None:
        # ffprobe reports vorbis comment keys in whatever case the tagger used
        normalized = {str(key).upper(): value for key, value in self.tags.items()}
        object.__setattr__(self, "tags", normalized)


@dataclass(frozen=True)
class SampleRateCheck:
    """Outcome of :func:`check_sample_rate`.

    ``rate`` is set only when every file agrees on a rate of at least
    44100 Hz. Otherwise ``reason`` says why and ``values`` holds the
    offending rates.
    """

    rate: int | None
    reason: str | None = None
    values: tuple[int | None, ...] = ()

    @property
    def ok(self) -> bool:
        return self.rate is not None


def check_sample_rate(probes: Sequence[ProbeResult]) -> SampleRateCheck:
    """Return the common sample rate of all files, or why there is none."""
    if not probes:
        return SampleRateCheck(rate=None, reason="No files to check")

    expected = probes[0].sample_rate
    for probe in probes:
        rate = probe.sample_rate
        if rate != expected:
            logger.warning("Inconsistent sample rates, %s vs %s", expected, rate)
            return SampleRateCheck(
                rate=None,
                reason="Inconsistent sample rates",
                values=(expected, rate),
            )
        if rate is None or rate < MIN_SAMPLE_RATE:
            logger.warning("Sample rates below minimum, %s", rate)
            return SampleRateCheck(
                rate=None,
                reason="Sample rate below minimum",
                values=(rate,),
            )

    return SampleRateCheck(rate=expected)


def missing_tags(tags: Iterable[str]) -> set[str]:
    """Required tags absent from ``tags``, compared case-insensitively."""
    present = {tag.upper() for tag in tags}
    return set(REQUIRED_TAGS) - present


def required_tags_present(probes: Iterable[ProbeResult]) -> bool:
    """True if at least one file carries every required tag."""
    return any(not missing_tags(probe.tags) for probe in probes)
