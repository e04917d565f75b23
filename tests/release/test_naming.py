"""Tests for output naming."""

from pathlib import Path

import pytest

from redcul.origin.descriptor import OriginDescriptor
from redcul.release.edition import EditionIdentity
from redcul.release.naming import (
    release_basename,
    sanitize_filename,
    torrent_path_for,
    variant_output_dir,
)
from redcul.release.planner import mp3_plan


@pytest.mark.parametrize(
    ("raw", "expected"),
    [
        ("AC/DC - Back in Black", "AC∕DC - Back in Black"),
        ("~Tilde", "Tilde"),
        ("Ends with a dot.", "Ends with a dot_"),
        ('What? "Yes": <No> *|', "What_ _Yes__ _No_ __"),
        ("tab\there", "tab_here"),
        ("  padded  ", "padded"),
    ],
)
def test_sanitize_filename(raw, expected):
    assert sanitize_filename(raw) == expected


class TestReleaseBasename:
    def test_full_name(self):
        origin = OriginDescriptor(
            artist="Vanilla", name="Pointbreak", media="WEB", format="FLAC"
        )
        edition = EditionIdentity(
            media="WEB", remaster_title="Deluxe", remaster_year=2021
        )

        assert release_basename(origin, edition) == (
            "Vanilla - Pointbreak (Deluxe) (2021) - WEB"
        )

    def test_without_year_or_edition(self):
        origin = OriginDescriptor(artist="A", name="B", media="CD", format="FLAC")
        edition = EditionIdentity(media="CD")

        assert release_basename(origin, edition) == "A - B - CD"

    def test_variant_output_dir(self, tmp_path):
        origin = OriginDescriptor(artist="A/B", name="C", media="CD", format="FLAC")
        edition = EditionIdentity(media="CD", remaster_year=1999)

        output_dir = variant_output_dir(tmp_path, origin, edition, mp3_plan("V0", "V0 (VBR)"))

        assert output_dir == tmp_path / "A∕B - C (1999) - CD V0"


def test_torrent_path_for():
    assert torrent_path_for(Path("/watch"), Path("/t/A - B - CD 320")) == Path(
        "/watch/A - B - CD 320.torrent"
    )
