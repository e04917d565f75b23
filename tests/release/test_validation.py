"""Tests for probe result validation."""

import pytest

from redcul.release.validation import (
    ProbeResult,
    check_sample_rate,
    missing_tags,
    required_tags_present,
)


class TestProbeResult:
    def test_tags_are_uppercased(self):
        probe = ProbeResult("flac", 44100, 16, {"track": "1", "Album": "X"})

        assert probe.tags == {"TRACK": "1", "ALBUM": "X"}


class TestSampleRate:
    """Test sample rate consistency checks."""

    @pytest.mark.parametrize("rate", [44100, 48000, 88200, 96000, 176400, 192000])
    def test_uniform_rate_is_returned(self, make_probe, rate):
        result = check_sample_rate([make_probe(rate) for _ in range(3)])

        assert result.ok
        assert result.rate == rate

    def test_inconsistent_rates_fail(self, make_probe):
        result = check_sample_rate([make_probe(96000), make_probe(96000), make_probe(44100)])

        assert not result.ok
        assert result.rate is None
        assert result.values == (96000, 44100)
        assert "Inconsistent" in result.reason

    def test_low_rate_on_first_file_fails(self, make_probe):
        result = check_sample_rate([make_probe(32000), make_probe(32000)])

        assert not result.ok
        assert result.values == (32000,)

    def test_single_low_rate_file_fails(self, make_probe):
        assert not check_sample_rate([make_probe(22050)]).ok

    @pytest.mark.parametrize(
        "rates",
        [
            [22050, 22050, 22050],
            [44100, 32000],
            [32000, 44100],
            [8000],
        ],
    )
    def test_any_rate_below_minimum_fails(self, make_probe, rates):
        assert not check_sample_rate([make_probe(r) for r in rates]).ok

    def test_missing_rate_fails(self, make_probe):
        assert not check_sample_rate([make_probe(None)]).ok

    def test_no_files_fails(self):
        assert not check_sample_rate([]).ok


class TestRequiredTags:
    """Test tag completeness."""

    def test_all_files_tagged(self, make_probe):
        assert required_tags_present([make_probe(), make_probe()])

    def test_one_complete_file_is_enough(self, make_probe):
        probes = [
            make_probe(tags={"TITLE": "a"}),
            make_probe(tags={"title": "b", "artist": "c", "album": "d", "track": "2"}),
        ]

        assert required_tags_present(probes)

    def test_tags_split_across_files_fail(self, make_probe):
        probes = [
            make_probe(tags={"TITLE": "a", "ARTIST": "b"}),
            make_probe(tags={"ALBUM": "c", "TRACK": "1"}),
        ]

        assert not required_tags_present(probes)

    def test_no_artist_anywhere_fails(self, make_probe):
        tags = {"TITLE": "a", "ALBUM": "b", "TRACK": "1", "ALBUM_ARTIST": "x"}

        assert not required_tags_present([make_probe(tags=tags), make_probe(tags=tags)])

    def test_no_files_fail(self):
        assert not required_tags_present([])

    def test_missing_tags_is_case_insensitive(self):
        assert missing_tags(["Title", "artist", "ALBUM"]) == {"TRACK"}
