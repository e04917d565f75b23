"""Shared test configuration and fixtures."""

import logging

import pytest

from redcul.cli import cleanup_logging
from redcul.release.validation import ProbeResult

FULL_TAGS = {"TITLE": "Pointbreak", "ARTIST": "Vanilla", "ALBUM": "Pointbreak", "track": "1"}


@pytest.fixture(scope="function", autouse=True)
def cleanup_logging_handlers():
    """Automatically cleanup logging handlers after each test to prevent ResourceWarnings."""
    yield
    cleanup_logging()


@pytest.fixture(scope="function", autouse=True)
def reset_logging():
    """Reset logging configuration after each test."""
    yield
    root_logger = logging.getLogger()
    for handler in root_logger.handlers[:]:
        handler.close()
        root_logger.removeHandler(handler)
    root_logger.setLevel(logging.WARNING)


@pytest.fixture
def make_probe():
    """Factory for probe results of 24 bit FLAC files."""

    def _make(sample_rate=96000, bits=24, tags=None):
        return ProbeResult(
            codec="flac",
            sample_rate=sample_rate,
            bits_per_sample=bits,
            tags=FULL_TAGS if tags is None else tags,
        )

    return _make


@pytest.fixture
def origin_data():
    """Raw origin.yaml contents of a 24 bit WEB release."""
    return {
        "Artist": "Vanilla",
        "Name": "Pointbreak",
        "Edition": None,
        "Edition Year": 2021,
        "Media": "WEB",
        "Catalog Number": None,
        "Record Label": "Self-Released",
        "Original Year": 2021,
        "Format": "FLAC",
        "Encoding": "24bit Lossless",
        "Info Hash": "ABCDEF0123456789ABCDEF0123456789ABCDEF01",
        "Permalink": "https://redacted.ch/torrents.php?torrentid=123",
        "Files": [
            {"Name": "01 - Pointbreak.flac", "Size": 1000},
            {"Name": "02 - Lighthouse.flac", "Size": 1000},
            {"Name": "cover.jpg", "Size": 10},
        ],
    }
