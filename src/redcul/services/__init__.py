"""External service integrations.

Thin wrappers around ffprobe and the catalogue API so that the release
pipeline can be tested with mocks instead of real tools and network access.
"""
