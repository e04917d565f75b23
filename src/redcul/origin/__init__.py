"""Parsing of release descriptors written by the downloader."""
