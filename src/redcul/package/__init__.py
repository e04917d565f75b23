"""Torrent creation for finished transcodes."""
