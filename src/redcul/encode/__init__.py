"""Transcode executors built on sox and flac2mp3."""
