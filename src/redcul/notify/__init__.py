"""Optional push notifications."""
