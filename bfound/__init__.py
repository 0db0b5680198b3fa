"""BFound: markdown notes with a PIN vault, daily streaks, public sharing and a small social layer."""

__version__ = "0.1.0"
