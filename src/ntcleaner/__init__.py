"""ntcleaner - retention-based cache cleaner for NT chat client data directories."""

__version__ = "0.1.0"
