"""fzctl - Folgezettel hierarchy control for Luhmann-style note vaults."""

__version__ = "0.1.0"
