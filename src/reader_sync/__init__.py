"""Feed-reader synchronization client for The Old Reader."""

__version__ = "0.1.0"
