"""Message board backend: save, list and delete short text messages."""

__version__ = "1.0.0"
