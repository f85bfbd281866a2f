"""Change tracking and rollback for business entities."""

__version__ = "0.1.0"
