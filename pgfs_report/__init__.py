"""Periodic PostgreSQL storage usage reporter."""

__version__ = "0.1.0"
