"""Idempotent PostgreSQL DDL materialization for sync table descriptors."""

__version__ = "0.1.0"
