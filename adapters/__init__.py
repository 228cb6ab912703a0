"""Adapter package exports."""

from .base import StaticResolver, connect_db, get_resolver

__all__ = ["StaticResolver", "connect_db", "get_resolver"]
