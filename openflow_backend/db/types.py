"""Dialect-aware id column type for Postgres/SQLite dual support."""

from __future__ import annotations

import uuid

from sqlalchemy import String, types
from sqlalchemy.dialects import postgresql


class GUID(types.TypeDecorator):
    """UUID stored as native UUID on Postgres and CHAR(36) on SQLite.

    Values always round-trip as canonical lowercase strings, so an id typed in
    upper case by a client compares equal to the stored one.
    """

    impl = String(36)
    cache_ok = True

    def load_dialect_impl(self, dialect):
        if dialect.name == "postgresql":
            return dialect.type_descriptor(postgresql.UUID(as_uuid=False))
        return dialect.type_descriptor(String(36))

    def process_bind_param(self, value, dialect):
        if value is None:
            return None
        return GUID.canonical(value)

    def process_result_value(self, value, dialect):
        if value is None:
            return None
        return GUID.canonical(value)

    @staticmethod
    def canonical(value) -> str:
        try:
            return str(uuid.UUID(str(value)))
        except ValueError:
            # Non-UUID ids (fixtures, imported rows) are stored as given.
            return str(value)

    @staticmethod
    def new() -> str:
        return str(uuid.uuid4())
