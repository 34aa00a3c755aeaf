"""Declarative base and shared column types."""

from __future__ import annotations

from datetime import datetime, timezone

from sqlalchemy import BigInteger, Integer, Numeric
from sqlalchemy.orm import DeclarativeBase

# BIGINT primary keys, INTEGER on SQLite so the rowid alias autoincrements.
BigIntPK = BigInteger().with_variant(Integer(), "sqlite")

# Monetary amounts. Eight decimal places covers crypto-denominated sub-units.
Money = Numeric(20, 8)


def utcnow() -> datetime:
    """Timezone-aware current time, used as Python-side column default."""
    return datetime.now(timezone.utc)


class Base(DeclarativeBase):
    """Base class for all ORM models."""
