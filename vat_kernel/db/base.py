"""
Module: vat_kernel.db.base
Responsibility: Declarative base classes for the SQLAlchemy ORM models that
    back the record store.  Provides the UUID primary key convention, the type
    annotation map, and the TrackedBase mixin for audit timestamps.
Architecture position: Kernel > DB.  Lowest-level import target for the ORM
    models.  MUST NOT import from models/, selectors/ or outer layers.

Invariants enforced:
    - UUID primary keys stored as String(36) for cross-database portability.
    - Money columns are integer pence: ``int`` maps to BigInteger.
    - ``datetime`` maps to timezone-aware DateTime.
"""

from datetime import datetime
from typing import ClassVar
from uuid import UUID as PyUUID, uuid4

from sqlalchemy import BigInteger, DateTime, String, func
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column
from sqlalchemy.types import TypeDecorator


class UUIDString(TypeDecorator):
    """UUID stored as String(36); converts transparently on bind and load."""

    impl = String(36)
    cache_ok = True

    def process_bind_param(self, value, dialect):
        if value is not None:
            return str(value)
        return None

    def process_result_value(self, value, dialect):
        if value is not None:
            return PyUUID(value)
        return None


class Base(DeclarativeBase):
    """
    Declarative base for all record-store models.

    Guarantees:
        - id is always a uuid4-generated UUID stored as String(36).
        - int maps to BigInteger -- pence totals never overflow.
        - datetime maps to DateTime(timezone=True).
    """

    type_annotation_map: ClassVar[dict] = {
        datetime: DateTime(timezone=True),
        PyUUID: UUIDString(),
        int: BigInteger,
    }

    id: Mapped[PyUUID] = mapped_column(
        UUIDString(),
        primary_key=True,
        default=uuid4,
    )


class TrackedBase(Base):
    """
    Abstract base with audit timestamps.

    ``created_at`` is set on INSERT; ``updated_at`` is set on INSERT and
    refreshed on every UPDATE.
    """

    __abstract__ = True

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
        nullable=False,
    )

    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
        onupdate=func.now(),
        nullable=False,
    )
