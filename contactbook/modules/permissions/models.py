"""Database model for persisted permission grants."""

from __future__ import annotations

import datetime as dt
from enum import StrEnum

from sqlalchemy import Boolean, Column, DateTime, String

from contactbook.database import Base


class Permission(StrEnum):
    """Capabilities guarding the contacts store."""

    READ_CONTACTS = "read_contacts"
    WRITE_CONTACTS = "write_contacts"


CONTACT_PERMISSIONS: tuple[Permission, ...] = (Permission.READ_CONTACTS, Permission.WRITE_CONTACTS)


class PermissionGrant(Base):
    """Current grant state of one permission."""

    __tablename__ = "permission_grants"

    permission = Column(String(64), primary_key=True)
    granted = Column(Boolean, default=False, nullable=False)
    updated_at = Column(
        DateTime,
        default=lambda: dt.datetime.now(dt.UTC),
        onupdate=lambda: dt.datetime.now(dt.UTC),
        nullable=False,
    )

    def __repr__(self) -> str:
        return f"<PermissionGrant(permission={self.permission}, granted={self.granted})>"
