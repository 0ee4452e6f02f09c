"""Local contacts store — aggregate contacts, raw contacts and typed data rows.

The store mirrors the shape of a mobile contacts provider:

- ``contacts``      one row per aggregate contact, the id the list screen sees
- ``raw_contacts``  per-account records, the attachment point for data rows
- ``data``          typed attribute rows (name, phone) tagged by ``mimetype``

Generic ``data1``/``data2`` columns hold the attribute values. For a
structured-name row ``data1`` is the display name; for a phone row ``data1``
is the number and ``data2`` the phone type code.
"""

from __future__ import annotations

from typing import Any, Optional

from sqlalchemy import Column, ForeignKey, Integer, String, Text, delete, select, update
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker
from sqlalchemy.orm import aliased

from contactbook.database import Base, get_session_factory, session_scope
from contactbook.logging_config import get_logger
from contactbook.modules.contacts.models import MimeType

logger = get_logger(__name__)

# Column aliases for the generic data columns.
STRUCTURED_NAME_DISPLAY_NAME = "data1"
PHONE_NUMBER = "data1"
PHONE_TYPE = "data2"


class StoreQueryError(Exception):
    """The contacts query could not be opened."""


class StoreWriteError(Exception):
    """A write against the contacts store did not complete."""


class ContactRecord(Base):
    """Aggregate contact."""

    __tablename__ = "contacts"

    id = Column("_id", Integer, primary_key=True, autoincrement=True)

    def __repr__(self) -> str:
        return f"<ContactRecord(id={self.id})>"


class RawContactRecord(Base):
    """Per-account contact record. NULL account columns mean local-only."""

    __tablename__ = "raw_contacts"

    id = Column("_id", Integer, primary_key=True, autoincrement=True)
    contact_id = Column(
        Integer, ForeignKey("contacts._id", ondelete="CASCADE"), nullable=False, index=True,
    )
    account_type = Column(String(128), nullable=True)
    account_name = Column(String(256), nullable=True)

    def __repr__(self) -> str:
        return (
            f"<RawContactRecord(id={self.id}, contact_id={self.contact_id}, "
            f"account_type={self.account_type})>"
        )


class DataRecord(Base):
    """Typed attribute row linked to a raw contact."""

    __tablename__ = "data"

    id = Column("_id", Integer, primary_key=True, autoincrement=True)
    raw_contact_id = Column(
        Integer, ForeignKey("raw_contacts._id", ondelete="CASCADE"), nullable=False, index=True,
    )
    mimetype = Column(String(64), nullable=False, index=True)
    data1 = Column(Text, nullable=True)
    data2 = Column(Text, nullable=True)

    def __repr__(self) -> str:
        return (
            f"<DataRecord(id={self.id}, raw_contact_id={self.raw_contact_id}, "
            f"mimetype={self.mimetype})>"
        )


class ContactsProvider:
    """Query/insert/update/delete access to the contacts store.

    Each call runs in its own transaction. Inserts return the new row id, or
    ``None`` when the store produced none. Updates and deletes return the
    number of affected rows and raise ``StoreWriteError`` on failure.
    """

    def __init__(self, session_factory: Optional[async_sessionmaker[AsyncSession]] = None) -> None:
        self._session_factory = session_factory or get_session_factory()

    # ── Query ────────────────────────────────────────────────────────

    async def query_phones(self) -> list[tuple[int, Optional[str], Optional[str]]]:
        """Return ``(contact_id, display_name, number)`` for every phone row.

        The display name comes from the contact's structured-name row and is
        ``None`` when it has none. Rows come back in phone-row insertion order.
        """
        name_data = aliased(DataRecord)
        name_raw = aliased(RawContactRecord)
        display_name = (
            select(name_data.data1)
            .join(name_raw, name_data.raw_contact_id == name_raw.id)
            .where(
                name_raw.contact_id == ContactRecord.id,
                name_data.mimetype == MimeType.STRUCTURED_NAME.value,
            )
            .order_by(name_data.id)
            .limit(1)
            .correlate(ContactRecord)
            .scalar_subquery()
        )
        stmt = (
            select(ContactRecord.id, display_name.label("display_name"), DataRecord.data1)
            .select_from(DataRecord)
            .join(RawContactRecord, DataRecord.raw_contact_id == RawContactRecord.id)
            .join(ContactRecord, RawContactRecord.contact_id == ContactRecord.id)
            .where(DataRecord.mimetype == MimeType.PHONE.value)
            .order_by(DataRecord.id)
        )
        try:
            async with session_scope(self._session_factory) as session:
                result = await session.execute(stmt)
                rows = [(row[0], row[1], row[2]) for row in result.all()]
        except SQLAlchemyError as exc:
            raise StoreQueryError(str(exc)) from exc
        logger.debug("contacts_store_phones_queried", count=len(rows))
        return rows

    # ── Insert ───────────────────────────────────────────────────────

    async def insert_raw_contact(
        self,
        account_type: Optional[str] = None,
        account_name: Optional[str] = None,
    ) -> Optional[int]:
        """Insert a raw contact along with its aggregate contact."""
        try:
            async with session_scope(self._session_factory) as session:
                contact = ContactRecord()
                session.add(contact)
                await session.flush()
                raw = RawContactRecord(
                    contact_id=contact.id,
                    account_type=account_type,
                    account_name=account_name,
                )
                session.add(raw)
                await session.flush()
                raw_contact_id = raw.id
        except SQLAlchemyError as exc:
            logger.error("contacts_store_raw_insert_failed", error=str(exc))
            return None
        logger.debug("contacts_store_raw_inserted", raw_contact_id=raw_contact_id)
        return raw_contact_id

    async def insert_data_row(
        self,
        raw_contact_id: int,
        mimetype: MimeType,
        values: dict[str, Any],
    ) -> Optional[int]:
        """Attach a typed data row to a raw contact."""
        try:
            async with session_scope(self._session_factory) as session:
                row = DataRecord(raw_contact_id=raw_contact_id, mimetype=mimetype.value, **values)
                session.add(row)
                await session.flush()
                data_id = row.id
        except SQLAlchemyError as exc:
            logger.error(
                "contacts_store_data_insert_failed",
                raw_contact_id=raw_contact_id, mimetype=mimetype.value, error=str(exc),
            )
            return None
        return data_id

    # ── Update / delete ──────────────────────────────────────────────

    async def update_data_rows(
        self,
        contact_id: int,
        mimetype: MimeType,
        values: dict[str, Any],
    ) -> int:
        """Rewrite every data row matching ``contact_id`` and ``mimetype``."""
        raw_ids = select(RawContactRecord.id).where(RawContactRecord.contact_id == contact_id)
        stmt = (
            update(DataRecord)
            .where(DataRecord.raw_contact_id.in_(raw_ids), DataRecord.mimetype == mimetype.value)
            .values(**values)
            .execution_options(synchronize_session=False)
        )
        try:
            async with session_scope(self._session_factory) as session:
                result = await session.execute(stmt)
                count = result.rowcount
        except SQLAlchemyError as exc:
            raise StoreWriteError(str(exc)) from exc
        return count

    async def delete_contact(self, contact_id: int) -> int:
        """Delete an aggregate contact with its raw contacts and data rows."""
        raw_ids = select(RawContactRecord.id).where(RawContactRecord.contact_id == contact_id)
        try:
            async with session_scope(self._session_factory) as session:
                await session.execute(
                    delete(DataRecord)
                    .where(DataRecord.raw_contact_id.in_(raw_ids))
                    .execution_options(synchronize_session=False)
                )
                await session.execute(
                    delete(RawContactRecord)
                    .where(RawContactRecord.contact_id == contact_id)
                    .execution_options(synchronize_session=False)
                )
                result = await session.execute(
                    delete(ContactRecord)
                    .where(ContactRecord.id == contact_id)
                    .execution_options(synchronize_session=False)
                )
                count = result.rowcount
        except SQLAlchemyError as exc:
            raise StoreWriteError(str(exc)) from exc
        return count
