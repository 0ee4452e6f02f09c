"""Contact repositories — the four operations the list screen relies on."""

from __future__ import annotations

import itertools
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Optional

from contactbook.logging_config import get_logger
from contactbook.modules.contacts.models import Contact, MimeType, PhoneType
from contactbook.modules.contacts.store import (
    PHONE_NUMBER,
    PHONE_TYPE,
    STRUCTURED_NAME_DISPLAY_NAME,
    ContactsProvider,
    StoreQueryError,
    StoreWriteError,
)

logger = get_logger(__name__)


class ContactRepository(ABC):
    """List, create, update and delete contacts.

    Callers never hold on to returned contacts across writes: after any
    write they call ``list()`` again and replace their view.
    """

    @abstractmethod
    async def list(self) -> list[Contact]:
        """Return one contact per phone row, in store order."""

    @abstractmethod
    async def create(self, name: str, phone: str) -> None:
        """Create a local-only contact with a name and a mobile number."""

    @abstractmethod
    async def update(self, contact_id: int, new_name: str, new_phone: str) -> None:
        """Rewrite the name rows, then the phone rows, of a contact."""

    @abstractmethod
    async def delete(self, contact_id: int) -> None:
        """Delete a contact and its data. Unknown ids are ignored."""


class ProviderContactRepository(ContactRepository):
    """Repository backed by the local contacts store."""

    def __init__(self, provider: ContactsProvider) -> None:
        self._provider = provider

    async def list(self) -> list[Contact]:
        try:
            rows = await self._provider.query_phones()
        except StoreQueryError as exc:
            logger.error("contacts_query_failed", error=str(exc))
            return []
        return [Contact.from_row(contact_id, name, number) for contact_id, name, number in rows]

    async def create(self, name: str, phone: str) -> None:
        raw_contact_id = await self._provider.insert_raw_contact(account_type=None, account_name=None)
        if raw_contact_id is None:
            raise StoreWriteError("raw contact insert returned no id")

        name_id = await self._provider.insert_data_row(
            raw_contact_id,
            MimeType.STRUCTURED_NAME,
            {STRUCTURED_NAME_DISPLAY_NAME: name},
        )
        phone_id = await self._provider.insert_data_row(
            raw_contact_id,
            MimeType.PHONE,
            {PHONE_NUMBER: phone, PHONE_TYPE: str(int(PhoneType.MOBILE))},
        )
        if name_id is None or phone_id is None:
            logger.warning(
                "contact_created_incomplete",
                raw_contact_id=raw_contact_id, name_row=name_id, phone_row=phone_id,
            )
            return
        logger.info(
            "contact_created", raw_contact_id=raw_contact_id, name_row=name_id, phone_row=phone_id,
        )

    async def update(self, contact_id: int, new_name: str, new_phone: str) -> None:
        # Two separate writes: a failure in the second leaves the first applied.
        names = await self._provider.update_data_rows(
            contact_id, MimeType.STRUCTURED_NAME, {STRUCTURED_NAME_DISPLAY_NAME: new_name},
        )
        phones = await self._provider.update_data_rows(
            contact_id, MimeType.PHONE, {PHONE_NUMBER: new_phone},
        )
        logger.info("contact_updated", contact_id=contact_id, name_rows=names, phone_rows=phones)

    async def delete(self, contact_id: int) -> None:
        count = await self._provider.delete_contact(contact_id)
        logger.info("contact_deleted", contact_id=contact_id, deleted=count)


@dataclass
class _MemoryRow:
    data_id: int
    contact_id: int
    mimetype: MimeType
    value: str
    phone_type: Optional[PhoneType] = None


class InMemoryContactRepository(ContactRepository):
    """Repository over plain Python rows, with the same row model as the store.

    ``fail_next_create`` makes the next ``create`` behave like a store whose
    raw-contact insert returned no id.
    """

    def __init__(self) -> None:
        self._rows: list[_MemoryRow] = []
        self._contact_ids = itertools.count(1)
        self._data_ids = itertools.count(1)
        self.fail_next_create = False

    def add_row(
        self,
        contact_id: int,
        mimetype: MimeType,
        value: str,
        phone_type: Optional[PhoneType] = None,
    ) -> None:
        """Seed a raw data row, e.g. a contact that has a phone but no name."""
        self._rows.append(_MemoryRow(next(self._data_ids), contact_id, mimetype, value, phone_type))

    def seed(self, contact_id: int, name: str, number: str) -> None:
        self.add_row(contact_id, MimeType.STRUCTURED_NAME, name)
        self.add_row(contact_id, MimeType.PHONE, number, PhoneType.MOBILE)

    def _display_name(self, contact_id: int) -> str:
        for row in self._rows:
            if row.contact_id == contact_id and row.mimetype == MimeType.STRUCTURED_NAME:
                return row.value
        return ""

    async def list(self) -> list[Contact]:
        return [
            Contact.from_row(row.contact_id, self._display_name(row.contact_id), row.value)
            for row in self._rows
            if row.mimetype == MimeType.PHONE
        ]

    async def create(self, name: str, phone: str) -> None:
        if self.fail_next_create:
            self.fail_next_create = False
            raise StoreWriteError("raw contact insert returned no id")

        used = {row.contact_id for row in self._rows}
        contact_id = next(self._contact_ids)
        while contact_id in used:
            contact_id = next(self._contact_ids)
        self.seed(contact_id, name, phone)

    async def update(self, contact_id: int, new_name: str, new_phone: str) -> None:
        for row in self._rows:
            if row.contact_id != contact_id:
                continue
            if row.mimetype == MimeType.STRUCTURED_NAME:
                row.value = new_name
            elif row.mimetype == MimeType.PHONE:
                row.value = new_phone

    async def delete(self, contact_id: int) -> None:
        self._rows = [row for row in self._rows if row.contact_id != contact_id]
