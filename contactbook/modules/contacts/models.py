"""Contact value type, store discriminators and client-side ordering."""

from __future__ import annotations

from dataclasses import dataclass
from enum import IntEnum, StrEnum
from typing import Iterable, Optional


class MimeType(StrEnum):
    """Discriminator carried by every row of the ``data`` table."""

    STRUCTURED_NAME = "vnd.android.cursor.item/name"
    PHONE = "vnd.android.cursor.item/phone_v2"


class PhoneType(IntEnum):
    """Phone type codes stored in ``data2`` of a phone row."""

    HOME = 1
    MOBILE = 2
    WORK = 3
    FAX_WORK = 4
    FAX_HOME = 5
    PAGER = 6
    OTHER = 7


class SortOrder(StrEnum):
    """Client-side ordering of a contact snapshot."""

    ASCENDING = "asc"
    DESCENDING = "desc"


@dataclass(frozen=True)
class Contact:
    """One phone-number row of a contact, as seen by the list screen.

    A contact with two numbers shows up as two values sharing ``id``.
    """

    id: int
    name: str
    number: str

    @classmethod
    def from_row(cls, contact_id: int, name: Optional[str], number: Optional[str]) -> Contact:
        """Build a contact from a store row; missing text becomes ``""``."""
        return cls(id=int(contact_id), name=name or "", number=number or "")

    @property
    def label(self) -> str:
        return f"{self.name}: {self.number}"


def sort_contacts(contacts: Iterable[Contact], order: SortOrder) -> list[Contact]:
    """Sort contacts by name.

    Equal names keep their input order in both directions, so sorting an
    already sorted list returns it unchanged.
    """
    return sorted(contacts, key=lambda c: c.name, reverse=order == SortOrder.DESCENDING)
