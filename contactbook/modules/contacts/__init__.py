"""Contact store access and the contact list screen."""

from contactbook.modules.contacts.models import Contact, MimeType, PhoneType, SortOrder, sort_contacts
from contactbook.modules.contacts.repository import (
    ContactRepository,
    InMemoryContactRepository,
    ProviderContactRepository,
)
from contactbook.modules.contacts.screen import ContactListScreen, ScreenState, ScreenView, render
from contactbook.modules.contacts.store import ContactsProvider, StoreQueryError, StoreWriteError

__all__ = [
    "Contact",
    "ContactListScreen",
    "ContactRepository",
    "ContactsProvider",
    "InMemoryContactRepository",
    "MimeType",
    "PhoneType",
    "ProviderContactRepository",
    "ScreenState",
    "ScreenView",
    "SortOrder",
    "StoreQueryError",
    "StoreWriteError",
    "render",
    "sort_contacts",
]
