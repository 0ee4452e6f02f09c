"""Contact list screen — explicit state plus a pure render projection."""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from typing import Optional

from contactbook.logging_config import get_logger
from contactbook.modules.contacts.models import Contact, SortOrder, sort_contacts
from contactbook.modules.contacts.repository import ContactRepository
from contactbook.modules.contacts.store import StoreWriteError
from contactbook.modules.permissions.service import (
    PermissionDenied,
    PermissionRequester,
    PermissionService,
)

logger = get_logger(__name__)

TITLE = "Contact List"
MENU_ASCENDING = "Ascending"
MENU_DESCENDING = "Descending"
MENU_CREATE = "Create Contact"
ITEM_DELETE = "Delete"
ITEM_UPDATE = "Update"


@dataclass
class ScreenState:
    """Everything the screen shows. ``contacts`` is a snapshot of the store."""

    contacts: list[Contact] = field(default_factory=list)
    permission_granted: bool = False
    sort_order: Optional[SortOrder] = None
    show_create_dialog: bool = False
    update_target: Optional[Contact] = None


@dataclass(frozen=True)
class ContactRow:
    contact_id: int
    label: str


@dataclass(frozen=True)
class DialogView:
    title: str
    name: str
    phone: str
    confirm_label: str
    dismiss_label: str = "Cancel"


@dataclass(frozen=True)
class ScreenView:
    title: str
    rows: tuple[ContactRow, ...]
    menu: tuple[str, ...]
    item_menu: tuple[str, ...]
    dialog: Optional[DialogView] = None


def render(state: ScreenState) -> ScreenView:
    """Project screen state into what gets drawn. No side effects."""
    dialog = None
    if state.update_target is not None:
        dialog = DialogView(
            title="Update Contact",
            name=state.update_target.name,
            phone=state.update_target.number,
            confirm_label="Update",
        )
    elif state.show_create_dialog:
        dialog = DialogView(title="Add New Contact", name="", phone="", confirm_label="Add")

    return ScreenView(
        title=TITLE,
        rows=tuple(ContactRow(c.id, c.label) for c in state.contacts),
        menu=(MENU_ASCENDING, MENU_DESCENDING, MENU_CREATE),
        item_menu=(ITEM_DELETE, ITEM_UPDATE),
        dialog=dialog,
    )


class ContactListScreen:
    """Drives the contact list: one store call per gesture, then a full refresh."""

    def __init__(self, repository: ContactRepository, permissions: PermissionService) -> None:
        self._repository = repository
        self._permissions = permissions
        self.state = ScreenState()

    @property
    def view(self) -> ScreenView:
        return render(self.state)

    # ── Lifecycle ────────────────────────────────────────────────────

    async def enter(self, requester: Optional[PermissionRequester] = None) -> ScreenState:
        """Request contact access once, then load the list if it was granted."""
        granted = await self._permissions.request_contact_permission(requester)
        self.state = replace(self.state, permission_granted=granted)
        if granted:
            await self.refresh()
        return self.state

    async def _ensure_permission(self) -> bool:
        try:
            await self._permissions.require_contact_permission()
        except PermissionDenied as exc:
            logger.warning("contacts_screen_permission_denied", error=str(exc))
            self.state = replace(self.state, permission_granted=False, contacts=[])
            return False
        return True

    async def refresh(self) -> ScreenState:
        """Replace the snapshot with the store's current rows, in store order."""
        if not await self._ensure_permission():
            return self.state
        contacts = await self._repository.list()
        self.state = replace(self.state, contacts=contacts, permission_granted=True, sort_order=None)
        return self.state

    # ── Overflow menu ────────────────────────────────────────────────

    def sort_ascending(self) -> ScreenState:
        return self._sort(SortOrder.ASCENDING)

    def sort_descending(self) -> ScreenState:
        return self._sort(SortOrder.DESCENDING)

    def _sort(self, order: SortOrder) -> ScreenState:
        self.state = replace(
            self.state, contacts=sort_contacts(self.state.contacts, order), sort_order=order,
        )
        return self.state

    def open_create_dialog(self) -> ScreenState:
        self.state = replace(self.state, show_create_dialog=True, update_target=None)
        return self.state

    def dismiss_create_dialog(self) -> ScreenState:
        self.state = replace(self.state, show_create_dialog=False)
        return self.state

    async def submit_create(self, name: str, phone: str) -> ScreenState:
        self.state = replace(self.state, show_create_dialog=False)
        if not await self._ensure_permission():
            return self.state
        try:
            await self._repository.create(name, phone)
        except StoreWriteError as exc:
            logger.error("contact_create_failed", error=str(exc))
        return await self.refresh()

    # ── Item context menu ────────────────────────────────────────────

    def open_update_dialog(self, contact: Contact) -> ScreenState:
        self.state = replace(self.state, update_target=contact, show_create_dialog=False)
        return self.state

    def dismiss_update_dialog(self) -> ScreenState:
        self.state = replace(self.state, update_target=None)
        return self.state

    async def submit_update(self, name: str, phone: str) -> ScreenState:
        target = self.state.update_target
        self.state = replace(self.state, update_target=None)
        if target is None:
            return self.state
        return await self.update(target, name, phone)

    async def update(self, contact: Contact, name: str, phone: str) -> ScreenState:
        if not await self._ensure_permission():
            return self.state
        try:
            await self._repository.update(contact.id, name, phone)
        except StoreWriteError as exc:
            logger.error("contact_update_failed", contact_id=contact.id, error=str(exc))
        return await self.refresh()

    async def delete(self, contact: Contact) -> ScreenState:
        if not await self._ensure_permission():
            return self.state
        try:
            await self._repository.delete(contact.id)
        except StoreWriteError as exc:
            logger.error("contact_delete_failed", contact_id=contact.id, error=str(exc))
        return await self.refresh()
