"""Tests for the contact list screen and its render projection."""

from __future__ import annotations

from unittest.mock import AsyncMock, MagicMock

import pytest
from sqlalchemy.exc import OperationalError

from contactbook.modules.contacts.models import Contact, SortOrder
from contactbook.modules.contacts.repository import InMemoryContactRepository, ProviderContactRepository
from contactbook.modules.contacts.screen import (
    ContactListScreen,
    ContactRow,
    ScreenState,
    render,
)
from contactbook.modules.contacts.store import ContactsProvider, StoreWriteError
from contactbook.modules.permissions.service import PermissionService


@pytest.fixture
def seeded() -> InMemoryContactRepository:
    repo = InMemoryContactRepository()
    repo.seed(1, "Bob", "555-1111")
    repo.seed(2, "Amy", "555-2222")
    return repo


@pytest.fixture
async def screen(seeded, permissions) -> ContactListScreen:
    s = ContactListScreen(seeded, permissions)
    await s.enter()
    return s


class TestScreenEntry:

    @pytest.mark.asyncio
    async def test_enter_denied_never_lists(self, session_factory) -> None:
        repo = MagicMock()
        repo.list = AsyncMock()
        s = ContactListScreen(repo, PermissionService(session_factory))

        state = await s.enter(lambda permissions: False)

        assert state.permission_granted is False
        assert state.contacts == []
        repo.list.assert_not_called()

    @pytest.mark.asyncio
    async def test_enter_asks_then_loads(self, seeded, session_factory) -> None:
        s = ContactListScreen(seeded, PermissionService(session_factory))
        state = await s.enter(lambda permissions: True)
        assert state.permission_granted is True
        assert [c.name for c in state.contacts] == ["Bob", "Amy"]

    @pytest.mark.asyncio
    async def test_writes_are_skipped_without_permission(self, session_factory) -> None:
        repo = MagicMock()
        repo.create = AsyncMock()
        repo.delete = AsyncMock()
        repo.list = AsyncMock(return_value=[])
        s = ContactListScreen(repo, PermissionService(session_factory))
        await s.enter(None)

        await s.submit_create("Zoe", "555-3333")
        await s.delete(Contact(1, "Bob", "555-1111"))

        repo.create.assert_not_called()
        repo.delete.assert_not_called()
        repo.list.assert_not_called()


class TestScreenGestures:

    @pytest.mark.asyncio
    async def test_sorting(self, screen) -> None:
        assert [c.name for c in screen.sort_ascending().contacts] == ["Amy", "Bob"]
        assert screen.state.sort_order == SortOrder.ASCENDING
        assert [c.name for c in screen.sort_descending().contacts] == ["Bob", "Amy"]

    @pytest.mark.asyncio
    async def test_create_refreshes_in_store_order(self, screen) -> None:
        screen.sort_ascending()
        screen.open_create_dialog()

        state = await screen.submit_create("Zoe", "555-3333")

        assert state.show_create_dialog is False
        assert state.sort_order is None
        assert [c.name for c in state.contacts] == ["Bob", "Amy", "Zoe"]
        assert state.contacts[-1].number == "555-3333"

    @pytest.mark.asyncio
    async def test_update_scenario(self, screen) -> None:
        bob = screen.state.contacts[0]
        screen.open_update_dialog(bob)

        state = await screen.submit_update("Bobby", "555-9999")

        assert state.update_target is None
        assert state.contacts == [Contact(1, "Bobby", "555-9999"), Contact(2, "Amy", "555-2222")]

    @pytest.mark.asyncio
    async def test_submit_update_without_target(self, screen) -> None:
        before = screen.state.contacts
        state = await screen.submit_update("X", "Y")
        assert state.contacts == before

    @pytest.mark.asyncio
    async def test_delete(self, screen) -> None:
        amy = screen.state.contacts[1]
        state = await screen.delete(amy)
        assert [c.id for c in state.contacts] == [1]

    @pytest.mark.asyncio
    async def test_create_failure_still_refreshes(self, screen, seeded) -> None:
        seeded.fail_next_create = True
        seeded.seed(3, "Cat", "555-3030")

        state = await screen.submit_create("Zoe", "555-3333")

        assert [c.name for c in state.contacts] == ["Bob", "Amy", "Cat"]

    @pytest.mark.asyncio
    async def test_update_failure_does_not_propagate(self, permissions) -> None:
        repo = MagicMock()
        repo.list = AsyncMock(return_value=[Contact(1, "Bob", "555-1111")])
        repo.update = AsyncMock(side_effect=StoreWriteError("disk full"))
        s = ContactListScreen(repo, permissions)
        await s.enter()

        state = await s.update(Contact(1, "Bob", "555-1111"), "Bobby", "555-9999")

        assert state.contacts == [Contact(1, "Bob", "555-1111")]
        assert repo.list.await_count == 2

    @pytest.mark.asyncio
    async def test_revoked_permission_empties_list(self, screen, permissions) -> None:
        await permissions.revoke()
        state = await screen.refresh()
        assert state.contacts == []
        assert state.permission_granted is False


class SwitchableFactory:
    """Session factory that starts failing once ``broken`` is set."""

    def __init__(self, factory=None) -> None:
        self._factory = factory
        self.broken = factory is None

    def __call__(self):
        if self.broken:
            raise OperationalError("SELECT", {}, Exception("unable to open database file"))
        return self._factory()


def _store_screen(factory) -> ContactListScreen:
    return ContactListScreen(
        ProviderContactRepository(ContactsProvider(factory)),
        PermissionService(factory),
    )


class TestScreenStoreFailures:
    """An unreadable store leaves the list empty instead of raising."""

    @pytest.mark.asyncio
    async def test_enter_on_unopenable_store(self) -> None:
        s = _store_screen(SwitchableFactory())

        state = await s.enter(lambda permissions: True)

        assert state.contacts == []
        assert state.permission_granted is False

    @pytest.mark.asyncio
    async def test_refresh_after_store_goes_away(self, session_factory) -> None:
        factory = SwitchableFactory(session_factory)
        s = _store_screen(factory)
        await s.enter(lambda permissions: True)
        await s.submit_create("Bob", "555-1111")
        assert [c.name for c in s.state.contacts] == ["Bob"]

        factory.broken = True
        state = await s.refresh()

        assert state.contacts == []
        assert s.view.rows == ()


class TestRender:

    def test_rows_and_menus(self) -> None:
        state = ScreenState(contacts=[Contact(1, "Bob", "555-1111")], permission_granted=True)
        view = render(state)
        assert view.title == "Contact List"
        assert view.rows == (ContactRow(1, "Bob: 555-1111"),)
        assert view.menu == ("Ascending", "Descending", "Create Contact")
        assert view.item_menu == ("Delete", "Update")
        assert view.dialog is None

    def test_create_dialog(self) -> None:
        view = render(ScreenState(show_create_dialog=True))
        assert view.dialog.title == "Add New Contact"
        assert (view.dialog.name, view.dialog.phone) == ("", "")
        assert view.dialog.confirm_label == "Add"

    def test_update_dialog_is_prefilled(self) -> None:
        view = render(ScreenState(update_target=Contact(1, "Bob", "555-1111")))
        assert view.dialog.title == "Update Contact"
        assert (view.dialog.name, view.dialog.phone) == ("Bob", "555-1111")
        assert view.dialog.confirm_label == "Update"

    def test_render_is_pure(self) -> None:
        state = ScreenState(contacts=[Contact(1, "Bob", "555-1111")])
        assert render(state) == render(state)
        assert state.contacts == [Contact(1, "Bob", "555-1111")]
