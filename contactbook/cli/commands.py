"""contactbook CLI — the contact list screen in a terminal."""

from __future__ import annotations

import asyncio
from contextlib import asynccontextmanager
from typing import AsyncGenerator, Optional

import typer
from rich.console import Console
from rich.markup import escape
from rich.prompt import Confirm, Prompt
from rich.table import Table

from contactbook.config import get_settings
from contactbook.database import close_db, get_session_factory, init_db
from contactbook.modules.contacts.models import Contact, SortOrder
from contactbook.modules.contacts.repository import ProviderContactRepository
from contactbook.modules.contacts.screen import ContactListScreen, ScreenView
from contactbook.modules.contacts.store import ContactsProvider
from contactbook.modules.permissions.models import Permission
from contactbook.modules.permissions.service import PermissionRequester, PermissionService

# Create Typer app
app = typer.Typer(help="Contact list over the local contacts store", no_args_is_help=True)
console = Console()

# Permissions subcommand
permissions_app = typer.Typer(help="Manage contacts permissions", no_args_is_help=True)
app.add_typer(permissions_app, name="permissions")

YES_OPTION = typer.Option(False, "--yes", "-y", help="Grant contacts access without asking")


def _async_run(coro):
    """Run an async coroutine."""
    return asyncio.run(coro)


def _requester(assume_yes: bool) -> Optional[PermissionRequester]:
    """Build the prompt shown when contacts access has not been granted yet."""
    if assume_yes:
        return lambda permissions: True
    if not get_settings().contacts_prompt_permissions:
        return None

    def ask(permissions: tuple[Permission, ...]) -> bool:
        wanted = " and ".join(p.value.replace("_", " ") for p in permissions)
        return typer.confirm(f"Allow contactbook to {wanted}?", default=False)

    return ask


@asynccontextmanager
async def _open_screen(requester: Optional[PermissionRequester]) -> AsyncGenerator[ContactListScreen, None]:
    """Wire the screen to the configured store and run its entry step."""
    await init_db()
    try:
        factory = get_session_factory()
        screen = ContactListScreen(
            ProviderContactRepository(ContactsProvider(factory)),
            PermissionService(factory),
        )
        await screen.enter(requester)
        yield screen
    finally:
        await close_db()


def _print_view(view: ScreenView, numbered: bool = False) -> None:
    table = Table(title=view.title)
    if numbered:
        table.add_column("#", style="dim", justify="right")
    table.add_column("ID", style="cyan", justify="right")
    table.add_column("Contact", style="green")
    for index, row in enumerate(view.rows, start=1):
        cells = [str(row.contact_id), escape(row.label)]
        if numbered:
            cells.insert(0, str(index))
        table.add_row(*cells)
    console.print(table)
    if not view.rows:
        console.print("[dim]No contacts.[/dim]")


def _denied() -> None:
    console.print("[yellow]Contacts access not granted — nothing to show.[/yellow]")


def _find(screen: ContactListScreen, contact_id: int) -> Optional[Contact]:
    return next((c for c in screen.state.contacts if c.id == contact_id), None)


@app.command()
def init() -> None:
    """Create the contacts store tables."""

    async def _init():
        await init_db()
        await close_db()

    _async_run(_init())
    console.print(f"[green]✓[/green] Contacts store ready: {get_settings().database_url}")


@app.command("list")
def list_contacts(
    sort: Optional[SortOrder] = typer.Option(None, "--sort", "-s", help="Sort by name (asc or desc)"),
    yes: bool = YES_OPTION,
) -> None:
    """Show every contact phone number."""

    async def _list():
        async with _open_screen(_requester(yes)) as screen:
            if not screen.state.permission_granted:
                _denied()
            if sort == SortOrder.ASCENDING:
                screen.sort_ascending()
            elif sort == SortOrder.DESCENDING:
                screen.sort_descending()
            _print_view(screen.view)

    _async_run(_list())


@app.command()
def add(
    name: str = typer.Argument(..., help="Display name"),
    phone: str = typer.Argument(..., help="Phone number (stored as mobile)"),
    yes: bool = YES_OPTION,
) -> None:
    """Create a local contact."""

    async def _add() -> bool:
        async with _open_screen(_requester(yes)) as screen:
            if not screen.state.permission_granted:
                return False
            screen.open_create_dialog()
            await screen.submit_create(name, phone)
            _print_view(screen.view)
            return True

    if not _async_run(_add()):
        _denied()
        raise typer.Exit(code=1)


@app.command()
def update(
    contact_id: int = typer.Argument(..., help="Contact ID as shown by `list`"),
    name: str = typer.Argument(..., help="New display name"),
    phone: str = typer.Argument(..., help="New phone number"),
    yes: bool = YES_OPTION,
) -> None:
    """Rewrite a contact's name and phone number."""

    async def _update() -> int:
        async with _open_screen(_requester(yes)) as screen:
            if not screen.state.permission_granted:
                _denied()
                return 1
            contact = _find(screen, contact_id)
            if contact is None:
                console.print(f"[red]✗[/red] No contact with ID {contact_id}")
                return 1
            screen.open_update_dialog(contact)
            await screen.submit_update(name, phone)
            _print_view(screen.view)
            return 0

    code = _async_run(_update())
    if code:
        raise typer.Exit(code=code)


@app.command()
def delete(
    contact_id: int = typer.Argument(..., help="Contact ID as shown by `list`"),
    yes: bool = YES_OPTION,
) -> None:
    """Delete a contact with all its phone numbers."""

    async def _delete() -> int:
        async with _open_screen(_requester(yes)) as screen:
            if not screen.state.permission_granted:
                _denied()
                return 1
            contact = _find(screen, contact_id)
            if contact is None:
                console.print(f"[red]✗[/red] No contact with ID {contact_id}")
                return 1
            await screen.delete(contact)
            _print_view(screen.view)
            return 0

    code = _async_run(_delete())
    if code:
        raise typer.Exit(code=code)


@app.command()
def screen(yes: bool = YES_OPTION) -> None:
    """Browse and edit contacts interactively."""

    async def _loop():
        async with _open_screen(_requester(yes)) as s:
            if not s.state.permission_granted:
                _denied()
                return
            while True:
                view = s.view
                _print_view(view, numbered=True)
                menu = " · ".join(f"[{label[0].lower()}]{label[1:]}" for label in view.menu)
                choice = Prompt.ask(escape(f"{menu} · [#] select · [q]uit"), console=console, default="q")
                choice = choice.strip().lower()

                if choice == "q":
                    return
                if choice == "a":
                    s.sort_ascending()
                elif choice == "d":
                    s.sort_descending()
                elif choice == "c":
                    await _create_dialog(s)
                elif choice.isdigit() and 1 <= int(choice) <= len(s.state.contacts):
                    await _item_menu(s, s.state.contacts[int(choice) - 1])
                else:
                    console.print(f"[yellow]Unknown choice: {choice}[/yellow]")

    _async_run(_loop())


async def _create_dialog(s: ContactListScreen) -> None:
    s.open_create_dialog()
    dialog = s.view.dialog
    console.print(f"\n[bold]{dialog.title}[/bold]")
    name = Prompt.ask("Name", console=console, default=dialog.name)
    phone = Prompt.ask("Phone", console=console, default=dialog.phone)
    if Confirm.ask(dialog.confirm_label, console=console, default=True):
        await s.submit_create(name, phone)
    else:
        s.dismiss_create_dialog()


async def _item_menu(s: ContactListScreen, contact: Contact) -> None:
    actions = [label.lower() for label in s.view.item_menu]
    action = Prompt.ask(escape(contact.label), console=console, choices=actions + ["cancel"], default="cancel")
    if action == "delete":
        await s.delete(contact)
    elif action == "update":
        s.open_update_dialog(contact)
        dialog = s.view.dialog
        console.print(f"\n[bold]{dialog.title}[/bold]")
        name = Prompt.ask("Name", console=console, default=dialog.name)
        phone = Prompt.ask("Phone", console=console, default=dialog.phone)
        if Confirm.ask(dialog.confirm_label, console=console, default=True):
            await s.submit_update(name, phone)
        else:
            s.dismiss_update_dialog()


# ── Permissions ──────────────────────────────────────────────────────


@permissions_app.command("status")
def permissions_status() -> None:
    """Show which contacts permissions are granted."""

    async def _status() -> set[Permission]:
        await init_db()
        try:
            return await PermissionService(get_session_factory()).granted_permissions()
        finally:
            await close_db()

    granted = _async_run(_status())
    table = Table(title="Contacts Permissions")
    table.add_column("Permission", style="cyan")
    table.add_column("Status", style="white")
    for permission in Permission:
        status = "[green]✓ Granted" if permission in granted else "[red]✗ Not granted"
        table.add_row(permission.value, status)
    console.print(table)


@permissions_app.command("grant")
def permissions_grant() -> None:
    """Grant read and write access to contacts."""

    async def _grant():
        await init_db()
        try:
            await PermissionService(get_session_factory()).grant()
        finally:
            await close_db()

    _async_run(_grant())
    console.print("[green]✓[/green] Contacts access granted")


@permissions_app.command("revoke")
def permissions_revoke() -> None:
    """Revoke read and write access to contacts."""

    async def _revoke():
        await init_db()
        try:
            await PermissionService(get_session_factory()).revoke()
        finally:
            await close_db()

    _async_run(_revoke())
    console.print("[green]✓[/green] Contacts access revoked")
