"""contactbook entry point.

Quick Start:
    $ contactbook list             # Show contacts in store order
    $ contactbook list --sort asc  # Sorted by name
    $ contactbook screen           # Interactive list with menus

Environment:
    CONTACTBOOK_ENV                # development/production (default: development)
    CONTACTBOOK_LOG_LEVEL          # DEBUG/INFO/WARNING/ERROR (default: INFO)
    DATABASE_URL                   # contacts store (default: sqlite+aiosqlite:///data/contacts.db)
"""

from __future__ import annotations

from contactbook.cli.commands import app
from contactbook.logging_config import setup_logging


def main() -> None:
    """Configure logging once, then hand over to the CLI."""
    setup_logging()
    app()


if __name__ == "__main__":
    main()
