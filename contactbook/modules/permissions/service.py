"""Permission gate in front of every contacts store call."""

from __future__ import annotations

import inspect
from typing import Awaitable, Callable, Iterable, Optional, Union

from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from contactbook.database import get_session_factory, session_scope
from contactbook.logging_config import get_logger
from contactbook.modules.permissions.models import CONTACT_PERMISSIONS, Permission, PermissionGrant

logger = get_logger(__name__)

# Asked once with the permissions being requested; returns whether the user allowed them.
PermissionRequester = Callable[[tuple[Permission, ...]], Union[bool, Awaitable[bool]]]


class PermissionDenied(Exception):
    """Read and write access to contacts has not been granted."""


class PermissionService:
    """Persisted runtime grants for the contacts permissions.

    Read and write access are requested and granted as a pair.
    """

    def __init__(self, session_factory: Optional[async_sessionmaker[AsyncSession]] = None) -> None:
        self._session_factory = session_factory or get_session_factory()

    async def granted_permissions(self) -> set[Permission]:
        """Return the granted permissions; an unreadable store grants nothing."""
        try:
            async with session_scope(self._session_factory) as session:
                result = await session.execute(
                    select(PermissionGrant.permission).where(PermissionGrant.granted.is_(True))
                )
                names = set(result.scalars().all())
        except SQLAlchemyError as exc:
            logger.error("permissions_query_failed", error=str(exc))
            return set()
        return {p for p in Permission if p.value in names}

    async def is_granted(self, permission: Permission) -> bool:
        return permission in await self.granted_permissions()

    async def has_contact_permission(self) -> bool:
        """True when both read and write access are granted."""
        granted = await self.granted_permissions()
        return all(p in granted for p in CONTACT_PERMISSIONS)

    async def require_contact_permission(self) -> None:
        if not await self.has_contact_permission():
            raise PermissionDenied("read_contacts and write_contacts are required")

    async def _set(self, permissions: Iterable[Permission], granted: bool) -> None:
        async with session_scope(self._session_factory) as session:
            for permission in permissions:
                row = await session.get(PermissionGrant, permission.value)
                if row is None:
                    session.add(PermissionGrant(permission=permission.value, granted=granted))
                else:
                    row.granted = granted

    async def grant(self, permissions: Iterable[Permission] = CONTACT_PERMISSIONS) -> None:
        permissions = tuple(permissions)
        await self._set(permissions, True)
        logger.info("permissions_granted", permissions=[p.value for p in permissions])

    async def revoke(self, permissions: Iterable[Permission] = CONTACT_PERMISSIONS) -> None:
        permissions = tuple(permissions)
        await self._set(permissions, False)
        logger.info("permissions_revoked", permissions=[p.value for p in permissions])

    async def request_contact_permission(self, requester: Optional[PermissionRequester]) -> bool:
        """Ask for contact access unless it is already granted.

        The requester is called at most once. A denial is not recorded, so a
        later request asks again.
        """
        if await self.has_contact_permission():
            return True
        if requester is None:
            logger.warning("contacts_permission_not_requested")
            return False

        answer = requester(CONTACT_PERMISSIONS)
        if inspect.isawaitable(answer):
            answer = await answer
        if not answer:
            logger.warning("contacts_permission_denied")
            return False

        try:
            await self.grant(CONTACT_PERMISSIONS)
        except SQLAlchemyError as exc:
            logger.error("permissions_grant_failed", error=str(exc))
            return False
        return True
