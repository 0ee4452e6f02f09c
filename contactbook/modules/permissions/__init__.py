"""Runtime permission grants for the contacts store."""

from contactbook.modules.permissions.models import Permission, PermissionGrant
from contactbook.modules.permissions.service import PermissionDenied, PermissionService

__all__ = ["Permission", "PermissionDenied", "PermissionGrant", "PermissionService"]
