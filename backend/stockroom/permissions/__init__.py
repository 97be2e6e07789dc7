# Overview: Permission system package.
# Re-exports all public APIs.

from .categories import PermissionCategory
from .definitions import (
    PERMISSION_DEFINITIONS,
    OWNED_VARIANTS,
    CATALOG_PERMISSIONS,
    TRADE_PERMISSIONS,
    REPORT_PERMISSIONS,
    USER_PERMISSIONS,
)
from .roles import ROLE_PERMISSIONS, get_role_permissions
from .helpers import (
    get_all_permission_codes,
    get_permissions_by_category,
    describe_permission,
    is_known_permission,
)

__all__ = [
    "PermissionCategory",
    "PERMISSION_DEFINITIONS",
    "OWNED_VARIANTS",
    "CATALOG_PERMISSIONS",
    "TRADE_PERMISSIONS",
    "REPORT_PERMISSIONS",
    "USER_PERMISSIONS",
    "ROLE_PERMISSIONS",
    "get_role_permissions",
    "get_all_permission_codes",
    "get_permissions_by_category",
    "describe_permission",
    "is_known_permission",
]
