# Overview: Default permission sets per role.

from .helpers import get_all_permission_codes


ROLE_PERMISSIONS = {
    # Admin gets ALL permissions
    "admin": frozenset(get_all_permission_codes()),

    # Staff run the stock: everything except deleting products and managing users
    "staff": frozenset({
        "VIEW_CATALOG",
        "MANAGE_CATALOG",
        "RECORD_TRADES",
        "VIEW_ALL_TRADES",
        "MODIFY_ANY_TRADE",
        "VIEW_REPORTS",
        "VIEW_USERS",
    }),

    # Read-mostly roles: trade as themselves, see and change only their own records
    "coordinator": frozenset({
        "VIEW_CATALOG",
        "RECORD_TRADES",
        "VIEW_OWN_TRADES",
        "MODIFY_OWN_TRADES",
        "VIEW_REPORTS",
    }),
    "user": frozenset({
        "VIEW_CATALOG",
        "RECORD_TRADES",
        "VIEW_OWN_TRADES",
        "MODIFY_OWN_TRADES",
        "VIEW_REPORTS",
    }),
}


def get_role_permissions(role: str | None) -> frozenset[str]:
    """Permission codes for a role; unknown roles get nothing (fail closed)."""
    return ROLE_PERMISSIONS.get(role or "", frozenset())
