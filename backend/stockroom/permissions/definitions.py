# Overview: All permission definitions organized by category.
# Each permission is defined as: (code, name, description, category)

from .categories import PermissionCategory


# -- CATALOG --

CATALOG_PERMISSIONS = [
    (
        "VIEW_CATALOG",
        "View Catalog",
        "List and read products, categories, brands and firms",
        PermissionCategory.CATALOG,
    ),
    (
        "MANAGE_CATALOG",
        "Manage Catalog",
        "Create and update products; create, update and delete categories, brands and firms",
        PermissionCategory.CATALOG,
    ),
    (
        "DELETE_PRODUCTS",
        "Delete Products",
        "Delete products (purchases and sells are kept)",
        PermissionCategory.CATALOG,
    ),
]


# -- TRADES --

TRADE_PERMISSIONS = [
    (
        "RECORD_TRADES",
        "Record Trades",
        "Record purchases and sells (as yourself unless ACT_AS_OTHER is held)",
        PermissionCategory.TRADES,
    ),
    (
        "ACT_AS_OTHER",
        "Act As Other",
        "Name another user as buyer or seller",
        PermissionCategory.TRADES,
    ),
    (
        "VIEW_ALL_TRADES",
        "View All Trades",
        "See every purchase and sell instead of only your own",
        PermissionCategory.TRADES,
    ),
    (
        "VIEW_OWN_TRADES",
        "View Own Trades",
        "See purchases and sells you recorded, bought or sold",
        PermissionCategory.TRADES,
    ),
    (
        "MODIFY_ANY_TRADE",
        "Modify Any Trade",
        "Update or delete any purchase or sell",
        PermissionCategory.TRADES,
    ),
    (
        "MODIFY_OWN_TRADES",
        "Modify Own Trades",
        "Update or delete purchases and sells you recorded, bought or sold",
        PermissionCategory.TRADES,
    ),
]


# -- REPORTS --

REPORT_PERMISSIONS = [
    (
        "VIEW_REPORTS",
        "View Reports",
        "Category summaries and top-N rankings over visible trades",
        PermissionCategory.REPORTS,
    ),
]


# -- USERS --

USER_PERMISSIONS = [
    (
        "VIEW_USERS",
        "View Users",
        "List user accounts",
        PermissionCategory.USERS,
    ),
    (
        "MANAGE_USERS",
        "Manage Users",
        "Create, edit, re-role and deactivate user accounts",
        PermissionCategory.USERS,
    ),
]


# Combined list of all permissions
PERMISSION_DEFINITIONS = (
    CATALOG_PERMISSIONS
    + TRADE_PERMISSIONS
    + REPORT_PERMISSIONS
    + USER_PERMISSIONS
)

# Actions that a role may still perform on records it owns
OWNED_VARIANTS = {
    "VIEW_ALL_TRADES": "VIEW_OWN_TRADES",
    "MODIFY_ANY_TRADE": "MODIFY_OWN_TRADES",
}
