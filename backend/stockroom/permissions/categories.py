# Overview: Permission category constants for grouping related permissions.


class PermissionCategory:
    """Permission categories for organization and UI display."""
    CATALOG = "CATALOG"
    TRADES = "TRADES"
    REPORTS = "REPORTS"
    USERS = "USERS"

    ALL = (CATALOG, TRADES, REPORTS, USERS)
