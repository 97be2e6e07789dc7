# Overview: Lookups over PERMISSION_DEFINITIONS.

from .definitions import PERMISSION_DEFINITIONS

_BY_CODE = {perm[0]: perm for perm in PERMISSION_DEFINITIONS}


def get_all_permission_codes() -> list[str]:
    """All permission codes in declaration order."""
    return list(_BY_CODE)


def get_permissions_by_category(category: str) -> list[dict]:
    return [describe_permission(code) for code, perm in _BY_CODE.items() if perm[3] == category]


def describe_permission(code: str) -> dict | None:
    perm = _BY_CODE.get(code)
    if perm is None:
        return None
    return {
        "code": perm[0],
        "name": perm[1],
        "description": perm[2],
        "category": perm[3],
    }


def is_known_permission(code: str) -> bool:
    return code in _BY_CODE
