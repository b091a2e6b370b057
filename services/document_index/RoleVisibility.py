"""Role hierarchy expansion and visibility filtering."""

from typing import Iterable, TypeVar

T = TypeVar("T")

# highest privilege first
ROLE_HIERARCHY: list[str] = ["Admin", "Editor", "Internal", "User"]
DEFAULT_ROLE = "User"


def expand_visible_roles(role: str | None) -> list[str]:
    """Return the document roles a caller with the given role may see.

    A known role sees its own level and every level below it. An unknown role
    maps to itself only, which in practice matches nothing. No role sees nothing.
    """
    if not role:
        return []
    if role in ROLE_HIERARCHY:
        return ROLE_HIERARCHY[ROLE_HIERARCHY.index(role):]
    return [role]


def is_known_role(role: str | None) -> bool:
    return role in ROLE_HIERARCHY


def is_visible(role: str, visible_roles: Iterable[str] | None) -> bool:
    """None means unrestricted."""
    if visible_roles is None:
        return True
    return role in visible_roles


def filter_visible(items: Iterable[T], visible_roles: Iterable[str] | None) -> list[T]:
    """Keep the items (anything with a .role attribute) the visible-role set allows."""
    if visible_roles is None:
        return list(items)
    allowed = set(visible_roles)
    return [item for item in items if item.role in allowed]
