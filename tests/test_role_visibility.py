"""Tests for role expansion and visibility filtering."""
import pytest

from services.document_index.RoleVisibility import (
    ROLE_HIERARCHY,
    expand_visible_roles,
    filter_visible,
    is_visible,
)


class _Item:
    def __init__(self, role):
        self.role = role


class TestExpandVisibleRoles:
    @pytest.mark.parametrize("role,expected", [
        ("Admin", ["Admin", "Editor", "Internal", "User"]),
        ("Editor", ["Editor", "Internal", "User"]),
        ("Internal", ["Internal", "User"]),
        ("User", ["User"]),
    ])
    def test_known_roles(self, role, expected):
        assert expand_visible_roles(role) == expected

    def test_strict_superset_chain(self):
        sets = [set(expand_visible_roles(role)) for role in ROLE_HIERARCHY]
        for higher, lower in zip(sets, sets[1:]):
            assert higher > lower

    def test_unknown_role_maps_to_itself(self):
        assert expand_visible_roles("Guest") == ["Guest"]

    def test_missing_role_sees_nothing(self):
        assert expand_visible_roles(None) == []
        assert expand_visible_roles("") == []


class TestFilterVisible:
    def test_filters_by_role(self):
        items = [_Item("Admin"), _Item("User"), _Item("Internal")]
        visible = filter_visible(items, expand_visible_roles("Internal"))
        assert [item.role for item in visible] == ["User", "Internal"]

    def test_none_is_unrestricted(self):
        items = [_Item("Admin"), _Item("User")]
        assert filter_visible(items, None) == items
        assert is_visible("Admin", None)

    def test_unknown_role_sees_nothing_useful(self):
        items = [_Item(role) for role in ROLE_HIERARCHY]
        assert filter_visible(items, expand_visible_roles("Guest")) == []
