from __future__ import annotations

import pytest

from src.staff_management.staff_management.common.datetime_utils import month_bounds, resolve_month
from src.staff_management.staff_management.common.validators import (
    require_enum,
    require_id,
    require_max_length,
    require_min_length,
    require_non_empty,
)
from src.staff_management.staff_management.core.enums import Role
from src.staff_management.staff_management.core.exceptions import ValidationError


def test_numbers_are_accepted_as_text():
    assert require_min_length(12345678, "Password", 8) == "12345678"
    assert require_non_empty(42, "Title") == "42"
    assert require_max_length(None, "Notes", 10) == ""


@pytest.mark.parametrize("value", [["a"], {"a": 1}, True])
def test_structured_values_are_not_text(value):
    with pytest.raises(ValidationError, match="must be text"):
        require_non_empty(value, "Title")


@pytest.mark.parametrize("value, expected", [(7, 7), ("12", 12), (3.0, 3)])
def test_require_id_accepts_whole_numbers(value, expected):
    assert require_id(value, "user_id") == expected


@pytest.mark.parametrize("value", ["abc", None, True, 3.5, [1], {"id": 1}])
def test_require_id_rejects_non_numbers(value):
    with pytest.raises(ValidationError, match="user_id must be a number"):
        require_id(value, "user_id")


def test_require_enum_rejects_unhashable_values():
    with pytest.raises(ValidationError):
        require_enum(Role, ["admin"], "role")


def test_month_helpers_reject_wrong_types():
    with pytest.raises(ValidationError):
        resolve_month("march", "2025")
    with pytest.raises(ValidationError):
        month_bounds(202503)
