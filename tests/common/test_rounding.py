import pytest

from src.staff_management.staff_management.common.rounding import round_half_up


@pytest.mark.parametrize(
    "value, digits, expected",
    [
        (12.5, 0, 13),
        (62.5, 0, 63),
        (87.5, 0, 88),
        (0.5, 0, 1),
        (-2.5, 0, -2),
        (4.25, 1, 4.3),
        (4.666, 1, 4.7),
        (78.0, 0, 78),
    ],
)
def test_halves_round_up(value, digits, expected):
    assert round_half_up(value, digits) == expected


def test_whole_results_are_ints():
    assert isinstance(round_half_up(12.5), int)
    assert isinstance(round_half_up(4.25, 1), float)
