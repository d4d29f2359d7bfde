from __future__ import annotations

import pytest

from services.update import compare_versions


@pytest.mark.parametrize(
    ("left", "right", "expected"),
    [
        ("1.2.3", "1.2.10", -1),
        ("1.2", "1.2.0", 0),
        ("2.0.0", "1.9.9", 1),
        ("1.5.0", "1.5.0", 0),
        ("1.4.0", "1.5.0", -1),
        ("1.10", "1.9.9", 1),
    ],
)
def test_compare_versions_orders_dotted_versions(left: str, right: str, expected: int) -> None:
    assert compare_versions(left, right) == expected
    assert compare_versions(right, left) == -expected


@pytest.mark.parametrize(
    ("left", "right", "expected"),
    [
        ("1.2.x", "1.2.1", -1),
        ("1.2.x", "1.2", 0),
        ("1.2.3-beta", "1.2.2", -1),
        ("1.2.3-1", "1.2.3", -1),
        ("1.2.3.post1", "1.2.3", 0),
        ("v1.5.0", "1.4.0", -1),
        ("1.2.²", "1.2.0", 0),
        ("1.2.1_0", "1.2.0", 0),
    ],
)
def test_fields_that_are_not_integers_count_as_zero(left: str, right: str, expected: int) -> None:
    assert compare_versions(left, right) == expected
    assert compare_versions(right, left) == -expected


def test_signed_fields_are_parsed_as_integers() -> None:
    assert compare_versions("1.-1", "1.0") == -1
    assert compare_versions("1.+2", "1.2") == 0


def test_compare_versions_ignores_surrounding_whitespace() -> None:
    assert compare_versions(" 1.5.0\n", "1.5.0") == 0
