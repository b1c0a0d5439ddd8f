"""Unit tests for numeric-aware file name ordering."""

from __future__ import annotations

from novelshelf.text.natural_order import natural_sort_key


def test_natural_sort_key_orders_digit_runs_numerically() -> None:
    names = ["10.txt", "2.txt", "1.txt", "002b.txt"]

    assert sorted(names, key=natural_sort_key) == ["1.txt", "2.txt", "002b.txt", "10.txt"]


def test_natural_sort_key_ignores_case_and_accents() -> None:
    assert natural_sort_key("Élan 3.md") == natural_sort_key("elan 3.MD")


def test_natural_sort_key_places_digits_before_letters() -> None:
    assert sorted(["b.txt", "1.txt", "a.txt"], key=natural_sort_key) == [
        "1.txt",
        "a.txt",
        "b.txt",
    ]


def test_natural_sort_is_stable_for_equivalent_names() -> None:
    names = ["Book.txt", "book.txt"]

    assert sorted(names, key=natural_sort_key) == names
    assert sorted(list(reversed(names)), key=natural_sort_key) == list(reversed(names))
