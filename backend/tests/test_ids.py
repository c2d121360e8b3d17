"""Tests for id generation."""
import itertools

from polygram.domain.common import types
from polygram.domain.common.types import generate_id, is_valid_id


def test_generated_ids_are_24_hex_chars():
    value = generate_id()

    assert len(value) == 24
    assert is_valid_id(value)
    assert value == value.lower()


def test_ids_sort_in_creation_order():
    ids = [generate_id() for _ in range(200)]

    assert ids == sorted(ids)
    assert len(set(ids)) == len(ids)


def test_is_valid_id_rejects_malformed_values():
    assert not is_valid_id("abc")
    assert not is_valid_id("z" * 24)
    assert not is_valid_id(None)
    assert not is_valid_id(12345)
    assert is_valid_id("0123456789ABCDEF01234567")


def test_counter_uses_all_three_bytes_and_wraps(monkeypatch):
    monkeypatch.setattr(types, "_counter", itertools.count(0xFFFFFE))

    tails = [generate_id()[-6:] for _ in range(3)]

    assert tails == ["fffffe", "ffffff", "000000"]
