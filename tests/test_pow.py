# tests/test_pow.py
"""Tests for the proof-of-work digest and leading-zero predicate."""

import hashlib

import pytest

from initialsdb_client.core.pow import (
    DIGEST_BITS,
    compute_pow_hash,
    has_leading_zero_bits,
    validate_solution,
)


def test_compute_pow_hash_appends_decimal_nonce() -> None:
    expected = hashlib.sha256(b"\x01\x02" + b"1234").digest()
    assert compute_pow_hash(b"\x01\x02", "1234") == expected


@pytest.mark.parametrize(
    ("digest", "zeros"),
    [
        (b"\x80" + b"\x00" * 31, 0),
        (b"\x00\x0f" + b"\xff" * 30, 12),
        (b"\x00\x00\x01" + b"\xff" * 29, 23),
        (b"\x00" * 32, 256),
    ],
)
def test_has_leading_zero_bits_boundary(digest: bytes, zeros: int) -> None:
    assert has_leading_zero_bits(digest, zeros)
    if zeros < DIGEST_BITS:
        assert not has_leading_zero_bits(digest, zeros + 1)


def test_has_leading_zero_bits_stops_at_difficulty() -> None:
    digest = b"\x00\x0f" + b"\xff" * 30
    assert has_leading_zero_bits(digest, 12)
    assert not has_leading_zero_bits(digest, 13)


def test_zero_difficulty_accepts_anything() -> None:
    assert has_leading_zero_bits(b"\xff" * 32, 0)


def test_difficulty_above_digest_length_requires_all_zero() -> None:
    assert has_leading_zero_bits(b"\x00" * 32, DIGEST_BITS + 44)
    almost = b"\x00" * 31 + b"\x01"
    assert not has_leading_zero_bits(almost, DIGEST_BITS + 44)
    assert has_leading_zero_bits(almost, DIGEST_BITS - 1)


def test_validate_solution_matches_bruteforce() -> None:
    challenge = b"board-challenge"
    nonce = next(
        str(n) for n in range(100_000)
        if has_leading_zero_bits(compute_pow_hash(challenge, str(n)), 8)
    )
    assert validate_solution(challenge, nonce, 8)
    assert validate_solution(challenge, nonce, 0)


def test_validate_solution_rejects_bad_input() -> None:
    assert not validate_solution(b"x", "0", -1)
    assert not validate_solution(b"x", "-1", 0)
    assert not validate_solution(b"x", "0x10", 0)
