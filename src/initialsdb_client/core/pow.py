"""Proof-of-Work helpers.

This module defines the digest and leading-zero predicate used by the board's
admission puzzle: ``sha256(challenge_bytes || utf8(decimal_nonce))`` must start
with at least ``difficulty`` zero bits.
"""
from __future__ import annotations

import hashlib

SHA256_DIGEST_BYTES = 32
DIGEST_BITS = SHA256_DIGEST_BYTES * 8


def compute_pow_hash(challenge_bytes: bytes, nonce: str) -> bytes:
    """Return the SHA-256 digest of the challenge followed by the nonce.

    Args:
        challenge_bytes: Decoded server-issued challenge payload.
        nonce: Decimal string nonce chosen by the client.

    Returns:
        32 digest bytes.
    """
    return hashlib.sha256(challenge_bytes + nonce.encode("utf-8")).digest()


def has_leading_zero_bits(hash_bytes: bytes, difficulty: int) -> bool:
    """Return True if ``hash_bytes`` starts with ``difficulty`` zero bits.

    Bits are scanned most-significant first across bytes and the check stops as
    soon as ``difficulty`` zeros have been seen. A difficulty larger than the
    digest degrades to requiring every bit to be zero.
    """
    required = min(difficulty, len(hash_bytes) * 8)
    if required <= 0:
        return True

    full_bytes, rest_bits = divmod(required, 8)
    if any(hash_bytes[:full_bytes]):
        return False
    if rest_bits == 0:
        return True
    return hash_bytes[full_bytes] >> (8 - rest_bits) == 0


def validate_solution(challenge_bytes: bytes, nonce: str, difficulty: int) -> bool:
    """Validate a proposed proof-of-work solution.

    Args:
        challenge_bytes: Decoded server-issued challenge payload.
        nonce: Decimal string nonce.
        difficulty: Number of leading zero bits required in the hash.

    Returns:
        True if the hash of ``challenge_bytes | utf8(nonce)`` has at least
        ``difficulty`` leading zero bits; False otherwise.
    """
    if difficulty < 0:
        return False
    if not (nonce.isascii() and nonce.isdigit()):
        return False
    return has_leading_zero_bits(compute_pow_hash(challenge_bytes, nonce), difficulty)
