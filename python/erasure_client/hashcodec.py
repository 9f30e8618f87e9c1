"""
Conversions between the content store's base58 multihash references and the
raw 32-byte digests committed on chain.

    store-native  QmYwAPJzv5CZsnA625s3Xf2nemtYgPpHdWEz79ojWnPbdG
    digest        0x<64 hex>           (bytes32, "proofhash")
    on-chain      0x1220<64 hex>       (multihash bytes, "metadata")
"""

import binascii

import base58

from .errors import MalformedHashError

SHA2_256 = 0x12
DIGEST_LENGTH = 32
HEADER = bytes([SHA2_256, DIGEST_LENGTH])

HEX_MARKER = "0x"


def _strip_marker(value: str) -> str:
    if value[:2].lower() == HEX_MARKER:
        return value[2:]
    return value


def _unhex(value: str) -> bytes:
    try:
        return binascii.unhexlify(_strip_marker(value))
    except (binascii.Error, ValueError) as e:
        raise MalformedHashError(f"not a hex string: {value!r}") from e


def _decode_store_hash(store_hash: str) -> bytes:
    if not isinstance(store_hash, str) or not store_hash:
        raise MalformedHashError(f"empty or non-string store hash: {store_hash!r}")
    try:
        raw = base58.b58decode(store_hash)
    except ValueError as e:
        raise MalformedHashError(f"invalid base58 in {store_hash!r}") from e
    if raw[:2] != HEADER:
        raise MalformedHashError(
            f"{store_hash!r} is not a sha2-256 multihash (header {raw[:2].hex() or 'missing'})"
        )
    if len(raw) != len(HEADER) + DIGEST_LENGTH:
        raise MalformedHashError(
            f"{store_hash!r} carries {len(raw) - len(HEADER)} digest bytes, expected {DIGEST_LENGTH}"
        )
    return raw


def digest_bytes(digest: str) -> bytes:
    """Raw 32 bytes of a ``0x``-prefixed (or bare) hex digest."""
    raw = _unhex(digest)
    if len(raw) != DIGEST_LENGTH:
        raise MalformedHashError(f"digest must be {DIGEST_LENGTH} bytes, got {len(raw)}")
    return raw


def to_digest(store_hash: str) -> str:
    """Strip the multihash header from a store-native hash: ``Qm...`` -> ``0x<hex>``."""
    raw = _decode_store_hash(store_hash)
    return HEX_MARKER + raw[len(HEADER):].hex()


def to_store_hash(digest: str) -> str:
    """Inverse of :func:`to_digest`: ``0x<hex>`` -> ``Qm...``."""
    return base58.b58encode(HEADER + digest_bytes(digest)).decode("ascii")


def to_onchain_form(store_hash: str) -> str:
    """Header and digest as one hex string, e.g. for a feed's ``metadata`` field."""
    return HEX_MARKER + _decode_store_hash(store_hash).hex()


def from_onchain_form(onchain: str) -> str:
    store_hash = base58.b58encode(_unhex(onchain)).decode("ascii")
    _decode_store_hash(store_hash)
    return store_hash


def normalize(value: str) -> str:
    """
    Reduce any of the three surface encodings to the digest form so that two
    references to the same content compare equal.
    """
    if not isinstance(value, str):
        raise MalformedHashError(f"expected a hash string, got {type(value).__name__}")
    if value[:2].lower() == HEX_MARKER:
        raw = _unhex(value)
        if raw[:2] == HEADER and len(raw) == len(HEADER) + DIGEST_LENGTH:
            return HEX_MARKER + raw[len(HEADER):].hex()
        return HEX_MARKER + digest_bytes(value).hex()
    return to_digest(value)


def to_store_ref(value: str) -> str:
    """Any surface encoding -> store-native reference, for BlobStore lookups."""
    return to_store_hash(normalize(value))
