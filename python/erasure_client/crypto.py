"""
Symmetric payload encryption and asymmetric key wrapping, on top of NaCl.

Payloads are sealed with ``SecretBox`` under a fresh per-proof key. The key
itself travels to a buyer inside a ``Box`` built from the seller's secret key
and the buyer's registered public key, with the nonce carried next to the
ciphertext in the sale record.
"""

import base64
import binascii
from typing import Union

import nacl.secret
import nacl.utils
from nacl.exceptions import CryptoError
from nacl.public import Box, PrivateKey, PublicKey

from .errors import DecryptionError, InvalidPublicKeyError, UnwrapAuthenticationError

KEY_SIZE = nacl.secret.SecretBox.KEY_SIZE
NONCE_SIZE = Box.NONCE_SIZE

PublicKeyLike = Union[PublicKey, bytes, str]


# ------------------------------------------------------------------------------
# Symmetric
# ------------------------------------------------------------------------------

def generate_key() -> str:
    """A fresh symmetric key in its text form (base64 of 32 random bytes)."""
    return base64.b64encode(nacl.utils.random(KEY_SIZE)).decode("ascii")


def _secret_box(key: str) -> nacl.secret.SecretBox:
    try:
        raw = base64.b64decode(key, validate=True)
    except (binascii.Error, ValueError) as e:
        raise DecryptionError("symmetric key is not valid base64") from e
    if len(raw) != KEY_SIZE:
        raise DecryptionError(f"symmetric key must be {KEY_SIZE} bytes, got {len(raw)}")
    return nacl.secret.SecretBox(raw)


def encrypt(key: str, plaintext: Union[bytes, str]) -> bytes:
    """Returns ``nonce || tag || ciphertext``."""
    if isinstance(plaintext, str):
        plaintext = plaintext.encode("utf-8")
    return bytes(_secret_box(key).encrypt(plaintext))


def decrypt(key: str, ciphertext: bytes) -> bytes:
    box = _secret_box(key)
    try:
        return box.decrypt(ciphertext)
    except CryptoError as e:
        raise DecryptionError("encrypted payload failed authentication") from e


# ------------------------------------------------------------------------------
# Asymmetric
# ------------------------------------------------------------------------------

def coerce_public_key(value: PublicKeyLike) -> PublicKey:
    """Accepts a PublicKey, raw 32 bytes, or hex with or without ``0x``."""
    if isinstance(value, PublicKey):
        return value
    if isinstance(value, str):
        text = value[2:] if value[:2].lower() == "0x" else value
        try:
            value = binascii.unhexlify(text)
        except (binascii.Error, ValueError) as e:
            raise InvalidPublicKeyError(f"public key is not hex: {value!r}") from e
    if len(value) != PublicKey.SIZE:
        raise InvalidPublicKeyError(f"public key must be {PublicKey.SIZE} bytes, got {len(value)}")
    return PublicKey(bytes(value))


def generate_nonce() -> bytes:
    return nacl.utils.random(NONCE_SIZE)


def wrap(plaintext: Union[bytes, str], nonce: bytes, recipient_public_key: PublicKeyLike,
         sender_secret_key: PrivateKey) -> bytes:
    """
    Encrypt ``plaintext`` for the holder of ``recipient_public_key``.

    The nonce is not embedded in the result; the caller stores it alongside.
    A nonce must never be reused with the same key pair for two messages.
    """
    if isinstance(plaintext, str):
        plaintext = plaintext.encode("utf-8")
    box = Box(sender_secret_key, coerce_public_key(recipient_public_key))
    return bytes(box.encrypt(plaintext, nonce).ciphertext)


def unwrap(ciphertext: bytes, nonce: bytes, sender_public_key: PublicKeyLike,
           recipient_secret_key: PrivateKey) -> bytes:
    box = Box(recipient_secret_key, coerce_public_key(sender_public_key))
    try:
        return box.decrypt(bytes(ciphertext), bytes(nonce))
    except (CryptoError, ValueError) as e:
        raise UnwrapAuthenticationError("wrapped key does not open with these keys and nonce") from e
