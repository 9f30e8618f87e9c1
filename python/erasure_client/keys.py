"""
Deterministic encryption keypairs derived from an account's signature.

A party never stores its Curve25519 secret key: it signs a fixed message with
its account key and stretches the signature into the key seed. The same
account therefore gets the same encryption keypair on every machine, and
only the public half is ever registered for others to use.
"""

import base64
import hashlib
import logging
from dataclasses import dataclass
from typing import Optional, Protocol, runtime_checkable

import nacl.pwhash
from nacl.public import PrivateKey, PublicKey
from substrateinterface import Keypair, KeypairType
from substrateinterface.exceptions import ConfigurationError

from .errors import ConfigError, SigningUnavailableError

logger = logging.getLogger(__name__)

MESSAGE_TEMPLATE = "I am signing this message to generate my ErasureClient keypair as {address}"

CRYPTO_TYPES = {
    "ed25519": KeypairType.ED25519,
    "ecdsa": KeypairType.ECDSA,
}


@runtime_checkable
class Signer(Protocol):
    """Anything holding an account address and able to sign with its key."""

    address: str

    def sign(self, message: bytes) -> bytes:
        ...


class SubstrateSigner:
    """Signs with a Substrate account keypair.

    Only deterministic schemes are accepted: sr25519 signatures are
    randomised and would yield a different encryption keypair each run.
    """

    def __init__(self, keypair: Keypair):
        if keypair.crypto_type not in CRYPTO_TYPES.values():
            raise ConfigError("signer keypair must be ed25519 or ecdsa (sr25519 signatures are randomised)")
        self.keypair = keypair
        self.address = keypair.ss58_address

    @classmethod
    def from_uri(cls, uri: str, crypto_type: str = "ed25519") -> "SubstrateSigner":
        """Builds a signer from a secret URI, mnemonic or ``0x`` seed."""
        try:
            kind = CRYPTO_TYPES[crypto_type]
        except KeyError:
            raise ConfigError(f"unsupported crypto_type {crypto_type!r}, expected one of {sorted(CRYPTO_TYPES)}")
        if not uri:
            raise ConfigError("a signer URI, mnemonic or seed is required")
        try:
            if uri.startswith("0x"):
                keypair = Keypair.create_from_seed(uri, crypto_type=kind)
            else:
                keypair = Keypair.create_from_uri(uri, crypto_type=kind)
        except (ValueError, NotImplementedError, ConfigurationError) as e:
            raise ConfigError(f"cannot load signer keypair: {e}") from e
        return cls(keypair)

    def sign(self, message: bytes) -> bytes:
        try:
            return bytes(self.keypair.sign(message))
        except ConfigurationError as e:
            raise SigningUnavailableError(f"{self.address} cannot sign: {e}") from e


@dataclass(frozen=True)
class DerivedKeys:
    message: str
    signature: str
    salt: str
    secret_key: PrivateKey

    @property
    def public_key(self) -> PublicKey:
        return self.secret_key.public_key

    @property
    def public_key_hex(self) -> str:
        """Form in which the key is registered for other parties."""
        return "0x" + bytes(self.public_key).hex()

    def __repr__(self) -> str:
        return f"DerivedKeys(public_key={self.public_key_hex})"


def address_salt(address: str) -> str:
    return base64.b64encode(hashlib.sha256(address.encode("utf-8")).digest()).decode("ascii")


def keypair_from_signature(signature: str, salt: str) -> PrivateKey:
    seed = nacl.pwhash.scrypt.kdf(
        PrivateKey.SIZE,
        signature.encode("utf-8"),
        base64.b64decode(salt),
        opslimit=nacl.pwhash.scrypt.OPSLIMIT_INTERACTIVE,
        memlimit=nacl.pwhash.scrypt.MEMLIMIT_INTERACTIVE,
    )
    return PrivateKey(seed)


def derive(signer: Signer, address: Optional[str] = None) -> DerivedKeys:
    """Derive the encryption keypair of ``signer``'s account."""
    address = address or signer.address
    message = MESSAGE_TEMPLATE.format(address=address)
    try:
        raw = signer.sign(message.encode("utf-8"))
    except SigningUnavailableError:
        raise
    except Exception as e:
        raise SigningUnavailableError(f"{address} cannot sign: {e}") from e
    if not raw:
        raise SigningUnavailableError(f"{address} produced an empty signature")

    signature = "0x" + bytes(raw).hex()
    salt = address_salt(address)
    keys = DerivedKeys(message, signature, salt, keypair_from_signature(signature, salt))
    logger.debug("derived encryption key %s for %s", keys.public_key_hex, address)
    return keys
