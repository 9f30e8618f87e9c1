"""In-memory stand-in for the on-chain user registry of encryption keys."""

from typing import Dict

from .crypto import PublicKeyLike, coerce_public_key
from .errors import NotFoundError


class PublicKeyDirectory:

    def __init__(self):
        self._keys: Dict[str, str] = {}

    def register(self, address: str, public_key: PublicKeyLike) -> str:
        """Stores the key in its registered ``0x`` hex form and returns it."""
        registered = "0x" + bytes(coerce_public_key(public_key)).hex()
        self._keys[address] = registered
        return registered

    def lookup(self, address: str) -> str:
        try:
            return self._keys[address]
        except KeyError:
            raise NotFoundError(address, f"{address} has not registered an encryption key")

    def __contains__(self, address: str) -> bool:
        return address in self._keys
