import asyncio
import json
import logging
import os
from dataclasses import dataclass, fields
from typing import Optional

from . import protocol
from .crypto import PublicKeyLike
from .errors import ConfigError
from .keys import CRYPTO_TYPES, DerivedKeys, Signer, SubstrateSigner, derive
from .protocol import Proof, Sale, ValidationResult
from .store import BlobStore, IpfsBlobStore, MemoryBlobStore, RetryPolicy
from .vault import KeyVault

logger = logging.getLogger(__name__)

MEMORY_STORE = "memory://"


@dataclass
class Config:
    signer_uri: str
    ipfs_api_url: str = "http://127.0.0.1:5001"
    data_dir: str = ".erasure_data"
    store_retries: int = 1
    timeout: float = 30.0
    crypto_type: str = "ed25519"

    def __post_init__(self):
        if self.crypto_type not in CRYPTO_TYPES:
            raise ConfigError(f"crypto_type must be one of {sorted(CRYPTO_TYPES)}, got {self.crypto_type!r}")
        if not isinstance(self.store_retries, int) or self.store_retries < 0:
            raise ConfigError(f"store_retries must be a non-negative integer, got {self.store_retries!r}")
        if not isinstance(self.timeout, (int, float)) or self.timeout <= 0:
            raise ConfigError(f"timeout must be positive, got {self.timeout!r}")

    @classmethod
    def from_file(cls, path: str) -> "Config":
        """
        Loads a JSON config. The ``{"ipfs": {"host", "port", "protocol"}}``
        layout used by the JavaScript tooling is accepted for the store URL.
        """
        try:
            with open(path) as f:
                raw = json.load(f)
        except (OSError, ValueError) as e:
            raise ConfigError(f"cannot read config {path}: {e}") from e
        if not isinstance(raw, dict):
            raise ConfigError(f"config {path} must hold a JSON object")

        ipfs = raw.pop("ipfs", None)
        if isinstance(ipfs, dict) and "ipfs_api_url" not in raw:
            try:
                raw["ipfs_api_url"] = f"{ipfs.get('protocol', 'http')}://{ipfs['host']}:{ipfs.get('port', 5001)}"
            except KeyError:
                raise ConfigError(f"config {path}: ipfs section needs a host")

        known = {f.name for f in fields(cls)}
        unknown = set(raw) - known
        if unknown:
            raise ConfigError(f"config {path}: unknown keys {sorted(unknown)}")
        if "signer_uri" not in raw:
            raise ConfigError(f"config {path}: signer_uri is required")
        return cls(**raw)


class ErasureClient:
    """Seller and buyer operations for one account, over one blob store."""

    def __init__(self, config: Config, store: BlobStore, signer: Signer):
        self.config = config
        self.store = store
        self.signer = signer
        self.vault = KeyVault(config.data_dir)
        self._keys: Optional[DerivedKeys] = None

    @classmethod
    async def create(cls, config: Config, store: Optional[BlobStore] = None,
                     signer: Optional[Signer] = None) -> "ErasureClient":
        if signer is None:
            signer = SubstrateSigner.from_uri(config.signer_uri, config.crypto_type)
        if store is None:
            retry = RetryPolicy(retries=config.store_retries)
            if config.ipfs_api_url == MEMORY_STORE:
                store = MemoryBlobStore(retry)
            else:
                store = IpfsBlobStore(config.ipfs_api_url, timeout=config.timeout, retry=retry)
        os.makedirs(config.data_dir, exist_ok=True)
        logger.debug("client for %s on %s", signer.address, type(store).__name__)
        return cls(config, store, signer)

    async def __aenter__(self) -> "ErasureClient":
        return self

    async def __aexit__(self, *exc) -> None:
        await self.close()

    async def close(self) -> None:
        await self.store.close()

    @property
    def address(self) -> str:
        return self.signer.address

    async def keypair(self) -> DerivedKeys:
        if self._keys is None:
            self._keys = await asyncio.to_thread(derive, self.signer)
        return self._keys

    async def public_key_hex(self) -> str:
        return (await self.keypair()).public_key_hex

    async def publish(self, payload: bytes) -> Proof:
        proof = await protocol.build_proof(self.store, payload, self.address)
        self.vault.save(proof.proofhash, proof.symmetric_key)
        return proof

    async def sell(self, buyer_public_key: PublicKeyLike, proofhash: str,
                   symmetric_key: Optional[str] = None) -> Sale:
        if symmetric_key is None:
            symmetric_key = self.vault.load(proofhash)
        return await protocol.build_sale(self.store, buyer_public_key, symmetric_key,
                                         await self.keypair(), proofhash)

    async def validate(self, sale_ref: str, seller_public_key: PublicKeyLike,
                       original_proofhash: str) -> ValidationResult:
        return await protocol.validate_sale(self.store, sale_ref, await self.keypair(),
                                            seller_public_key, original_proofhash)
