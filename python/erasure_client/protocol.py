"""
The encrypted data exchange.

Seller, at publish time::

    proof = await build_proof(store, payload, seller_address)
    # proof.proofhash / proof.metadata go on chain, proof.symmetric_key is kept

Seller, at sale time, once per buyer::

    sale = await build_sale(store, buyer_public_key, proof.symmetric_key, seller_keys, proof.proofhash)
    # sale.sale_ref is submitted to the escrow

Buyer, at settlement::

    result = await validate_sale(store, sale_ref, buyer_keys, seller_public_key, original_proofhash)

``result.status`` is False when the sold key or data do not match the
commitments in the sold proof record. Cryptographic failures raise instead.
"""

import logging
from dataclasses import dataclass
from typing import Optional

from . import crypto, hashcodec
from .errors import DecryptionError
from .keys import DerivedKeys
from .records import ProofRecord, SaleRecord
from .store import BlobStore

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Proof:
    proofhash: str
    metadata: str
    store_ref: str
    symmetric_key: str
    record: ProofRecord

    def __repr__(self) -> str:
        return f"Proof(proofhash={self.proofhash}, store_ref={self.store_ref})"


@dataclass(frozen=True)
class Sale:
    sale_ref: str
    store_ref: str
    record: SaleRecord


@dataclass(frozen=True)
class ValidationResult:
    rawdata: bytes
    status: bool

    @property
    def text(self) -> str:
        return self.rawdata.decode("utf-8")


def _same_hash(a: str, b: str) -> bool:
    return hashcodec.normalize(a) == hashcodec.normalize(b)


async def build_proof(store: BlobStore, payload: bytes, creator: str, symmetric_key: Optional[str] = None) -> Proof:
    """Encrypt ``payload``, store it and a proof record committing to it.

    A fresh key is generated unless ``symmetric_key`` is given.
    """
    if isinstance(payload, str):
        payload = payload.encode("utf-8")

    symmetric_key = symmetric_key or crypto.generate_key()
    encrypted = crypto.encrypt(symmetric_key, payload)

    record = ProofRecord(
        creator=creator,
        datahash=store.hash_of(payload),
        keyhash=store.hash_of(symmetric_key.encode("utf-8")),
        encrypted_datahash=await store.put(encrypted),
    )
    store_ref = await store.put(record.to_json().encode("utf-8"))

    proof = Proof(
        proofhash=hashcodec.to_digest(store_ref),
        metadata=hashcodec.to_onchain_form(store_ref),
        store_ref=store_ref,
        symmetric_key=symmetric_key,
        record=record,
    )
    logger.info("published proof %s for %s (%d bytes)", proof.proofhash, creator, len(payload))
    return proof


async def build_sale(store: BlobStore, buyer_public_key: crypto.PublicKeyLike, symmetric_key: str,
                     seller: DerivedKeys, proofhash: str) -> Sale:
    """Wrap ``symmetric_key`` for one buyer and store the sale record."""
    nonce = crypto.generate_nonce()
    wrapped = crypto.wrap(symmetric_key, nonce, buyer_public_key, seller.secret_key)

    record = SaleRecord(encrypted_sym_key=wrapped, nonce=nonce, proofhash=hashcodec.normalize(proofhash))
    store_ref = await store.put(record.to_json().encode("utf-8"))

    sale = Sale(sale_ref=hashcodec.to_digest(store_ref), store_ref=store_ref, record=record)
    logger.info("sold proof %s as %s", record.proofhash, sale.sale_ref)
    return sale


async def validate_sale(store: BlobStore, sale_ref: str, buyer: DerivedKeys,
                        seller_public_key: crypto.PublicKeyLike, original_proofhash: str) -> ValidationResult:
    """
    Recover the sold data and check it against the seller's commitments.

    The key comes from the sale record; the ciphertext comes from the proof
    the seller originally posted; the hashes it must match come from the
    proof named in the sale. A seller who sells a different key, or points
    the sale at different data than was posted, yields ``status=False``.
    A corrupted ciphertext under the right key raises :class:`DecryptionError`.
    """
    sale = SaleRecord.from_json(await store.get(sale_ref))
    symmetric_key = crypto.unwrap(sale.encrypted_sym_key, sale.nonce, seller_public_key, buyer.secret_key)
    try:
        symmetric_key_text = symmetric_key.decode("utf-8")
    except UnicodeDecodeError as e:
        raise DecryptionError("unwrapped symmetric key is not text") from e

    sold = ProofRecord.from_json(await store.get(sale.proofhash))
    posted = ProofRecord.from_json(await store.get(original_proofhash))

    # the posted data was sealed under some other key: nothing to decrypt
    if not _same_hash(store.hash_of(symmetric_key), posted.keyhash):
        logger.warning("sale %s key does not open posted proof %s", sale_ref, original_proofhash)
        return ValidationResult(rawdata=b"", status=False)

    encrypted = await store.get(posted.encrypted_datahash)
    rawdata = crypto.decrypt(symmetric_key_text, encrypted)

    key_ok = _same_hash(store.hash_of(symmetric_key), sold.keyhash)
    data_ok = _same_hash(store.hash_of(rawdata), sold.datahash)
    status = key_ok and data_ok

    if status:
        logger.info("sale %s validated against proof %s", sale_ref, original_proofhash)
    else:
        logger.warning("sale %s does not match its commitments (key %s, data %s)",
                       sale_ref, "ok" if key_ok else "mismatch", "ok" if data_ok else "mismatch")
    return ValidationResult(rawdata=rawdata, status=status)
