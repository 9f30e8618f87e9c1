import asyncio
import json

import pytest

from erasure_client import hashcodec
from erasure_client.errors import DecryptionError, MalformedRecordError, NotFoundError, UnwrapAuthenticationError
from erasure_client.protocol import build_proof, build_sale, validate_sale
from erasure_client.records import ProofRecord, SaleRecord
from erasure_client.unixfs import cid_of

PAYLOAD = b"my secret prediction is worthy "


def _publish_and_sell(store, seller_signer, seller_keys, buyer_keys, payload=PAYLOAD):
    async def go():
        proof = await build_proof(store, payload, seller_signer.address)
        sale = await build_sale(store, buyer_keys.public_key_hex, proof.symmetric_key, seller_keys, proof.proofhash)
        return proof, sale

    return asyncio.run(go())


def test_proof_record_contents(store, seller_signer):
    proof = asyncio.run(build_proof(store, PAYLOAD, seller_signer.address))

    stored = ProofRecord.from_json(store.blobs[proof.store_ref])
    assert stored == proof.record
    assert stored.creator == seller_signer.address
    assert stored.datahash == cid_of(PAYLOAD)
    assert stored.keyhash == cid_of(proof.symmetric_key.encode())
    assert stored.encrypted_datahash in store.blobs
    assert PAYLOAD not in store.blobs[stored.encrypted_datahash]

    assert proof.proofhash == hashcodec.to_digest(proof.store_ref)
    assert proof.metadata == hashcodec.to_onchain_form(proof.store_ref)
    assert len(store.blobs) == 2


def test_each_proof_gets_a_fresh_key(store, seller_signer):
    a = asyncio.run(build_proof(store, PAYLOAD, seller_signer.address))
    b = asyncio.run(build_proof(store, PAYLOAD, seller_signer.address))
    assert a.symmetric_key != b.symmetric_key
    assert a.proofhash != b.proofhash


def test_sale_record_points_at_proof(store, seller_signer, seller_keys, buyer_keys):
    proof, sale = _publish_and_sell(store, seller_signer, seller_keys, buyer_keys)
    stored = json.loads(store.blobs[sale.store_ref])
    assert stored["proofhash"] == proof.proofhash
    assert SaleRecord.from_json(store.blobs[sale.store_ref]) == sale.record
    assert sale.sale_ref == hashcodec.to_digest(sale.store_ref)
    assert proof.symmetric_key.encode() not in store.blobs[sale.store_ref]


def test_buyer_validates_sale(store, seller_signer, seller_keys, buyer_keys):
    proof, sale = _publish_and_sell(store, seller_signer, seller_keys, buyer_keys)

    result = asyncio.run(validate_sale(store, sale.sale_ref, buyer_keys, seller_keys.public_key_hex, proof.proofhash))

    assert result.status is True
    assert result.rawdata == PAYLOAD
    assert result.text == "my secret prediction is worthy "


def test_sale_ref_in_store_form_is_accepted(store, seller_signer, seller_keys, buyer_keys):
    proof, sale = _publish_and_sell(store, seller_signer, seller_keys, buyer_keys)
    result = asyncio.run(validate_sale(store, sale.store_ref, buyer_keys, seller_keys.public_key, proof.metadata))
    assert result.status


def test_substituted_data_fails_validation(store, seller_signer, seller_keys, buyer_keys):
    # seller posts one prediction but sells a proof for another under the same key
    async def go():
        posted = await build_proof(store, b"the posted prediction", seller_signer.address)
        sold = await build_proof(store, PAYLOAD, seller_signer.address, symmetric_key=posted.symmetric_key)
        sale = await build_sale(store, buyer_keys.public_key_hex, posted.symmetric_key, seller_keys, sold.proofhash)
        return await validate_sale(store, sale.sale_ref, buyer_keys, seller_keys.public_key_hex, posted.proofhash)

    result = asyncio.run(go())
    assert result.status is False
    assert result.rawdata == b"the posted prediction"


def test_wrong_key_sold_fails_validation(store, seller_signer, seller_keys, buyer_keys):
    # the posted data decrypts, but the key does not match the sold proof's keyhash
    async def go():
        posted = await build_proof(store, PAYLOAD, seller_signer.address)
        other = await build_proof(store, PAYLOAD, seller_signer.address)
        sale = await build_sale(store, buyer_keys.public_key_hex, posted.symmetric_key, seller_keys, other.proofhash)
        return await validate_sale(store, sale.sale_ref, buyer_keys, seller_keys.public_key_hex, posted.proofhash)

    result = asyncio.run(go())
    assert result.status is False
    assert result.rawdata == PAYLOAD


def test_unrelated_posted_proof_fails_validation(store, seller_signer, seller_keys, buyer_keys):
    proof, sale = _publish_and_sell(store, seller_signer, seller_keys, buyer_keys)
    unrelated = asyncio.run(build_proof(store, b"something else", seller_signer.address))

    result = asyncio.run(validate_sale(store, sale.sale_ref, buyer_keys, seller_keys.public_key_hex, unrelated.proofhash))

    assert result.status is False
    assert result.rawdata == b""


def test_tampered_payload_raises(store, seller_signer, seller_keys, buyer_keys):
    proof, sale = _publish_and_sell(store, seller_signer, seller_keys, buyer_keys)
    ref = proof.record.encrypted_datahash
    tampered = bytearray(store.blobs[ref])
    tampered[30] ^= 0xFF
    store.blobs[ref] = bytes(tampered)

    with pytest.raises(DecryptionError):
        asyncio.run(validate_sale(store, sale.sale_ref, buyer_keys, seller_keys.public_key_hex, proof.proofhash))


def test_wrong_recipient_cannot_unwrap(store, seller_signer, seller_keys, buyer_keys, stranger_keys):
    proof, sale = _publish_and_sell(store, seller_signer, seller_keys, buyer_keys)
    with pytest.raises(UnwrapAuthenticationError):
        asyncio.run(validate_sale(store, sale.sale_ref, stranger_keys, seller_keys.public_key_hex, proof.proofhash))


def test_wrong_seller_key_cannot_unwrap(store, seller_signer, seller_keys, buyer_keys, stranger_keys):
    proof, sale = _publish_and_sell(store, seller_signer, seller_keys, buyer_keys)
    with pytest.raises(UnwrapAuthenticationError):
        asyncio.run(validate_sale(store, sale.sale_ref, buyer_keys, stranger_keys.public_key_hex, proof.proofhash))


def test_missing_sale(store, buyer_keys, seller_keys):
    with pytest.raises(NotFoundError):
        asyncio.run(validate_sale(store, cid_of(b"no sale"), buyer_keys, seller_keys.public_key_hex,
                                  hashcodec.to_digest(cid_of(b"no proof"))))


def test_missing_posted_proof(store, seller_signer, seller_keys, buyer_keys):
    proof, sale = _publish_and_sell(store, seller_signer, seller_keys, buyer_keys)
    with pytest.raises(NotFoundError):
        asyncio.run(validate_sale(store, sale.sale_ref, buyer_keys, seller_keys.public_key_hex,
                                  hashcodec.to_digest(cid_of(b"never posted"))))


def test_sale_ref_pointing_at_garbage(store, buyer_keys, seller_keys):
    ref = asyncio.run(store.put(b"not a record"))
    with pytest.raises(MalformedRecordError):
        asyncio.run(validate_sale(store, ref, buyer_keys, seller_keys.public_key_hex, ref))
