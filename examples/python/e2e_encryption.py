"""
ErasureClient - Key Wrapping Example
====================================

This script shows how a symmetric data key travels from a seller to a buyer
using the Curve25519 encryption keys both parties derive from their accounts.

Requirements:
    pip install -e .

Context:
    Neither party stores an encryption secret key. Each signs the fixed
    message "I am signing this message to generate my ErasureClient keypair
    as <address>" with its account key, and the signature seeds the keypair.
    Only the public half is registered on chain, where the other party reads it.
"""

from substrateinterface import Keypair, KeypairType

from erasure_client import SubstrateSigner, derive
from erasure_client.crypto import generate_key, generate_nonce, unwrap, wrap

# ==============================================================================
# Both parties derive their encryption keys
# ==============================================================================

seller = SubstrateSigner(Keypair.create_from_mnemonic(Keypair.generate_mnemonic(), crypto_type=KeypairType.ED25519))
buyer = SubstrateSigner(Keypair.create_from_mnemonic(Keypair.generate_mnemonic(), crypto_type=KeypairType.ED25519))

seller_keys = derive(seller)
buyer_keys = derive(buyer)
print(f"1. Seller {seller.address} registered public key: {seller_keys.public_key_hex}")
print(f"2. Buyer  {buyer.address} registered public key: {buyer_keys.public_key_hex}")

# Deriving again gives the same keys: nothing needs to be kept on disk
assert derive(seller).public_key_hex == seller_keys.public_key_hex

# ==============================================================================
# SELLER wraps the data key for the buyer
# ==============================================================================

symmetric_key = generate_key()
nonce = generate_nonce()
wrapped = wrap(symmetric_key, nonce, buyer_keys.public_key_hex, seller_keys.secret_key)
print(f"3. Seller wrapped the data key: {len(wrapped)} bytes + {len(nonce)} byte nonce")

# ==============================================================================
# BUYER unwraps it with the seller's registered public key
# ==============================================================================

unwrapped = unwrap(wrapped, nonce, seller_keys.public_key_hex, buyer_keys.secret_key).decode("utf-8")
print(f"4. Buyer unwrapped the data key! Match: {unwrapped == symmetric_key}")
