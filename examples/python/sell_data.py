"""
ErasureClient - Sell Encrypted Data Example
===========================================

Walks a seller and a buyer through one sale:

1. Both register the encryption public key derived from their account.
2. The seller publishes encrypted data and posts its proofhash to a feed.
3. The seller sells the key to the buyer (the sale reference goes to escrow).
4. The buyer reveals the data and checks it against the posted proof.

The feed, escrow and user registry contracts are stood in for by local
variables and a PublicKeyDirectory. Set IPFS_API_URL to use a real node;
by default everything is stored in memory.

Requirements:
    pip install -e .
"""

import asyncio
import os
import tempfile

from erasure_client import Config, ErasureClient, PublicKeyDirectory

SELLER_URI = os.environ.get("SELLER_URI", "0x" + "5e" * 32)
BUYER_URI = os.environ.get("BUYER_URI", "0x" + "b0" * 32)
IPFS_URL = os.environ.get("IPFS_API_URL", "memory://")


async def main():
    data_dir = tempfile.mkdtemp(prefix="erasure_")
    registry = PublicKeyDirectory()

    seller = await ErasureClient.create(Config(SELLER_URI, IPFS_URL, os.path.join(data_dir, "seller")))
    # The buyer must read from the same store the seller wrote to
    buyer = await ErasureClient.create(Config(BUYER_URI, IPFS_URL, os.path.join(data_dir, "buyer")),
                                       store=seller.store)

    # ==============================================================================
    # Both parties register their encryption keys
    # ==============================================================================
    print("[*] Registering users...")
    for client in (seller, buyer):
        pub = registry.register(client.address, await client.public_key_hex())
        print(f"    {client.address} -> {pub}")

    # ==============================================================================
    # SELLER: publish the encrypted prediction
    # ==============================================================================
    proof = await seller.publish(b"my secret prediction is worthy ")
    feed = {"proofhash": proof.proofhash, "metadata": proof.metadata}
    print(f"[+] Feed created with proofhash {feed['proofhash']}")

    # ==============================================================================
    # SELLER: sell the key to the buyer once stake and payment are in escrow
    # ==============================================================================
    sale = await seller.sell(registry.lookup(buyer.address), feed["proofhash"])
    escrow_data = sale.sale_ref
    print(f"[+] Sale data submitted to escrow: {escrow_data}")

    # ==============================================================================
    # BUYER: reveal and validate
    # ==============================================================================
    result = await buyer.validate(escrow_data, registry.lookup(seller.address), feed["proofhash"])
    print(f"[+] Raw data revealed: '{result.text}'")
    print(f"[{'+' if result.status else '-'}] Status: {result.status}")

    await seller.close()

if __name__ == "__main__":
    asyncio.run(main())
