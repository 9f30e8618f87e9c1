import asyncio
import logging
import os
import sys

import click

from .core import Config, ErasureClient
from .errors import ErasureError
from .unixfs import cid_of


def load_config() -> Config:
    """Loads default ErasureClient config from environment variables."""
    config_path = os.environ.get("ERASURE_CONFIG")
    if config_path:
        return Config.from_file(config_path)

    signer_uri = os.environ.get("ERASURE_SIGNER_URI", "")
    ipfs_url = os.environ.get("IPFS_API_URL", "http://127.0.0.1:5001")

    # Keys of published proofs live locally or globally in ~/.erasure
    data_dir = os.environ.get("ERASURE_DATA_DIR", os.path.join(os.getcwd(), ".erasure_data"))

    return Config(signer_uri, ipfs_url, data_dir)


def run(what: str, coro_fn):
    """Runs one client operation, printing failures Hermes-style."""
    async def _run():
        config = load_config()
        async with await ErasureClient.create(config) as client:
            return await coro_fn(client)

    try:
        return asyncio.run(_run())
    except ErasureError as e:
        print(f"\n[-] FAILED to {what}: {e}")
        sys.exit(1)


@click.group()
@click.option("--verbose", "-v", is_flag=True, help="Log protocol steps to stderr.")
def main(verbose):
    """Erasure Client: sell encrypted data with verifiable proofs"""
    if verbose:
        logging.basicConfig(level=logging.DEBUG, format="%(asctime)s %(name)s %(levelname)s %(message)s")


@main.command()
def pubkey():
    """
    Prints the encryption public key derived from your account, for registration.
    """
    async def _pubkey(client):
        print(f"[*] Deriving encryption keypair for {client.address}...")
        print(f"[+] Public Key: {await client.public_key_hex()}")

    run("derive keypair", _pubkey)


@main.command("hash")
@click.argument("filepath", type=click.Path(exists=True, dir_okay=False))
def hash_(filepath):
    """
    Prints the content hash an IPFS node would assign to FILEPATH, offline.
    """
    with open(filepath, "rb") as f:
        print(cid_of(f.read()))


@main.command()
@click.argument("filepath", type=click.Path(exists=True, dir_okay=False))
def publish(filepath):
    """
    Encrypts FILEPATH, stores it with its proof record and prints the proofhash.
    """
    async def _publish(client):
        with open(filepath, "rb") as f:
            payload = f.read()
        print(f"[*] File loaded: {filepath} ({len(payload)} bytes)")
        print("[*] Encrypting and storing payload & proof record...")
        proof = await client.publish(payload)
        print(f"\n[+] SUCCESS! Proof published.")
        print(f"[+] Proofhash: {proof.proofhash}")
        print(f"[+] Metadata:  {proof.metadata}")
        print(f"[+] Proof Ref: {proof.store_ref}")
        print(f"[*] Symmetric key kept in {client.vault.path}")

    run("publish", _publish)


@main.command()
@click.argument("buyer_pubkey", type=str)
@click.argument("proofhash", type=str)
def sell(buyer_pubkey, proofhash):
    """
    Wraps the key of PROOFHASH for BUYER_PUBKEY and prints the sale reference.
    """
    async def _sell(client):
        print(f"[*] Wrapping symmetric key of {proofhash} for {buyer_pubkey}...")
        sale = await client.sell(buyer_pubkey, proofhash)
        print(f"\n[+] SUCCESS! Sale record stored.")
        print(f"[+] Sale Reference: {sale.sale_ref}")
        print(f"[+] Sale Ref (IPFS): {sale.store_ref}")

    run("sell", _sell)


@main.command()
@click.argument("sale_ref", type=str)
@click.argument("seller_pubkey", type=str)
@click.argument("original_proofhash", type=str)
@click.option("--out", type=click.Path(dir_okay=False, writable=True), help="Write the revealed data here.")
def validate(sale_ref, seller_pubkey, original_proofhash, out):
    """
    Unwraps a purchased key, decrypts the posted data and checks it against the proof.
    """
    async def _validate(client):
        print(f"[*] Validating sale {sale_ref} against proof {original_proofhash}...")
        result = await client.validate(sale_ref, seller_pubkey, original_proofhash)
        if out:
            with open(out, "wb") as f:
                f.write(result.rawdata)
            print(f"[*] Revealed data written to {out} ({len(result.rawdata)} bytes)")
        else:
            print(f"[*] Revealed data: {result.rawdata.decode('utf-8', errors='replace')}")
        return result.status

    if run("validate", _validate):
        print(f"\n[+] VALID! Data matches the seller's commitments.")
    else:
        print(f"\n[-] INVALID! Data does not match the seller's commitments.")
        sys.exit(2)


if __name__ == '__main__':
    main()
