import asyncio
import hashlib

import base58
import pytest

from erasure_client.store import MemoryBlobStore
from erasure_client.unixfs import CHUNK_SIZE, cid_of


def test_matches_ipfs_add_for_small_files():
    assert cid_of(b"hello world\n") == "QmT78zSuBmuS4z925WZfrqQ1qHaJ56DQaTfyMUF7F8ff5o"


def test_empty_file():
    assert cid_of(b"") == "QmbFMke1KXqnYyBBWxB74N4c5SBnJMVAiMNRcGu6x1AwQH"


def test_text_hashes_as_utf8():
    assert cid_of("hello world\n") == cid_of(b"hello world\n")


@pytest.mark.parametrize("size", [CHUNK_SIZE, CHUNK_SIZE + 1, 3 * CHUNK_SIZE])
def test_chunked_files_get_distinct_cids(size):
    cid = cid_of(b"a" * size)
    assert cid.startswith("Qm") and len(cid) == 46
    assert cid != cid_of(b"a" * (size - 1))


def test_hash_of_predicts_put():
    store = MemoryBlobStore()
    data = b"x" * (CHUNK_SIZE * 2 + 17)
    assert asyncio.run(store.put(data)) == store.hash_of(data)


def _varint(n):
    out = b""
    while n > 0x7F:
        out += bytes([(n & 0x7F) | 0x80])
        n >>= 7
    return out + bytes([n])


def _mh(block):
    return b"\x12\x20" + hashlib.sha256(block).digest()


def test_two_chunk_file_layout():
    # root block written out field by field: links (hash, empty name, tsize) then UnixFS data
    first, second = b"a" * CHUNK_SIZE, b"a"
    leaves = []
    for chunk in (first, second):
        unixfs = b"\x08\x02" + b"\x12" + _varint(len(chunk)) + chunk + b"\x18" + _varint(len(chunk))
        leaves.append(b"\x0a" + _varint(len(unixfs)) + unixfs)

    links = b""
    for leaf in leaves:
        link = b"\x0a\x22" + _mh(leaf) + b"\x12\x00" + b"\x18" + _varint(len(leaf))
        links += b"\x12" + _varint(len(link)) + link
    unixfs = b"\x08\x02" + b"\x18" + _varint(CHUNK_SIZE + 1) + b"\x20" + _varint(CHUNK_SIZE) + b"\x20\x01"
    root = links + b"\x0a" + _varint(len(unixfs)) + unixfs

    assert cid_of(first + second) == base58.b58encode(_mh(root)).decode()

