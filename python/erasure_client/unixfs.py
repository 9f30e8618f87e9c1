"""
Offline content addressing compatible with ``ipfs add`` defaults.

An IPFS node does not hash the bytes it is given: it chunks them, wraps
every chunk in a UnixFS ``File`` node, links the chunks into a balanced
dag-pb tree and hashes the root node. ``cid_of`` reproduces that so that
``keyhash``/``datahash`` commitments match what a node would report, without
talking to one.
"""

import hashlib
from typing import List, NamedTuple

import base58

from .hashcodec import HEADER

CHUNK_SIZE = 262144
MAX_LINKS = 174

_UNIXFS_FILE = 2


def _varint(value: int) -> bytes:
    out = bytearray()
    while True:
        byte = value & 0x7F
        value >>= 7
        if value:
            out.append(byte | 0x80)
        else:
            out.append(byte)
            return bytes(out)


def _key(field: int, wire_type: int) -> bytes:
    return _varint((field << 3) | wire_type)


def _len_field(field: int, payload: bytes) -> bytes:
    return _key(field, 2) + _varint(len(payload)) + payload


def _int_field(field: int, value: int) -> bytes:
    return _key(field, 0) + _varint(value)


def _unixfs_file(data: bytes, filesize: int, blocksizes: List[int] = ()) -> bytes:
    out = _int_field(1, _UNIXFS_FILE)
    if data:
        out += _len_field(2, data)
    out += _int_field(3, filesize)
    for size in blocksizes:
        out += _int_field(4, size)
    return out


class _Node(NamedTuple):
    multihash: bytes
    filesize: int     # bytes of file content under this node
    tsize: int        # serialized size of this node and all its descendants


def _pb_node(data: bytes, links: List[_Node] = ()) -> bytes:
    # dag-pb canonical form puts Links (field 2) before Data (field 1)
    out = b""
    for link in links:
        body = _len_field(1, link.multihash) + _len_field(2, b"") + _int_field(3, link.tsize)
        out += _len_field(2, body)
    return out + _len_field(1, data)


def _multihash(block: bytes) -> bytes:
    return HEADER + hashlib.sha256(block).digest()


def _leaf(chunk: bytes) -> _Node:
    block = _pb_node(_unixfs_file(chunk, len(chunk)))
    return _Node(_multihash(block), len(chunk), len(block))


def _parent(children: List[_Node]) -> _Node:
    filesize = sum(c.filesize for c in children)
    block = _pb_node(_unixfs_file(b"", filesize, [c.filesize for c in children]), children)
    return _Node(_multihash(block), filesize, len(block) + sum(c.tsize for c in children))


def cid_of(data: bytes) -> str:
    """CIDv0 (``Qm...``) an IPFS node assigns to ``data`` with default add options."""
    if isinstance(data, str):
        data = data.encode("utf-8")
    chunks = [data[i:i + CHUNK_SIZE] for i in range(0, len(data), CHUNK_SIZE)] or [b""]
    layer = [_leaf(chunk) for chunk in chunks]
    if len(layer) > 1:
        while True:
            layer = [_parent(layer[i:i + MAX_LINKS]) for i in range(0, len(layer), MAX_LINKS)]
            if len(layer) == 1:
                break
    return base58.b58encode(layer[0].multihash).decode("ascii")
