"""
JSON records kept in the content store.

Field names and nesting are shared with other ErasureClient implementations
and must not change. Byte strings inside a SaleRecord are written the way a
JavaScript ``Uint8Array`` serialises (``{"0": 12, "1": 250, ...}``).
"""

import json
from dataclasses import dataclass
from typing import Any, Dict, List, Union

from .errors import MalformedRecordError

ByteArrayJSON = Union[Dict[str, int], List[int]]


def bytes_to_json(data: bytes) -> Dict[str, int]:
    return {str(i): b for i, b in enumerate(data)}


def bytes_from_json(value: ByteArrayJSON) -> bytes:
    """Rebuild the exact byte sequence from its numeric JSON form."""
    if isinstance(value, dict):
        try:
            items = sorted((int(k), v) for k, v in value.items())
        except ValueError as e:
            raise MalformedRecordError("byte array keys must be decimal indexes") from e
        if [i for i, _ in items] != list(range(len(items))):
            raise MalformedRecordError("byte array indexes are not contiguous from 0")
        value = [v for _, v in items]
    if not isinstance(value, list):
        raise MalformedRecordError(f"expected a byte array, got {type(value).__name__}")
    if not all(isinstance(b, int) and not isinstance(b, bool) and 0 <= b <= 255 for b in value):
        raise MalformedRecordError("byte array values must be integers in 0..255")
    return bytes(value)


def _load(raw: Union[bytes, str], kind: str) -> Dict[str, Any]:
    try:
        obj = json.loads(raw)
    except (UnicodeDecodeError, ValueError) as e:
        raise MalformedRecordError(f"{kind} is not valid JSON") from e
    if not isinstance(obj, dict):
        raise MalformedRecordError(f"{kind} must be a JSON object")
    return obj


def _field(obj: Dict[str, Any], name: str, kind: str, type_=str):
    if name not in obj:
        raise MalformedRecordError(f"{kind} is missing {name!r}")
    value = obj[name]
    if not isinstance(value, type_):
        expected = " or ".join(t.__name__ for t in type_) if isinstance(type_, tuple) else type_.__name__
        raise MalformedRecordError(f"{kind}.{name} must be {expected}")
    return value


@dataclass(frozen=True)
class ProofRecord:
    creator: str
    datahash: str
    keyhash: str
    encrypted_datahash: str

    def to_json(self) -> str:
        return json.dumps({
            "creator": self.creator,
            "datahash": self.datahash,
            "keyhash": self.keyhash,
            "encryptedDatahash": self.encrypted_datahash,
        }, separators=(",", ":"))

    @classmethod
    def from_json(cls, raw: Union[bytes, str]) -> "ProofRecord":
        obj = _load(raw, "ProofRecord")
        return cls(
            creator=_field(obj, "creator", "ProofRecord"),
            datahash=_field(obj, "datahash", "ProofRecord"),
            keyhash=_field(obj, "keyhash", "ProofRecord"),
            encrypted_datahash=_field(obj, "encryptedDatahash", "ProofRecord"),
        )


@dataclass(frozen=True)
class SaleRecord:
    encrypted_sym_key: bytes
    nonce: bytes
    proofhash: str

    def to_json(self) -> str:
        return json.dumps({
            "encryptedInfo": {
                "encryptedSymKey_Buyer": bytes_to_json(self.encrypted_sym_key),
                "randomNonce": bytes_to_json(self.nonce),
            },
            "proofhash": self.proofhash,
        }, separators=(",", ":"))

    @classmethod
    def from_json(cls, raw: Union[bytes, str]) -> "SaleRecord":
        obj = _load(raw, "SaleRecord")
        info = _field(obj, "encryptedInfo", "SaleRecord", dict)
        return cls(
            encrypted_sym_key=bytes_from_json(_field(info, "encryptedSymKey_Buyer", "SaleRecord.encryptedInfo", (dict, list))),
            nonce=bytes_from_json(_field(info, "randomNonce", "SaleRecord.encryptedInfo", (dict, list))),
            proofhash=_field(obj, "proofhash", "SaleRecord"),
        )
