"""
Content-addressed blob stores.

A store maps bytes to the reference an IPFS node would give them, so putting
the same content twice is harmless and references can be computed offline
with :meth:`BlobStore.hash_of`.
"""

import asyncio
import logging
from dataclasses import dataclass
from typing import Awaitable, Callable, Dict, Optional, TypeVar

import httpx

from . import hashcodec
from .errors import NotFoundError, StoreError, TransientStoreError
from .unixfs import cid_of

logger = logging.getLogger(__name__)

T = TypeVar("T")


@dataclass
class RetryPolicy:
    """Retries an operation after a :class:`TransientStoreError`."""

    retries: int = 1
    delay: float = 0.0

    async def run(self, op: Callable[[], Awaitable[T]], what: str) -> T:
        attempt = 0
        while True:
            try:
                return await op()
            except TransientStoreError as e:
                if attempt >= self.retries:
                    raise
                attempt += 1
                logger.warning("%s failed (%s), retry %d/%d", what, e, attempt, self.retries)
                if self.delay:
                    await asyncio.sleep(self.delay)


class BlobStore:
    """Base class: subclasses implement ``_put`` and ``_get``."""

    def __init__(self, retry: Optional[RetryPolicy] = None):
        self.retry = retry or RetryPolicy()

    def hash_of(self, data: bytes) -> str:
        """Reference ``put(data)`` would return, without storing anything."""
        return cid_of(data)

    async def put(self, data: bytes) -> str:
        if isinstance(data, str):
            data = data.encode("utf-8")
        ref = await self.retry.run(lambda: self._put(data), "put")
        logger.debug("stored %d bytes as %s", len(data), ref)
        return ref

    async def get(self, ref: str) -> bytes:
        ref = hashcodec.to_store_ref(ref)
        data = await self.retry.run(lambda: self._get(ref), f"get {ref}")
        logger.debug("fetched %d bytes from %s", len(data), ref)
        return data

    async def close(self) -> None:
        pass

    async def _put(self, data: bytes) -> str:
        raise NotImplementedError

    async def _get(self, ref: str) -> bytes:
        raise NotImplementedError


class MemoryBlobStore(BlobStore):
    """Process-local store, addressed exactly like an IPFS node."""

    def __init__(self, retry: Optional[RetryPolicy] = None):
        super().__init__(retry)
        self.blobs: Dict[str, bytes] = {}

    async def _put(self, data: bytes) -> str:
        ref = cid_of(data)
        self.blobs[ref] = bytes(data)
        return ref

    async def _get(self, ref: str) -> bytes:
        try:
            return self.blobs[ref]
        except KeyError:
            raise NotFoundError(ref)


class IpfsBlobStore(BlobStore):
    """Talks to a Kubo node's HTTP RPC API (``/api/v0``)."""

    def __init__(self, api_url: str = "http://127.0.0.1:5001", timeout: float = 30.0,
                 retry: Optional[RetryPolicy] = None, transport: Optional[httpx.AsyncBaseTransport] = None):
        super().__init__(retry)
        self.api_url = api_url.rstrip("/")
        self.http = httpx.AsyncClient(base_url=self.api_url + "/api/v0", timeout=timeout, transport=transport)

    async def close(self) -> None:
        await self.http.aclose()

    async def _post(self, path: str, **kwargs) -> httpx.Response:
        try:
            resp = await self.http.post(path, **kwargs)
        except (httpx.TimeoutException, httpx.TransportError) as e:
            raise TransientStoreError(f"{path}: {e}") from e
        if resp.status_code >= 400:
            raise self._to_error(resp, kwargs.get("params", {}).get("arg", path))
        return resp

    @staticmethod
    def _to_error(resp: httpx.Response, ref: str) -> StoreError:
        try:
            body = resp.json()
        except ValueError:
            body = None
        message = (body.get("Message") if isinstance(body, dict) else None) or resp.text or f"HTTP {resp.status_code}"
        if resp.status_code == 404 or "not found" in message.lower():
            return NotFoundError(ref, message)
        if resp.status_code >= 500 or resp.status_code == 429:
            return TransientStoreError(f"HTTP {resp.status_code}: {message}")
        return StoreError(f"HTTP {resp.status_code}: {message}")

    async def _put(self, data: bytes) -> str:
        resp = await self._post("/add", params={"pin": "true"}, files={"file": ("blob", data)})
        try:
            ref = resp.json()["Hash"]
        except (ValueError, KeyError) as e:
            raise StoreError(f"unexpected add response: {resp.text[:200]}") from e
        expected = cid_of(data)
        if ref != expected:
            raise StoreError(f"node stored content as {ref}, expected {expected}; check its add settings")
        return ref

    async def _get(self, ref: str) -> bytes:
        resp = await self._post("/cat", params={"arg": ref})
        return resp.content
