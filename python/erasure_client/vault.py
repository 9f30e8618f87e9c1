"""Local storage for the symmetric keys of published proofs."""

import logging
import os
from typing import Optional

from . import hashcodec
from .errors import NotFoundError

logger = logging.getLogger(__name__)


class KeyVault:
    """One file per proof under ``<data_dir>/keys``, named by proofhash."""

    def __init__(self, data_dir: str):
        self.path = os.path.join(data_dir, "keys")

    def _file(self, proofhash: str) -> str:
        return os.path.join(self.path, hashcodec.normalize(proofhash) + ".key")

    def save(self, proofhash: str, symmetric_key: str) -> str:
        os.makedirs(self.path, mode=0o700, exist_ok=True)
        path = self._file(proofhash)
        fd = os.open(path, os.O_WRONLY | os.O_CREAT | os.O_TRUNC, 0o600)
        with os.fdopen(fd, "w") as f:
            f.write(symmetric_key)
        logger.debug("saved key for %s", proofhash)
        return path

    def load(self, proofhash: str) -> str:
        path = self._file(proofhash)
        try:
            with open(path) as f:
                return f.read().strip()
        except FileNotFoundError:
            raise NotFoundError(proofhash, f"no symmetric key stored for {proofhash} in {self.path}")

    def find(self, proofhash: str) -> Optional[str]:
        try:
            return self.load(proofhash)
        except NotFoundError:
            return None
