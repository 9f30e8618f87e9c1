"""Exception hierarchy for the Erasure data exchange client."""


class ErasureError(Exception):
    """Base class for every error raised by erasure_client."""


class ConfigError(ErasureError):
    """Configuration file or environment is invalid."""


class MalformedHashError(ErasureError):
    """A hash could not be decoded or carries the wrong multihash header."""


class MalformedRecordError(ErasureError):
    """A stored record does not match the ProofRecord / SaleRecord wire format."""


class SigningUnavailableError(ErasureError):
    """The signer cannot produce a signature (locked or public-only key)."""


class DecryptionError(ErasureError):
    """Symmetric decryption failed authentication."""


class UnwrapAuthenticationError(ErasureError):
    """A wrapped key could not be opened with the given keys and nonce."""


class StoreError(ErasureError):
    """The blob store failed in a way that retrying will not fix."""


class NotFoundError(StoreError):
    """The blob store has no content for the requested reference."""

    def __init__(self, ref: str, message: str = ""):
        super().__init__(message or f"no content for {ref}")
        self.ref = ref


class TransientStoreError(StoreError):
    """A retryable I/O fault talking to the blob store."""


class InvalidPublicKeyError(ErasureError):
    """A public key is not 32 bytes of raw or hex-encoded Curve25519 key."""
