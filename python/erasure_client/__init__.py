from .core import Config, ErasureClient
from .directory import PublicKeyDirectory
from .errors import (
    ConfigError,
    DecryptionError,
    ErasureError,
    InvalidPublicKeyError,
    MalformedHashError,
    MalformedRecordError,
    NotFoundError,
    SigningUnavailableError,
    StoreError,
    TransientStoreError,
    UnwrapAuthenticationError,
)
from .keys import DerivedKeys, Signer, SubstrateSigner, derive
from .protocol import Proof, Sale, ValidationResult, build_proof, build_sale, validate_sale
from .store import BlobStore, IpfsBlobStore, MemoryBlobStore, RetryPolicy

__version__ = "0.1.0"
