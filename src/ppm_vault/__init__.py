# PPM Vault - Main Package
#
# Local account/password vault. Every field is encrypted with a key
# derived from the user's magic number.

__version__ = "1.0.0"
__description__ = "Local account/password vault protected by a magic number"

from .exceptions import (
    DecryptionFailed,
    NotFound,
    ParseError,
    ValidationError,
    VaultError,
)
from .vault import EnvelopeCodec, VaultStore

__all__ = [
    "__version__",
    "EnvelopeCodec",
    "VaultStore",
    "VaultError",
    "ValidationError",
    "NotFound",
    "DecryptionFailed",
    "ParseError",
]
