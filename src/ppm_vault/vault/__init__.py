# Vault Module - Encrypted Service Store
#
# Per-field envelopes: PBKDF2 key derivation + AES-256-CBC
# Whole-document persistence through a key/value backend

from .encryption import DecryptResult, EnvelopeCodec, is_envelope
from .persistence import KeyValueBackend, MemoryKeyValueStore, SQLiteKeyValueStore
from .vault_store import ImportSummary, ServiceCredentials, ServiceListing, VaultStore

__all__ = [
    "DecryptResult",
    "EnvelopeCodec",
    "is_envelope",
    "KeyValueBackend",
    "MemoryKeyValueStore",
    "SQLiteKeyValueStore",
    "ImportSummary",
    "ServiceCredentials",
    "ServiceListing",
    "VaultStore",
]
