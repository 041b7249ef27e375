# Vault - Service Store
#
# In-memory map of service name -> {account, password} envelopes,
# loaded wholesale from a key/value backend and rewritten wholesale
# after every mutation. Plaintext never reaches the backend.

import json
from dataclasses import dataclass
from typing import Any, Callable, Dict, Iterator, Optional, Union

from .. import config
from ..core import EventSeverity, EventType, EventLogger, get_event_logger
from ..exceptions import DecryptionFailed, NotFound, ParseError, ValidationError
from .encryption import EnvelopeCodec, is_envelope
from .persistence import KeyValueBackend

ServiceRecord = Dict[str, str]
PassphraseSource = Union[str, Callable[[], Optional[str]], None]


@dataclass(frozen=True)
class ServiceCredentials:
    """Decrypted account/password for one service."""

    service: str
    account: str
    password: str


@dataclass
class ImportSummary:
    """Counts from one import: kept as-is, re-encrypted, skipped."""

    encrypted: int = 0
    reencrypted: int = 0
    skipped: int = 0

    @property
    def imported(self) -> int:
        return self.encrypted + self.reencrypted


class ServiceListing:
    """Sorted view over the vault's service names.

    Sorting happens when iteration starts, so each pass reflects the
    vault's current contents and the listing can be iterated again.
    """

    def __init__(self, services: Dict[str, ServiceRecord]):
        self._services = services

    def __iter__(self) -> Iterator[str]:
        return iter(sorted(self._services))

    def __len__(self) -> int:
        return len(self._services)


def _is_record(value: Any) -> bool:
    return (
        isinstance(value, dict)
        and isinstance(value.get("account"), str)
        and isinstance(value.get("password"), str)
    )


class VaultStore:
    """
    Manages the encrypted service vault.

    Security:
    - Each field is its own envelope with its own salt and IV
    - The magic number is never stored; it is passed to every call that
      needs it and the derived key is dropped right after use
    - Event log records service names only

    Args:
        backend: Key/value persistence backend
        storage_key: Key the vault document is stored under
        event_logger: Event logger (default: global instance)
    """

    def __init__(
        self,
        backend: KeyValueBackend,
        storage_key: str = config.STORAGE_KEY,
        event_logger: Optional[EventLogger] = None,
    ):
        self.backend = backend
        self.storage_key = storage_key
        self.logger = event_logger or get_event_logger()
        self._services: Dict[str, ServiceRecord] = {}

    def __contains__(self, service: str) -> bool:
        return service in self._services

    def __len__(self) -> int:
        return len(self._services)

    # ── Persistence ─────────────────────────────────────────────────

    def load(self) -> None:
        """
        Replace the in-memory vault with the persisted document.

        A missing or unreadable document leaves an empty vault; this
        never raises. Entries that are not {account, password} string
        pairs are dropped.
        """
        self._services.clear()

        try:
            raw = self.backend.get_item(self.storage_key)
        except Exception as e:
            self.logger.log_event(
                event_type=EventType.VAULT_LOAD_FAILED,
                severity=EventSeverity.ERROR,
                message=f"Failed to read vault: {str(e)}"
            )
            return

        if raw is None:
            self.logger.log_event(
                event_type=EventType.VAULT_LOADED,
                severity=EventSeverity.INFO,
                message="No stored vault, starting empty"
            )
            return

        try:
            document = json.loads(raw)
        except (ValueError, RecursionError) as e:
            self.logger.log_event(
                event_type=EventType.VAULT_LOAD_FAILED,
                severity=EventSeverity.ERROR,
                message=f"Stored vault is not valid JSON: {str(e)}"
            )
            return

        services = self._extract_services(document)
        if services is None:
            self.logger.log_event(
                event_type=EventType.VAULT_LOAD_FAILED,
                severity=EventSeverity.ERROR,
                message="Stored vault has an unexpected shape"
            )
            return

        dropped = 0
        for name, record in services.items():
            if _is_record(record):
                self._services[name] = {
                    "account": record["account"],
                    "password": record["password"],
                }
            else:
                dropped += 1

        self.logger.log_event(
            event_type=EventType.VAULT_LOADED,
            severity=EventSeverity.WARNING if dropped else EventSeverity.INFO,
            message=f"Vault loaded with {len(self._services)} services",
            details={"services": len(self._services), "dropped": dropped}
        )

    @staticmethod
    def _extract_services(document: Any) -> Optional[Dict[str, Any]]:
        """Pull the service map out of a stored document.

        Accepts {"services": {...}} and, from the browser edition, the bare
        service map.
        """
        if not isinstance(document, dict):
            return None
        services = document.get("services")
        if isinstance(services, dict) and not _is_record(services):
            return services
        if not document or any(_is_record(v) for v in document.values()):
            return document
        return None

    def _commit(self, services: Dict[str, ServiceRecord]) -> None:
        """Persist ``services`` as the whole vault, then adopt it in memory.

        If the backend write raises, the in-memory vault is left unchanged.
        The dict is updated in place so open listings stay current.
        """
        self.backend.set_item(self.storage_key, json.dumps({"services": services}))
        self._services.clear()
        self._services.update(services)
        self.logger.log_event(
            event_type=EventType.VAULT_SAVED,
            severity=EventSeverity.INFO,
            message="Vault saved",
            details={"services": len(services)}
        )

    # ── CRUD ────────────────────────────────────────────────────────

    def add(self, service: str, account: str, password: str, passphrase: str) -> None:
        """
        Encrypt and store a service, overwriting any existing entry.

        Args:
            service: Service name (surrounding whitespace is trimmed)
            account: Account name, stored encrypted
            password: Password, stored encrypted
            passphrase: Magic number

        Raises:
            ValidationError: service name or magic number is empty
        """
        service = (service or "").strip()
        if not service:
            raise ValidationError("Please provide service name")
        if not passphrase:
            raise ValidationError("Magic Number required to encrypt")

        services = dict(self._services)
        services[service] = {
            "account": EnvelopeCodec.encrypt(account, passphrase),
            "password": EnvelopeCodec.encrypt(password, passphrase),
        }
        self._commit(services)

        self.logger.log_event(
            event_type=EventType.SERVICE_ADDED,
            severity=EventSeverity.INFO,
            message=f"Service added: {service}",
            details={"service": service}
        )

    def remove(self, service: str) -> bool:
        """Delete a service. Returns False (and writes nothing) if absent."""
        service = (service or "").strip()
        if service not in self._services:
            return False

        services = dict(self._services)
        del services[service]
        self._commit(services)

        self.logger.log_event(
            event_type=EventType.SERVICE_REMOVED,
            severity=EventSeverity.INFO,
            message=f"Service removed: {service}",
            details={"service": service}
        )
        return True

    def find(self, service: str, passphrase: str) -> ServiceCredentials:
        """
        Decrypt the account and password stored for a service.

        Stored empty strings come back as empty strings; only an envelope
        that cannot be opened counts as a failure.

        Raises:
            ValidationError: service name or magic number is empty
            NotFound: no such service
            DecryptionFailed: the magic number does not open the record
        """
        service = (service or "").strip()
        if not service or not passphrase:
            raise ValidationError("Provide service and Magic Number")

        record = self._services.get(service)
        if record is None:
            self.logger.log_event(
                event_type=EventType.SERVICE_NOT_FOUND,
                severity=EventSeverity.WARNING,
                message=f"Service not found: {service}",
                details={"service": service}
            )
            raise NotFound(service)

        account = EnvelopeCodec.open_envelope(record["account"], passphrase)
        password = EnvelopeCodec.open_envelope(record["password"], passphrase)

        if not (account.ok and password.ok):
            reason = account.reason or password.reason
            self.logger.log_event(
                event_type=EventType.DECRYPTION_FAILED,
                severity=EventSeverity.WARNING,
                message=f"Decryption failed for {service}",
                details={"service": service, "reason": reason}
            )
            raise DecryptionFailed(service, reason)

        self.logger.log_event(
            event_type=EventType.SERVICE_FOUND,
            severity=EventSeverity.INFO,
            message=f"Service found: {service}",
            details={"service": service}
        )
        return ServiceCredentials(service, account.plaintext, password.plaintext)

    def list(self) -> ServiceListing:
        """Service names in lexicographic order (re-iterable)."""
        return ServiceListing(self._services)

    # ── Import / export ─────────────────────────────────────────────

    def export_document(self) -> Dict[str, Dict[str, ServiceRecord]]:
        """Return {"services": {...}} holding envelopes only."""
        document = {
            "services": {name: dict(record) for name, record in self._services.items()}
        }
        self.logger.log_event(
            event_type=EventType.VAULT_EXPORTED,
            severity=EventSeverity.INFO,
            message="Vault exported",
            details={"services": len(self._services)}
        )
        return document

    def export_json(self) -> str:
        """Export document as pretty-printed JSON text."""
        return json.dumps(self.export_document(), indent=2)

    def import_document(self, document: Any, passphrase: PassphraseSource = None) -> ImportSummary:
        """
        Merge an exported or plaintext document into the vault.

        Entries whose account and password both look like envelopes are
        kept verbatim. Any other entry is plaintext and is encrypted with
        ``passphrase``, which may be a string or a callable asked once, and
        only when a plaintext entry is present. Entries without both
        fields are skipped. Nothing is merged unless every entry succeeds.

        Raises:
            ParseError: document is not {"services": {name: {...}}}
            ValidationError: plaintext entries present but no magic number
        """
        try:
            summary, staged = self._stage_import(document, passphrase)
        except (ParseError, ValidationError) as e:
            self.logger.log_event(
                event_type=EventType.VAULT_IMPORT_FAILED,
                severity=EventSeverity.WARNING,
                message=f"Import aborted: {str(e)}"
            )
            raise

        services = dict(self._services)
        services.update(staged)
        self._commit(services)

        self.logger.log_event(
            event_type=EventType.VAULT_IMPORTED,
            severity=EventSeverity.INFO,
            message=f"Import finished: {summary.imported} services",
            details={
                "encrypted": summary.encrypted,
                "reencrypted": summary.reencrypted,
                "skipped": summary.skipped,
            }
        )
        return summary

    def _stage_import(self, document: Any, passphrase: PassphraseSource):
        if not isinstance(document, dict) or not isinstance(document.get("services"), dict):
            raise ParseError("JSON missing 'services' key")

        summary = ImportSummary()
        staged: Dict[str, ServiceRecord] = {}
        plaintext: Dict[str, ServiceRecord] = {}

        for raw_name, entry in document["services"].items():
            if not isinstance(raw_name, str) or not raw_name.strip():
                raise ParseError("Service names must be non-empty strings")
            # Trimmed like add(), so find() and remove() can reach it
            name = raw_name.strip()
            if not isinstance(entry, dict):
                raise ParseError(f"Entry for {name!r} is not an object")
            if "account" not in entry or "password" not in entry:
                summary.skipped += 1
                continue

            account, password = entry["account"], entry["password"]
            if not isinstance(account, str) or not isinstance(password, str):
                raise ParseError(f"Entry for {name!r} must hold string fields")

            if is_envelope(account) and is_envelope(password):
                staged[name] = {"account": account, "password": password}
                summary.encrypted += 1
            else:
                plaintext[name] = {"account": account, "password": password}

        if plaintext:
            magic = passphrase() if callable(passphrase) else passphrase
            if not magic:
                raise ValidationError("Import canceled (no magic number provided)")
            for name, entry in plaintext.items():
                staged[name] = {
                    "account": EnvelopeCodec.encrypt(entry["account"], magic),
                    "password": EnvelopeCodec.encrypt(entry["password"], magic),
                }
                summary.reencrypted += 1

        return summary, staged

    def import_json(self, text: Union[str, bytes], passphrase: PassphraseSource = None) -> ImportSummary:
        """Parse JSON text (or UTF-8 bytes) and import it (see ``import_document``)."""
        try:
            if isinstance(text, bytes):
                text = text.decode("utf-8")
            document = json.loads(text)
        except (ValueError, RecursionError) as e:
            raise ParseError(f"Failed to parse JSON: {e}") from e
        return self.import_document(document, passphrase)
