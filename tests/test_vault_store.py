"""Tests for VaultStore CRUD and loading.

Covers: add/find, wrong magic number, validation before any crypto or
persistence, overwrite, remove (present and absent), sorted re-iterable
listing, and load() tolerance of missing or corrupt documents.
"""

import json
from unittest.mock import MagicMock

import pytest

from ppm_vault.exceptions import DecryptionFailed, NotFound, ValidationError
from ppm_vault.vault import (
    EnvelopeCodec,
    KeyValueBackend,
    MemoryKeyValueStore,
    ServiceCredentials,
    VaultStore,
)
from ppm_vault.config import STORAGE_KEY


def _stored(backend):
    return json.loads(backend.get_item(STORAGE_KEY))


class TestAddFind:
    """Adding and decrypting services."""

    def test_add_then_find(self, store):
        store.add("github", "alice", "p@ss", "1234")
        creds = store.find("github", "1234")
        assert creds == ServiceCredentials("github", "alice", "p@ss")

    def test_find_with_wrong_magic_number(self, store):
        store.add("github", "alice", "p@ss", "1234")
        with pytest.raises(DecryptionFailed) as exc:
            store.find("github", "wrong")
        assert exc.value.service == "github"

    def test_empty_fields_are_returned_not_failures(self, store):
        store.add("blank", "", "", "1234")
        creds = store.find("blank", "1234")
        assert creds.account == ""
        assert creds.password == ""

    def test_find_unknown_service(self, store):
        with pytest.raises(NotFound) as exc:
            store.find("nope", "1234")
        assert exc.value.service == "nope"

    def test_names_are_case_sensitive(self, store):
        store.add("GitHub", "alice", "p@ss", "1234")
        with pytest.raises(NotFound):
            store.find("github", "1234")

    def test_service_name_is_trimmed(self, store):
        store.add("  github  ", "alice", "p@ss", "1234")
        assert "github" in store
        assert store.find(" github", "1234").account == "alice"

    def test_add_overwrites(self, store):
        store.add("github", "alice", "old", "1234")
        store.add("github", "bob", "new", "5678")
        assert len(store) == 1
        assert store.find("github", "5678") == ServiceCredentials("github", "bob", "new")

    def test_find_requires_magic_number(self, store):
        store.add("github", "alice", "p@ss", "1234")
        with pytest.raises(ValidationError):
            store.find("github", "")

    def test_mixed_magic_numbers_fail(self, store, backend):
        store.add("github", "alice", "p@ss", "1234")
        record = _stored(backend)["services"]["github"]
        record["password"] = EnvelopeCodec.encrypt("p@ss", "other")
        backend.set_item(STORAGE_KEY, json.dumps({"services": {"github": record}}))
        store.load()
        with pytest.raises(DecryptionFailed):
            store.find("github", "1234")


class TestValidation:
    """Empty service name or magic number aborts before crypto/persistence."""

    @pytest.fixture
    def spy_store(self):
        backend = MagicMock(spec=KeyValueBackend)
        backend.get_item.return_value = None
        vault = VaultStore(backend)
        vault.load()
        return vault, backend

    @pytest.mark.parametrize("service,magic", [
        ("", "1234"),
        ("   ", "1234"),
        ("github", ""),
        (None, "1234"),
    ])
    def test_add_rejects_empty(self, spy_store, service, magic, monkeypatch):
        vault, backend = spy_store
        encrypt = MagicMock()
        monkeypatch.setattr(EnvelopeCodec, "encrypt", encrypt)

        with pytest.raises(ValidationError):
            vault.add(service, "alice", "p@ss", magic)

        encrypt.assert_not_called()
        backend.set_item.assert_not_called()
        assert len(vault) == 0


class TestPersistence:
    """Whole-document writes, never plaintext."""

    def test_add_persists_envelopes_only(self, store, backend):
        store.add("github", "alice", "p@ss-SECRET", "1234")
        raw = backend.get_item(STORAGE_KEY)
        assert "alice" not in raw
        assert "p@ss-SECRET" not in raw
        assert "1234" not in raw
        record = _stored(backend)["services"]["github"]
        assert set(record) == {"account", "password"}

    def test_reload_from_same_backend(self, store, backend):
        store.add("github", "alice", "p@ss", "1234")
        store.add("mail", "bob", "hunter2", "1234")

        reopened = VaultStore(backend)
        reopened.load()
        assert list(reopened.list()) == ["github", "mail"]
        assert reopened.find("mail", "1234").password == "hunter2"

    def test_every_mutation_rewrites_document(self):
        backend = MagicMock(wraps=MemoryKeyValueStore())
        vault = VaultStore(backend)
        vault.load()
        vault.add("a", "x", "y", "1234")
        vault.add("b", "x", "y", "1234")
        vault.remove("a")
        assert backend.set_item.call_count == 3
        last_written = json.loads(backend.set_item.call_args[0][1])
        assert list(last_written["services"]) == ["b"]


class TestFailedWrites:
    """A backend write that raises leaves the in-memory vault as it was."""

    @pytest.fixture
    def failing(self):
        backend = MagicMock(wraps=MemoryKeyValueStore())
        vault = VaultStore(backend)
        vault.load()
        vault.add("existing", "a", "b", "1234")
        backend.set_item.side_effect = OSError("disk full")
        return vault, backend

    def test_add(self, failing):
        vault, _ = failing
        with pytest.raises(OSError):
            vault.add("github", "alice", "p@ss", "1234")
        assert "github" not in vault
        assert list(vault.list()) == ["existing"]

    def test_remove(self, failing):
        vault, _ = failing
        with pytest.raises(OSError):
            vault.remove("existing")
        assert vault.find("existing", "1234").account == "a"

    def test_import(self, failing):
        vault, _ = failing
        with pytest.raises(OSError):
            vault.import_document({"services": {"new": {"account": "x", "password": "y"}}}, "1234")
        assert list(vault.list()) == ["existing"]

    def test_open_listing_sees_later_commits(self, failing):
        vault, backend = failing
        listing = vault.list()
        backend.set_item.side_effect = None
        vault.add("later", "a", "b", "1234")
        assert list(listing) == ["existing", "later"]


class TestRemove:
    """remove() of absent names is a no-op."""

    def test_remove_existing(self, store, backend):
        store.add("github", "alice", "p@ss", "1234")
        assert store.remove("github") is True
        assert "github" not in store
        assert _stored(backend)["services"] == {}

    def test_remove_absent_is_noop(self):
        backend = MagicMock(wraps=MemoryKeyValueStore())
        vault = VaultStore(backend)
        vault.load()
        vault.add("github", "alice", "p@ss", "1234")
        backend.set_item.reset_mock()

        assert vault.remove("gitlab") is False

        backend.set_item.assert_not_called()
        assert list(vault.list()) == ["github"]


class TestList:
    """Sorted, lazy, restartable listing."""

    def test_sorted(self, store):
        for name in ("zeta", "Alpha", "beta", "alpha"):
            store.add(name, "a", "p", "1234")
        assert list(store.list()) == ["Alpha", "alpha", "beta", "zeta"]

    def test_restartable(self, store):
        store.add("b", "a", "p", "1234")
        store.add("a", "a", "p", "1234")
        listing = store.list()
        assert list(listing) == ["a", "b"]
        assert list(listing) == ["a", "b"]

    def test_reflects_later_changes(self, store):
        listing = store.list()
        assert list(listing) == []
        store.add("new", "a", "p", "1234")
        assert list(listing) == ["new"]
        assert len(listing) == 1


class TestLoad:
    """load() never raises; bad documents give an empty vault."""

    def _load(self, raw):
        vault = VaultStore(MemoryKeyValueStore({STORAGE_KEY: raw} if raw is not None else {}))
        vault.load()
        return vault

    def test_absent(self):
        assert len(self._load(None)) == 0

    @pytest.mark.parametrize("raw", [
        "not json",
        "[]",
        "42",
        '"string"',
        '{"services": "nope"}',
        '{"other": 1}',
    ])
    def test_unparsable(self, raw):
        assert len(self._load(raw)) == 0

    def test_legacy_bare_map(self):
        envelope = EnvelopeCodec.encrypt("alice", "1234")
        raw = json.dumps({"github": {"account": envelope, "password": envelope}})
        vault = self._load(raw)
        assert vault.find("github", "1234").account == "alice"

    def test_legacy_bare_map_drops_only_malformed(self):
        envelope = EnvelopeCodec.encrypt("alice", "1234")
        raw = json.dumps({
            "github": {"account": envelope, "password": envelope},
            "broken": {"account": envelope},
        })
        vault = self._load(raw)
        assert list(vault.list()) == ["github"]

    def test_drops_malformed_records(self):
        envelope = EnvelopeCodec.encrypt("alice", "1234")
        raw = json.dumps({"services": {
            "good": {"account": envelope, "password": envelope},
            "bad": {"account": envelope},
            "worse": "string",
        }})
        vault = self._load(raw)
        assert list(vault.list()) == ["good"]

    def test_backend_error(self):
        backend = MagicMock(spec=KeyValueBackend)
        backend.get_item.side_effect = OSError("disk gone")
        vault = VaultStore(backend)
        vault.load()
        assert len(vault) == 0

    def test_load_replaces_memory(self, store, backend):
        store.add("github", "alice", "p@ss", "1234")
        backend.set_item(STORAGE_KEY, json.dumps({"services": {}}))
        store.load()
        assert len(store) == 0


def test_readme_example(store):
    store.add("github", "alice", "p@ss", "1234")
    creds = store.find("github", "1234")
    assert (creds.account, creds.password) == ("alice", "p@ss")
    with pytest.raises(DecryptionFailed):
        store.find("github", "wrong")
