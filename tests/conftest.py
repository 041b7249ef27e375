"""
Shared pytest fixtures for the PPM Vault test suite.

The autouse fixture below keeps tests away from the user's real data:
  - Event logger -> temp directory (no test events in ~/.ppm_vault/logs)
  - PPM_* environment -> temp paths, no magic number or language set
"""

import pytest

from ppm_vault.vault import MemoryKeyValueStore, VaultStore


@pytest.fixture(autouse=True)
def _isolate_environment(tmp_path, monkeypatch):
    """Point every PPM_* setting at the temp directory and reset the logger.

    Without this, any test that calls ``get_event_logger()`` (directly or
    through VaultStore) opens a log file under the real data directory.
    """
    import ppm_vault.core.event_log as log_mod

    monkeypatch.setenv("PPM_DATA_DIR", str(tmp_path / "data"))
    monkeypatch.setenv("PPM_LOG_DIR", str(tmp_path / "logs"))
    for name in ("PPM_DB_PATH", "PPM_MAGIC_NUMBER", "PPM_LANG"):
        monkeypatch.delenv(name, raising=False)

    old_logger = log_mod._event_logger
    log_mod._event_logger = None

    yield

    if log_mod._event_logger is not None:
        log_mod._event_logger.close()
    log_mod._event_logger = old_logger


@pytest.fixture
def backend():
    return MemoryKeyValueStore()


@pytest.fixture
def store(backend):
    vault = VaultStore(backend)
    vault.load()
    return vault
