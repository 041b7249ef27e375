# Vault Configuration
#
# Format constants are fixed: changing any of them breaks compatibility with
# envelopes written by earlier versions and by the browser edition.
# Paths and language come from the environment (optionally a .env file).

import os
from pathlib import Path

from dotenv import load_dotenv

load_dotenv()

# ── Envelope format ─────────────────────────────────────────────────

PBKDF2_ITERATIONS = 10_000  # fixed by the envelope format
KEY_LENGTH = 32             # 256 bits for AES-256
SALT_LENGTH = 8             # hex-encoded to 16 characters
IV_LENGTH = 16              # AES block size
ENVELOPE_SEPARATOR = ":"

# ── Persistence ─────────────────────────────────────────────────────

STORAGE_KEY = "ppm_services_v1"
EXPORT_FILENAME = "ppm_export.json"

DEFAULT_LANGUAGE = "English"


def get_data_dir() -> Path:
    """Directory holding the vault database (PPM_DATA_DIR, default ~/.ppm_vault)."""
    return Path(os.environ.get("PPM_DATA_DIR", str(Path.home() / ".ppm_vault"))).expanduser()


def get_db_path() -> Path:
    """SQLite file backing the key-value store (PPM_DB_PATH overrides)."""
    override = os.environ.get("PPM_DB_PATH")
    if override:
        return Path(override).expanduser()
    return get_data_dir() / "vault.db"


def get_log_dir() -> Path:
    return Path(os.environ.get("PPM_LOG_DIR", str(get_data_dir() / "logs"))).expanduser()


def get_language() -> str:
    return os.environ.get("PPM_LANG", DEFAULT_LANGUAGE)


def get_magic_number() -> str:
    """Magic number from the environment, empty when unset."""
    return os.environ.get("PPM_MAGIC_NUMBER", "")
