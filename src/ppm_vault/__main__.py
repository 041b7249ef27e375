# Main Entry Point - Command Line
#
# Thin host around VaultStore: one subcommand per vault operation.
# The magic number comes from --magic, PPM_MAGIC_NUMBER, or a prompt.

import argparse
import getpass
import sqlite3
import sys
from pathlib import Path
from typing import List, Optional

from . import __version__, config
from .core import EventSeverity, EventType, get_event_logger
from .exceptions import DecryptionFailed, NotFound, VaultError
from .messages import LANGUAGES, format_message, get_string
from .vault import SQLiteKeyValueStore, VaultStore


def open_vault(db_path: Optional[Path] = None) -> VaultStore:
    """Open and load the vault stored in ``db_path`` (default: PPM_DB_PATH)."""
    store = VaultStore(SQLiteKeyValueStore(db_path or config.get_db_path()))
    store.load()
    return store


def _magic(args, prompt: str = "Magic Number: ") -> str:
    return args.magic or config.get_magic_number() or getpass.getpass(prompt)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="ppm-vault",
        description="Account/password vault protected by a magic number",
    )
    parser.add_argument(
        "--db",
        type=Path,
        default=None,
        help="Vault database file (default: PPM_DB_PATH or ~/.ppm_vault/vault.db)"
    )
    parser.add_argument(
        "--magic",
        default=None,
        help="Magic number (default: PPM_MAGIC_NUMBER, else prompt)"
    )
    parser.add_argument(
        "--lang",
        choices=LANGUAGES,
        default=None,
        help="Language for status messages (default: PPM_LANG or English)"
    )
    parser.add_argument(
        "--version",
        action="version",
        version=f"ppm-vault {__version__}"
    )

    sub = parser.add_subparsers(dest="command", required=True)

    add = sub.add_parser("add", help="Encrypt and store a service")
    add.add_argument("service")
    add.add_argument("--account", default=None)
    add.add_argument("--password", default=None)

    find = sub.add_parser("find", help="Decrypt a stored service")
    find.add_argument("service")

    remove = sub.add_parser("remove", help="Remove a service")
    remove.add_argument("service")

    sub.add_parser("list", help="List stored services")

    export = sub.add_parser("export", help="Write the encrypted vault as JSON")
    export.add_argument(
        "file",
        nargs="?",
        default=config.EXPORT_FILENAME,
        help=f"Output file, '-' for stdout (default: {config.EXPORT_FILENAME})"
    )

    imp = sub.add_parser("import", help="Merge an exported or plaintext JSON file")
    imp.add_argument("file", type=Path)

    return parser


def run(args) -> int:
    lang = args.lang
    store = open_vault(args.db)

    if args.command == "add":
        account = args.account if args.account is not None else input("Account: ")
        password = args.password if args.password is not None else getpass.getpass("Password: ")
        store.add(args.service, account, password, _magic(args))
        print(format_message("addService", args.service.strip(), lang))

    elif args.command == "find":
        creds = store.find(args.service, _magic(args))
        print(f"account: {creds.account}")
        print(f"password: {creds.password}")
        print(format_message("findService", creds.service, lang), file=sys.stderr)

    elif args.command == "remove":
        key = "removeService" if store.remove(args.service) else "removeNoService"
        print(format_message(key, args.service.strip(), lang))

    elif args.command == "list":
        names = store.list()
        if not len(names):
            print(get_string("emptyVault", lang), file=sys.stderr)
        for name in names:
            print(name)

    elif args.command == "export":
        text = store.export_json()
        if args.file == "-":
            print(text)
        else:
            Path(args.file).write_text(text + "\n", encoding="utf-8")
            print(format_message("exportFinished", args.file, lang))

    elif args.command == "import":
        text = args.file.read_bytes()
        summary = store.import_json(
            text, lambda: _magic(args, get_string("importNeedsMagic", lang))
        )
        print(
            f"{get_string('importFinished', lang)} "
            f"({summary.encrypted} encrypted, {summary.reencrypted} re-encrypted, "
            f"{summary.skipped} skipped)"
        )

    return 0


def main(argv: Optional[List[str]] = None) -> int:
    """Main entry point for the ppm-vault command."""
    args = build_parser().parse_args(argv)

    try:
        return run(args)
    except NotFound as e:
        print(format_message("findNoService", e.service, args.lang), file=sys.stderr)
        return 1
    except DecryptionFailed:
        print(get_string("decryptFailed", args.lang), file=sys.stderr)
        return 1
    except VaultError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1
    except (OSError, sqlite3.Error) as e:
        get_event_logger().log_event(
            event_type=EventType.VAULT_ERROR,
            severity=EventSeverity.ERROR,
            message=f"I/O error: {str(e)}"
        )
        print(f"Error: {e}", file=sys.stderr)
        return 1


if __name__ == "__main__":
    sys.exit(main())
