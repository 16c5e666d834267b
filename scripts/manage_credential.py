"""Store, show or remove the provider API key in the OS keyring.

Usage:
  python scripts/manage_credential.py set <key>
  python scripts/manage_credential.py show
  python scripts/manage_credential.py delete
"""

from __future__ import annotations

import argparse
import sys

from nebula.config.settings import get_settings
from nebula.secrets.keychain import API_KEY_NAME, CredentialStore, CredentialStoreError, mask


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(prog="nebula-credential")
    sub = parser.add_subparsers(dest="cmd")

    set_parser = sub.add_parser("set", help="store the provider API key")
    set_parser.add_argument("value")
    sub.add_parser("show", help="print the stored key, masked")
    sub.add_parser("delete", help="remove the stored key")

    args = parser.parse_args(argv)
    store = CredentialStore(get_settings().keyring_service)

    try:
        if args.cmd == "set":
            store.store(API_KEY_NAME, args.value)
            print(f"Stored {API_KEY_NAME} in the system keyring")
            return 0
        if args.cmd == "show":
            value = store.retrieve(API_KEY_NAME)
            if value is None:
                print("No API key stored", file=sys.stderr)
                return 1
            print(mask(value))
            return 0
        if args.cmd == "delete":
            if store.erase(API_KEY_NAME):
                print(f"Removed {API_KEY_NAME} from the system keyring")
                return 0
            print("No API key stored", file=sys.stderr)
            return 1
    except (CredentialStoreError, ValueError) as exc:
        print(str(exc), file=sys.stderr)
        return 2

    parser.print_help()
    return 2


if __name__ == "__main__":
    raise SystemExit(main())
