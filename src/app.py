"""
wallet-create - Create a new wallet on the wallet service.

Entry point for the command line tool. Prints the created wallet as JSON.

Usage:
    wallet-create --hd --email me@example.com
    WALLET_PASSWORD=... wallet-create --private-key <WIF>
"""

import argparse
import getpass
import json
import logging
import os
import sys
from typing import Optional, Sequence

from models import CreateOptions, WalletCreationError
from networks import DEFAULT_ROOT_URL, DEFAULT_API_ROOT_URL, DEFAULT_TIMEOUT
from services import configure_logging, create_wallet

PASSWORD_ENV = "WALLET_PASSWORD"


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="wallet-create",
        description="Create a new encrypted wallet on the wallet service.",
    )
    parser.add_argument("--hd", action="store_true",
                        help="Create an HD (BIP39/BIP44) wallet (recommended).")
    parser.add_argument("--email", help="Email address to associate with the wallet.")
    parser.add_argument("--label", dest="first_label", help="Label of the first address/account.")
    parser.add_argument("--private-key", help="Import this private key (non-HD wallets only).")
    parser.add_argument("--second-password", action="store_true",
                        help="Prompt for a second password and double encrypt the keys.")
    parser.add_argument("--root-url", default=DEFAULT_ROOT_URL, help="Wallet service URL.")
    parser.add_argument("--api-root-url", default=DEFAULT_API_ROOT_URL, help="API service URL.")
    parser.add_argument("--api-code", help="API code forwarded to the service.")
    parser.add_argument("--timeout", type=float, default=DEFAULT_TIMEOUT,
                        help="HTTP timeout in seconds")
    parser.add_argument("--log-file", help="Also append logs to this file.")
    parser.add_argument("-v", "--verbose", action="store_true", help="Debug logging.")
    return parser


def _prompt_new_password(prompt: str) -> str:
    password = getpass.getpass(f"{prompt}: ")
    confirm = getpass.getpass(f"Confirm {prompt.lower()}: ")
    if password != confirm:
        raise SystemExit("error: passwords do not match")
    return password


def main(argv: Optional[Sequence[str]] = None) -> int:
    """Application entry point."""
    args = build_parser().parse_args(argv)

    # Configure logging before anything else
    configure_logging(logging.DEBUG if args.verbose else logging.INFO, args.log_file)

    password = os.environ.get(PASSWORD_ENV) or _prompt_new_password("Password")
    second_password = _prompt_new_password("Second password") if args.second_password else None

    try:
        options = CreateOptions(
            email=args.email,
            first_label=args.first_label,
            private_key=args.private_key,
            second_password=second_password,
            hd=args.hd,
            root_url=args.root_url,
            api_root_url=args.api_root_url,
            api_code=args.api_code,
            timeout=args.timeout,
        )
        result = create_wallet(password, options)
    except WalletCreationError as e:
        print(f"error: {e.code}: {e.message}", file=sys.stderr)
        return 1

    print(json.dumps(result.to_dict(), indent=2))
    return 0


if __name__ == "__main__":
    sys.exit(main())
