"""
Key material - Fresh keys for a new wallet.

Two kinds of key material:
- HD: BIP39 mnemonic -> BIP32 root -> one BIP44 account (m/44'/0'/0')
- Legacy: a single key pair, imported or freshly generated

All randomness comes from the random source given to KeyMaterialBuilder.
It must be cryptographically secure; tests substitute a deterministic one.
"""

import logging
import secrets
from dataclasses import dataclass
from typing import Callable, Optional

# Bitcoin
from mnemonic import Mnemonic
from btclib.b58 import p2pkh, wif_from_prv_key
from btclib.bip32 import derive, rootxprv_from_seed, xpub_from_xprv
from btclib.ec.curve import secp256k1
from btclib.exceptions import BTClibValueError
from btclib.to_prv_key import prv_keyinfo_from_prv_key

from models import HDAccount, HDTree, KeyPair, KeyGenerationError, KeyImportError
from utils import timestamp_ms

logger = logging.getLogger(__name__)


NOT_HD_WARNING = (
    'Created non-HD wallet, for privacy and security, it is recommended '
    'that new wallets are created with "hd=true".'
)

# 128 bits -> 12 word mnemonic
MNEMONIC_ENTROPY_BYTES = 16
MNEMONIC_LANGUAGE = "english"

PRIVATE_KEY_BYTES = 32

# BIP-44 account path for bitcoin
BTC_ACCOUNT_PATH = "m/44h/0h/{}h"
RECEIVE_CHAIN = 0
CHANGE_CHAIN = 1

DEVICE_NAME = "wallet-create"
DEVICE_VERSION = "1.0.0"


@dataclass
class KeyMaterial:
    """Output of the key material builder: exactly one of hd_wallet / key."""
    hd_wallet: Optional[HDTree] = None
    key: Optional[KeyPair] = None
    warning: Optional[str] = None


class KeyMaterialBuilder:
    """
    Builds the keys of a new wallet.

    Usage:
        builder = KeyMaterialBuilder()
        material = builder.build(hd=True)
        xpub = material.hd_wallet.accounts[0].xpub
    """

    def __init__(self, random_source: Optional[Callable[[int], bytes]] = None):
        """
        Args:
            random_source: Callable returning n secure random bytes.
                Defaults to secrets.token_bytes.
        """
        self._random_source = random_source or secrets.token_bytes
        self._mnemo = Mnemonic(MNEMONIC_LANGUAGE)

    def _random_bytes(self, n: int) -> bytes:
        data = bytes(self._random_source(n))
        if len(data) != n:
            raise KeyGenerationError(
                f"Random source returned {len(data)} bytes, expected {n}",
                {"requested": n, "returned": len(data)}
            )
        return data

    def build(self, hd: bool, private_key: Optional[str] = None,
              label: Optional[str] = None) -> KeyMaterial:
        """Build HD or legacy key material."""
        if hd:
            return KeyMaterial(hd_wallet=self.build_hd(label))
        return KeyMaterial(key=self.build_legacy(private_key, label), warning=NOT_HD_WARNING)

    # ============================================
    # HD
    # ============================================

    def generate_mnemonic(self) -> str:
        """New 12 word BIP39 mnemonic from the random source."""
        return self._mnemo.to_mnemonic(self._random_bytes(MNEMONIC_ENTROPY_BYTES))

    def build_hd(self, label: Optional[str] = None) -> HDTree:
        """Create an HD wallet from a new mnemonic with one account."""
        mnemonic = self.generate_mnemonic()
        entropy = bytes(self._mnemo.to_entropy(mnemonic))
        tree = HDTree(seed_hex=entropy.hex())
        self.add_account(tree, mnemonic, label)
        return tree

    def add_account(self, tree: HDTree, mnemonic: str,
                    label: Optional[str] = None) -> HDAccount:
        """Derive the next BIP44 account of `tree` and append it."""
        seed = Mnemonic.to_seed(mnemonic, passphrase=tree.passphrase)
        root = rootxprv_from_seed(seed)

        index = len(tree.accounts)
        xpriv = derive(root, BTC_ACCOUNT_PATH.format(index))

        account = HDAccount(
            xpriv=xpriv,
            xpub=xpub_from_xprv(xpriv),
            receive_account=xpub_from_xprv(derive(xpriv, RECEIVE_CHAIN)),
            change_account=xpub_from_xprv(derive(xpriv, CHANGE_CHAIN)),
            label=label,
        )
        tree.accounts.append(account)
        return account

    # ============================================
    # Legacy
    # ============================================

    def build_legacy(self, private_key: Optional[str] = None,
                     label: Optional[str] = None) -> KeyPair:
        """
        Import `private_key` or generate a new key pair.

        Accepted imports: WIF, xprv, or 32 byte hex (optionally 0x-prefixed).

        Raises: KeyImportError if the private key cannot be imported.
        """
        logger.warning(NOT_HD_WARNING)

        if private_key is not None:
            wif = self._import_wif(private_key)
        else:
            wif = self._generate_wif()

        return KeyPair(
            addr=p2pkh(wif),
            priv=wif,
            label=label,
            created_time=timestamp_ms(),
            created_device_name=DEVICE_NAME,
            created_device_version=DEVICE_VERSION,
        )

    def _generate_wif(self) -> str:
        while True:
            q = int.from_bytes(self._random_bytes(PRIVATE_KEY_BYTES), byteorder="big")
            if 0 < q < secp256k1.n:
                return wif_from_prv_key(q, "mainnet", True)

    @staticmethod
    def _import_wif(private_key: str) -> str:
        if not isinstance(private_key, str) or not private_key.strip():
            raise KeyImportError("Private key must be a non-empty string")

        pkey = private_key.strip()
        if pkey.startswith("0x") or pkey.startswith("0X"):
            pkey = pkey[2:]

        try:
            q, network, compressed = prv_keyinfo_from_prv_key(pkey)
            return wif_from_prv_key(q, network, compressed)
        except (BTClibValueError, ValueError, TypeError) as e:
            raise KeyImportError("Invalid private key format") from e
