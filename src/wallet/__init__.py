"""
Wallet package - Key material and encryption for new wallets.

Contains:
- KeyMaterialBuilder: HD (BIP39/32/44) or single legacy key generation
- WalletCrypto: PBKDF2 + AES-256-CBC wallet and secret encryption
"""

from .crypto import (
    WalletCrypto,
    derive_key,
    WALLET_FORMAT_VERSION,
    DEFAULT_PBKDF2_ITERATIONS,
)
from .keys import (
    KeyMaterial,
    KeyMaterialBuilder,
    NOT_HD_WARNING,
    BTC_ACCOUNT_PATH,
)

__all__ = [
    # Crypto
    "WalletCrypto",
    "derive_key",
    "WALLET_FORMAT_VERSION",
    "DEFAULT_PBKDF2_ITERATIONS",
    # Keys
    "KeyMaterial",
    "KeyMaterialBuilder",
    "NOT_HD_WARNING",
    "BTC_ACCOUNT_PATH",
]
