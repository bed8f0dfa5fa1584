"""
Models package - Data models for wallet-create.

Contains:
- WalletDocument and its parts: the wallet JSON stored by the service
- EncryptedPayload, CreatedWallet: pipeline output
- CreateOptions: validated caller configuration
- Error kinds raised by the pipeline
"""

from .wallet import (
    WalletIdentifier,
    WalletOptions,
    KeyPair,
    HDAccount,
    HDTree,
    WalletDocument,
    EncryptedPayload,
    CreatedWallet,
    IDENTIFIER_LENGTH,
)
from .options import (
    CreateOptions,
    validate_password,
    MIN_PASSWORD_LENGTH,
    MAX_PASSWORD_LENGTH,
)
from .errors import (
    WalletCreationError,
    ValidationError,
    IdentifierGenerationError,
    KeyImportError,
    KeyGenerationError,
    EncryptionError,
    IntegrityVerificationError,
    ServiceError,
    ApiKeyError,
    ERR_API_KEY,
)

__all__ = [
    # Wallet document
    "WalletIdentifier",
    "WalletOptions",
    "KeyPair",
    "HDAccount",
    "HDTree",
    "WalletDocument",
    "EncryptedPayload",
    "CreatedWallet",
    "IDENTIFIER_LENGTH",
    # Options
    "CreateOptions",
    "validate_password",
    "MIN_PASSWORD_LENGTH",
    "MAX_PASSWORD_LENGTH",
    # Errors
    "WalletCreationError",
    "ValidationError",
    "IdentifierGenerationError",
    "KeyImportError",
    "KeyGenerationError",
    "EncryptionError",
    "IntegrityVerificationError",
    "ServiceError",
    "ApiKeyError",
    "ERR_API_KEY",
]
