"""
Errors - Failure kinds raised while creating a wallet.

Every error carries a stable `code` so callers can branch on the kind
without parsing messages, plus an optional `context` dict with details.

Hierarchy:
- WalletCreationError
  - ValidationError
    - IdentifierGenerationError
  - KeyImportError
  - KeyGenerationError
  - EncryptionError
  - IntegrityVerificationError
  - ServiceError
    - ApiKeyError
"""

from typing import Optional


ERR_WALLET = "ERR_WALLET"
ERR_VALIDATION = "ERR_VALIDATION"
ERR_IDENTIFIER = "ERR_IDENTIFIER"
ERR_KEY_IMPORT = "ERR_KEY_IMPORT"
ERR_KEY_GENERATION = "ERR_KEY_GENERATION"
ERR_ENCRYPTION = "ERR_ENCRYPTION"
ERR_INTEGRITY = "ERR_INTEGRITY"
ERR_SERVICE = "ERR_SERVICE"
ERR_API_KEY = "ERR_API_KEY"


class WalletCreationError(Exception):
    """Base class for all wallet creation failures."""

    code = ERR_WALLET

    def __init__(self, message: str, context: Optional[dict] = None):
        super().__init__(message)
        self.message = message
        self.context = dict(context or {})

    def to_dict(self) -> dict:
        """Convert to dictionary for JSON output."""
        data = {"code": self.code, "message": self.message}
        if self.context:
            data["context"] = self.context
        return data

    def __str__(self) -> str:
        return self.message


class ValidationError(WalletCreationError):
    """Bad caller input (password length, options)."""

    code = ERR_VALIDATION


class IdentifierGenerationError(ValidationError):
    """The identifier service returned missing or malformed identifiers."""

    code = ERR_IDENTIFIER


class KeyImportError(WalletCreationError):
    """A caller-supplied private key could not be imported."""

    code = ERR_KEY_IMPORT


class KeyGenerationError(WalletCreationError):
    """The random source could not supply key material."""

    code = ERR_KEY_GENERATION


class EncryptionError(WalletCreationError):
    """Primary or second password encryption failed."""

    code = ERR_ENCRYPTION


class IntegrityVerificationError(WalletCreationError):
    """The encrypted payload could not be decrypted back to the wallet."""

    code = ERR_INTEGRITY


class ServiceError(WalletCreationError):
    """Network or storage service failure."""

    code = ERR_SERVICE


class ApiKeyError(ServiceError):
    """The storage service rejected the configured API key."""

    code = ERR_API_KEY
