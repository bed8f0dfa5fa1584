"""
Wallet Creation - Builds, encrypts and stores a new wallet.

Stages, run strictly in order (any failure aborts the run):
1. fetch_identifier     - guid + shared key from the service
2. build key material   - HD tree or single legacy key
3. assemble_document    - canonical wallet document
4. apply_second_password (optional) - double encryption of secrets
5. encrypt_and_verify   - password encryption, decrypt check, checksum
6. submit               - POST wallet, map to a CreatedWallet

Each run builds its own document and cipher state, so concurrent calls
share nothing.
"""

import json
import logging
from dataclasses import dataclass
from typing import Any, Mapping, Optional, Protocol

from models import (
    CreateOptions,
    CreatedWallet,
    EncryptedPayload,
    EncryptionError,
    IntegrityVerificationError,
    WalletCreationError,
    WalletDocument,
    WalletIdentifier,
    WalletOptions,
    validate_password,
)
from wallet import KeyMaterial, KeyMaterialBuilder, WalletCrypto
from .api import BlockchainAPI

logger = logging.getLogger(__name__)


# ============================================
# Collaborators
# ============================================

class WalletService(Protocol):
    def generate_uuids(self, n: int) -> list[str]:
        ...

    def secure_post(self, endpoint: str, data: dict) -> str:
        ...


class WalletCipher(Protocol):
    def encrypt_wallet(self, data: str, password: str, iterations: int) -> str:
        ...

    def decrypt_wallet(self, data: str, password: str) -> str:
        ...

    def encrypt_secret(self, secret: str, second_password: str,
                       shared_key: str, iterations: int) -> str:
        ...

    def hash_second_password(self, second_password: str, shared_key: str,
                             iterations: int) -> str:
        ...


@dataclass
class PipelineState:
    """Everything one wallet creation run has produced so far."""
    options: CreateOptions
    identifier: Optional[WalletIdentifier] = None
    material: Optional[KeyMaterial] = None
    document: Optional[WalletDocument] = None
    encrypted: Optional[EncryptedPayload] = None
    stage: str = "validate"


# ============================================
# Stages
# ============================================

def fetch_identifier(api: WalletService) -> WalletIdentifier:
    """Request two identifiers: the guid and the shared key."""
    return WalletIdentifier.from_uuids(api.generate_uuids(2))


def assemble_document(identifier: WalletIdentifier, material: KeyMaterial) -> WalletDocument:
    """Combine identifiers, key material and default options."""
    return WalletDocument(
        guid=identifier.guid,
        shared_key=identifier.shared_key,
        options=WalletOptions(),
        keys=[material.key] if material.key is not None else [],
        hd_wallets=[material.hd_wallet] if material.hd_wallet is not None else [],
        double_encryption=False,
    )


def apply_second_password(document: WalletDocument, second_password: str,
                          crypto: WalletCipher) -> WalletDocument:
    """
    Encrypt every secret of `document` in place under the second password.

    Private keys, HD seeds and account xprivs are replaced by ciphertext;
    `double_encryption` and `dpasswordhash` are set.

    Raises: EncryptionError if any secret cannot be encrypted.
    """
    iterations = document.options.pbkdf2_iterations

    def enc(secret: str) -> str:
        return crypto.encrypt_secret(secret, second_password, document.shared_key, iterations)

    try:
        for key in document.keys:
            key.priv = enc(key.priv)
        for hd in document.hd_wallets:
            hd.seed_hex = enc(hd.seed_hex)
            for account in hd.accounts:
                account.xpriv = enc(account.xpriv)
        document.dpasswordhash = crypto.hash_second_password(
            second_password, document.shared_key, iterations
        )
    except Exception as e:
        raise EncryptionError("Second password encryption failed") from e

    document.double_encryption = True
    return document


def serialize_document(document: WalletDocument) -> str:
    """Canonical text form of the wallet document."""
    return json.dumps(document.to_dict(), indent=2)


def encrypt_and_verify(document: WalletDocument, password: str,
                       crypto: WalletCipher) -> EncryptedPayload:
    """
    Encrypt the document and prove the result decrypts back to it.

    Raises:
        EncryptionError: If encryption itself fails
        IntegrityVerificationError: If the ciphertext does not decrypt to
            the exact serialized document
    """
    data = serialize_document(document)

    try:
        enc = crypto.encrypt_wallet(data, password, document.options.pbkdf2_iterations)
    except Exception as e:
        raise EncryptionError("Failed to encrypt wallet") from e

    try:
        decrypted = crypto.decrypt_wallet(enc, password)
    except Exception as e:
        raise IntegrityVerificationError(
            "Failed to confirm successful encryption when generating new wallet"
        ) from e

    if decrypted != data:
        raise IntegrityVerificationError(
            "Failed to confirm successful encryption when generating new wallet",
            {"reason": "decrypted wallet differs"}
        )

    return EncryptedPayload.from_payload(enc)


def submission_data(document: WalletDocument, encrypted: EncryptedPayload,
                    email: Optional[str] = None) -> dict:
    """Form fields of the wallet insert request."""
    data = {
        "guid": document.guid,
        "sharedKey": document.shared_key,
        "length": encrypted.length,
        "payload": encrypted.payload,
        "checksum": encrypted.checksum,
        "method": "insert",
        "format": "plain",
    }
    if email:
        data["email"] = email
    return data


def submit(api: WalletService, state: PipelineState) -> CreatedWallet:
    """Store the encrypted wallet and build the public result."""
    data = submission_data(state.document, state.encrypted, state.options.email)
    api.secure_post("wallet", data)
    return CreatedWallet.from_document(state.document, state.material.warning)


# ============================================
# Entry Point
# ============================================

def create_wallet(
    password: str,
    options: CreateOptions | Mapping[str, Any] | None = None,
    *,
    api: Optional[WalletService] = None,
    builder: Optional[KeyMaterialBuilder] = None,
    crypto: Optional[WalletCipher] = None,
) -> CreatedWallet:
    """
    Create a new wallet and store it on the wallet service.

    Args:
        password: Main wallet password, 1-255 characters
        options: CreateOptions or a mapping (email, firstLabel, privateKey,
            secondPassword, hd, rootUrl, apiRootUrl, api_code, timeout)
        api: Wallet service client (default: BlockchainAPI for the options)
        builder: Key material builder (default: secure random source)
        crypto: Wallet cipher (default: WalletCrypto)

    Returns:
        CreatedWallet; legacy wallets carry the non-HD advisory in `warning`.

    Raises:
        WalletCreationError subclass describing the failed stage.
    """
    validate_password(password)
    opts = CreateOptions.coerce(options)

    owns_api = api is None
    if api is None:
        config = opts.service_config()
        logger.info("Using wallet service %s (api %s)", config.root_url, config.api_root_url)
        api = BlockchainAPI(config)
    builder = builder or KeyMaterialBuilder()
    crypto = crypto or WalletCrypto()

    state = PipelineState(options=opts)
    try:
        state.stage = "identifier"
        state.identifier = fetch_identifier(api)
        logger.info("Generated wallet identifier %s", state.identifier.guid)

        state.stage = "keys"
        state.material = builder.build(opts.hd, opts.private_key, opts.first_label)

        state.stage = "assemble"
        state.document = assemble_document(state.identifier, state.material)

        if opts.second_password is not None:
            state.stage = "second_password"
            apply_second_password(state.document, opts.second_password, crypto)

        state.stage = "encrypt"
        state.encrypted = encrypt_and_verify(state.document, password, crypto)

        state.stage = "submit"
        result = submit(api, state)
    except WalletCreationError as e:
        logger.error("Wallet creation failed at stage '%s': %s [%s]", state.stage, e, e.code)
        raise
    finally:
        if owns_api:
            api.close()

    logger.info("Created %s wallet %s", "HD" if state.document.is_hd else "legacy", result.guid)
    return result
