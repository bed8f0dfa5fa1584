"""
Wallet Crypto - Password encryption of wallet data.

Compatible with the wallet service format:
- PBKDF2-HMAC-SHA1 key derivation (iteration count stored with the wallet)
- AES-256-CBC, the random IV doubling as the PBKDF2 salt
- payload = base64(iv + ciphertext)
- version 2 envelope: {"pbkdf2_iterations": n, "version": 2, "payload": ...}

Second password encryption reuses the same cipher for individual secrets,
keyed by shared_key + second_password.
"""

import base64
import binascii
import json
import secrets
from typing import Callable, Optional

# Cryptography
from cryptography.hazmat.primitives import hashes, padding
from cryptography.hazmat.primitives.ciphers import Cipher, algorithms, modes
from cryptography.hazmat.primitives.kdf.pbkdf2 import PBKDF2HMAC

from utils import sha256_n_times


# ============================================
# Security Constants
# ============================================

AES_KEY_SIZE = 32       # AES-256
AES_BLOCK_SIZE = 16     # bytes, also the IV / salt size

WALLET_FORMAT_VERSION = 2
DEFAULT_PBKDF2_ITERATIONS = 5000


# ============================================
# Key Derivation
# ============================================

def derive_key(password: str, salt: bytes, iterations: int) -> bytes:
    """Derive an AES-256 key from password using PBKDF2-HMAC-SHA1."""
    kdf = PBKDF2HMAC(
        algorithm=hashes.SHA1(),
        length=AES_KEY_SIZE,
        salt=salt,
        iterations=iterations,
    )
    return kdf.derive(password.encode('utf-8'))


def _unpad(padded: bytes) -> bytes:
    """
    Strip ISO 10126 padding.

    Only the last byte is significant, so PKCS7 padded data is accepted too.
    This is not an integrity check.
    """
    if not padded or len(padded) % AES_BLOCK_SIZE != 0:
        raise ValueError("Ciphertext is not a whole number of blocks")
    pad_len = padded[-1]
    if not 1 <= pad_len <= AES_BLOCK_SIZE:
        raise ValueError("Invalid padding")
    return padded[:-pad_len]


# ============================================
# Wallet Cipher
# ============================================

class WalletCrypto:
    """
    Encrypts and decrypts wallet payloads.

    Usage:
        crypto = WalletCrypto()
        enc = crypto.encrypt_wallet(json_text, "password", 5000)
        json_text = crypto.decrypt_wallet(enc, "password")
    """

    def __init__(self, random_source: Optional[Callable[[int], bytes]] = None):
        """
        Args:
            random_source: Callable returning n secure random bytes (IVs).
        """
        self._random_source = random_source or secrets.token_bytes

    # ----------------------------------------
    # Raw payloads
    # ----------------------------------------

    def encrypt(self, data: str, password: str, iterations: int) -> str:
        """Encrypt text, returning base64(iv + ciphertext)."""
        iv = self._random_source(AES_BLOCK_SIZE)
        if len(iv) != AES_BLOCK_SIZE:
            raise ValueError(f"random source returned {len(iv)} bytes, expected {AES_BLOCK_SIZE}")

        key = derive_key(password, iv, iterations)

        padder = padding.PKCS7(AES_BLOCK_SIZE * 8).padder()
        padded = padder.update(data.encode('utf-8')) + padder.finalize()

        encryptor = Cipher(algorithms.AES(key), modes.CBC(iv)).encryptor()
        ciphertext = encryptor.update(padded) + encryptor.finalize()

        return base64.b64encode(iv + ciphertext).decode('ascii')

    def decrypt(self, payload: str, password: str, iterations: int) -> str:
        """
        Decrypt base64(iv + ciphertext).

        CBC without a MAC: success alone does not prove the password or the
        data are authentic. Callers compare the plaintext when that matters.

        Raises: ValueError if password is wrong or data is corrupted.
        """
        try:
            raw = base64.b64decode(payload, validate=True)
        except (binascii.Error, ValueError) as e:
            raise ValueError("Payload is not valid base64") from e

        if len(raw) < 2 * AES_BLOCK_SIZE:
            raise ValueError("Payload too short")

        iv, ciphertext = raw[:AES_BLOCK_SIZE], raw[AES_BLOCK_SIZE:]
        key = derive_key(password, iv, iterations)

        decryptor = Cipher(algorithms.AES(key), modes.CBC(iv)).decryptor()
        padded = decryptor.update(ciphertext) + decryptor.finalize()

        try:
            return _unpad(padded).decode('utf-8')
        except (ValueError, UnicodeDecodeError) as e:
            raise ValueError("Wrong password or corrupted payload") from e

    # ----------------------------------------
    # Wallet envelope
    # ----------------------------------------

    def encrypt_wallet(self, data: str, password: str,
                       iterations: int = DEFAULT_PBKDF2_ITERATIONS) -> str:
        """Encrypt a serialized wallet into the version 2 envelope."""
        envelope = {
            "pbkdf2_iterations": iterations,
            "version": WALLET_FORMAT_VERSION,
            "payload": self.encrypt(data, password, iterations),
        }
        return json.dumps(envelope, separators=(',', ':'))

    def decrypt_wallet(self, data: str, password: str) -> str:
        """
        Decrypt a version 2 wallet envelope.

        Raises: ValueError if the envelope is malformed, the password is
        wrong or the payload is corrupted.
        """
        try:
            envelope = json.loads(data)
        except json.JSONDecodeError as e:
            raise ValueError("Wallet envelope is not valid JSON") from e

        if not isinstance(envelope, dict):
            raise ValueError("Wallet envelope must be an object")

        version = envelope.get("version")
        if version != WALLET_FORMAT_VERSION:
            raise ValueError(f"Unsupported wallet version: {version}")

        iterations = envelope.get("pbkdf2_iterations")
        if not isinstance(iterations, int) or iterations < 1:
            raise ValueError(f"Invalid pbkdf2_iterations: {iterations}")

        payload = envelope.get("payload")
        if not isinstance(payload, str):
            raise ValueError("Missing payload")

        return self.decrypt(payload, password, iterations)

    # ----------------------------------------
    # Second password
    # ----------------------------------------

    def encrypt_secret(self, secret: str, second_password: str,
                       shared_key: str, iterations: int) -> str:
        """Encrypt one wallet secret (key, seed) under the second password."""
        return self.encrypt(secret, shared_key + second_password, iterations)

    def decrypt_secret(self, payload: str, second_password: str,
                       shared_key: str, iterations: int) -> str:
        """Decrypt a secret produced by encrypt_secret."""
        return self.decrypt(payload, shared_key + second_password, iterations)

    @staticmethod
    def hash_second_password(second_password: str, shared_key: str,
                             iterations: int) -> str:
        """Hash stored as `dpasswordhash` to check the second password later."""
        return sha256_n_times(shared_key + second_password, iterations)
