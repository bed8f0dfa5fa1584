"""
Services package - Wallet creation pipeline and service client.

Contains:
- create_wallet: Build, encrypt, verify and store a new wallet
- BlockchainAPI: HTTP client for the wallet storage service
- configure_logging: Application logging setup
"""

from .api import BlockchainAPI, UNKNOWN_API_KEY
from .create import (
    create_wallet,
    PipelineState,
    fetch_identifier,
    assemble_document,
    apply_second_password,
    encrypt_and_verify,
    serialize_document,
    submission_data,
    submit,
)
from .logging import configure_logging

__all__ = [
    "BlockchainAPI",
    "UNKNOWN_API_KEY",
    "create_wallet",
    "PipelineState",
    "fetch_identifier",
    "assemble_document",
    "apply_second_password",
    "encrypt_and_verify",
    "serialize_document",
    "submission_data",
    "submit",
    "configure_logging",
]
