"""Shared fixtures: deterministic randomness and a fake wallet service."""

import pytest

from wallet import KeyMaterialBuilder, WalletCrypto


GUID = "11111111-1111-1111-1111-111111111111"
SHARED_KEY = "22222222-2222-2222-2222-222222222222"

# BIP39 test vector for 16 zero bytes of entropy
ZERO_MNEMONIC = (
    "abandon abandon abandon abandon abandon abandon "
    "abandon abandon abandon abandon abandon about"
)
# m/44'/0'/0'/0/0 of ZERO_MNEMONIC
ZERO_FIRST_RECEIVE_ADDRESS = "1LqBGSKuX5yYUonjxT5qGfpUsXKYYWeabA"

# private key 1
KEY_ONE_HEX = "00" * 31 + "01"
KEY_ONE_WIF = "KwDiBf89QgGbjEhKnhXJuH7LrciVrZi3qYjgd9M7rFU73sVHnoWn"
KEY_ONE_ADDRESS = "1BgGZ9tcN4rm9KBzDn7KprQz87SZ26SAMH"
KEY_ONE_WIF_UNCOMPRESSED = "5HpHagT65TZzG1PH3CSu63k8DbpvD8s5ip4nEB3kEsreAnchuDf"
KEY_ONE_ADDRESS_UNCOMPRESSED = "1EHNa6Q4Jz2uvNExL497mE43ikXhwF6kZm"


class FakeWalletService:
    """Records every call; optionally fails the POST."""

    def __init__(self, uuids=None, post_error=None):
        self.uuids = list(uuids) if uuids is not None else [GUID, SHARED_KEY]
        self.post_error = post_error
        self.uuid_requests = []
        self.posts = []

    def generate_uuids(self, n):
        self.uuid_requests.append(n)
        return list(self.uuids)

    def secure_post(self, endpoint, data):
        self.posts.append((endpoint, data))
        if self.post_error is not None:
            raise self.post_error
        return "Wallet successfully created."

    @property
    def call_count(self):
        return len(self.uuid_requests) + len(self.posts)


def zero_bytes(n):
    return b"\x00" * n


def counter_bytes(start=1):
    """Random source returning distinct, predictable byte strings."""
    state = {"i": start}

    def source(n):
        value = state["i"]
        state["i"] += 1
        return value.to_bytes(n, "big")

    return source


@pytest.fixture
def service():
    return FakeWalletService()


@pytest.fixture
def crypto():
    return WalletCrypto()


@pytest.fixture
def zero_builder():
    return KeyMaterialBuilder(random_source=zero_bytes)
