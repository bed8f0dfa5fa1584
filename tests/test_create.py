"""Tests for the wallet creation pipeline."""

import json
import logging
from unittest.mock import MagicMock

import pytest
from btclib.b58 import p2pkh

from models import (
    ApiKeyError,
    CreateOptions,
    EncryptionError,
    IdentifierGenerationError,
    IntegrityVerificationError,
    KeyGenerationError,
    KeyImportError,
    ServiceError,
    ValidationError,
    WalletCreationError,
    ERR_API_KEY,
)
from networks import ServiceConfig
from services import (
    BlockchainAPI,
    apply_second_password,
    assemble_document,
    create_wallet,
    encrypt_and_verify,
    fetch_identifier,
    serialize_document,
)
from utils import sha256_hex
from wallet import KeyMaterialBuilder, NOT_HD_WARNING, WalletCrypto

from conftest import (
    FakeWalletService,
    GUID,
    SHARED_KEY,
    KEY_ONE_WIF,
    KEY_ONE_ADDRESS,
    counter_bytes,
)


PASSWORD = "correct-password"


def legacy_builder():
    return KeyMaterialBuilder(random_source=counter_bytes(1))


def posted_wallet(service, password=PASSWORD):
    """Decrypt the wallet the fake service received."""
    endpoint, data = service.posts[0]
    assert endpoint == "wallet"
    return json.loads(WalletCrypto().decrypt_wallet(data["payload"], password))


class BrokenDecryptCrypto(WalletCrypto):
    def decrypt_wallet(self, data, password):
        raise ValueError("simulated decryption failure")


class WrongPlaintextCrypto(WalletCrypto):
    def decrypt_wallet(self, data, password):
        return super().decrypt_wallet(data, password) + " "


class BrokenEncryptCrypto(WalletCrypto):
    def encrypt_wallet(self, data, password, iterations):
        raise ValueError("simulated encryption failure")


class FailingBackendCrypto(WalletCrypto):
    def encrypt_wallet(self, data, password, iterations):
        raise RuntimeError("backend failure")

    def encrypt_secret(self, secret, second_password, shared_key, iterations):
        raise RuntimeError("backend failure")


class TestPasswordValidation:
    @pytest.mark.parametrize("password", ["", "x" * 256, None])
    def test_rejected_before_any_network_call(self, service, password):
        with pytest.raises(ValidationError):
            create_wallet(password, {"hd": True}, api=service)
        assert service.call_count == 0

    def test_invalid_options_rejected_before_network(self, service):
        with pytest.raises(ValidationError):
            create_wallet(PASSWORD, {"bogus": True}, api=service)
        assert service.call_count == 0

    @pytest.mark.parametrize("password", ["x", "x" * 255])
    def test_boundary_lengths_accepted(self, service, zero_builder, password):
        result = create_wallet(password, {"hd": True}, api=service, builder=zero_builder)
        assert result.guid == GUID
        assert posted_wallet(service, password)["guid"] == GUID


class TestHDWallet:
    def test_example_creation(self, service, zero_builder):
        result = create_wallet(PASSWORD, {"hd": True}, api=service, builder=zero_builder)

        wallet = posted_wallet(service)
        account = wallet["hd_wallets"][0]["accounts"][0]
        assert result.guid == GUID
        assert result.address == account["xpub"]
        assert result.address.startswith("xpub")
        assert result.label is None
        assert result.warning is None
        assert result.to_dict() == {"guid": GUID, "address": account["xpub"], "label": None}

        assert service.uuid_requests == [2]
        assert len(service.posts) == 1
        _, data = service.posts[0]
        assert data["method"] == "insert"
        assert data["format"] == "plain"
        assert data["guid"] == GUID
        assert data["sharedKey"] == SHARED_KEY
        assert "email" not in data

    def test_document_has_only_hd_wallets(self, service, zero_builder):
        create_wallet(PASSWORD, {"hd": True}, api=service, builder=zero_builder)
        wallet = posted_wallet(service)

        assert "keys" not in wallet
        assert len(wallet["hd_wallets"]) == 1
        assert len(wallet["hd_wallets"][0]["accounts"]) == 1
        assert wallet["double_encryption"] is False
        assert wallet["options"]["pbkdf2_iterations"] == 5000

    def test_first_label_names_account(self, service, zero_builder):
        result = create_wallet(PASSWORD, {"hd": True, "firstLabel": "Main"},
                               api=service, builder=zero_builder)
        assert result.label == "Main"


class TestLegacyWallet:
    def test_generated_key(self, service):
        result = create_wallet(PASSWORD, {"firstLabel": "First"},
                               api=service, builder=legacy_builder())

        assert result.address == KEY_ONE_ADDRESS
        assert result.label == "First"
        assert result.warning == NOT_HD_WARNING

        wallet = posted_wallet(service)
        assert "hd_wallets" not in wallet
        assert wallet["keys"][0]["priv"] == KEY_ONE_WIF
        assert wallet["keys"][0]["addr"] == KEY_ONE_ADDRESS

    def test_imported_key(self, service):
        result = create_wallet(PASSWORD, {"privateKey": KEY_ONE_WIF}, api=service)
        assert result.address == KEY_ONE_ADDRESS
        assert result.to_dict()["warning"] == NOT_HD_WARNING

    def test_bad_private_key_aborts_before_submission(self, service):
        with pytest.raises(KeyImportError):
            create_wallet(PASSWORD, {"privateKey": "garbage"}, api=service)
        assert service.posts == []

    def test_short_random_source_aborts_before_submission(self, service):
        builder = KeyMaterialBuilder(random_source=lambda n: b"\x01")
        with pytest.raises(KeyGenerationError):
            create_wallet(PASSWORD, api=service, builder=builder)
        assert service.posts == []

    def test_warning_is_logged(self, service, caplog):
        with caplog.at_level(logging.WARNING):
            create_wallet(PASSWORD, api=service, builder=legacy_builder())
        assert NOT_HD_WARNING in caplog.text

    def test_email_is_submitted(self, service):
        create_wallet(PASSWORD, {"email": "me@example.com"},
                      api=service, builder=legacy_builder())
        _, data = service.posts[0]
        assert data["email"] == "me@example.com"


@pytest.mark.parametrize("hd", [True, False])
@pytest.mark.parametrize("seed", [1, 7, 99])
def test_exactly_one_kind_of_keys(hd, seed):
    service = FakeWalletService()
    builder = KeyMaterialBuilder(random_source=counter_bytes(seed))
    create_wallet(PASSWORD, {"hd": hd}, api=service, builder=builder)

    wallet = posted_wallet(service)
    assert ("keys" in wallet) != ("hd_wallets" in wallet)
    assert wallet["hd_wallets" if hd else "keys"]


class TestEncryption:
    def test_payload_round_trips_to_serialized_document(self, zero_builder, crypto):
        identifier = fetch_identifier(FakeWalletService())
        document = assemble_document(identifier, zero_builder.build(hd=True))

        encrypted = encrypt_and_verify(document, PASSWORD, crypto)

        assert crypto.decrypt_wallet(encrypted.payload, PASSWORD) == serialize_document(document)
        assert encrypted.length == len(encrypted.payload)
        assert encrypted.checksum == sha256_hex(encrypted.payload)

    def test_submitted_checksum_matches_payload(self, service):
        create_wallet(PASSWORD, api=service, builder=legacy_builder())
        _, data = service.posts[0]
        assert data["checksum"] == sha256_hex(data["payload"])
        assert data["length"] == len(data["payload"])

    def test_failed_decrypt_aborts_without_submission(self, service, zero_builder):
        with pytest.raises(IntegrityVerificationError) as excinfo:
            create_wallet(PASSWORD, {"hd": True}, api=service,
                          builder=zero_builder, crypto=BrokenDecryptCrypto())
        assert excinfo.value.code == "ERR_INTEGRITY"
        assert service.posts == []

    def test_mismatched_plaintext_aborts_without_submission(self, service, zero_builder):
        with pytest.raises(IntegrityVerificationError):
            create_wallet(PASSWORD, {"hd": True}, api=service,
                          builder=zero_builder, crypto=WrongPlaintextCrypto())
        assert service.posts == []

    def test_encryption_failure(self, service, zero_builder):
        with pytest.raises(EncryptionError):
            create_wallet(PASSWORD, {"hd": True}, api=service,
                          builder=zero_builder, crypto=BrokenEncryptCrypto())
        assert service.posts == []

    def test_backend_failure_is_an_encryption_error(self, service, zero_builder):
        with pytest.raises(EncryptionError) as excinfo:
            create_wallet(PASSWORD, {"hd": True}, api=service,
                          builder=zero_builder, crypto=FailingBackendCrypto())
        assert isinstance(excinfo.value.__cause__, RuntimeError)
        assert service.posts == []


class TestSecondPassword:
    def test_legacy_key_double_encrypted(self, service, crypto):
        create_wallet(PASSWORD, {"secondPassword": "second"},
                      api=service, builder=legacy_builder())
        wallet = posted_wallet(service)

        assert wallet["double_encryption"] is True
        assert wallet["dpasswordhash"] == WalletCrypto.hash_second_password(
            "second", SHARED_KEY, 5000
        )
        priv = wallet["keys"][0]["priv"]
        assert priv != KEY_ONE_WIF
        wif = crypto.decrypt_secret(priv, "second", SHARED_KEY, 5000)
        assert wif == KEY_ONE_WIF
        assert p2pkh(wif) == wallet["keys"][0]["addr"]

    def test_hd_secrets_double_encrypted(self, service, zero_builder, crypto):
        plain = zero_builder.build_hd()
        create_wallet(PASSWORD, {"hd": True, "secondPassword": "second"},
                      api=service, builder=zero_builder)
        wallet = posted_wallet(service)
        hd = wallet["hd_wallets"][0]
        account = hd["accounts"][0]

        assert crypto.decrypt_secret(hd["seed_hex"], "second", SHARED_KEY, 5000) == "00" * 16
        assert crypto.decrypt_secret(account["xpriv"], "second", SHARED_KEY, 5000) \
            == plain.accounts[0].xpriv
        # public data stays readable
        assert account["xpub"] == plain.accounts[0].xpub

    def test_encryption_failure_is_fatal(self, service):
        crypto = MagicMock(spec=WalletCrypto)
        crypto.encrypt_secret.side_effect = ValueError("boom")

        with pytest.raises(EncryptionError):
            create_wallet(PASSWORD, {"secondPassword": "second"},
                          api=service, builder=legacy_builder(), crypto=crypto)
        assert service.posts == []

    def test_backend_failure_is_an_encryption_error(self, service):
        with pytest.raises(EncryptionError) as excinfo:
            create_wallet(PASSWORD, {"secondPassword": "second"}, api=service,
                          builder=legacy_builder(), crypto=FailingBackendCrypto())
        assert excinfo.value.code == "ERR_ENCRYPTION"
        assert service.posts == []

    def test_apply_second_password_mutates_document(self, zero_builder, crypto):
        identifier = fetch_identifier(FakeWalletService())
        document = assemble_document(identifier, zero_builder.build(hd=True))

        returned = apply_second_password(document, "second", crypto)

        assert returned is document
        assert document.double_encryption is True
        assert document.dpasswordhash is not None


class TestServiceFailures:
    def test_api_key_error_keeps_code(self, zero_builder):
        service = FakeWalletService(post_error=ApiKeyError("Unknown API Key"))
        with pytest.raises(ApiKeyError) as excinfo:
            create_wallet(PASSWORD, {"hd": True}, api=service, builder=zero_builder)
        assert excinfo.value.code == ERR_API_KEY

    def test_other_service_errors_keep_their_code(self, zero_builder):
        service = FakeWalletService(post_error=ServiceError("Invalid checksum"))
        with pytest.raises(ServiceError) as excinfo:
            create_wallet(PASSWORD, {"hd": True}, api=service, builder=zero_builder)
        assert excinfo.value.code != ERR_API_KEY

    def test_malformed_identifiers(self, zero_builder):
        service = FakeWalletService(uuids=["short", SHARED_KEY])
        with pytest.raises(IdentifierGenerationError):
            create_wallet(PASSWORD, {"hd": True}, api=service, builder=zero_builder)
        assert service.posts == []

    def test_end_to_end_unknown_api_key_over_http(self, zero_builder):
        responses = [MagicMock(ok=True, status_code=200), MagicMock(ok=False, status_code=500)]
        responses[0].json.return_value = {"uuids": [GUID, SHARED_KEY]}
        responses[0].text = ""
        responses[1].text = "Unknown API Key"
        session = MagicMock()
        session.request.side_effect = responses
        api = BlockchainAPI(ServiceConfig(api_code="bad"), session=session)

        with pytest.raises(WalletCreationError) as excinfo:
            create_wallet(PASSWORD, {"hd": True}, api=api, builder=zero_builder)
        assert excinfo.value.code == ERR_API_KEY
        assert session.request.call_count == 2

    def test_options_instance_accepted(self, service, zero_builder):
        result = create_wallet(PASSWORD, CreateOptions(hd=True), api=service, builder=zero_builder)
        assert result.address.startswith("xpub")
