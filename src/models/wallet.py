"""
Wallet document models.

The wallet document is the JSON structure stored (encrypted) by the wallet
service. Exactly one of `keys` (legacy, single key) or `hd_wallets` (BIP39 /
BIP32 tree) is populated.
"""

from dataclasses import dataclass, asdict, field
from typing import Optional, Sequence

from utils import sha256_hex
from .errors import IdentifierGenerationError


IDENTIFIER_LENGTH = 36


@dataclass(frozen=True)
class WalletIdentifier:
    """The guid / shared key pair that names a wallet on the service."""
    guid: str
    shared_key: str

    @classmethod
    def from_uuids(cls, uuids: Sequence[str]) -> "WalletIdentifier":
        """Take the first two identifiers, checking both are well formed."""
        guid = uuids[0] if len(uuids) > 0 else None
        shared_key = uuids[1] if len(uuids) > 1 else None

        for value in (guid, shared_key):
            if not isinstance(value, str) or len(value) != IDENTIFIER_LENGTH:
                raise IdentifierGenerationError(
                    "Error generating wallet identifier",
                    {"received": len(uuids)}
                )

        return cls(guid=guid, shared_key=shared_key)


@dataclass(frozen=True)
class WalletOptions:
    """Default wallet policy. Not configurable when creating a wallet."""
    pbkdf2_iterations: int = 5000
    html5_notifications: bool = False
    fee_per_kb: int = 10000
    logout_time: int = 600000       # milliseconds

    def to_dict(self) -> dict:
        return asdict(self)


@dataclass
class KeyPair:
    """A single legacy (non-HD) key."""
    addr: str                        # P2PKH address
    priv: str                        # WIF, or ciphertext once double encrypted
    label: Optional[str] = None
    created_time: int = 0            # milliseconds since epoch
    created_device_name: str = ""
    created_device_version: str = ""
    tag: int = 0

    def to_dict(self) -> dict:
        d = asdict(self)
        if self.label is None:
            del d["label"]
        return d


@dataclass
class HDAccount:
    """A BIP44 account (m/44'/0'/n') of an HD wallet."""
    xpriv: str                       # xprv, or ciphertext once double encrypted
    xpub: str
    receive_account: str             # xpub of the external chain (/0)
    change_account: str              # xpub of the change chain (/1)
    label: Optional[str] = None
    archived: bool = False
    address_labels: list = field(default_factory=list)

    def to_dict(self) -> dict:
        d = {
            "label": self.label,
            "archived": self.archived,
            "xpriv": self.xpriv,
            "xpub": self.xpub,
            "address_labels": list(self.address_labels),
            "cache": {
                "receiveAccount": self.receive_account,
                "changeAccount": self.change_account,
            },
        }
        if self.label is None:
            del d["label"]
        return d


@dataclass
class HDTree:
    """An HD wallet rooted in a BIP39 mnemonic."""
    seed_hex: str                    # BIP39 entropy, or ciphertext once double encrypted
    accounts: list[HDAccount] = field(default_factory=list)
    passphrase: str = ""
    mnemonic_verified: bool = False
    default_account_idx: int = 0

    def to_dict(self) -> dict:
        return {
            "seed_hex": self.seed_hex,
            "passphrase": self.passphrase,
            "mnemonic_verified": self.mnemonic_verified,
            "default_account_idx": self.default_account_idx,
            "accounts": [a.to_dict() for a in self.accounts],
        }


@dataclass
class WalletDocument:
    """
    The canonical wallet document.

    Mutated in place only by second password encryption, which replaces the
    secret fields with ciphertext and sets `double_encryption`.
    """
    guid: str
    shared_key: str
    options: WalletOptions = field(default_factory=WalletOptions)
    keys: list[KeyPair] = field(default_factory=list)
    hd_wallets: list[HDTree] = field(default_factory=list)
    double_encryption: bool = False
    dpasswordhash: Optional[str] = None

    def __post_init__(self):
        if bool(self.keys) == bool(self.hd_wallets):
            raise ValueError("Wallet document needs exactly one of keys or hd_wallets")

    @property
    def is_hd(self) -> bool:
        return bool(self.hd_wallets)

    def to_dict(self) -> dict:
        """Convert to the JSON structure understood by the wallet service."""
        d = {
            "guid": self.guid,
            "sharedKey": self.shared_key,
            "double_encryption": self.double_encryption,
        }
        if self.dpasswordhash is not None:
            d["dpasswordhash"] = self.dpasswordhash
        d["options"] = self.options.to_dict()
        if self.is_hd:
            d["hd_wallets"] = [hd.to_dict() for hd in self.hd_wallets]
        else:
            d["keys"] = [k.to_dict() for k in self.keys]
        return d


@dataclass(frozen=True)
class EncryptedPayload:
    """The encrypted wallet as submitted to the service."""
    payload: str
    length: int
    checksum: str                    # hex sha256 of payload

    @classmethod
    def from_payload(cls, payload: str) -> "EncryptedPayload":
        return cls(
            payload=payload,
            length=len(payload),
            checksum=sha256_hex(payload),
        )


@dataclass(frozen=True)
class CreatedWallet:
    """Public result of a successful wallet creation."""
    guid: str
    address: str                     # xpub (HD) or P2PKH address (legacy)
    label: Optional[str] = None
    warning: Optional[str] = None

    @classmethod
    def from_document(cls, document: WalletDocument,
                      warning: Optional[str] = None) -> "CreatedWallet":
        if document.is_hd:
            account = document.hd_wallets[0].accounts[0]
            return cls(guid=document.guid, address=account.xpub, label=account.label)

        first_key = document.keys[0]
        return cls(
            guid=document.guid,
            address=first_key.addr,
            label=first_key.label,
            warning=warning
        )

    def to_dict(self) -> dict:
        d = {"guid": self.guid, "address": self.address, "label": self.label}
        if self.warning is not None:
            d["warning"] = self.warning
        return d
