"""
Create options - Caller configuration for a new wallet.

Options are accepted either as a CreateOptions instance or as a mapping using
the service's camelCase names (email, firstLabel, privateKey, secondPassword,
hd, rootUrl, apiRootUrl, api_code, timeout). Snake_case names are accepted as
well. Options are validated once, before any network or crypto work.
"""

from dataclasses import dataclass
from typing import Any, Mapping, Optional

from networks import (
    DEFAULT_ROOT_URL,
    DEFAULT_API_ROOT_URL,
    DEFAULT_TIMEOUT,
    ServiceConfig,
    normalize_url,
)
from .errors import ValidationError


MIN_PASSWORD_LENGTH = 1
MAX_PASSWORD_LENGTH = 255

# mapping key -> dataclass field
_OPTION_NAMES = {
    "email": "email",
    "firstLabel": "first_label",
    "first_label": "first_label",
    "privateKey": "private_key",
    "private_key": "private_key",
    "secondPassword": "second_password",
    "second_password": "second_password",
    "hd": "hd",
    "rootUrl": "root_url",
    "root_url": "root_url",
    "apiRootUrl": "api_root_url",
    "api_root_url": "api_root_url",
    "api_code": "api_code",
    "apiCode": "api_code",
    "timeout": "timeout",
}


def validate_password(password: Any) -> None:
    """Reject passwords that are missing or longer than 255 characters."""
    if not isinstance(password, str) or not (
        MIN_PASSWORD_LENGTH <= len(password) <= MAX_PASSWORD_LENGTH
    ):
        raise ValidationError(
            "Password must exist and be shorter than 256 characters",
            {"length": len(password) if isinstance(password, str) else None}
        )


@dataclass(frozen=True)
class CreateOptions:
    """Options for creating a wallet."""
    email: Optional[str] = None
    first_label: Optional[str] = None
    private_key: Optional[str] = None      # legacy mode only
    second_password: Optional[str] = None  # enables double encryption
    hd: bool = False
    root_url: str = DEFAULT_ROOT_URL
    api_root_url: str = DEFAULT_API_ROOT_URL
    api_code: Optional[str] = None
    timeout: float = DEFAULT_TIMEOUT

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any]) -> "CreateOptions":
        """Create from a mapping, rejecting unknown option names."""
        kwargs = {}
        for key, value in data.items():
            name = _OPTION_NAMES.get(key)
            if name is None:
                raise ValidationError(f"Unknown option: {key}", {"option": key})
            if value is None:
                continue
            kwargs[name] = value
        if "hd" in kwargs:
            kwargs["hd"] = bool(kwargs["hd"])
        options = cls(**kwargs)
        options.validate()
        return options

    @classmethod
    def coerce(cls, options: "CreateOptions | Mapping[str, Any] | None") -> "CreateOptions":
        """Accept None, a mapping or an instance."""
        if options is None:
            return cls()
        if isinstance(options, cls):
            options.validate()
            return options
        if isinstance(options, Mapping):
            return cls.from_mapping(options)
        raise ValidationError(
            f"options must be a mapping, got {type(options).__name__}"
        )

    def validate(self) -> None:
        """Raise ValidationError on inconsistent or malformed options."""
        for name in ("email", "first_label", "private_key", "second_password", "api_code"):
            value = getattr(self, name)
            if value is not None and not isinstance(value, str):
                raise ValidationError(f"{name} must be a string", {"option": name})

        for name in ("root_url", "api_root_url"):
            value = getattr(self, name)
            if not isinstance(value, str) or not value.startswith(("http://", "https://")):
                raise ValidationError(f"{name} must be an http(s) URL", {"option": name})

        if self.hd and self.private_key is not None:
            raise ValidationError(
                "privateKey can only be imported into a non-HD wallet",
                {"option": "private_key"}
            )

        if isinstance(self.timeout, bool) or not isinstance(self.timeout, (int, float)) \
                or self.timeout <= 0:
            raise ValidationError("timeout must be a positive number", {"option": "timeout"})

    def service_config(self) -> ServiceConfig:
        """The storage service configuration selected by these options."""
        return ServiceConfig(
            root_url=normalize_url(self.root_url),
            api_root_url=normalize_url(self.api_root_url),
            api_code=self.api_code,
            timeout=float(self.timeout),
        )
