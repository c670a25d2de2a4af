"""
Merchant credentials and digest algorithm value objects.
"""
from __future__ import annotations

import hashlib
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Optional, TYPE_CHECKING

from allpay_sdk.domain.common.exceptions import (
    DomainValidationException,
    InvalidArgumentException,
    MissingCredentialsException,
    INVALID_PARAMETER,
)

if TYPE_CHECKING:  # pragma: no cover
    from allpay_sdk.core.settings import AllpaySettings


MERCHANT_ID_MAX_LENGTH = 10


class DigestAlgorithm(str, Enum):
    """CheckMacValue digest, selected on the wire by ``EncryptType``."""
    MD5 = "md5"
    SHA256 = "sha256"

    @property
    def hex_length(self) -> int:
        return 32 if self is DigestAlgorithm.MD5 else 64

    def hexdigest(self, payload: bytes) -> str:
        if self is DigestAlgorithm.MD5:
            return hashlib.md5(payload).hexdigest()
        return hashlib.sha256(payload).hexdigest()

    @classmethod
    def parse(cls, value: Any) -> "DigestAlgorithm":
        """Accept an enum member or a case-insensitive name ("md5", "SHA256")."""
        if isinstance(value, cls):
            return value
        if isinstance(value, str):
            normalized = value.strip().lower().replace("-", "")
            for member in cls:
                if member.value == normalized:
                    return member
        raise InvalidArgumentException(
            f"Unsupported digest algorithm: {value!r}",
            field="algorithm",
            details={"supported": [m.value for m in cls]},
        )

    @classmethod
    def from_encrypt_type(cls, encrypt_type: Any) -> "DigestAlgorithm":
        """0 / absent selects MD5, 1 selects SHA256."""
        if encrypt_type is None or encrypt_type == "":
            return cls.MD5
        if str(encrypt_type) == "0":
            return cls.MD5
        if str(encrypt_type) == "1":
            return cls.SHA256
        raise InvalidArgumentException(INVALID_PARAMETER.format("EncryptType"), field="EncryptType")

    @classmethod
    def from_check_mac_value(cls, check_mac_value: str) -> Optional["DigestAlgorithm"]:
        """Infer the algorithm from the digest length; None when ambiguous."""
        for member in cls:
            if len(check_mac_value) == member.hex_length:
                return member
        return None


@dataclass(frozen=True)
class Credentials:
    """
    Merchant credentials issued by the gateway.

    Immutable: a new instance replaces the old one on reconfiguration.
    """

    merchant_id: str
    hash_key: str = field(repr=False)
    hash_iv: str = field(repr=False)

    def __post_init__(self):
        if len(self.merchant_id) > MERCHANT_ID_MAX_LENGTH:
            raise DomainValidationException.too_long("merchantID", MERCHANT_ID_MAX_LENGTH)

    def ensure_complete(self) -> "Credentials":
        if not self.merchant_id:
            raise MissingCredentialsException("merchantID")
        if not self.hash_key:
            raise MissingCredentialsException("hashKey")
        if not self.hash_iv:
            raise MissingCredentialsException("hashIV")
        return self

    @classmethod
    def from_settings(cls, settings: "AllpaySettings") -> "Credentials":
        return cls(
            merchant_id=settings.merchant_id,
            hash_key=settings.hash_key.get_secret_value(),
            hash_iv=settings.hash_iv.get_secret_value(),
        ).ensure_complete()
