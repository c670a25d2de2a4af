"""
CheckMacValue engine shared by request signing and inbound verification.

Algorithm (gateway protocol, must stay bit-for-bit compatible):

1. Drop the control fields ``CheckMacValue``, ``hashKey`` and ``hashIV``.
2. Sort the remaining names case-insensitively (stable) and join them as
   ``name=value`` pairs with ``&``.
3. Wrap as ``HashKey=<key>&<pairs>&HashIV=<iv>``.
4. Percent-encode like .NET ``HttpUtility.UrlEncode`` and lowercase.
5. MD5 or SHA-256 over the UTF-8 bytes, rendered as uppercase hex.

This is a plain hash over a string embedding the secrets, not an HMAC.
"""
from __future__ import annotations

import hmac
from decimal import Decimal
from typing import Any, Mapping, Optional, Tuple, Union
from urllib.parse import quote

import structlog

from allpay_sdk.domain.common.exceptions import MissingCredentialsException
from allpay_sdk.domain.payment.entity import Credentials, DigestAlgorithm


logger = structlog.get_logger(__name__)

CHECK_MAC_VALUE = "CheckMacValue"
HASH_KEY_FIELD = "hashKey"
HASH_IV_FIELD = "hashIV"
CONTROL_FIELDS = frozenset({CHECK_MAC_VALUE, HASH_KEY_FIELD, HASH_IV_FIELD})

# Left unescaped by encodeURIComponent on top of quote()'s letters, digits and "_.-~"
_URI_COMPONENT_SAFE = "!*'()"
# Applied in order to the already-encoded text
_DOTNET_SUBSTITUTIONS: Tuple[Tuple[str, str], ...] = (
    ("~", "%7E"),
    ("%20", "+"),
    ("'", "%27"),
)

FieldSet = Mapping[str, Any]
AlgorithmLike = Union[DigestAlgorithm, str]


def format_value(value: Any) -> str:
    """Render a field value the way the gateway expects it in the hash input."""
    if value is None:
        return ""
    if isinstance(value, bool):
        return "1" if value else "0"
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    if isinstance(value, Decimal) and value.is_finite() and value == value.to_integral_value():
        return str(int(value))
    return str(value)


def canonicalize(field_set: FieldSet, hash_key: str, hash_iv: str) -> str:
    """Build ``HashKey=..&a=1&B=2&..&HashIV=..`` from an unordered field set.

    An empty field set yields ``HashKey=K&&HashIV=V``; the doubled ``&`` is
    part of the protocol.
    """
    items = [(k, v) for k, v in field_set.items() if k not in CONTROL_FIELDS]
    items.sort(key=lambda item: item[0].lower())
    body = "&".join(f"{k}={format_value(v)}" for k, v in items)
    return f"HashKey={hash_key}&{body}&HashIV={hash_iv}"


def url_encode(data: str) -> str:
    """Percent-encode ``data`` compatibly with the gateway's .NET UrlEncode.

    Unescaped: ``A-Z a-z 0-9 - _ . ! * ( )``; space becomes ``+``; ``~`` and
    ``'`` become ``%7E`` and ``%27``; everything else is UTF-8 ``%XX``.
    """
    encoded = quote(data, safe=_URI_COMPONENT_SAFE)
    for find, replace in _DOTNET_SUBSTITUTIONS:
        encoded = encoded.replace(find, replace)
    return encoded


def _secrets_for(
    field_set: FieldSet,
    hash_key: Optional[str],
    hash_iv: Optional[str],
    *,
    allow_override: bool = True,
) -> Tuple[str, str]:
    # Per-call hashKey/hashIV entries take precedence over configured ones,
    # but only for data we sign ourselves, never for data we receive
    key, iv = hash_key, hash_iv
    if allow_override:
        key = field_set.get(HASH_KEY_FIELD) or key
        iv = field_set.get(HASH_IV_FIELD) or iv
    if not key:
        raise MissingCredentialsException("hashKey")
    if not iv:
        raise MissingCredentialsException("hashIV")
    return str(key), str(iv)


def compute_check_mac_value(
    field_set: FieldSet,
    hash_key: Optional[str],
    hash_iv: Optional[str],
    algorithm: AlgorithmLike = DigestAlgorithm.MD5,
    *,
    allow_override: bool = True,
) -> str:
    algorithm = DigestAlgorithm.parse(algorithm)
    key, iv = _secrets_for(field_set, hash_key, hash_iv, allow_override=allow_override)
    encoded = url_encode(canonicalize(field_set, key, iv)).lower()
    return algorithm.hexdigest(encoded.encode("utf-8")).upper()


def verify_check_mac_value(
    field_set: FieldSet,
    hash_key: Optional[str],
    hash_iv: Optional[str],
    algorithm: Optional[AlgorithmLike] = None,
) -> bool:
    """Return True when ``field_set["CheckMacValue"]`` matches the recomputed one.

    With ``algorithm=None`` the digest is picked from the received value's
    length (32 hex chars for MD5, 64 for SHA256). Only the given secrets are
    used; ``hashKey`` / ``hashIV`` entries in received data are ignored.
    """
    received = field_set.get(CHECK_MAC_VALUE)
    if not isinstance(received, str) or not received:
        return False
    if algorithm is None:
        detected = DigestAlgorithm.from_check_mac_value(received)
        if detected is None:
            return False
        algorithm = detected
    expected = compute_check_mac_value(field_set, hash_key, hash_iv, algorithm, allow_override=False)
    return hmac.compare_digest(expected.encode("utf-8"), received.encode("utf-8"))


class CheckMacService:
    """Checksum engine bound to one immutable set of merchant credentials."""

    def __init__(self, credentials: Credentials, *, debug: bool = False) -> None:
        self._credentials = credentials
        self.debug = debug

    @property
    def credentials(self) -> Credentials:
        return self._credentials

    def compute(self, field_set: FieldSet, algorithm: AlgorithmLike = DigestAlgorithm.MD5) -> str:
        check_mac_value = compute_check_mac_value(
            field_set,
            self._credentials.hash_key,
            self._credentials.hash_iv,
            algorithm,
        )
        if self.debug:
            logger.debug(
                "check_mac_generated",
                canonical=canonicalize(field_set, "***", "***"),
                algorithm=DigestAlgorithm.parse(algorithm).value,
                check_mac_value=check_mac_value,
            )
        return check_mac_value

    def verify(self, field_set: FieldSet, algorithm: Optional[AlgorithmLike] = None) -> bool:
        matched = verify_check_mac_value(
            field_set,
            self._credentials.hash_key,
            self._credentials.hash_iv,
            algorithm,
        )
        if self.debug:
            logger.debug(
                "check_mac_verified",
                received=field_set.get(CHECK_MAC_VALUE),
                matched=matched,
            )
        return matched
