"""
Shared business codes used across layers (Domain/Infrastructure/API).

This package exposes BusinessCode at `allpay_sdk.shared.codes` and keeps
payment-specific codes under `allpay_sdk.shared.codes.payment_codes`.
"""
from enum import IntEnum


class BusinessCode(IntEnum):
    """Unified business status codes (single source of truth)."""

    # Success
    SUCCESS = 0

    # Parameter errors (1xxxx)
    PARAM_ERROR = 10000
    PARAM_MISSING = 10001
    PARAM_TYPE_ERROR = 10002
    PARAM_VALIDATION_ERROR = 10003

    # Business errors (2xxxx)
    BUSINESS_ERROR = 20000
    FEATURE_NOT_SUPPORTED = 20007

    # System errors (4xxxx)
    SYSTEM_ERROR = 40000
    CONFIGURATION_ERROR = 40004
    NETWORK_ERROR = 40002


__all__ = ["BusinessCode"]
