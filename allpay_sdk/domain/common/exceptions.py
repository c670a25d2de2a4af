"""Domain-level exceptions shared by the checksum engine and request builders.

Every exception carries a BusinessCode so callers can branch on `code`
instead of parsing messages. Messages follow the Gateway SDK wording.
"""
from __future__ import annotations

from typing import Optional

from allpay_sdk.shared.codes import BusinessCode


REQUIRED_PARAMETER = "{} is required."
LENGTH_LIMITATION = "The maximum length for {} is {}."
FIXED_LENGTH_LIMITATION = "The length for {} is {}."
REMOVE_PARAMETER = "Please remove {}."
INVALID_PARAMETER = "{} is invalid."
WRONG_PARAMETER = "Wrong parameter."
NOT_SUPPORTED_IN_TEST_MODE = "This feature is not supported in test mode"


class BusinessException(Exception):
    """业务异常基类"""

    def __init__(
        self,
        code: int,
        message: str,
        error_type: str = "BusinessError",
        details: Optional[dict] = None,
        field: Optional[str] = None,
    ) -> None:
        self.code = code
        self.message = message
        self.error_type = error_type
        self.details = details
        self.field = field
        super().__init__(self.message)


class ConfigurationException(BusinessException):
    def __init__(self, message: str, *, field: str | None = None, details: dict | None = None):
        super().__init__(
            code=BusinessCode.CONFIGURATION_ERROR,
            message=message,
            error_type="ConfigurationError",
            details=details,
            field=field,
        )


class MissingCredentialsException(ConfigurationException):
    """Merchant ID / HashKey / HashIV have not been configured."""

    def __init__(self, field: str):
        super().__init__(REQUIRED_PARAMETER.format(field), field=field)
        self.error_type = "MissingCredentials"


class InvalidArgumentException(BusinessException):
    def __init__(self, message: str, *, field: str | None = None, details: dict | None = None):
        super().__init__(
            code=BusinessCode.PARAM_ERROR,
            message=message,
            error_type="InvalidArgument",
            details=details,
            field=field,
        )


class DomainValidationException(BusinessException):
    def __init__(
        self,
        message: str,
        *,
        field: str | None = None,
        details: dict | None = None,
    ):
        super().__init__(
            code=BusinessCode.PARAM_VALIDATION_ERROR,
            message=message,
            error_type="DomainValidationError",
            details=details,
            field=field,
        )

    @classmethod
    def required(cls, name: str) -> "DomainValidationException":
        return cls(REQUIRED_PARAMETER.format(name), field=name)

    @classmethod
    def too_long(cls, name: str, max_length: int) -> "DomainValidationException":
        return cls(LENGTH_LIMITATION.format(name, max_length), field=name, details={"max_length": max_length})

    @classmethod
    def wrong_length(cls, name: str, length: int) -> "DomainValidationException":
        return cls(FIXED_LENGTH_LIMITATION.format(name, length), field=name, details={"length": length})

    @classmethod
    def remove(cls, name: str) -> "DomainValidationException":
        return cls(REMOVE_PARAMETER.format(name), field=name)

    @classmethod
    def invalid(cls, name: str) -> "DomainValidationException":
        return cls(INVALID_PARAMETER.format(name), field=name)


class FeatureNotSupportedException(BusinessException):
    def __init__(self, message: str = NOT_SUPPORTED_IN_TEST_MODE, *, operation: str | None = None):
        super().__init__(
            code=BusinessCode.FEATURE_NOT_SUPPORTED,
            message=message,
            error_type="FeatureNotSupported",
            details={"operation": operation} if operation else None,
        )
