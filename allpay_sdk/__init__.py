"""AllPay payment gateway SDK."""
from allpay_sdk.application.dtos.payments import CheckoutForm, ChargebackResult, NotificationEvent
from allpay_sdk.core.settings import AllpaySettings
from allpay_sdk.domain.payment.entity import Credentials, DigestAlgorithm
from allpay_sdk.domain.services.check_mac import (
    CheckMacService,
    compute_check_mac_value,
    url_encode,
    verify_check_mac_value,
)
from allpay_sdk.infrastructure.external.payments.allpay_client import AllpayClient

__version__ = "1.0.0"

__all__ = [
    "AllpayClient",
    "AllpaySettings",
    "CheckMacService",
    "CheckoutForm",
    "ChargebackResult",
    "Credentials",
    "DigestAlgorithm",
    "NotificationEvent",
    "compute_check_mac_value",
    "url_encode",
    "verify_check_mac_value",
]
