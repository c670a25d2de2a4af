"""
Factory for payment gateway clients.
"""
from __future__ import annotations

from typing import Optional

from allpay_sdk.application.ports.payment_gateway import PaymentGateway
from allpay_sdk.core.settings import AllpaySettings


def get_payment_gateway(provider: Optional[str] = None, settings: Optional[AllpaySettings] = None) -> PaymentGateway:
    name = (provider or "allpay").lower()
    if name == "allpay":
        from .allpay_client import AllpayClient
        return AllpayClient(settings)
    raise ValueError(f"Unsupported payment provider: {name}")
