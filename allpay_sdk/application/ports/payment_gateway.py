"""
Payment gateway port (application/ports) exposing a replaceable protocol.

Application code and the webhook route depend on this Protocol; the
infrastructure AllpayClient implements it.
"""
from __future__ import annotations

from typing import Any, Mapping, Optional, Protocol, Union, runtime_checkable

from allpay_sdk.application.dtos.payments import (
    AioChargeback,
    AioCheckOut,
    Capture,
    ChargebackResult,
    CheckoutForm,
    DoAction,
    NotificationEvent,
    QueryCreditCardPeriodInfo,
    QueryTradeInfo,
)
from allpay_sdk.domain.payment.entity import DigestAlgorithm


@runtime_checkable
class PaymentGateway(Protocol):
    """Gateway protocol for the AllPay all-in-one cashier.

    Network operations are async; form building and checksum helpers are not.
    """

    provider: str

    def aio_check_out(self, opts: Union[AioCheckOut, Mapping[str, Any]]) -> CheckoutForm: ...

    async def query_trade_info(self, opts: Union[QueryTradeInfo, Mapping[str, Any]]) -> dict[str, Any]: ...

    async def query_credit_card_period_info(
        self, opts: Union[QueryCreditCardPeriodInfo, Mapping[str, Any]]
    ) -> dict[str, Any]: ...

    async def do_action(self, opts: Union[DoAction, Mapping[str, Any]]) -> dict[str, Any]: ...

    async def aio_chargeback(self, opts: Union[AioChargeback, Mapping[str, Any]]) -> ChargebackResult: ...

    async def capture(self, opts: Union[Capture, Mapping[str, Any]]) -> dict[str, Any]: ...

    def gen_check_mac_value(self, data: Mapping[str, Any], algorithm: Any = DigestAlgorithm.MD5) -> str: ...

    def is_data_valid(self, data: Mapping[str, Any], algorithm: Optional[Any] = None) -> bool: ...

    def parse_notification(self, body: Union[bytes, str, Mapping[str, Any]]) -> NotificationEvent: ...
