"""
Application service orchestrating payment use-cases.

This class depends only on the application PaymentGateway port and DTOs.
The gateway implementation is provided by infrastructure and injected from
the composition root (API route or host application).
"""
from __future__ import annotations

from typing import Any, Mapping, Union

from allpay_sdk.application.dtos.payments import (
    AioChargeback,
    AioCheckOut,
    Capture,
    ChargebackResult,
    CheckoutForm,
    DoAction,
    NotificationEvent,
    QueryTradeInfo,
)
from allpay_sdk.application.ports.payment_gateway import PaymentGateway
from allpay_sdk.core.logging_config import get_logger
from allpay_sdk.domain.common.exceptions import BusinessException
from allpay_sdk.shared.codes.payment_codes import PaymentCode, map_trade_status


logger = get_logger(__name__)

NOTIFY_ACK = "1|OK"
NOTIFY_REJECT = "0|CheckMacValue Error"


class PaymentService:
    def __init__(self, gateway: PaymentGateway) -> None:
        self.gateway = gateway

    def checkout(self, req: Union[AioCheckOut, Mapping[str, Any]]) -> CheckoutForm:
        form = self.gateway.aio_check_out(req)
        logger.info("payment_checkout_created", provider=self.gateway.provider, merchant_trade_no=form.data.get("MerchantTradeNo"))
        return form

    async def query(self, req: Union[QueryTradeInfo, Mapping[str, Any]]) -> dict[str, Any]:
        result = await self.gateway.query_trade_info(req)
        logger.info(
            "payment_query_response",
            provider=self.gateway.provider,
            merchant_trade_no=result.get("MerchantTradeNo"),
            trade_status=result.get("TradeStatus"),
            status=map_trade_status(result.get("TradeStatus")),
        )
        return result

    async def do_action(self, req: Union[DoAction, Mapping[str, Any]]) -> dict[str, Any]:
        logger.info("payment_action_request", provider=self.gateway.provider)
        return await self.gateway.do_action(req)

    async def chargeback(self, req: Union[AioChargeback, Mapping[str, Any]]) -> ChargebackResult:
        result = await self.gateway.aio_chargeback(req)
        logger.info("payment_chargeback_response", provider=self.gateway.provider, status=result.status)
        return result

    async def capture(self, req: Union[Capture, Mapping[str, Any]]) -> dict[str, Any]:
        logger.info("payment_capture_request", provider=self.gateway.provider)
        return await self.gateway.capture(req)

    def handle_notification(self, body: Union[bytes, str, Mapping[str, Any]]) -> NotificationEvent:
        event = self.gateway.parse_notification(body)
        logger.info(
            "payment_notification_parsed",
            provider=self.gateway.provider,
            merchant_trade_no=event.merchant_trade_no,
            status=event.status,
        )
        return event

    def acknowledge(self, body: Union[bytes, str, Mapping[str, Any]]) -> str:
        """Reply text the gateway expects from ReturnURL: ``1|OK`` or an error."""
        try:
            self.handle_notification(body)
        except BusinessException as exc:
            if exc.code != PaymentCode.SIGNATURE_ERROR:
                raise
            logger.warning("payment_notification_rejected", provider=self.gateway.provider, reason=exc.message)
            return NOTIFY_REJECT
        return NOTIFY_ACK

    async def aclose(self) -> None:
        # Best-effort close underlying resources
        close = getattr(self.gateway, "aclose", None)
        if callable(close):
            await close()
