"""
AllPay all-in-one cashier adapter.

Builds and signs checkout forms, calls the query / action endpoints over
httpx, and verifies the CheckMacValue on data received from the gateway.
"""
from __future__ import annotations

import threading
import time
from typing import Any, Mapping, Optional, Tuple, Union
from urllib.parse import parse_qsl

import httpx

from allpay_sdk.application.dtos.payments import (
    AioChargeback,
    AioCheckOut,
    Capture,
    ChargebackResult,
    CheckoutForm,
    DoAction,
    GatewayRequest,
    NotificationEvent,
    QueryCreditCardPeriodInfo,
    QueryTradeInfo,
)
from allpay_sdk.core.settings import AllpaySettings, get_settings
from allpay_sdk.domain.common.exceptions import FeatureNotSupportedException
from allpay_sdk.domain.payment.entity import Credentials, DigestAlgorithm
from allpay_sdk.domain.services.check_mac import CHECK_MAC_VALUE, CheckMacService
from allpay_sdk.infrastructure.external.payments.base import BasePaymentClient, ResponseFormat
from allpay_sdk.infrastructure.external.payments.exceptions import PaymentSignatureError
from allpay_sdk.infrastructure.external.payments.form import render_checkout_form


ENDPOINTS = {
    "aio_check_out": "/Cashier/AioCheckOut/V2",
    "query_trade_info": "/Cashier/QueryTradeInfo/V2",
    "query_credit_card_period_info": "/Cashier/QueryCreditCardPeriodInfo",
    "do_action": "/CreditDetail/DoAction",
    "aio_chargeback": "/Cashier/AioChargeback",
    "capture": "/Cashier/Capture",
}


def _timestamp_ms() -> int:
    return int(time.time() * 1000)


def _merge_settings(settings: AllpaySettings, overrides: Mapping[str, Any]) -> AllpaySettings:
    changes = {k: v for k, v in overrides.items() if v is not None}
    if not changes:
        return settings
    data = settings.model_dump()
    data.update(changes)
    return AllpaySettings.model_validate(data)


class AllpayClient(BasePaymentClient):
    provider = "allpay"

    def __init__(
        self,
        settings: Optional[AllpaySettings] = None,
        *,
        merchant_id: Optional[str] = None,
        hash_key: Optional[str] = None,
        hash_iv: Optional[str] = None,
        mode: Optional[str] = None,
        debug: Optional[bool] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        settings = _merge_settings(
            settings or get_settings(),
            {"merchant_id": merchant_id, "hash_key": hash_key, "hash_iv": hash_iv, "mode": mode, "debug": debug},
        )
        super().__init__(
            timeouts=settings.timeouts.model_dump(),
            retry={"max": settings.retry.max, "base": settings.retry.base_backoff},
            transport=transport,
            debug=settings.debug,
        )
        self._lock = threading.Lock()
        self._settings = settings
        self._engine = CheckMacService(Credentials.from_settings(settings), debug=settings.debug)
        self._log("allpay_client_configured", mode=settings.mode, base_url=settings.base_url)

    # Configuration
    def reconfigure(self, **overrides: Any) -> None:
        """Replace credentials / mode / connection target in one step.

        The new checksum engine is built before the swap, so concurrent
        callers see either the old configuration or the new one.
        """
        settings = _merge_settings(self._settings, overrides)
        engine = CheckMacService(Credentials.from_settings(settings), debug=settings.debug)
        with self._lock:
            self._settings = settings
            self._engine = engine
            self.debug = settings.debug
        self._log("allpay_client_configured", mode=settings.mode, base_url=settings.base_url)

    def set_host(self, host: Optional[str] = None, port: Optional[int] = None, use_ssl: Optional[bool] = None) -> None:
        self.reconfigure(host=host, port=port, use_ssl=use_ssl)

    def get_config(self) -> dict[str, Any]:
        settings, _ = self._snapshot()
        config = settings.model_dump(mode="json")
        config["host"] = settings.resolved_host
        config["base_url"] = settings.base_url
        return config

    @property
    def settings(self) -> AllpaySettings:
        return self._settings

    def _snapshot(self) -> Tuple[AllpaySettings, CheckMacService]:
        with self._lock:
            return self._settings, self._engine

    # Checksum helpers
    def gen_check_mac_value(self, data: Mapping[str, Any], algorithm: Any = DigestAlgorithm.MD5) -> str:
        _, engine = self._snapshot()
        return engine.compute(data, algorithm)

    def is_data_valid(self, data: Mapping[str, Any], algorithm: Optional[Any] = None) -> bool:
        _, engine = self._snapshot()
        return engine.verify(data, algorithm)

    # Operations
    def aio_check_out(self, opts: Union[AioCheckOut, Mapping[str, Any]]) -> CheckoutForm:
        req = AioCheckOut.from_options(opts)
        settings, engine = self._snapshot()
        data = req.to_field_set(engine.credentials.merchant_id)
        data[CHECK_MAC_VALUE] = req.check_mac_value or engine.compute(
            data, DigestAlgorithm.from_encrypt_type(req.encrypt_type)
        )
        url = f"{settings.base_url}{ENDPOINTS['aio_check_out']}"
        html = render_checkout_form(url, data, target=req.target, payment_button=req.payment_button)
        self._log("allpay_checkout_built", merchant_trade_no=req.merchant_trade_no, choose_payment=req.choose_payment)
        return CheckoutForm(url=url, data=data, html=html)

    async def query_trade_info(self, opts: Union[QueryTradeInfo, Mapping[str, Any]]) -> dict[str, Any]:
        req = QueryTradeInfo.from_options(opts)
        return await self._send("query_trade_info", req, lambda mid: req.to_field_set(mid, _timestamp_ms()))

    async def query_credit_card_period_info(
        self, opts: Union[QueryCreditCardPeriodInfo, Mapping[str, Any]]
    ) -> dict[str, Any]:
        req = QueryCreditCardPeriodInfo.from_options(opts)
        return await self._send(
            "query_credit_card_period_info",
            req,
            lambda mid: req.to_field_set(mid, _timestamp_ms()),
            fmt=ResponseFormat.JSON,
        )

    async def do_action(self, opts: Union[DoAction, Mapping[str, Any]]) -> dict[str, Any]:
        if not self._snapshot()[0].is_production:
            raise FeatureNotSupportedException(operation="do_action")
        req = DoAction.from_options(opts)
        return await self._send("do_action", req, req.to_field_set)

    async def aio_chargeback(self, opts: Union[AioChargeback, Mapping[str, Any]]) -> ChargebackResult:
        req = AioChargeback.from_options(opts)
        result = await self._send("aio_chargeback", req, req.to_field_set, fmt=ResponseFormat.PIPE)
        return ChargebackResult(**result)

    async def capture(self, opts: Union[Capture, Mapping[str, Any]]) -> dict[str, Any]:
        req = Capture.from_options(opts)
        return await self._send("capture", req, req.to_field_set)

    async def _send(
        self,
        operation: str,
        req: GatewayRequest,
        shape,
        *,
        fmt: ResponseFormat = ResponseFormat.FORM,
    ) -> dict[str, Any]:
        settings, engine = self._snapshot()
        data = shape(engine.credentials.merchant_id)
        data[CHECK_MAC_VALUE] = req.check_mac_value or engine.compute(data)
        url = f"{settings.base_url}{ENDPOINTS[operation]}"
        self._log("allpay_request", operation=operation, merchant_trade_no=data.get("MerchantTradeNo"))
        response = await self._post_form(url, data)
        return self._parse_response(response, fmt)

    # Webhook
    def parse_notification(self, body: Union[bytes, str, Mapping[str, Any]]) -> NotificationEvent:
        """Verify and parse the payment result POSTed to ReturnURL."""
        if isinstance(body, Mapping):
            params = {str(k): str(v) for k, v in body.items()}
        else:
            try:
                text = body.decode("utf-8") if isinstance(body, bytes) else body
            except UnicodeDecodeError as exc:
                raise PaymentSignatureError("Malformed notification body", provider=self.provider) from exc
            params = dict(parse_qsl(text, keep_blank_values=True))
        if not params.get(CHECK_MAC_VALUE):
            raise PaymentSignatureError("Missing CheckMacValue", provider=self.provider)
        if not self.is_data_valid(params):
            raise PaymentSignatureError(
                "CheckMacValue Error",
                provider=self.provider,
                details={"merchant_trade_no": params.get("MerchantTradeNo")},
            )
        rtn_code = params.get("RtnCode", "")
        event = NotificationEvent(
            merchant_trade_no=params.get("MerchantTradeNo", ""),
            trade_no=params.get("TradeNo", ""),
            rtn_code=rtn_code,
            rtn_msg=params.get("RtnMsg", ""),
            status=self._map_status(rtn_code),
            trade_amt=params.get("TradeAmt"),
            payment_type=params.get("PaymentType"),
            simulate_paid=params.get("SimulatePaid") == "1",
            data=params,
        )
        self._log(
            "allpay_notification_verified",
            merchant_trade_no=event.merchant_trade_no,
            rtn_code=event.rtn_code,
            status=event.status,
        )
        return event
