"""
Payments API routes.

Receives the gateway's server-to-server payment result (ReturnURL) and
answers with the plain-text acknowledgement it expects. Keep this thin:
verification lives in the client, orchestration in PaymentService.
"""
from __future__ import annotations

from functools import lru_cache

from fastapi import APIRouter, Depends, Request
from fastapi.responses import PlainTextResponse

from allpay_sdk.application.ports.payment_gateway import PaymentGateway
from allpay_sdk.application.services.payment_service import PaymentService
from allpay_sdk.core.logging_config import get_logger
from allpay_sdk.infrastructure.external.payments import get_payment_gateway


router = APIRouter(prefix="/payments", tags=["Payments"])
logger = get_logger(__name__)


@lru_cache
def get_allpay_gateway() -> PaymentGateway:
    """Gateway built from environment settings; override in tests or host apps."""
    return get_payment_gateway("allpay")


@router.post("/allpay/notify", response_class=PlainTextResponse, summary="AllPay payment result")
async def allpay_notify(request: Request, gateway: PaymentGateway = Depends(get_allpay_gateway)):
    ct = (request.headers.get("content-type") or "").lower()
    if "application/x-www-form-urlencoded" not in ct:
        logger.warning("allpay_notify_unsupported_content_type", content_type=ct)
    raw_body = await request.body()
    service = PaymentService(gateway=gateway)
    return PlainTextResponse(service.acknowledge(raw_body))
