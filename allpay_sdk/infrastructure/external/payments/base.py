"""
Base payment client implementing shared concerns: http, retry, logging, parsing.

Concrete providers subclass it and add the provider-specific request shaping.
"""
from __future__ import annotations

import json
from contextlib import asynccontextmanager
from enum import Enum
from typing import Any, Callable, Mapping, Optional

import httpx
from tenacity import AsyncRetrying, retry_if_exception_type, stop_after_attempt, wait_exponential

from allpay_sdk.core.logging_config import get_logger
from allpay_sdk.domain.services.check_mac import format_value
from allpay_sdk.infrastructure.external.payments.exceptions import (
    PaymentProviderError,
    PaymentRecoverableError,
)
from allpay_sdk.shared.codes.payment_codes import map_rtn_code


logger = get_logger(__name__)


class ResponseFormat(str, Enum):
    """How an endpoint encodes its response body."""
    FORM = "form"  # key=value&key=value
    PIPE = "pipe"  # status|message
    JSON = "json"


def parse_form_response(text: str) -> dict[str, str]:
    """Split ``a=1&b=2`` into a dict; values are kept verbatim (not decoded)."""
    result: dict[str, str] = {}
    for pair in text.split("&"):
        key, _, value = pair.partition("=")
        result[key] = value
    return result


def parse_pipe_response(text: str) -> dict[str, str]:
    status, _, message = text.partition("|")
    return {"status": status, "message": message}


class BasePaymentClient:
    provider: str = "base"

    def __init__(
        self,
        *,
        timeouts: Optional[dict[str, float]] = None,
        retry: Optional[dict[str, Any]] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
        debug: bool = False,
    ) -> None:
        self._timeouts_cfg = timeouts or {"connect": 3.0, "read": 10.0, "write": 10.0, "total": 15.0}
        self._retry_cfg = retry or {"max": 2, "base": 0.2}
        self._transport = transport
        self._client: Optional[httpx.AsyncClient] = None
        self.debug = debug

    @property
    def timeouts(self) -> httpx.Timeout:
        return httpx.Timeout(
            connect=self._timeouts_cfg["connect"],
            read=self._timeouts_cfg["read"],
            write=self._timeouts_cfg["write"],
            timeout=self._timeouts_cfg["total"],
        )

    @asynccontextmanager
    async def client(self):
        if self._client is None:
            self._client = httpx.AsyncClient(timeout=self.timeouts, transport=self._transport)
        try:
            yield self._client
        finally:
            # Keep open for reuse; explicit aclose() will close.
            ...

    async def aclose(self) -> None:
        """Close underlying HTTP client if created."""
        if self._client is not None:
            try:
                await self._client.aclose()
            finally:
                self._client = None

    async def __aenter__(self):
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.aclose()

    async def _retry(self, fn: Callable[[], Any]):
        async for attempt in AsyncRetrying(
            stop=stop_after_attempt(int(self._retry_cfg["max"]) + 1),
            wait=wait_exponential(multiplier=self._retry_cfg["base"], min=0.1, max=2.0),
            retry=retry_if_exception_type((httpx.TimeoutException, httpx.TransportError)),
            reraise=True,
        ):
            with attempt:
                return await fn()

    async def _post_form(self, url: str, data: Mapping[str, Any]) -> httpx.Response:
        """POST ``data`` as application/x-www-form-urlencoded with retries."""
        body = {k: format_value(v) for k, v in data.items()}
        if self.debug:
            logger.debug("allpay_request_sent", provider=self.provider, url=url, payload=body)

        async def send() -> httpx.Response:
            async with self.client() as c:
                return await c.post(url, data=body)

        try:
            response = await self._retry(send)
        except (httpx.TimeoutException, httpx.TransportError) as exc:
            logger.warning("allpay_request_failed", provider=self.provider, url=url, error=str(exc))
            raise PaymentRecoverableError(
                str(exc) or exc.__class__.__name__,
                provider=self.provider,
                details={"url": url},
            ) from exc
        if self.debug:
            logger.debug(
                "allpay_response_received",
                provider=self.provider,
                url=url,
                status_code=response.status_code,
                body=response.text,
            )
        return response

    def _parse_response(self, response: httpx.Response, fmt: ResponseFormat) -> dict[str, Any]:
        if fmt is ResponseFormat.JSON:
            try:
                return json.loads(response.text)
            except ValueError as exc:
                raise PaymentProviderError(
                    "Could not convert API response to JSON",
                    provider=self.provider,
                    status_code=response.status_code,
                    details={"body": response.text},
                ) from exc
        if response.status_code != 200:
            raise PaymentProviderError(
                f"Unexpected HTTP status {response.status_code}",
                provider=self.provider,
                status_code=response.status_code,
            )
        if fmt is ResponseFormat.PIPE:
            return parse_pipe_response(response.text)
        return parse_form_response(response.text)

    # Helpers
    def _map_status(self, rtn_code: Any) -> str:
        return map_rtn_code(rtn_code)

    def _log(self, event: str, **kwargs) -> None:
        logger.info(
            event,
            provider=self.provider,
            **kwargs,
        )
