"""
AllPay SDK settings using pydantic-settings v2 with nested env keys.

Environment variables use the ``ALLPAY_`` prefix and ``__`` for nested
models, e.g. ``ALLPAY_MERCHANT_ID`` or ``ALLPAY_TIMEOUTS__READ``.
"""
from __future__ import annotations

from functools import lru_cache
from typing import Literal, Optional

from pydantic import BaseModel, Field, SecretStr, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from allpay_sdk.domain.payment.entity import MERCHANT_ID_MAX_LENGTH


HOSTS = {
    "production": "payment.allpay.com.tw",
    "test": "payment-stage.allpay.com.tw",
}


class PaymentTimeouts(BaseModel):
    connect: float = 3.0
    read: float = 10.0
    write: float = 10.0
    total: float = 15.0


class PaymentRetry(BaseModel):
    max: int = 2
    base_backoff: float = 0.2


class AllpaySettings(BaseSettings):
    merchant_id: str = ""
    hash_key: SecretStr = SecretStr("")
    hash_iv: SecretStr = SecretStr("")
    mode: Literal["test", "production"] = "test"
    debug: bool = False

    # Connection target; host defaults to the gateway host for `mode`
    host: Optional[str] = None
    port: int = 443
    use_ssl: bool = True

    timeouts: PaymentTimeouts = Field(default_factory=PaymentTimeouts)
    retry: PaymentRetry = Field(default_factory=PaymentRetry)

    model_config = SettingsConfigDict(
        env_prefix="ALLPAY_",
        env_file=".env",
        env_nested_delimiter="__",
        extra="ignore",
    )

    @field_validator("merchant_id")
    @classmethod
    def _validate_merchant_id(cls, v: str) -> str:
        if len(v) > MERCHANT_ID_MAX_LENGTH:
            raise ValueError(f"The maximum length for merchantID is {MERCHANT_ID_MAX_LENGTH}.")
        return v

    @field_validator("mode", mode="before")
    @classmethod
    def _normalize_mode(cls, v):
        # Anything other than "production" falls back to the stage environment
        return "production" if str(v or "").strip().lower() == "production" else "test"

    @property
    def is_production(self) -> bool:
        return self.mode == "production"

    @property
    def resolved_host(self) -> str:
        return self.host or HOSTS[self.mode]

    @property
    def base_url(self) -> str:
        scheme = "https" if self.use_ssl else "http"
        default_port = 443 if self.use_ssl else 80
        if self.port and self.port != default_port:
            return f"{scheme}://{self.resolved_host}:{self.port}"
        return f"{scheme}://{self.resolved_host}"


@lru_cache
def get_settings() -> AllpaySettings:
    """Settings loaded once from the environment / .env file."""
    return AllpaySettings()
