"""
Payment specific codes and gateway status mapping.
"""
from __future__ import annotations

from enum import IntEnum


class PaymentCode(IntEnum):
    # Generic success
    SUCCESS = 0

    # Provider/Network errors (6xxxx)
    PROVIDER_ERROR = 60000
    PROVIDER_RECOVERABLE = 60001
    SIGNATURE_ERROR = 60002
    TIMEOUT = 60003


# Gateway RtnCode -> internal status. Anything unlisted is a failure.
RTN_CODE_TO_INTERNAL = {
    "1": "succeeded",
    # ATM / CVS / BARCODE payment info issued, buyer has not paid yet
    "2": "pending",
    "10100073": "pending",
}

# QueryTradeInfo TradeStatus -> internal status
TRADE_STATUS_TO_INTERNAL = {
    "0": "pending",
    "1": "succeeded",
    "10200095": "failed",
}


def map_rtn_code(rtn_code: object) -> str:
    return RTN_CODE_TO_INTERNAL.get(str(rtn_code), "failed")


def map_trade_status(trade_status: object) -> str:
    return TRADE_STATUS_TO_INTERNAL.get(str(trade_status), "failed")
