from allpay_sdk.infrastructure.external.payments.base import BasePaymentClient
from allpay_sdk.shared.codes.payment_codes import map_rtn_code, map_trade_status


class _MapClient(BasePaymentClient):
    provider = "allpay"


def test_rtn_code_mapping():
    c = _MapClient()
    assert c._map_status("1") == "succeeded"
    assert c._map_status(1) == "succeeded"
    assert c._map_status("2") == "pending"
    assert c._map_status("10100073") == "pending"
    assert c._map_status("10200095") == "failed"
    assert map_rtn_code(None) == "failed"


def test_trade_status_mapping():
    assert map_trade_status("0") == "pending"
    assert map_trade_status("1") == "succeeded"
    assert map_trade_status("10200095") == "failed"
    assert map_trade_status("unknown") == "failed"
