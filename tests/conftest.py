"""Pytest bootstrap configuration.

Ensure credentials are present in the environment before modules that read
settings are imported, and expose the gateway's public test merchant.
"""
import os

import pytest

# Gateway-published stage merchant
TEST_MERCHANT_ID = "2000214"
TEST_HASH_KEY = "5294y06JbISpM5x9"
TEST_HASH_IV = "v77hoKGq4kWxNNIS"

os.environ.setdefault("ALLPAY_MERCHANT_ID", TEST_MERCHANT_ID)
os.environ.setdefault("ALLPAY_HASH_KEY", TEST_HASH_KEY)
os.environ.setdefault("ALLPAY_HASH_IV", TEST_HASH_IV)


@pytest.fixture
def settings():
    from allpay_sdk.core.settings import AllpaySettings

    return AllpaySettings(
        merchant_id=TEST_MERCHANT_ID,
        hash_key=TEST_HASH_KEY,
        hash_iv=TEST_HASH_IV,
        mode="test",
    )


@pytest.fixture
def credentials():
    from allpay_sdk.domain.payment.entity import Credentials

    return Credentials(merchant_id=TEST_MERCHANT_ID, hash_key=TEST_HASH_KEY, hash_iv=TEST_HASH_IV)


@pytest.fixture
def order_fields():
    return {
        "MerchantID": "2000214",
        "MerchantTradeNo": "20160501000001",
        "MerchantTradeDate": "2016/05/01 00:00:00",
        "PaymentType": "aio",
        "TotalAmount": 120,
        "TradeDesc": "allpay 商城購物",
        "ItemName": "商品一 80 元 x1#商品二 10 元 x2",
        "ReturnURL": "http://localhost/receive",
        "ChoosePayment": "WebATM",
        "DeviceSource": "P",
        "NeedExtraPaidInfo": "N",
    }
