import pytest

from allpay_sdk.application.dtos.payments import ChargebackResult, CheckoutForm, NotificationEvent
from allpay_sdk.application.ports.payment_gateway import PaymentGateway
from allpay_sdk.application.services.payment_service import NOTIFY_ACK, NOTIFY_REJECT, PaymentService
from allpay_sdk.domain.common.exceptions import DomainValidationException
from allpay_sdk.infrastructure.external.payments.allpay_client import AllpayClient
from allpay_sdk.infrastructure.external.payments.exceptions import PaymentSignatureError


class StubGateway:
    provider = "stub"

    def __init__(self, notification_error=None):
        self.notification_error = notification_error
        self.closed = False

    def aio_check_out(self, opts):
        return CheckoutForm(url="https://example.test", data={"MerchantTradeNo": "T1"}, html="<form></form>")

    async def query_trade_info(self, opts):
        return {"MerchantTradeNo": "T1", "TradeStatus": "1"}

    async def query_credit_card_period_info(self, opts):
        return {}

    async def do_action(self, opts):
        return {"RtnCode": "1"}

    async def aio_chargeback(self, opts):
        return ChargebackResult(status="1", message="OK")

    async def capture(self, opts):
        return {"RtnCode": "1"}

    def gen_check_mac_value(self, data, algorithm="md5"):
        return "X"

    def is_data_valid(self, data, algorithm=None):
        return True

    def parse_notification(self, body):
        if self.notification_error:
            raise self.notification_error
        return NotificationEvent(
            merchant_trade_no="T1", trade_no="N1", rtn_code="1", status="succeeded", data={}
        )

    async def aclose(self):
        self.closed = True


def test_gateways_satisfy_protocol(settings):
    assert isinstance(StubGateway(), PaymentGateway)
    assert isinstance(AllpayClient(settings), PaymentGateway)


@pytest.mark.asyncio
async def test_service_delegates():
    gw = StubGateway()
    svc = PaymentService(gateway=gw)
    assert svc.checkout({}).data["MerchantTradeNo"] == "T1"
    assert (await svc.query({}))["TradeStatus"] == "1"
    assert (await svc.chargeback({})).is_success
    assert (await svc.capture({}))["RtnCode"] == "1"
    assert (await svc.do_action({}))["RtnCode"] == "1"
    await svc.aclose()
    assert gw.closed


def test_acknowledge():
    assert PaymentService(StubGateway()).acknowledge(b"") == NOTIFY_ACK
    rejected = StubGateway(PaymentSignatureError("CheckMacValue Error", provider="stub"))
    assert PaymentService(rejected).acknowledge(b"") == NOTIFY_REJECT


def test_acknowledge_propagates_other_errors():
    svc = PaymentService(StubGateway(DomainValidationException("boom")))
    with pytest.raises(DomainValidationException):
        svc.acknowledge(b"")
