import pytest

from allpay_sdk.domain.common.exceptions import InvalidArgumentException, MissingCredentialsException
from allpay_sdk.domain.payment.entity import DigestAlgorithm
from allpay_sdk.domain.services.check_mac import (
    CheckMacService,
    canonicalize,
    compute_check_mac_value,
    format_value,
    url_encode,
    verify_check_mac_value,
)


KEY = "5294y06JbISpM5x9"
IV = "v77hoKGq4kWxNNIS"

ORDER_MD5 = "F27F5BC6A5A0E95AE3F5477774F938E2"
ORDER_SHA256 = "33AB3EAFD997E848E5375273EFB91981C80DFD778E98537B81A687BEE71AF892"


def test_order_md5(order_fields):
    assert compute_check_mac_value(order_fields, KEY, IV) == ORDER_MD5


def test_order_sha256(order_fields):
    assert compute_check_mac_value(order_fields, KEY, IV, DigestAlgorithm.SHA256) == ORDER_SHA256
    assert compute_check_mac_value(order_fields, KEY, IV, "SHA-256") == ORDER_SHA256


def test_return_url_with_port(order_fields):
    order_fields["ReturnURL"] = "http://localhost:3000"
    assert compute_check_mac_value(order_fields, KEY, IV) == "BB5B8D5F26BFAEAB6BD2D8501D3F6144"
    assert compute_check_mac_value(order_fields, KEY, IV, "sha256") == (
        "3181C4F0F42EF67459275E83C7F2014F36D7FA3E22DAD26965BCA0A195216F26"
    )


def test_published_reference_order():
    fields = {
        "MerchantID": "2000132",
        "MerchantTradeNo": "ecpay2015",
        "MerchantTradeDate": "2015/05/21 13:25:59",
        "PaymentType": "aio",
        "TotalAmount": "1000",
        "TradeDesc": "test",
        "ItemName": "寵物名牌",
        "ReturnURL": "http://192.168.0.1",
        "ChoosePayment": "Credit",
    }
    assert compute_check_mac_value(fields, KEY, IV) == "C9DCDD1C7477467E75C87D19ADADF99B"


def test_output_shape(order_fields):
    md5 = compute_check_mac_value(order_fields, KEY, IV)
    sha = compute_check_mac_value(order_fields, KEY, IV, "sha256")
    assert len(md5) == 32 and md5 == md5.upper()
    assert len(sha) == 64 and sha == sha.upper()
    assert all(c in "0123456789ABCDEF" for c in md5 + sha)


def test_insertion_order_does_not_matter(order_fields):
    reversed_fields = dict(reversed(list(order_fields.items())))
    assert compute_check_mac_value(reversed_fields, KEY, IV) == ORDER_MD5


def test_existing_check_mac_value_is_ignored(order_fields):
    order_fields["CheckMacValue"] = "WHATEVER"
    assert compute_check_mac_value(order_fields, KEY, IV) == ORDER_MD5


def test_sort_is_case_insensitive():
    assert canonicalize({"B": "1", "a": "2"}, KEY, IV) == f"HashKey={KEY}&a=2&B=1&HashIV={IV}"
    assert compute_check_mac_value({"B": "1", "a": "2"}, KEY, IV) == "35B02373F9FC999B2BF7A392E00BC5B3"


def test_empty_field_set_keeps_double_ampersand():
    canonical = canonicalize({}, KEY, IV)
    assert canonical == f"HashKey={KEY}&&HashIV={IV}"
    assert url_encode(canonical).lower() == "hashkey%3d5294y06jbispm5x9%26%26hashiv%3dv77hokgq4kwxnnis"
    assert compute_check_mac_value({}, KEY, IV) == "6421D45A6BCF3206F6E02E27219F84C4"


def test_special_characters():
    fields = {"Name": "it's ~ok (yes)!*"}
    encoded = url_encode(canonicalize(fields, KEY, IV)).lower()
    assert "name%3dit%27s+%7eok+(yes)!*" in encoded
    assert compute_check_mac_value(fields, KEY, IV) == "0B212524393435AF5FCEAE7A191EF22C"


def test_url_encode_rules():
    assert url_encode("a b") == "a+b"
    assert url_encode("~") == "%7E"
    assert url_encode("'") == "%27"
    assert url_encode("-_.!*()") == "-_.!*()"
    assert url_encode("&=/:") == "%26%3D%2F%3A"
    assert url_encode("商") == "%E5%95%86"


def test_format_value():
    assert format_value(None) == ""
    assert format_value(True) == "1"
    assert format_value(120) == "120"
    assert format_value(120.0) == "120"
    assert format_value(1.5) == "1.5"


def test_per_call_secrets_override_configured(order_fields):
    order_fields["hashKey"] = KEY
    order_fields["hashIV"] = IV
    assert compute_check_mac_value(order_fields, "other-key", "other-iv") == ORDER_MD5


def test_missing_secrets(order_fields):
    with pytest.raises(MissingCredentialsException) as exc:
        compute_check_mac_value(order_fields, "", IV)
    assert exc.value.message == "hashKey is required."
    with pytest.raises(MissingCredentialsException):
        compute_check_mac_value(order_fields, KEY, None)


def test_unknown_algorithm(order_fields):
    with pytest.raises(InvalidArgumentException):
        compute_check_mac_value(order_fields, KEY, IV, "sha1")


def test_verify_round_trip_and_auto_detect(order_fields):
    signed = dict(order_fields, CheckMacValue=ORDER_MD5)
    assert verify_check_mac_value(signed, KEY, IV)
    signed["CheckMacValue"] = ORDER_SHA256
    assert verify_check_mac_value(signed, KEY, IV)
    # explicit algorithm that does not match the digest
    assert not verify_check_mac_value(signed, KEY, IV, DigestAlgorithm.MD5)


def test_verify_rejects_tampering(order_fields):
    signed = dict(order_fields, CheckMacValue=ORDER_MD5)
    signed["TotalAmount"] = 121
    assert not verify_check_mac_value(signed, KEY, IV)


def test_verify_is_case_sensitive_on_digest(order_fields):
    signed = dict(order_fields, CheckMacValue=ORDER_MD5.lower())
    assert not verify_check_mac_value(signed, KEY, IV)


@pytest.mark.parametrize("value", [None, "", "ABC", 12345])
def test_verify_missing_or_malformed(order_fields, value):
    signed = dict(order_fields)
    if value is not None:
        signed["CheckMacValue"] = value
    assert not verify_check_mac_value(signed, KEY, IV)


def test_service_uses_bound_credentials(credentials, order_fields):
    engine = CheckMacService(credentials)
    assert engine.compute(order_fields) == ORDER_MD5
    assert engine.verify(dict(order_fields, CheckMacValue=ORDER_MD5))


def test_service_debug_log_masks_secrets(credentials, order_fields):
    from structlog.testing import capture_logs

    engine = CheckMacService(credentials, debug=True)
    with capture_logs() as logs:
        engine.compute(order_fields)
    event = next(e for e in logs if e["event"] == "check_mac_generated")
    assert KEY not in event["canonical"]
    assert event["canonical"].startswith("HashKey=***&")
    assert event["check_mac_value"] == ORDER_MD5


def test_verify_ignores_secrets_carried_in_data(order_fields):
    forged = dict(order_fields, hashKey="attacker", hashIV="attacker")
    forged["CheckMacValue"] = compute_check_mac_value(forged, "attacker", "attacker")
    assert not verify_check_mac_value(forged, KEY, IV)
    # the entries are still stripped from the canonical string
    honest = dict(order_fields, hashKey="attacker", hashIV="attacker", CheckMacValue=ORDER_MD5)
    assert verify_check_mac_value(honest, KEY, IV)
