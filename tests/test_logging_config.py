import io
import json
import logging

import structlog

from allpay_sdk.core.logging_config import configure_logging, get_logger


def test_configure_logging_renders_json_to_stream():
    stream = io.StringIO()
    root = logging.getLogger()
    handlers, level = root.handlers[:], root.level
    try:
        configure_logging(stream=stream)
        get_logger("allpay.test").info("allpay_notification_verified", matched=True, rtn_msg="交易成功")
        get_logger("allpay.test").debug("check_mac_generated")
    finally:
        structlog.reset_defaults()
        root.handlers[:] = handlers
        root.setLevel(level)

    lines = stream.getvalue().strip().splitlines()
    assert len(lines) == 1
    record = json.loads(lines[0])
    assert record["event"] == "allpay_notification_verified"
    assert record["level"] == "info"
    assert record["matched"] is True
    assert "交易成功" in lines[0]
