"""Compute or verify a CheckMacValue from the command line.

    allpay-checkmac MerchantID=2000214 TotalAmount=100 ...
    echo 'MerchantID=2000214&...&CheckMacValue=...' | allpay-checkmac --verify

HashKey / HashIV come from flags or ALLPAY_HASH_KEY / ALLPAY_HASH_IV.
Exit status is 1 when verification fails or arguments are invalid.
"""
from __future__ import annotations

import argparse
import sys
from typing import Optional, Sequence
from urllib.parse import parse_qsl

from allpay_sdk.core.logging_config import configure_logging, get_logger
from allpay_sdk.core.settings import get_settings
from allpay_sdk.domain.common.exceptions import BusinessException
from allpay_sdk.domain.services.check_mac import compute_check_mac_value, verify_check_mac_value


logger = get_logger(__name__)


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="allpay-checkmac", description="AllPay CheckMacValue tool")
    parser.add_argument("fields", nargs="*", help="name=value pairs; read a form body from stdin when omitted")
    parser.add_argument("--hash-key", help="HashKey (default: ALLPAY_HASH_KEY)")
    parser.add_argument("--hash-iv", help="HashIV (default: ALLPAY_HASH_IV)")
    parser.add_argument("--algorithm", help="md5 or sha256 (verify auto-detects when omitted)")
    parser.add_argument("--verify", action="store_true", help="check the CheckMacValue contained in the fields")
    parser.add_argument("--debug", action="store_true")
    return parser


def _read_fields(pairs: Sequence[str]) -> dict[str, str]:
    if not pairs:
        return dict(parse_qsl(sys.stdin.read().strip(), keep_blank_values=True))
    fields: dict[str, str] = {}
    for pair in pairs:
        name, sep, value = pair.partition("=")
        if not sep:
            raise ValueError(f"expected name=value, got {pair!r}")
        fields[name] = value
    return fields


def main(argv: Optional[Sequence[str]] = None) -> int:
    args = _build_parser().parse_args(argv)
    configure_logging(debug=args.debug)
    settings = get_settings()
    hash_key = args.hash_key or settings.hash_key.get_secret_value()
    hash_iv = args.hash_iv or settings.hash_iv.get_secret_value()

    try:
        fields = _read_fields(args.fields)
        if args.verify:
            valid = verify_check_mac_value(fields, hash_key, hash_iv, args.algorithm)
            print("valid" if valid else "invalid")
            return 0 if valid else 1
        print(compute_check_mac_value(fields, hash_key, hash_iv, args.algorithm or "md5"))
    except (BusinessException, ValueError) as exc:
        logger.error("checkmac_failed", error=str(exc))
        print(f"error: {exc}", file=sys.stderr)
        return 1
    return 0


if __name__ == "__main__":  # pragma: no cover
    sys.exit(main())
