"""
Payment DTOs (Pydantic v2) used at application boundaries.

Request models accept either snake_case names or the gateway's parameter
names (``MerchantTradeNo``) and know how to shape themselves into the flat
field set that gets signed and sent. Validation failures surface as
DomainValidationException carrying the gateway parameter name.
"""
from __future__ import annotations

import re
from datetime import datetime
from decimal import Decimal
from typing import Any, Mapping, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, ValidationError, model_validator

from allpay_sdk.domain.common.exceptions import DomainValidationException, WRONG_PARAMETER
from allpay_sdk.domain.services.check_mac import format_value


TRADE_DATE_FORMAT = "%Y/%m/%d %H:%M:%S"

CARRUER_NUM_PATTERNS = {
    # mobile barcode carrier
    "2": re.compile(r"^[a-zA-Z]{2}\d{14}$"),
    # citizen digital certificate
    "3": re.compile(r"^/[0-9a-zA-Z+-.]{7}$"),
}
LOVE_CODE_PATTERN = re.compile(r"^([xX][0-9]{2,6}|[0-9]{3,7})$")

_GATEWAY_CONFIG = ConfigDict(
    populate_by_name=True,
    extra="ignore",
    coerce_numbers_to_str=True,
)


def _translate_error(model: type[BaseModel], exc: ValidationError) -> DomainValidationException:
    error = exc.errors()[0]
    loc = error.get("loc") or ()
    aliases = {name: (f.alias or name) for name, f in model.model_fields.items()}
    name = str(aliases.get(loc[0], loc[0])) if loc else model.__name__
    # Items.0.price.int -> Items.price
    nested = next((part for part in loc[1:] if isinstance(part, str)), None)
    if nested:
        name = f"{name}.{nested}"
    kind = error.get("type")
    if kind == "missing":
        return DomainValidationException.required(name)
    if kind == "too_short":
        # empty list where at least one entry is needed
        return DomainValidationException.required(name)
    if kind == "string_too_long":
        return DomainValidationException.too_long(name, (error.get("ctx") or {}).get("max_length"))
    return DomainValidationException.invalid(name)


class GatewayRequest(BaseModel):
    model_config = _GATEWAY_CONFIG

    # A caller-supplied CheckMacValue is sent as-is instead of the computed one
    check_mac_value: Optional[str] = Field(default=None, alias="CheckMacValue")

    @classmethod
    def from_options(cls, opts: Any):
        if isinstance(opts, cls):
            return opts
        if not isinstance(opts, Mapping):
            raise DomainValidationException(WRONG_PARAMETER)
        try:
            return cls.model_validate(dict(opts))
        except ValidationError as exc:
            raise _translate_error(cls, exc) from exc

    def _copy_present(self, data: dict[str, Any], *names: str) -> None:
        """Copy the given gateway parameters into ``data`` when they were supplied."""
        by_alias = {(f.alias or n): n for n, f in type(self).model_fields.items()}
        for name in names:
            value = getattr(self, by_alias[name])
            if value is not None:
                data[name] = value


class CheckoutItem(BaseModel):
    model_config = _GATEWAY_CONFIG

    name: str
    price: Union[int, float, Decimal]
    quantity: Union[int, str]

    def label(self) -> str:
        return f"{self.name} {format_value(self.price)} 元 x{self.quantity}"


class InvoiceItem(BaseModel):
    model_config = _GATEWAY_CONFIG

    name: str
    count: str
    word: str
    price: str
    tax_type: str = Field(alias="taxType")


class AioCheckOut(GatewayRequest):
    """Checkout order (AioCheckOut/V2)."""

    merchant_trade_no: str = Field(alias="MerchantTradeNo", max_length=20)
    merchant_trade_date: Optional[str] = Field(default=None, alias="MerchantTradeDate", max_length=20)
    total_amount: int = Field(alias="TotalAmount", gt=0)
    trade_desc: str = Field(alias="TradeDesc", max_length=200)
    items: list[CheckoutItem] = Field(alias="Items", min_length=1)
    return_url: str = Field(alias="ReturnURL", max_length=200)
    choose_payment: str = Field(alias="ChoosePayment", max_length=20)

    client_back_url: Optional[str] = Field(default=None, alias="ClientBackURL", max_length=200)
    item_url: Optional[str] = Field(default=None, alias="ItemURL", max_length=200)
    remark: Optional[str] = Field(default=None, alias="Remark", max_length=100)
    choose_sub_payment: Optional[str] = Field(default=None, alias="ChooseSubPayment", max_length=20)
    order_result_url: Optional[str] = Field(default=None, alias="OrderResultURL", max_length=200)
    need_extra_paid_info: Optional[str] = Field(default=None, alias="NeedExtraPaidInfo", max_length=1)
    device_source: Optional[str] = Field(default=None, alias="DeviceSource", max_length=10)
    ignore_payment: Optional[str] = Field(default=None, alias="IgnorePayment", max_length=100)
    platform_id: Optional[str] = Field(default=None, alias="PlatformID", max_length=10)
    invoice_mark: Optional[str] = Field(default=None, alias="InvoiceMark", max_length=1)
    hold_trade_amt: Optional[int] = Field(default=None, alias="HoldTradeAMT", ge=0, le=1)
    encrypt_type: Optional[int] = Field(default=None, alias="EncryptType", ge=0, le=1)
    use_redeem: Optional[str] = Field(default=None, alias="UseRedeem", max_length=1)

    # ATM / CVS / BARCODE
    expire_date: Optional[int] = Field(default=None, alias="ExpireDate", ge=1, le=60)
    store_expire_date: Optional[int] = Field(default=None, alias="StoreExpireDate")
    payment_info_url: Optional[str] = Field(default=None, alias="PaymentInfoURL", max_length=200)
    client_redirect_url: Optional[str] = Field(default=None, alias="ClientRedirectURL", max_length=200)
    desc_1: Optional[str] = Field(default=None, alias="Desc_1", max_length=20)
    desc_2: Optional[str] = Field(default=None, alias="Desc_2", max_length=20)
    desc_3: Optional[str] = Field(default=None, alias="Desc_3", max_length=20)
    desc_4: Optional[str] = Field(default=None, alias="Desc_4", max_length=20)

    # Alipay
    alipay_item_name: Optional[str] = Field(default=None, alias="AlipayItemName", max_length=200)
    alipay_item_counts: Optional[str] = Field(default=None, alias="AlipayItemCounts", max_length=100)
    alipay_item_price: Optional[str] = Field(default=None, alias="AlipayItemPrice", max_length=20)
    email: Optional[str] = Field(default=None, alias="Email", max_length=200)
    phone_no: Optional[str] = Field(default=None, alias="PhoneNo", max_length=20)
    user_name: Optional[str] = Field(default=None, alias="UserName", max_length=20)

    # Tenpay
    expire_time: Optional[str] = Field(default=None, alias="ExpireTime", max_length=20)

    # Credit
    credit_installment: Optional[int] = Field(default=None, alias="CreditInstallment")
    installment_amount: Optional[int] = Field(default=None, alias="InstallmentAmount")
    redeem: Optional[str] = Field(default=None, alias="Redeem", max_length=1)
    union_pay: Optional[int] = Field(default=None, alias="UnionPay")
    language: Optional[str] = Field(default=None, alias="Language", max_length=3)
    period_amount: Optional[int] = Field(default=None, alias="PeriodAmount")
    period_type: Optional[str] = Field(default=None, alias="PeriodType", max_length=1)
    frequency: Optional[int] = Field(default=None, alias="Frequency")
    exec_times: Optional[int] = Field(default=None, alias="ExecTimes")
    period_return_url: Optional[str] = Field(default=None, alias="PeriodReturnURL", max_length=200)

    # E-invoice
    relate_number: Optional[str] = Field(default=None, alias="RelateNumber", max_length=30)
    customer_id: Optional[str] = Field(default=None, alias="CustomerID", max_length=20)
    customer_identifier: Optional[str] = Field(default=None, alias="CustomerIdentifier")
    customer_name: Optional[str] = Field(default=None, alias="CustomerName", max_length=20)
    customer_addr: Optional[str] = Field(default=None, alias="CustomerAddr", max_length=200)
    customer_phone: Optional[str] = Field(default=None, alias="CustomerPhone", max_length=20)
    customer_email: Optional[str] = Field(default=None, alias="CustomerEmail", max_length=200)
    clearance_mark: Optional[str] = Field(default=None, alias="ClearanceMark", max_length=1)
    tax_type: Optional[str] = Field(default=None, alias="TaxType", max_length=1)
    carruer_type: Optional[str] = Field(default=None, alias="CarruerType", max_length=1)
    carruer_num: Optional[str] = Field(default=None, alias="CarruerNum", max_length=64)
    donation: Optional[str] = Field(default=None, alias="Donation", max_length=1)
    love_code: Optional[str] = Field(default=None, alias="LoveCode")
    print_flag: Optional[str] = Field(default=None, alias="Print", max_length=1)
    invoice_items: Optional[list[InvoiceItem]] = Field(default=None, alias="InvoiceItems")
    invoice_remark: Optional[str] = Field(default=None, alias="InvoiceRemark")
    delay_day: Optional[int] = Field(default=None, alias="DelayDay", ge=0, le=15)
    inv_type: Optional[str] = Field(default=None, alias="InvType", max_length=2)

    # Form rendering only, never signed or sent
    target: str = "_self"
    payment_button: Optional[str] = Field(default=None, alias="paymentButton")

    @model_validator(mode="after")
    def _validate_invoice(self):
        if self.invoice_mark != "Y":
            return self
        if self.relate_number is None:
            raise DomainValidationException.required("RelateNumber")
        if self.carruer_type == "1" and not self.customer_id:
            raise DomainValidationException.required("CustomerID")
        if self.customer_identifier is not None and len(self.customer_identifier) != 8:
            raise DomainValidationException.wrong_length("CustomerIdentifier", 8)
        if self.donation == "1" and self.print_flag == "1":
            raise DomainValidationException.invalid("Print")
        if self.customer_identifier and self.print_flag in (None, "0"):
            raise DomainValidationException.invalid("Print")
        if self.print_flag == "1":
            if not self.customer_name:
                raise DomainValidationException.required("CustomerName")
            if not self.customer_addr:
                raise DomainValidationException.required("CustomerAddr")
        if not self.customer_phone and not self.customer_email:
            raise DomainValidationException.required("CustomerPhone or CustomerEmail")
        if self.tax_type is None:
            raise DomainValidationException.required("TaxType")
        if self.tax_type == "2" and not self.clearance_mark:
            raise DomainValidationException.required("ClearanceMark")
        self._validate_carruer()
        if self.customer_identifier and self.donation == "1":
            raise DomainValidationException.invalid("Donation")
        if self.donation == "1":
            if not self.love_code:
                raise DomainValidationException.required("LoveCode")
            if not LOVE_CODE_PATTERN.match(self.love_code):
                raise DomainValidationException.invalid("LoveCode")
        if not self.invoice_items:
            raise DomainValidationException.required("InvoiceItems")
        if self.inv_type is None:
            raise DomainValidationException.required("InvType")
        return self

    def _validate_carruer(self) -> None:
        if self.carruer_type in (None, "", "1"):
            if self.carruer_num:
                raise DomainValidationException.remove("CarruerNum")
            return
        pattern = CARRUER_NUM_PATTERNS.get(self.carruer_type)
        if pattern is None:
            raise DomainValidationException.remove("CarruerNum")
        if not self.carruer_num or not pattern.match(self.carruer_num):
            raise DomainValidationException.invalid("CarruerNum")

    def to_field_set(self, merchant_id: str, now: Optional[datetime] = None) -> dict[str, Any]:
        data: dict[str, Any] = {
            "MerchantID": merchant_id,
            "MerchantTradeNo": self.merchant_trade_no,
            "MerchantTradeDate": self.merchant_trade_date or (now or datetime.now()).strftime(TRADE_DATE_FORMAT),
            "PaymentType": "aio",
            "TotalAmount": self.total_amount,
            "TradeDesc": self.trade_desc,
            "ItemName": "#".join(item.label() for item in self.items),
            "ReturnURL": self.return_url,
            "ChoosePayment": self.choose_payment,
        }
        self._copy_present(data, "ClientBackURL", "ItemURL", "Remark", "ChooseSubPayment", "OrderResultURL")
        data["NeedExtraPaidInfo"] = self.need_extra_paid_info or "N"
        data["DeviceSource"] = self.device_source or "P"
        if self.choose_payment == "ALL":
            self._copy_present(data, "IgnorePayment")
        self._copy_present(data, "PlatformID", "InvoiceMark", "HoldTradeAMT", "EncryptType", "UseRedeem")

        if self.choose_payment == "ATM":
            self._copy_present(data, "ExpireDate", "PaymentInfoURL", "ClientRedirectURL")
        elif self.choose_payment in ("CVS", "BARCODE"):
            self._copy_present(
                data,
                "StoreExpireDate", "Desc_1", "Desc_2", "Desc_3", "Desc_4",
                "PaymentInfoURL", "ClientRedirectURL",
            )
        elif self.choose_payment == "Alipay":
            self._copy_present(
                data,
                "AlipayItemName", "AlipayItemCounts", "AlipayItemPrice", "Email", "PhoneNo", "UserName",
            )
        elif self.choose_payment == "Tenpay":
            self._copy_present(data, "ExpireTime")
        elif self.choose_payment == "Credit":
            self._copy_present(
                data,
                "CreditInstallment", "InstallmentAmount", "Redeem", "UnionPay", "Language",
                "PeriodAmount", "PeriodType", "Frequency", "ExecTimes", "PeriodReturnURL",
            )

        if self.invoice_mark == "Y":
            self._shape_invoice(data)
        return data

    def _shape_invoice(self, data: dict[str, Any]) -> None:
        items = self.invoice_items or []
        data["RelateNumber"] = self.relate_number
        data["CustomerID"] = self.customer_id or ""
        data["CustomerIdentifier"] = self.customer_identifier or ""
        data["CustomerName"] = self.customer_name or ""
        data["CustomerAddr"] = self.customer_addr or ""
        if self.customer_phone is not None:
            data["CustomerPhone"] = self.customer_phone
        if self.customer_email is not None:
            data["CustomerEmail"] = self.customer_email
        data["ClearanceMark"] = self.clearance_mark or ""
        data["TaxType"] = self.tax_type
        data["CarruerType"] = self.carruer_type or ""
        data["CarruerNum"] = self.carruer_num or ""
        data["Donation"] = self.donation or "2"
        data["LoveCode"] = self.love_code or ""
        data["Print"] = self.print_flag or "0"
        data["InvoiceItemName"] = "|".join(i.name for i in items)
        data["InvoiceItemCount"] = "|".join(i.count for i in items)
        data["InvoiceItemWord"] = "|".join(i.word for i in items)
        data["InvoiceItemPrice"] = "|".join(i.price for i in items)
        data["InvoiceItemTaxType"] = "|".join(i.tax_type for i in items)
        data["InvoiceRemark"] = self.invoice_remark or ""
        data["DelayDay"] = self.delay_day or 0
        data["InvType"] = self.inv_type


class QueryTradeInfo(GatewayRequest):
    merchant_trade_no: str = Field(alias="MerchantTradeNo", max_length=20)
    platform_id: Optional[str] = Field(default=None, alias="PlatformID", max_length=10)

    def to_field_set(self, merchant_id: str, timestamp: int) -> dict[str, Any]:
        data: dict[str, Any] = {
            "MerchantID": merchant_id,
            "MerchantTradeNo": self.merchant_trade_no,
            "TimeStamp": timestamp,
        }
        self._copy_present(data, "PlatformID")
        return data


class QueryCreditCardPeriodInfo(GatewayRequest):
    merchant_trade_no: str = Field(alias="MerchantTradeNo", max_length=20)

    def to_field_set(self, merchant_id: str, timestamp: int) -> dict[str, Any]:
        return {
            "MerchantID": merchant_id,
            "MerchantTradeNo": self.merchant_trade_no,
            "TimeStamp": timestamp,
        }


class DoAction(GatewayRequest):
    """Credit card close / refund / cancel / abandon (Action C, R, E, N)."""

    merchant_trade_no: str = Field(alias="MerchantTradeNo", max_length=20)
    trade_no: str = Field(alias="TradeNo", max_length=20)
    action: str = Field(alias="Action", max_length=1)
    total_amount: int = Field(alias="TotalAmount", ge=0)
    platform_id: Optional[str] = Field(default=None, alias="PlatformID", max_length=10)

    def to_field_set(self, merchant_id: str) -> dict[str, Any]:
        data: dict[str, Any] = {
            "MerchantID": merchant_id,
            "MerchantTradeNo": self.merchant_trade_no,
            "TradeNo": self.trade_no,
            "Action": self.action,
            "TotalAmount": self.total_amount,
        }
        self._copy_present(data, "PlatformID")
        return data


class AioChargeback(GatewayRequest):
    merchant_trade_no: str = Field(alias="MerchantTradeNo", max_length=20)
    trade_no: str = Field(alias="TradeNo", max_length=20)
    charge_back_total_amount: int = Field(alias="ChargeBackTotalAmount", ge=0)
    # Validated for length but not transmitted; the endpoint rejects it
    remark: Optional[str] = Field(default=None, alias="Remark", max_length=100)
    platform_id: Optional[str] = Field(default=None, alias="PlatformID", max_length=10)

    def to_field_set(self, merchant_id: str) -> dict[str, Any]:
        data: dict[str, Any] = {
            "MerchantID": merchant_id,
            "MerchantTradeNo": self.merchant_trade_no,
            "TradeNo": self.trade_no,
            "ChargeBackTotalAmount": self.charge_back_total_amount,
        }
        self._copy_present(data, "PlatformID")
        return data


class Capture(GatewayRequest):
    merchant_trade_no: str = Field(alias="MerchantTradeNo", max_length=20)
    capture_amt: int = Field(alias="CaptureAMT", ge=0)
    user_refund_amt: int = Field(alias="UserRefundAMT", ge=0)
    user_name: Optional[str] = Field(default=None, alias="UserName", max_length=20)
    user_cell_phone: Optional[str] = Field(default=None, alias="UserCellPhone", max_length=20)
    platform_id: Optional[str] = Field(default=None, alias="PlatformID", max_length=10)
    update_platform_charge_fee: Optional[str] = Field(default=None, alias="UpdatePlatformChargeFee", max_length=1)
    platform_charge_fee: Optional[int] = Field(default=None, alias="PlatformChargeFee", ge=0)
    remark: Optional[str] = Field(default=None, alias="Remark", max_length=30)

    def to_field_set(self, merchant_id: str) -> dict[str, Any]:
        data: dict[str, Any] = {
            "MerchantID": merchant_id,
            "MerchantTradeNo": self.merchant_trade_no,
            "CaptureAMT": self.capture_amt,
            "UserRefundAMT": self.user_refund_amt,
        }
        self._copy_present(data, "UserName", "UserCellPhone", "PlatformID", "UpdatePlatformChargeFee")
        if self.update_platform_charge_fee == "Y":
            self._copy_present(data, "PlatformChargeFee")
        self._copy_present(data, "Remark")
        return data


class CheckoutForm(BaseModel):
    url: str
    data: dict[str, Any]
    html: str


class ChargebackResult(BaseModel):
    status: str
    message: str = ""

    @property
    def is_success(self) -> bool:
        return self.status == "1"


class NotificationEvent(BaseModel):
    """Verified payment result posted by the gateway to ReturnURL."""
    merchant_trade_no: str
    trade_no: str
    rtn_code: str
    rtn_msg: str = ""
    status: str
    trade_amt: Optional[str] = None
    payment_type: Optional[str] = None
    simulate_paid: bool = False
    data: dict[str, str]
