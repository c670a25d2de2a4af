"""Auto-submitting checkout form for the all-in-one cashier."""
from __future__ import annotations

from html import escape
from typing import Any, Mapping, Optional

from allpay_sdk.domain.services.check_mac import format_value


FORM_ID = "_allpayForm"
BUTTON_ID = "_paymentButton"


def render_checkout_form(
    url: str,
    data: Mapping[str, Any],
    *,
    target: str = "_self",
    payment_button: Optional[str] = None,
) -> str:
    """Render the signed field set as a POST form.

    Without ``payment_button`` the form submits itself on load.
    """
    parts = [
        f'<form id="{FORM_ID}" method="post" target="{escape(target)}" action="{escape(url)}">'
    ]
    for name, value in data.items():
        parts.append(
            f'<input type="hidden" name="{escape(name)}" value="{escape(format_value(value))}" />'
        )
    if payment_button:
        parts.append(f'<input type="submit" id="{BUTTON_ID}" value="{escape(payment_button)}" />')
    else:
        parts.append(
            f'<script type="text/javascript">document.getElementById("{FORM_ID}").submit();</script>'
        )
    parts.append("</form>")
    return "".join(parts)
