"""
shared/utils/payments.py
Installment arithmetic for bookings.

First payment for a plan of N installments on total T:
    N == 1 → T
    N == 3 → ceil(T * 0.3)
    other  → ceil(T / N)
The second installment of a staged plan is a fixed 40% of the payable
price, leaving a 30% balance on that invoice; the final settlement pays
whatever is still due.
"""

import math
from datetime import datetime, timezone
from typing import Optional, Union

from shared.models.models import PaymentStatus

Number = Union[int, float]

FIRST_OF_THREE_RATE = 0.3
SECOND_INSTALLMENT_RATE = 0.4
SECOND_INSTALLMENT_BALANCE_RATE = 0.3


def first_installment(total: Number, installments: int) -> Number:
    if installments <= 1:
        return total
    if installments == 3:
        return math.ceil(total * FIRST_OF_THREE_RATE)
    return math.ceil(total / installments)


def payment_type_label(installments: int, due: Number) -> str:
    if due <= 0:
        return "Full Payment"
    return f"{installments} Installments"


def build_payment_details(
    total: Number,
    installments: int,
    payment_method: Optional[str] = None,
    default_method: str = "Razorpay",
) -> dict:
    """Payment sub-document stored on a new booking."""
    paid = first_installment(total, installments)
    due = total - paid
    return {
        "installment": installments,
        "paymentMethod": payment_method or default_method,
        "payablePrice": total,
        "paidAmount": paid,
        "dueAmount": due,
        "paymentType": payment_type_label(installments, due),
        "paymentStatus": (PaymentStatus.PENDING if due > 0 else PaymentStatus.COMPLETED).value,
        "paymentDate": datetime.now(timezone.utc).isoformat(),
    }


def second_installment(payable: Number) -> tuple[Number, Number]:
    """(paid, due) recorded on the second-installment invoice."""
    return payable * SECOND_INSTALLMENT_RATE, payable * SECOND_INSTALLMENT_BALANCE_RATE


def apply_payment(details: dict, amount: Number) -> dict:
    """
    Return a copy of ``details`` with ``amount`` added to what has been paid.
    Keeps paidAmount + dueAmount == payablePrice.
    """
    payable = details.get("payablePrice", 0)
    paid = min(details.get("paidAmount", 0) + amount, payable)
    due = payable - paid
    return {
        **details,
        "paidAmount": paid,
        "dueAmount": due,
        "paymentStatus": (PaymentStatus.PENDING if due > 0 else PaymentStatus.COMPLETED).value,
        "paymentDate": datetime.now(timezone.utc).isoformat(),
    }


def settle(details: dict) -> dict:
    """Return a copy of ``details`` marked fully paid."""
    return {
        **details,
        "paidAmount": details.get("payablePrice", 0),
        "dueAmount": 0,
        "paymentStatus": PaymentStatus.COMPLETED.value,
        "paymentDate": datetime.now(timezone.utc).isoformat(),
    }


def format_amount(amount: Number) -> str:
    """Plain decimal for messages: 4000.0 → "4000", 1234.5 → "1234.5"."""
    return f"{amount:.2f}".rstrip("0").rstrip(".")
