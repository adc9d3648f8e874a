"""
services/payment/router.py
Razorpay checkout: order creation and client-side signature verification.
Installment bookkeeping happens on the booking itself.
"""

import logging

import razorpay
from fastapi import APIRouter, HTTPException

from config.settings import settings
from shared.schemas.schemas import CreateOrderRequest, MessageResponse, PaymentVerifyRequest
from shared.utils.security import verify_razorpay_signature

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/payment", tags=["Payments"])


def get_razorpay_client() -> razorpay.Client:
    return razorpay.Client(auth=(settings.RAZORPAY_KEY_ID, settings.RAZORPAY_KEY_SECRET))


@router.post("/create-order")
async def create_order(data: CreateOrderRequest):
    """
    Create a Razorpay order for ``amount`` (smallest currency unit) and
    return the gateway's order object unchanged.
    """
    rzp = get_razorpay_client()
    try:
        order = rzp.order.create({
            "amount": data.amount,
            "currency": data.currency,
            "receipt": data.receipt,
            "payment_capture": 1,
        })
    except Exception as e:
        logger.error(f"Razorpay order creation failed: {e}", exc_info=True)
        raise HTTPException(status_code=500, detail="Error creating order")

    logger.info(f"Razorpay order {order.get('id')} created for {data.amount} {data.currency}")
    return order


@router.post("/verify", response_model=MessageResponse)
async def verify_payment(data: PaymentVerifyRequest):
    """Check HMAC-SHA256(order_id|payment_id) against the submitted signature."""
    if not verify_razorpay_signature(
        data.razorpay_order_id,
        data.razorpay_payment_id,
        data.razorpay_signature,
    ):
        logger.warning(f"Invalid Razorpay signature for order {data.razorpay_order_id}")
        raise HTTPException(status_code=400, detail="Invalid Signature")
    return MessageResponse(message="Payment Verified")
