"""
services/booking/router.py
Booking lifecycle: creation with the first installment, balance payment,
order placement, fulfillment status, and partner assignment.

Fulfillment: Booked → In Progress → Deliverables Ready → Completed | Cancelled
Assignment:  Requested → Accepted | Rejected → Completed

Every write happens in the request's single transaction (see get_db), so a
booking is never left without the invoice that paid for it.
"""

import logging
from typing import List, Optional
from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from config.database import get_db
from config.settings import settings
from services.notification.router import notify_admins, push_notification
from shared.middleware.auth import get_current_user
from shared.models.models import (
    AssignmentStatus,
    Booking,
    BookingStatus,
    Invoice,
    PaymentStatus,
    ServicePartner,
    User,
    UserRole,
)
from shared.schemas.schemas import (
    BookingCreateRequest,
    BookingResponse,
    BookingUpdateRequest,
    BookingUpdateResponse,
    PaymentDetailsUpdate,
)
from shared.utils.booking_rules import (
    check_assignment_transition,
    check_status_transition,
    history_entry,
)
from shared.utils.payments import (
    apply_payment,
    build_payment_details,
    format_amount,
    second_installment,
    settle,
)
from shared.utils.sequences import next_booking_no, next_invoice_no

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/bookings", tags=["Bookings"])

BOOKING_LOAD = (
    selectinload(Booking.user),
    selectinload(Booking.service_partner),
    selectinload(Booking.invoices),
)
SNAPSHOT_FIELDS = ("basic_info", "form_details", "event_details", "delivery_address")


# ── Helpers ───────────────────────────────────────────────────

async def _get_booking_or_404(db: AsyncSession, booking_id: UUID) -> Booking:
    result = await db.execute(
        select(Booking)
        .options(*BOOKING_LOAD)
        .where(Booking.id == booking_id)
        .execution_options(populate_existing=True)
    )
    booking = result.scalar_one_or_none()
    if not booking:
        raise HTTPException(status_code=404, detail="Booking not found")
    return booking


def _snapshot(value) -> Optional[dict]:
    if value is None:
        return None
    if isinstance(value, dict):
        return dict(value)
    return value.model_dump(mode="json", exclude_unset=True)


async def _add_invoice(
    db: AsyncSession,
    booking: Booking,
    payment_type: int,
    paid: float,
    due: float,
    payment: Optional[PaymentDetailsUpdate] = None,
) -> Invoice:
    invoice = Invoice(
        invoice_no=await next_invoice_no(db),
        booking_id=booking.id,
        payment_type=payment_type,
        payment_method=(payment and payment.payment_method) or settings.DEFAULT_PAYMENT_METHOD,
        payable_price=booking.payment_details.get("payablePrice", 0),
        paid_amount=paid,
        due_amount=due,
        payment_status=PaymentStatus.COMPLETED,
        razorpay_order_id=payment.razorpay_order_id if payment else None,
        razorpay_payment_id=payment.razorpay_payment_id if payment else None,
    )
    db.add(invoice)
    await db.flush()
    return invoice


async def _respond(db: AsyncSession, booking_id: UUID, message: str) -> BookingUpdateResponse:
    await db.flush()
    booking = await _get_booking_or_404(db, booking_id)
    return BookingUpdateResponse(
        message=message,
        updated_booking=BookingResponse.model_validate(booking),
    )


# ── Create / Read ─────────────────────────────────────────────

@router.post("", response_model=BookingResponse)
async def create_booking(
    data: BookingCreateRequest,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """
    Create a booking from the checkout payload:
    1. Work out the first installment from the package price and plan
    2. Draw the next booking number
    3. Store the booking as Booked with its first history entry
    4. Record the first invoice (paymentType 1, already Completed)
    """
    plan = data.payment_details
    total = data.package_details.price
    payment = build_payment_details(
        total,
        plan.payment_type,
        plan.payment_method,
        default_method=settings.DEFAULT_PAYMENT_METHOD,
    )

    booking = Booking(
        booking_no=await next_booking_no(db),
        user_id=current_user.id,
        ordered=False,
        basic_info=_snapshot(data.basic_info),
        form_details=_snapshot(data.form_details),
        event_details=_snapshot(data.event_details),
        delivery_address=_snapshot(data.delivery_address),
        package_details=data.package_details.model_dump(mode="json"),
        payment_details=payment,
        status=BookingStatus.BOOKED,
        status_history=[history_entry(BookingStatus.BOOKED.value)],
        assigned_status_history=[],
        agree_to_terms=data.agree_to_terms,
        confirm_booking_details=data.confirm_booking_details,
    )
    db.add(booking)
    await db.flush()

    await _add_invoice(
        db,
        booking,
        payment_type=1,
        paid=payment["paidAmount"],
        due=payment["dueAmount"],
        payment=PaymentDetailsUpdate(
            payment_method=payment["paymentMethod"],
            razorpay_order_id=plan.razorpay_order_id,
            razorpay_payment_id=plan.razorpay_payment_id,
        ),
    )

    logger.info(
        f"Booking {booking.booking_no} created for user {current_user.id} "
        f"(paid {payment['paidAmount']}, due {payment['dueAmount']})"
    )
    booking = await _get_booking_or_404(db, booking.id)
    return BookingResponse.model_validate(booking)


@router.get("", response_model=List[BookingResponse])
async def list_bookings(
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """Partners see bookings assigned to them, clients their own, admins all."""
    query = select(Booking).options(*BOOKING_LOAD).order_by(Booking.created_at.desc())

    if current_user.role == UserRole.SERVICE_PROVIDER:
        partner = current_user.partner_profile
        if partner is None:
            return []
        query = query.where(Booking.service_partner_id == partner.id)
    elif current_user.role == UserRole.CLIENT:
        query = query.where(Booking.user_id == current_user.id)

    result = await db.execute(query)
    return [BookingResponse.model_validate(b) for b in result.scalars().all()]


@router.get("/user/{user_id}", response_model=List[BookingResponse])
async def list_bookings_for_user(
    user_id: UUID,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    result = await db.execute(
        select(Booking)
        .options(*BOOKING_LOAD)
        .where(Booking.user_id == user_id)
        .order_by(Booking.created_at.desc())
    )
    bookings = result.scalars().all()
    if not bookings:
        raise HTTPException(status_code=404, detail="No bookings found for this user")
    return [BookingResponse.model_validate(b) for b in bookings]


@router.get("/{booking_id}", response_model=BookingResponse)
async def get_booking(booking_id: UUID, db: AsyncSession = Depends(get_db)):
    booking = await _get_booking_or_404(db, booking_id)
    return BookingResponse.model_validate(booking)


# ── Update ────────────────────────────────────────────────────

@router.put("/{booking_id}", response_model=BookingUpdateResponse)
async def update_booking(
    booking_id: UUID,
    data: BookingUpdateRequest,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """
    The fields present in the body pick the operation, checked in order:
    ``ordered``, ``payment_details``, a lone ``status``,
    ``servicePartner`` + ``assignedStatus``, anything else.
    """
    booking = await _get_booking_or_404(db, booking_id)
    fields = data.model_fields_set

    if "ordered" in fields:
        return await _place_order(db, booking, data, current_user)
    if data.payment_details is not None:
        return await _pay_balance(db, booking, data.payment_details, current_user)
    if fields == {"status"} and data.status is not None:
        return await _change_status(db, booking, BookingStatus(data.status), current_user)
    if (
        fields == {"service_partner", "assigned_status"}
        and data.service_partner is not None
        and data.assigned_status is not None
    ):
        return await _assign_partner(
            db, booking, data.service_partner, AssignmentStatus(data.assigned_status), current_user
        )
    return await _update_fields(db, booking, data)


async def _place_order(
    db: AsyncSession, booking: Booking, data: BookingUpdateRequest, actor: User
) -> BookingUpdateResponse:
    """Mark the booking ordered; a staged plan is settled with a final invoice."""
    details = booking.payment_details
    if details.get("installment") != 1 and details.get("dueAmount", 0) > 0:
        await _add_invoice(
            db,
            booking,
            payment_type=3,
            paid=details["dueAmount"],
            due=0,
            payment=data.payment_details,
        )
        booking.payment_details = settle(details)

    booking.ordered = bool(data.ordered)
    await notify_admins(
        db,
        title=f"New Order for {booking.booking_no}",
        message=f"Client has placed an order for booking {booking.booking_no}",
        redirect_path=f"/admin/bookings/{booking.id}",
        sender_id=actor.id,
    )
    logger.info(f"Booking {booking.booking_no} ordered={booking.ordered}")
    return await _respond(db, booking.id, "Order status updated successfully")


async def _pay_balance(
    db: AsyncSession, booking: Booking, payment: PaymentDetailsUpdate, actor: User
) -> BookingUpdateResponse:
    """Second installment: 40% of the payable price, leaving 30% on the invoice."""
    payable = booking.payment_details.get("payablePrice", 0)
    paid, due = second_installment(payable)
    invoice = await _add_invoice(db, booking, payment_type=2, paid=paid, due=due, payment=payment)

    merged = dict(booking.payment_details)
    if payment.payment_method:
        merged["paymentMethod"] = payment.payment_method
    if payment.payment_type is not None:
        merged["paymentType"] = payment.payment_type
    booking.payment_details = apply_payment(merged, paid)

    await push_notification(
        db,
        booking.user_id,
        title="Payment Successful",
        message=f"Your balance payment of ₹{format_amount(invoice.paid_amount)} has been received successfully",
        redirect_path=f"/client/my-bookings/{booking.id}",
        sender_id=actor.id,
    )
    await notify_admins(
        db,
        title=f"Booking {booking.booking_no}",
        message=(
            f"The client has successfully paid a balance amount of "
            f"₹{format_amount(invoice.paid_amount)} for the booking."
        ),
        redirect_path=f"/admin/bookings/{booking.id}",
        sender_id=actor.id,
    )
    logger.info(f"Booking {booking.booking_no} balance payment {paid}")
    return await _respond(db, booking.id, "Payment details updated successfully")


async def _change_status(
    db: AsyncSession, booking: Booking, new_status: BookingStatus, actor: User
) -> BookingUpdateResponse:
    check_status_transition(booking.status, new_status)

    booking.status = new_status
    booking.status_history = [*booking.status_history, history_entry(new_status.value)]

    await push_notification(
        db,
        booking.user_id,
        title="Booking Status Updated",
        message=f"Your booking status has been updated to {new_status.value}",
        redirect_path=f"/client/my-bookings/{booking.id}",
        sender_id=actor.id,
    )
    if booking.service_partner is not None:
        await push_notification(
            db,
            booking.service_partner.user_id,
            title="Booking Status Updated",
            message=f"Booking status has been updated to {new_status.value}",
            redirect_path=f"/partner/bookings/{booking.id}",
            sender_id=actor.id,
        )
    return await _respond(db, booking.id, "Status updated successfully")


async def _assign_partner(
    db: AsyncSession,
    booking: Booking,
    partner_id: UUID,
    assigned: AssignmentStatus,
    actor: User,
) -> BookingUpdateResponse:
    """Offer, accept or reject a partner assignment. Rejection frees the booking."""
    partner = await db.get(ServicePartner, partner_id)
    if not partner:
        raise HTTPException(status_code=404, detail="Service Partner not found")
    check_assignment_transition(booking.assigned_status, assigned)

    booking.service_partner_id = None if assigned == AssignmentStatus.REJECTED else partner.id
    booking.assigned_status = assigned
    booking.assigned_status_history = [
        history_entry(assigned.value, servicePartner=str(partner.id)),
        *booking.assigned_status_history,
    ]

    await push_notification(
        db,
        partner.user_id,
        title="Booking Requested",
        message="New Booking Request for Booking",
        redirect_path=f"/partner/bookings/{booking.id}",
        sender_id=actor.id,
    )
    if assigned in (AssignmentStatus.ACCEPTED, AssignmentStatus.REJECTED):
        await notify_admins(
            db,
            title=f"Booking {assigned.value}",
            message=f"Service partner has {assigned.value.lower()} the booking",
            redirect_path=f"/admin/bookings/{booking.id}",
            sender_id=actor.id,
        )
    logger.info(f"Booking {booking.booking_no} assignment {assigned.value} ({partner.id})")
    return await _respond(db, booking.id, "Service Provider added successfully")


async def _update_fields(
    db: AsyncSession, booking: Booking, data: BookingUpdateRequest
) -> BookingUpdateResponse:
    """Plain update of snapshot and confirmation fields."""
    for field in SNAPSHOT_FIELDS:
        if field in data.model_fields_set:
            setattr(booking, field, _snapshot(getattr(data, field)))
    for field in ("agree_to_terms", "confirm_booking_details"):
        if field in data.model_fields_set:
            setattr(booking, field, getattr(data, field))
    if data.status is not None:
        new_status = BookingStatus(data.status)
        check_status_transition(booking.status, new_status)
        booking.status = new_status
        booking.status_history = [*booking.status_history, history_entry(new_status.value)]
    return await _respond(db, booking.id, "Booking updated successfully")
