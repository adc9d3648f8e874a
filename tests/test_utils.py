"""
tests/test_utils.py
Unit tests for sequence codes, installment arithmetic, status rules and
the local blob store.
"""

import pytest
from sqlalchemy.ext.asyncio import AsyncSession

from shared.models.models import (
    AssignmentStatus,
    Booking,
    BookingStatus,
    Counter,
    User,
)
from shared.utils.booking_rules import (
    InvalidTransitionError,
    check_assignment_transition,
    check_status_transition,
    history_entry,
)
from shared.utils.payments import (
    apply_payment,
    build_payment_details,
    first_installment,
    format_amount,
    payment_type_label,
    second_installment,
    settle,
)
from shared.utils.sequences import format_code, next_booking_no, next_invoice_no, parse_code
from shared.utils.storage import LocalBlobStore


# ── Sequences ─────────────────────────────────────────────────

def test_format_and_parse_code():
    assert format_code("CS", 7, 5) == "CS00007"
    assert format_code("CSIV", 123, 6) == "CSIV000123"
    assert parse_code("CS00042", "CS") == 42
    assert parse_code("CSIV000087", "CSIV") == 87
    assert parse_code(None, "CS") == 0
    assert parse_code("XX001", "CS") == 0
    assert parse_code("CSabc", "CS") == 0


@pytest.mark.asyncio
async def test_first_booking_number(db: AsyncSession):
    assert await next_booking_no(db) == "CS00001"
    assert await next_booking_no(db) == "CS00002"


@pytest.mark.asyncio
async def test_booking_number_continues_from_existing(db: AsyncSession, user: User):
    db.add(Booking(
        booking_no="CS00042",
        user_id=user.id,
        package_details={"name": "Gold"},
        payment_details={"payablePrice": 100},
        status=BookingStatus.BOOKED,
        status_history=[],
        assigned_status_history=[],
        invoices=[],
    ))
    await db.flush()
    assert await next_booking_no(db) == "CS00043"


@pytest.mark.asyncio
async def test_invoice_number_uses_counter_row(db: AsyncSession):
    db.add(Counter(name="invoice", value=87))
    await db.flush()
    assert await next_invoice_no(db) == "CSIV000088"


# ── Installments ──────────────────────────────────────────────

def test_first_installment():
    assert first_installment(10000, 1) == 10000
    assert first_installment(10000, 3) == 3000
    assert first_installment(1001, 2) == 501
    assert first_installment(1001, 3) == 301
    assert first_installment(1000, 4) == 250


def test_payment_type_label():
    assert payment_type_label(1, 0) == "Full Payment"
    assert payment_type_label(3, 7000) == "3 Installments"
    assert payment_type_label(2, 500) == "2 Installments"


def test_build_payment_details():
    details = build_payment_details(10000, 3)
    assert details["paidAmount"] == 3000
    assert details["dueAmount"] == 7000
    assert details["paymentMethod"] == "Razorpay"
    assert details["paymentStatus"] == "Pending"

    full = build_payment_details(5000, 1, payment_method="UPI")
    assert full["dueAmount"] == 0
    assert full["paymentType"] == "Full Payment"
    assert full["paymentMethod"] == "UPI"
    assert full["paymentStatus"] == "Completed"


def test_second_installment():
    assert second_installment(10000) == (4000, 3000)


def test_apply_payment_caps_at_payable():
    details = build_payment_details(10000, 3)
    after = apply_payment(details, 4000)
    assert (after["paidAmount"], after["dueAmount"]) == (7000, 3000)
    assert after["paymentStatus"] == "Pending"

    over = apply_payment(after, 99999)
    assert (over["paidAmount"], over["dueAmount"]) == (10000, 0)
    assert over["paymentStatus"] == "Completed"
    # input left untouched
    assert details["paidAmount"] == 3000


def test_format_amount_never_uses_exponent():
    assert format_amount(2500000 * 0.4) == "1000000"
    assert format_amount(4000.0) == "4000"
    assert format_amount(1234.5) == "1234.5"
    assert format_amount(0) == "0"


def test_settle():
    settled = settle(build_payment_details(10000, 3))
    assert settled["paidAmount"] == 10000
    assert settled["dueAmount"] == 0
    assert settled["paymentStatus"] == "Completed"


# ── Status rules ──────────────────────────────────────────────

def test_any_status_allowed_when_not_strict():
    check_status_transition(BookingStatus.CANCELLED, BookingStatus.BOOKED, strict=False)
    check_status_transition(BookingStatus.BOOKED, BookingStatus.BOOKED, strict=False)


def test_strict_status_transitions():
    check_status_transition(BookingStatus.BOOKED, BookingStatus.IN_PROGRESS, strict=True)
    check_status_transition(None, BookingStatus.COMPLETED, strict=True)
    with pytest.raises(InvalidTransitionError) as exc:
        check_status_transition(BookingStatus.BOOKED, BookingStatus.COMPLETED, strict=True)
    assert exc.value.current == "Booked"
    assert exc.value.requested == "Completed"


def test_strict_assignment_transitions():
    check_assignment_transition(None, AssignmentStatus.REQUESTED, strict=True)
    check_assignment_transition(
        AssignmentStatus.REJECTED, AssignmentStatus.REQUESTED, strict=True
    )
    with pytest.raises(InvalidTransitionError):
        check_assignment_transition(None, AssignmentStatus.ACCEPTED, strict=True)
    with pytest.raises(InvalidTransitionError):
        check_assignment_transition(
            AssignmentStatus.COMPLETED, AssignmentStatus.REQUESTED, strict=True
        )


def test_history_entry():
    entry = history_entry("Booked", servicePartner="abc")
    assert entry["status"] == "Booked"
    assert entry["servicePartner"] == "abc"
    assert "updatedAt" in entry


# ── Local blob store ──────────────────────────────────────────

@pytest.mark.asyncio
async def test_local_store_roundtrip(tmp_path):
    store = LocalBlobStore(str(tmp_path), "/uploads/")
    ref = await store.store(b"\x89PNG", "photo.png", "image/png", "events")
    assert ref.startswith("/uploads/events/")
    assert ref.endswith(".png")

    path = tmp_path / ref[len("/uploads/"):]
    assert path.read_bytes() == b"\x89PNG"

    await store.delete(ref)
    assert not path.exists()


@pytest.mark.asyncio
async def test_local_store_ignores_foreign_refs(tmp_path):
    outside = tmp_path.parent / "keep.txt"
    outside.write_text("x")
    store = LocalBlobStore(str(tmp_path), "/uploads")

    await store.delete("https://cdn.example.com/a.png")
    await store.delete("/uploads/../keep.txt")
    await store.delete(None)
    assert outside.exists()
