"""
shared/utils/sequences.py
Human-readable sequential identifiers: booking numbers (CS00001) and
invoice numbers (CSIV000001).

Each family has a row in ``counters`` bumped with a single
UPDATE ... RETURNING, so two concurrent requests can never draw the same
number. A missing row is seeded from the highest code already stored,
which keeps numbering continuous for data that predates the counter.
"""

from typing import Optional

from sqlalchemy import func, select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import InstrumentedAttribute

from shared.models.models import Booking, Counter, Invoice

BOOKING_PREFIX = "CS"
BOOKING_WIDTH = 5
INVOICE_PREFIX = "CSIV"
INVOICE_WIDTH = 6


def format_code(prefix: str, value: int, width: int) -> str:
    return f"{prefix}{str(value).zfill(width)}"


def parse_code(code: Optional[str], prefix: str) -> int:
    """Numeric suffix of a code like CS00042; 0 when absent or malformed."""
    if not code or not code.startswith(prefix):
        return 0
    try:
        return int(code[len(prefix):])
    except ValueError:
        return 0


async def _highest_existing(db: AsyncSession, column: InstrumentedAttribute, prefix: str) -> int:
    # Fixed-width codes sort lexicographically in numeric order
    result = await db.execute(select(func.max(column)).where(column.like(f"{prefix}%")))
    return parse_code(result.scalar_one_or_none(), prefix)


async def next_value(
    db: AsyncSession,
    name: str,
    column: InstrumentedAttribute,
    prefix: str,
) -> int:
    """Atomically increment counter ``name`` and return the new value."""
    bump = (
        update(Counter)
        .where(Counter.name == name)
        .values(value=Counter.value + 1)
        .returning(Counter.value)
        .execution_options(synchronize_session=False)
    )
    value = (await db.execute(bump)).scalar_one_or_none()
    if value is not None:
        return value

    seeded = await _highest_existing(db, column, prefix) + 1
    try:
        async with db.begin_nested():
            db.add(Counter(name=name, value=seeded))
        return seeded
    except IntegrityError:
        # Another request seeded the row first
        return (await db.execute(bump)).scalar_one()


async def next_booking_no(db: AsyncSession) -> str:
    value = await next_value(db, "booking", Booking.booking_no, BOOKING_PREFIX)
    return format_code(BOOKING_PREFIX, value, BOOKING_WIDTH)


async def next_invoice_no(db: AsyncSession) -> str:
    value = await next_value(db, "invoice", Invoice.invoice_no, INVOICE_PREFIX)
    return format_code(INVOICE_PREFIX, value, INVOICE_WIDTH)
