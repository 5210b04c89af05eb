"""Duration and price derivation for each pricing type."""

from __future__ import annotations

import math
from dataclasses import dataclass
from datetime import date, datetime, time, timedelta
from decimal import ROUND_HALF_UP, Decimal
from typing import Any
from zoneinfo import ZoneInfo

from dateutil.relativedelta import relativedelta

from spacebook.core.errors import BookingValidationError
from spacebook.models.reservation import HalfDaySession, PricingType
from spacebook.services.snapshots import HALF_DAY_SESSIONS, PriceTable, to_local

MONEY_PLACES = Decimal("0.01")
MAX_HOURLY_SPAN = timedelta(hours=24)


@dataclass(slots=True, frozen=True)
class BookingParams:
    """Pricing-type specific inputs. Only the fields a type needs are read.

    * hourly: ``start``/``end`` datetimes
    * halfday: ``session_date``, ``session`` and optionally ``end_date``
    * daily: ``start``/``end`` dates
    * monthly: ``start`` and ``month_count``
    * yearly: ``start`` and ``year_count``
    """

    start: datetime | date | None = None
    end: datetime | date | None = None
    session_date: date | None = None
    session: HalfDaySession | None = None
    end_date: date | None = None
    month_count: int | None = None
    year_count: int | None = None


@dataclass(slots=True, frozen=True)
class DerivedBooking:
    """Authoritative window and base price of a booking."""

    pricing_type: PricingType
    start: datetime
    end: datetime
    units: int
    unit_rate: Decimal | None
    base_price: Decimal | None
    session: HalfDaySession | None = None

    @property
    def price_available(self) -> bool:
        return self.base_price is not None


@dataclass(slots=True)
class PricingLine:
    """Individual component contributing to a quote."""

    description: str
    amount: Decimal


@dataclass(slots=True)
class PricingQuote:
    """Base price plus tax for a derived booking."""

    items: list[PricingLine]
    subtotal: Decimal
    tax_rate_percent: Decimal
    tax_total: Decimal
    total: Decimal

    def to_dict(self) -> dict[str, Any]:
        return {
            "items": [
                {"description": line.description, "amount": _to_str(line.amount)}
                for line in self.items
            ],
            "subtotal": _to_str(self.subtotal),
            "tax_rate_percent": str(self.tax_rate_percent),
            "tax_total": _to_str(self.tax_total),
            "total": _to_str(self.total),
        }


def _to_money(value: Decimal | float | str | int) -> Decimal:
    return Decimal(str(value)).quantize(MONEY_PLACES, rounding=ROUND_HALF_UP)


def _to_str(value: Decimal) -> str:
    return f"{value.quantize(MONEY_PLACES, rounding=ROUND_HALF_UP):.2f}"


def _price(rate: Decimal | None, units: int) -> Decimal | None:
    if rate is None:
        return None
    return _to_money(rate * units)


def _tzinfo(timezone: str | None) -> ZoneInfo | None:
    return ZoneInfo(timezone) if timezone else None


def _at(day: date, hour: int, tz: ZoneInfo | None) -> datetime:
    moment = datetime.combine(day, time.min) + timedelta(hours=hour)
    return moment.replace(tzinfo=tz) if tz is not None else moment


def _as_date(value: datetime | date, tz: ZoneInfo | None) -> date:
    if isinstance(value, datetime):
        if tz is not None:
            return to_local(value, tz).date()
        return value.date()
    return value


def _require(value: Any, name: str, pricing_type: PricingType) -> Any:
    if value is None:
        raise BookingValidationError(f"{name} is required for {pricing_type.value} pricing")
    return value


def _derive_hourly(
    rate: Decimal | None, params: BookingParams, tz: ZoneInfo | None
) -> DerivedBooking:
    start = _require(params.start, "start", PricingType.HOURLY)
    end = _require(params.end, "end", PricingType.HOURLY)
    if not isinstance(start, datetime) or not isinstance(end, datetime):
        raise BookingValidationError("Hourly pricing needs start and end times")
    if tz is not None:
        if start.tzinfo is None:
            start = start.replace(tzinfo=tz)
        if end.tzinfo is None:
            end = end.replace(tzinfo=tz)
    if (start.tzinfo is None) != (end.tzinfo is None):
        raise BookingValidationError("Start and end must both carry a timezone or neither")
    if end <= start:
        raise BookingValidationError("End time must be after start time")
    if end - start > MAX_HOURLY_SPAN:
        raise BookingValidationError("Hourly bookings cannot exceed 24 hours")
    hours = max(1, math.ceil((end - start) / timedelta(hours=1)))
    return DerivedBooking(
        pricing_type=PricingType.HOURLY,
        start=start,
        end=end,
        units=hours,
        unit_rate=rate,
        base_price=_price(rate, hours),
    )


def _derive_halfday(
    rate: Decimal | None, params: BookingParams, tz: ZoneInfo | None
) -> DerivedBooking:
    session_date = params.session_date
    if session_date is None and params.start is not None:
        session_date = _as_date(params.start, tz)
    session_date = _require(session_date, "session_date", PricingType.HALFDAY)
    session = _require(params.session, "session", PricingType.HALFDAY)
    try:
        session = HalfDaySession(session)
        start_hour, end_hour = HALF_DAY_SESSIONS[session]
    except ValueError as exc:
        raise BookingValidationError(f"Unknown half-day session {session!r}") from exc

    last_date = params.end_date or session_date
    if last_date < session_date:
        raise BookingValidationError("end_date must be on or after session_date")
    day_span = (last_date - session_date).days + 1
    units = 1 if day_span == 1 else 2 * day_span
    return DerivedBooking(
        pricing_type=PricingType.HALFDAY,
        start=_at(session_date, start_hour, tz),
        end=_at(last_date, end_hour, tz),
        units=units,
        unit_rate=rate,
        base_price=_price(rate, units),
        session=session,
    )


def _derive_daily(
    rate: Decimal | None, params: BookingParams, tz: ZoneInfo | None
) -> DerivedBooking:
    first = _as_date(_require(params.start, "start", PricingType.DAILY), tz)
    last = _as_date(_require(params.end, "end", PricingType.DAILY), tz)
    if last < first:
        raise BookingValidationError("End date must be on or after start date")
    days = (last - first).days + 1
    return DerivedBooking(
        pricing_type=PricingType.DAILY,
        start=_at(first, 0, tz),
        end=_at(last, 0, tz),
        units=days,
        unit_rate=rate,
        base_price=_price(rate, days),
    )


def _derive_term(
    pricing_type: PricingType,
    rate: Decimal | None,
    params: BookingParams,
    tz: ZoneInfo | None,
) -> DerivedBooking:
    first = _as_date(_require(params.start, "start", pricing_type), tz)
    if pricing_type is PricingType.MONTHLY:
        count = _require(params.month_count, "month_count", pricing_type)
    else:
        count = _require(params.year_count, "year_count", pricing_type)
    if count < 1:
        raise BookingValidationError(f"{pricing_type.value} bookings need a count of at least 1")
    if pricing_type is PricingType.MONTHLY:
        step = relativedelta(months=count)
    else:
        step = relativedelta(years=count)
    last = first + step - timedelta(days=1)
    return DerivedBooking(
        pricing_type=pricing_type,
        start=_at(first, 0, tz),
        end=_at(last, 0, tz),
        units=count,
        unit_rate=rate,
        base_price=_price(rate, count),
    )


def derive(
    pricing: PriceTable,
    pricing_type: PricingType,
    params: BookingParams,
    *,
    timezone: str | None = None,
) -> DerivedBooking:
    """Derive the authoritative window and base price of a booking.

    Date-granular bookings start at local midnight of their first day and end
    at local midnight of their last inclusive day. A half-day booking with an
    ``end_date`` repeats its session on every day from ``session_date`` to
    ``end_date``; its window spans the first session start to the last
    session end. When ``timezone`` is given,
    derived datetimes are attached to it. A missing or zero rate yields
    ``base_price=None`` rather than an error.
    """
    pricing_type = PricingType(pricing_type)
    tz = _tzinfo(timezone)
    rate = pricing.rate_for(pricing_type)
    if pricing_type is PricingType.HOURLY:
        return _derive_hourly(rate, params, tz)
    if pricing_type is PricingType.HALFDAY:
        return _derive_halfday(rate, params, tz)
    if pricing_type is PricingType.DAILY:
        return _derive_daily(rate, params, tz)
    return _derive_term(pricing_type, rate, params, tz)


def quote(derived: DerivedBooking, *, tax_rate_percent: Decimal | float) -> PricingQuote | None:
    """Add tax on top of the derived base price."""
    if derived.base_price is None:
        return None
    rate = Decimal(str(tax_rate_percent))
    items = [PricingLine(f"{derived.units} x {derived.pricing_type.value}", derived.base_price)]
    subtotal = _to_money(derived.base_price)
    tax_total = _to_money(subtotal * rate / Decimal("100"))
    if tax_total:
        items.append(PricingLine(f"Tax {rate}%", tax_total))
    return PricingQuote(
        items=items,
        subtotal=subtotal,
        tax_rate_percent=rate,
        tax_total=tax_total,
        total=_to_money(subtotal + tax_total),
    )
