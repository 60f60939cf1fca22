"""Dashboard figures and the calendar grid over reservation rows."""

import calendar
from collections import OrderedDict
from dataclasses import dataclass, field
from datetime import date, timedelta
from typing import Dict, List, Sequence

from .auth import Actor
from .gateway import DataGateway
from .models import RepairStatus, ReservationStatus, Role
from .reservations import ReservationFilters, ReservationManager

# "completed" is a legacy repair value still present on older rows.
DONE_REPAIR_STATUSES = ("completed", RepairStatus.PICKED_UP.value)
INACTIVE_REPAIR_STATUSES = (RepairStatus.CANCELLED.value,) + DONE_REPAIR_STATUSES
CALENDAR_VISIBLE = 3
RECENT_LIMIT = 5


def active(reservations: Sequence) -> List:
    return [r for r in reservations if r.repair_status not in INACTIVE_REPAIR_STATUSES]


def history(reservations: Sequence) -> List:
    # Finished repairs followed by cancelled bookings. A row matching both
    # conditions is listed twice.
    finished = [r for r in reservations if r.repair_status in DONE_REPAIR_STATUSES]
    cancelled = [r for r in reservations if r.status == ReservationStatus.CANCELLED.value]
    return finished + cancelled


def status_counts(reservations: Sequence) -> Dict[str, int]:
    counts = OrderedDict((s.value, 0) for s in RepairStatus)
    for r in reservations:
        if r.repair_status in counts:
            counts[r.repair_status] += 1
    return dict(counts)


@dataclass
class DayBucket:
    day: date
    in_month: bool
    reservations: List = field(default_factory=list)

    @property
    def total(self) -> int:
        return len(self.reservations)

    @property
    def visible(self) -> List:
        return self.reservations[:CALENDAR_VISIBLE]

    @property
    def overflow(self) -> int:
        return max(0, self.total - CALENDAR_VISIBLE)

    def as_dict(self) -> dict:
        return {
            "day": self.day,
            "in_month": self.in_month,
            "total": self.total,
            "visible": self.visible,
            "overflow": self.overflow,
        }


def month_bounds(year: int, month: int):
    last = calendar.monthrange(year, month)[1]
    return date(year, month, 1), date(year, month, last)


def grid_bounds(year: int, month: int):
    """First and last day of the Sunday-to-Saturday weeks covering the month."""
    first, last = month_bounds(year, month)
    start = first - timedelta(days=(first.weekday() + 1) % 7)
    end = last + timedelta(days=(5 - last.weekday()) % 7)
    return start, end


def group_by_day(reservations: Sequence, start: date, end: date, month: int = None) -> List[DayBucket]:
    """One bucket per day from ``start`` to ``end`` inclusive, in input order within a day."""
    buckets: "OrderedDict[date, DayBucket]" = OrderedDict()
    day = start
    while day <= end:
        buckets[day] = DayBucket(day=day, in_month=month is None or day.month == month)
        day += timedelta(days=1)
    for r in reservations:
        bucket = buckets.get(r.booking_date)
        if bucket is not None:
            bucket.reservations.append(r)
    return list(buckets.values())


def calendar_month(manager: ReservationManager, actor: Actor, year: int, month: int):
    first, last = month_bounds(year, month)
    rows = manager.list_for_admin(
        actor,
        ReservationFilters(date_from=first, date_to=last),
        order=("booking_date", "booking_time"),
    )
    start, end = grid_bounds(year, month)
    return {
        "year": year,
        "month": month,
        "start": start,
        "end": end,
        "days": [b.as_dict() for b in group_by_day(rows, start, end, month=month)],
    }


def admin_dashboard(gateway: DataGateway, manager: ReservationManager, actor: Actor) -> dict:
    reservations = manager.list_for_admin(actor)
    return {
        "totals": {
            "reservations": len(reservations),
            "products": gateway.count("products"),
            "services": gateway.count("services"),
            "users": gateway.count("profiles"),
        },
        "repair_status_counts": status_counts(reservations),
        "recent_reservations": reservations[:RECENT_LIMIT],
        "recent_consultations": gateway.select("consultations", order=("-created_at",), limit=RECENT_LIMIT),
    }


def customer_dashboard(manager: ReservationManager, profile) -> dict:
    reservations = manager.list_for_user(profile.id)
    return {
        "profile": profile,
        "counts": {
            "total": len(reservations),
            "active": len(active(reservations)),
            "completed": sum(1 for r in reservations if r.repair_status in DONE_REPAIR_STATUSES),
            "cancelled": sum(1 for r in reservations if r.status == ReservationStatus.CANCELLED.value),
        },
        "active": active(reservations),
        "history": history(reservations),
    }


def public_stats(gateway: DataGateway) -> dict:
    return {
        "total_services": gateway.count("services"),
        "total_customers": gateway.count("profiles", {"role": Role.USER.value}),
        "total_reservations": gateway.count("reservations"),
        "completed_repairs": gateway.count("reservations", {"repair_status": list(DONE_REPAIR_STATUSES)}),
    }
