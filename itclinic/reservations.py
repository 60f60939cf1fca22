# itclinic/reservations.py

import logging
from dataclasses import dataclass
from datetime import date
from typing import Callable, List, Optional

from .auth import Actor
from .errors import (
    ConflictError,
    ForbiddenError,
    InvalidStateError,
    NotFoundError,
    UniqueViolation,
    ValidationError,
)
from .gateway import DataGateway
from .models import RepairStatus, Reservation, ReservationStatus
from .validation import validate_booking

logger = logging.getLogger(__name__)

SLOT_TAKEN = "You already have a booking for this date and time. Please pick another slot."
SLOT_REUSED = "The customer already has another active booking for this date and time."
TERMINAL_STATUSES = (ReservationStatus.COMPLETED.value, ReservationStatus.CANCELLED.value)
LIVE_STATUSES = [s.value for s in ReservationStatus if s is not ReservationStatus.CANCELLED]
ADMIN_SEARCH_COLUMNS = ("user.full_name", "user.email", "service.name", "device_info")


@dataclass
class ReservationFilters:
    search: Optional[str] = None
    status: Optional[str] = None
    repair_status: Optional[str] = None
    date_from: Optional[date] = None
    date_to: Optional[date] = None


def _enum_value(enum_cls, value, field: str) -> str:
    try:
        return enum_cls(value).value
    except ValueError:
        allowed = ", ".join(e.value for e in enum_cls)
        raise ValidationError([(field, f"Must be one of: {allowed}")]) from None


class ReservationManager:
    def __init__(self, gateway: DataGateway, clock: Callable[[], date] = date.today):
        self.gateway = gateway
        self.clock = clock

    def _require_admin(self, actor: Actor, action: str) -> None:
        if not actor.is_admin:
            logger.warning("User %s (role=%s) refused: %s", actor.user_id, actor.role, action)
            raise ForbiddenError("Admin role required")

    def get(self, reservation_id: str, expand=("service",)) -> Reservation:
        row = self.gateway.select_one("reservations", {"id": reservation_id}, expand=expand)
        if row is None:
            raise NotFoundError("Reservation not found")
        return row

    # --- customer ---

    def create(
        self,
        actor: Actor,
        service_id: str,
        booking_date,
        booking_time: str,
        device_info: Optional[str] = None,
        problem_description: Optional[str] = None,
    ) -> Reservation:
        form = validate_booking(
            {
                "service_id": service_id,
                "booking_date": booking_date,
                "booking_time": booking_time,
                "device_info": device_info,
                "problem_description": problem_description,
            },
            today=self.clock(),
        ).unwrap()

        if self.gateway.select_one("services", {"id": form.service_id}) is None:
            raise NotFoundError("Service not found")

        # Fast path only; the partial unique index is what actually holds.
        slot = {"user_id": actor.user_id, "booking_date": form.booking_date, "booking_time": form.booking_time}
        if self.gateway.exists("reservations", {**slot, "status": LIVE_STATUSES}):
            logger.info("Slot %s %s already booked by %s", form.booking_date, form.booking_time, actor.user_id)
            raise ConflictError(SLOT_TAKEN)

        try:
            row = self.gateway.insert(
                "reservations",
                {
                    **slot,
                    "service_id": form.service_id,
                    "device_info": form.device_info,
                    "problem_description": form.problem_description,
                    "status": ReservationStatus.PENDING.value,
                    "repair_status": RepairStatus.REGISTERED.value,
                },
            )
        except UniqueViolation as exc:
            logger.info("Slot race lost by %s on %s %s", actor.user_id, form.booking_date, form.booking_time)
            raise ConflictError(SLOT_TAKEN) from exc

        logger.info("Reservation %s created by %s", row.id, actor.user_id)
        return self.get(row.id)

    def cancel(self, reservation_id: str, actor: Actor) -> Reservation:
        row = self.get(reservation_id)
        if row.user_id != actor.user_id:
            logger.warning("User %s tried to cancel reservation %s of %s", actor.user_id, row.id, row.user_id)
            raise ForbiddenError("You can only cancel your own reservations")
        if row.status in TERMINAL_STATUSES:
            raise InvalidStateError(f"Reservation is already {row.status}")

        self.gateway.update(
            "reservations",
            {"id": reservation_id},
            {"status": ReservationStatus.CANCELLED.value, "repair_status": RepairStatus.CANCELLED.value},
        )
        logger.info("Reservation %s cancelled by owner", reservation_id)
        return self.get(reservation_id)

    def list_for_user(self, user_id: str) -> List[Reservation]:
        return self.gateway.select(
            "reservations",
            filters={"user_id": user_id},
            order=("-created_at",),
            expand=("service",),
        )

    # --- admin ---

    def _admin_write(self, actor: Actor, reservation_id: str, values: dict, action: str) -> Reservation:
        self._require_admin(actor, action)
        try:
            rows = self.gateway.update("reservations", {"id": reservation_id}, values)
        except UniqueViolation as exc:
            # Reviving a cancelled row whose slot the customer has booked again.
            raise ConflictError(SLOT_REUSED) from exc
        if not rows:
            raise NotFoundError("Reservation not found")
        logger.info("Reservation %s %s by %s: %s", reservation_id, action, actor.user_id, values)
        return self.get(reservation_id, expand=("service", "user"))

    def set_status(self, actor: Actor, reservation_id: str, status) -> Reservation:
        value = _enum_value(ReservationStatus, status, "status")
        return self._admin_write(actor, reservation_id, {"status": value}, "status set")

    def set_repair_status(self, actor: Actor, reservation_id: str, repair_status) -> Reservation:
        value = _enum_value(RepairStatus, repair_status, "repair_status")
        return self._admin_write(actor, reservation_id, {"repair_status": value}, "repair status set")

    def set_admin_notes(self, actor: Actor, reservation_id: str, notes: Optional[str]) -> Reservation:
        return self._admin_write(actor, reservation_id, {"admin_notes": notes}, "notes set")

    def list_for_admin(
        self,
        actor: Actor,
        filters: Optional[ReservationFilters] = None,
        order=("-created_at",),
    ) -> List[Reservation]:
        self._require_admin(actor, "list all reservations")
        filters = filters or ReservationFilters()
        exact = {}
        if filters.status:
            exact["status"] = _enum_value(ReservationStatus, filters.status, "status")
        if filters.repair_status:
            exact["repair_status"] = _enum_value(RepairStatus, filters.repair_status, "repair_status")
        ranges = {}
        if filters.date_from or filters.date_to:
            ranges["booking_date"] = (filters.date_from, filters.date_to)
        search = (filters.search.strip(), ADMIN_SEARCH_COLUMNS) if filters.search and filters.search.strip() else None
        return self.gateway.select(
            "reservations",
            filters=exact,
            ranges=ranges,
            search=search,
            order=order,
            expand=("service", "user"),
        )
