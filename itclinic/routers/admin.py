from datetime import date
from typing import List, Optional

from fastapi import APIRouter, Depends, Query

from .. import schemas, views
from ..auth import Actor
from ..deps import RequireAdmin, get_gateway, get_manager
from ..errors import NotFoundError
from ..gateway import DataGateway
from ..reservations import ReservationFilters, ReservationManager

router = APIRouter(prefix="/admin", tags=["admin"], dependencies=[Depends(RequireAdmin)])


@router.get("/reservations", response_model=List[schemas.AdminReservationOut])
def list_reservations(
    search: Optional[str] = None,
    status: Optional[str] = None,
    repair_status: Optional[str] = None,
    date_from: Optional[date] = None,
    date_to: Optional[date] = None,
    actor: Actor = Depends(RequireAdmin),
    manager: ReservationManager = Depends(get_manager),
):
    """All reservations, newest first. ``search`` matches customer name or email, service name, device."""
    filters = ReservationFilters(
        search=search,
        status=status,
        repair_status=repair_status,
        date_from=date_from,
        date_to=date_to,
    )
    return manager.list_for_admin(actor, filters)


@router.put("/reservations/{reservation_id}/status", response_model=schemas.AdminReservationResult)
def set_status(
    reservation_id: str,
    payload: schemas.StatusUpdate,
    actor: Actor = Depends(RequireAdmin),
    manager: ReservationManager = Depends(get_manager),
):
    reservation = manager.set_status(actor, reservation_id, payload.status)
    return {"message": f"Status changed to {reservation.status}.", "reservation": reservation}


@router.put("/reservations/{reservation_id}/repair-status", response_model=schemas.AdminReservationResult)
def set_repair_status(
    reservation_id: str,
    payload: schemas.RepairStatusUpdate,
    actor: Actor = Depends(RequireAdmin),
    manager: ReservationManager = Depends(get_manager),
):
    reservation = manager.set_repair_status(actor, reservation_id, payload.repair_status)
    return {"message": f"Repair status changed to {reservation.repair_status}.", "reservation": reservation}


@router.put("/reservations/{reservation_id}/notes", response_model=schemas.AdminReservationResult)
def set_notes(
    reservation_id: str,
    payload: schemas.NotesUpdate,
    actor: Actor = Depends(RequireAdmin),
    manager: ReservationManager = Depends(get_manager),
):
    reservation = manager.set_admin_notes(actor, reservation_id, payload.admin_notes)
    return {"message": "Notes saved.", "reservation": reservation}


@router.get("/dashboard", response_model=schemas.AdminDashboardOut)
def dashboard(
    actor: Actor = Depends(RequireAdmin),
    gateway: DataGateway = Depends(get_gateway),
    manager: ReservationManager = Depends(get_manager),
):
    return views.admin_dashboard(gateway, manager, actor)


@router.get("/calendar", response_model=schemas.CalendarOut)
def calendar(
    year: int = Query(..., ge=2000, le=2100),
    month: int = Query(..., ge=1, le=12),
    actor: Actor = Depends(RequireAdmin),
    manager: ReservationManager = Depends(get_manager),
):
    return views.calendar_month(manager, actor, year, month)


@router.get("/consultations", response_model=List[schemas.ConsultationOut])
def list_consultations(status: Optional[str] = None, gateway: DataGateway = Depends(get_gateway)):
    filters = {"status": status} if status else {}
    return gateway.select("consultations", filters=filters, order=("-created_at",))


@router.put("/consultations/{consultation_id}/status", response_model=schemas.ConsultationResult)
def set_consultation_status(
    consultation_id: str,
    payload: schemas.ConsultationStatusUpdate,
    gateway: DataGateway = Depends(get_gateway),
):
    rows = gateway.update("consultations", {"id": consultation_id}, {"status": payload.status.value})
    if not rows:
        raise NotFoundError("Consultation not found")
    return {"message": f"Consultation marked {rows[0].status}.", "consultation": rows[0]}


@router.get("/users", response_model=List[schemas.ProfileOut])
def list_users(gateway: DataGateway = Depends(get_gateway)):
    return gateway.select("profiles", order=("-created_at",))
