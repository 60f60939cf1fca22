# itclinic/routers/reservations.py
from typing import List

from fastapi import APIRouter, Depends, status

from .. import schemas
from ..auth import Actor
from ..deps import get_actor, get_manager
from ..models import TIME_SLOTS
from ..reservations import ReservationManager

router = APIRouter(prefix="/reservations", tags=["reservations"])


@router.get("/slots", response_model=List[str])
def time_slots():
    return list(TIME_SLOTS)


@router.post("/", response_model=schemas.ReservationResult, status_code=status.HTTP_201_CREATED)
def create_reservation(
    payload: schemas.BookingCreate,
    actor: Actor = Depends(get_actor),
    manager: ReservationManager = Depends(get_manager),
):
    reservation = manager.create(actor, **payload.model_dump())
    return {
        "message": "Reservation created. We will confirm your appointment soon.",
        "reservation": reservation,
    }


@router.get("/me", response_model=List[schemas.ReservationOut])
def my_reservations(actor: Actor = Depends(get_actor), manager: ReservationManager = Depends(get_manager)):
    return manager.list_for_user(actor.user_id)


@router.put("/{reservation_id}/cancel", response_model=schemas.ReservationResult)
def cancel_reservation(
    reservation_id: str,
    actor: Actor = Depends(get_actor),
    manager: ReservationManager = Depends(get_manager),
):
    reservation = manager.cancel(reservation_id, actor)
    return {"message": "Reservation cancelled.", "reservation": reservation}
