from typing import Any, Dict

from fastapi import APIRouter, Body, Depends

from .. import schemas, views
from ..deps import get_current_user, get_gateway, get_manager
from ..gateway import DataGateway
from ..models import Profile
from ..reservations import ReservationManager
from ..validation import validate_profile

router = APIRouter(prefix="/me", tags=["profile"])


@router.get("", response_model=schemas.ProfileOut)
def read_profile(user: Profile = Depends(get_current_user)):
    return user


@router.put("", response_model=schemas.ProfileResult)
def update_profile(
    payload: Dict[str, Any] = Body(...),
    user: Profile = Depends(get_current_user),
    gateway: DataGateway = Depends(get_gateway),
):
    # Only name, phone and address are editable by the owner.
    form = validate_profile(payload).unwrap()
    rows = gateway.update("profiles", {"id": user.id}, form.model_dump())
    return {"message": "Profile updated.", "profile": rows[0]}


@router.get("/dashboard", response_model=schemas.CustomerDashboardOut)
def dashboard(user: Profile = Depends(get_current_user), manager: ReservationManager = Depends(get_manager)):
    return views.customer_dashboard(manager, user)
