import logging
from typing import Any, Dict, List

from fastapi import APIRouter, Body, Depends, status

from .. import schemas
from ..deps import RequireAdmin, get_gateway
from ..errors import ConflictError, NotFoundError
from ..gateway import DataGateway
from ..validation import validate_service

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/services", tags=["services"])


@router.get("/", response_model=List[schemas.ServiceOut])
def list_services(gateway: DataGateway = Depends(get_gateway)):
    return gateway.select("services", filters={"is_active": True}, order=("name",))


@router.get("/{service_id}", response_model=schemas.ServiceOut)
def get_service(service_id: str, gateway: DataGateway = Depends(get_gateway)):
    svc = gateway.select_one("services", {"id": service_id})
    if not svc:
        raise NotFoundError("Service not found")
    return svc


@router.post("/", response_model=schemas.ServiceOut, status_code=status.HTTP_201_CREATED, dependencies=[Depends(RequireAdmin)])
def create_service(payload: Dict[str, Any] = Body(...), gateway: DataGateway = Depends(get_gateway)):
    form = validate_service(payload).unwrap()
    if gateway.exists("services", {"name": form.name}):
        raise ConflictError("Service already exists")
    svc = gateway.insert("services", form.model_dump())
    logger.info("Service %s created", svc.id)
    return svc


@router.put("/{service_id}", response_model=schemas.ServiceOut, dependencies=[Depends(RequireAdmin)])
def update_service(service_id: str, payload: Dict[str, Any] = Body(...), gateway: DataGateway = Depends(get_gateway)):
    form = validate_service(payload, partial=True).unwrap()
    rows = gateway.update("services", {"id": service_id}, form.model_dump(exclude_unset=True))
    if not rows:
        raise NotFoundError("Service not found")
    return rows[0]


@router.delete("/{service_id}", response_model=schemas.DeleteResult, dependencies=[Depends(RequireAdmin)])
def delete_service(service_id: str, gateway: DataGateway = Depends(get_gateway)):
    if not gateway.delete("services", {"id": service_id}):
        raise NotFoundError("Service not found")
    logger.info("Service %s deleted", service_id)
    return {"ok": True, "message": "Service deleted"}
