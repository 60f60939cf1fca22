import logging
from typing import Any, Dict, List

from fastapi import APIRouter, Body, Depends, status

from .. import schemas, views
from ..deps import get_gateway
from ..gateway import DataGateway
from ..models import ConsultationStatus
from ..validation import validate_contact

logger = logging.getLogger(__name__)

router = APIRouter(tags=["public"])


@router.post("/contact/", response_model=schemas.ConsultationResult, status_code=status.HTTP_201_CREATED)
def submit_contact(payload: Dict[str, Any] = Body(...), gateway: DataGateway = Depends(get_gateway)):
    form = validate_contact(payload).unwrap()
    consultation = gateway.insert(
        "consultations",
        {**form.model_dump(), "status": ConsultationStatus.NEW.value},
    )
    logger.info("Consultation %s received", consultation.id)
    return {"message": "Thank you for reaching out. We'll get back to you soon.", "consultation": consultation}


@router.get("/testimonials/", response_model=List[schemas.TestimonialOut])
def list_testimonials(gateway: DataGateway = Depends(get_gateway)):
    return gateway.select("testimonials", filters={"is_active": True}, order=("-created_at",))


@router.get("/stats/", response_model=schemas.PublicStats)
def stats(gateway: DataGateway = Depends(get_gateway)):
    return views.public_stats(gateway)
