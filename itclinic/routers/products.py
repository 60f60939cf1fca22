import logging
from typing import Any, Dict, List, Optional

from fastapi import APIRouter, Body, Depends, status

from .. import schemas
from ..deps import RequireAdmin, get_gateway
from ..errors import NotFoundError
from ..gateway import DataGateway
from ..models import PRODUCT_CATEGORIES
from ..validation import validate_product

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/products", tags=["products"])


@router.get("/", response_model=List[schemas.ProductOut])
def list_products(
    search: Optional[str] = None,
    category: Optional[str] = None,
    gateway: DataGateway = Depends(get_gateway),
):
    """Catalog listing, newest first. ``search`` matches name or category."""
    filters = {"category": category} if category else {}
    term = (search or "").strip()
    return gateway.select(
        "products",
        filters=filters,
        search=(term, ("name", "category")) if term else None,
        order=("-created_at",),
    )


@router.get("/categories", response_model=List[str])
def list_categories():
    return list(PRODUCT_CATEGORIES)


@router.get("/{product_id}", response_model=schemas.ProductOut)
def get_product(product_id: str, gateway: DataGateway = Depends(get_gateway)):
    product = gateway.select_one("products", {"id": product_id})
    if not product:
        raise NotFoundError("Product not found")
    return product


@router.post("/", response_model=schemas.ProductOut, status_code=status.HTTP_201_CREATED, dependencies=[Depends(RequireAdmin)])
def create_product(payload: Dict[str, Any] = Body(...), gateway: DataGateway = Depends(get_gateway)):
    form = validate_product(payload).unwrap()
    product = gateway.insert("products", form.model_dump())
    logger.info("Product %s created", product.id)
    return product


@router.put("/{product_id}", response_model=schemas.ProductOut, dependencies=[Depends(RequireAdmin)])
def update_product(product_id: str, payload: Dict[str, Any] = Body(...), gateway: DataGateway = Depends(get_gateway)):
    form = validate_product(payload, partial=True).unwrap()
    rows = gateway.update("products", {"id": product_id}, form.model_dump(exclude_unset=True))
    if not rows:
        raise NotFoundError("Product not found")
    return rows[0]


@router.delete("/{product_id}", response_model=schemas.DeleteResult, dependencies=[Depends(RequireAdmin)])
def delete_product(product_id: str, gateway: DataGateway = Depends(get_gateway)):
    if not gateway.delete("products", {"id": product_id}):
        raise NotFoundError("Product not found")
    logger.info("Product %s deleted", product_id)
    return {"ok": True, "message": "Product deleted"}
