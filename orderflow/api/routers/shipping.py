# orderflow/api/routers/shipping.py
from fastapi import APIRouter, HTTPException

from orderflow.domain.schemas import ShippingCalculationIn, ShippingQuoteOut
from orderflow.services.shipping_service import calculate_shipping

router = APIRouter(prefix="/shipping", tags=["shipping"])


@router.post("/calculate", response_model=ShippingQuoteOut)
def calculate(payload: ShippingCalculationIn):
    if not payload.items:
        raise HTTPException(status_code=400, detail="Items array is required and must not be empty")
    if not payload.zone:
        raise HTTPException(status_code=400, detail="Shipping zone is required")

    return calculate_shipping(payload.zone, [(i.category, i.quantity) for i in payload.items])
