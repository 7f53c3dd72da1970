# orderflow/api/routers/discounts.py
from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from orderflow.api.deps import http_error
from orderflow.data.database import get_db
from orderflow.domain.errors import OrderflowError
from orderflow.domain.schemas import DiscountValidateIn, DiscountValidationOut
from orderflow.services.pricing_service import DiscountService

router = APIRouter(prefix="/discounts", tags=["discounts"])


@router.post("/validate", response_model=DiscountValidationOut, response_model_exclude_none=True)
def validate_discount(payload: DiscountValidateIn, db: Session = Depends(get_db)):
    """Unusable codes answer 200 with valid=false and a reason."""
    svc = DiscountService(db)
    try:
        return svc.validate(payload.code, payload.subtotal)
    except OrderflowError as e:
        raise http_error(e)
