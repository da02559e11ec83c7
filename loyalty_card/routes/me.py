from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from loyalty_card.db import get_db
from loyalty_card.deps.auth import require_capability
from loyalty_card.schemas.customer import CustomerOut
from loyalty_card.schemas.discount import DiscountOut
from loyalty_card.schemas.purchase import PurchaseOut
from loyalty_card.services.ledger_service import available_discounts, purchase_history
from loyalty_card.services.session_service import CustomerPrincipal

router = APIRouter(prefix="/me", tags=["me"])


@router.get("/profile", response_model=CustomerOut)
def read_profile(principal: CustomerPrincipal = Depends(require_capability("view_own_profile"))):
    return principal.customer


@router.get("/purchases", response_model=list[PurchaseOut])
def read_purchases(
    limit: int = 100,
    offset: int = 0,
    principal: CustomerPrincipal = Depends(require_capability("view_own_purchases")),
    db: Session = Depends(get_db),
):
    return purchase_history(db, principal.customer.id, limit=limit, offset=offset)


@router.get("/discounts", response_model=list[DiscountOut])
def read_discounts(
    principal: CustomerPrincipal = Depends(require_capability("view_own_discounts")),
    db: Session = Depends(get_db),
):
    return available_discounts(db, principal.customer.id)
