from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from loyalty_card.db import get_db
from loyalty_card.deps.auth import require_capability
from loyalty_card.schemas.customer import CustomerOut, CustomerRegister, CustomerUpdate, ScanOut
from loyalty_card.schemas.dashboard import DashboardOut
from loyalty_card.schemas.discount import DiscountCreate, DiscountOut
from loyalty_card.schemas.point_adjustment import PointAdjustmentCreate, PointAdjustmentOut
from loyalty_card.schemas.purchase import PurchaseCreate, PurchaseOut
from loyalty_card.services.dashboard_service import dashboard_summary
from loyalty_card.services.identity_service import (
    get_customer,
    list_customers,
    register_customer,
    scan,
    update_customer_profile,
)
from loyalty_card.services.ledger_service import (
    adjust_points,
    adjustment_history,
    available_discounts,
    issue_discount,
    purchase_history,
    record_purchase,
)
from loyalty_card.services.session_service import StoreOwnerPrincipal


# Every route here is scoped to the logged-in store owner's customers.
router = APIRouter(prefix="/store", tags=["store"])


@router.post("/customers", response_model=CustomerOut, status_code=201)
def register_store_customer(
    payload: CustomerRegister,
    principal: StoreOwnerPrincipal = Depends(require_capability("register_customer")),
    db: Session = Depends(get_db),
):
    return register_customer(
        db,
        store_owner_id=principal.store_owner.id,
        **payload.model_dump(),
    )


@router.get("/customers", response_model=list[CustomerOut])
def list_store_customers(
    q: str | None = None,
    limit: int = 100,
    offset: int = 0,
    principal: StoreOwnerPrincipal = Depends(require_capability("view_customers")),
    db: Session = Depends(get_db),
):
    return list_customers(db, principal.store_owner.id, search=q, limit=limit, offset=offset)


@router.get("/customers/scan/{barcode}", response_model=ScanOut)
def scan_barcode(
    barcode: str,
    principal: StoreOwnerPrincipal = Depends(require_capability("scan_barcode")),
    db: Session = Depends(get_db),
):
    result = scan(db, barcode, principal.store_owner.id)
    customer = CustomerOut.model_validate(result.customer) if result.found else None
    return ScanOut(barcode=result.barcode, found=result.found, customer=customer)


@router.get("/customers/{customer_id}", response_model=CustomerOut)
def read_store_customer(
    customer_id: str,
    principal: StoreOwnerPrincipal = Depends(require_capability("view_customers")),
    db: Session = Depends(get_db),
):
    return get_customer(db, customer_id, principal.store_owner.id)


@router.patch("/customers/{customer_id}", response_model=CustomerOut)
def update_store_customer(
    customer_id: str,
    payload: CustomerUpdate,
    principal: StoreOwnerPrincipal = Depends(require_capability("update_customer")),
    db: Session = Depends(get_db),
):
    return update_customer_profile(
        db,
        customer_id,
        principal.store_owner.id,
        **payload.model_dump(exclude_unset=True),
    )


@router.post("/customers/{customer_id}/purchases", response_model=PurchaseOut, status_code=201)
def record_store_purchase(
    customer_id: str,
    payload: PurchaseCreate,
    principal: StoreOwnerPrincipal = Depends(require_capability("record_purchase")),
    db: Session = Depends(get_db),
):
    return record_purchase(
        db,
        customer_id,
        payload.amount,
        discount_id=payload.discount_id,
        store_owner_id=principal.store_owner.id,
    )


@router.get("/customers/{customer_id}/purchases", response_model=list[PurchaseOut])
def list_store_purchases(
    customer_id: str,
    limit: int = 100,
    offset: int = 0,
    principal: StoreOwnerPrincipal = Depends(require_capability("view_customers")),
    db: Session = Depends(get_db),
):
    return purchase_history(db, customer_id, principal.store_owner.id, limit=limit, offset=offset)


@router.post("/customers/{customer_id}/discounts", response_model=DiscountOut, status_code=201)
def issue_store_discount(
    customer_id: str,
    payload: DiscountCreate,
    principal: StoreOwnerPrincipal = Depends(require_capability("issue_discount")),
    db: Session = Depends(get_db),
):
    return issue_discount(
        db,
        customer_id,
        payload.amount,
        expiry_date=payload.expiry_date,
        store_owner_id=principal.store_owner.id,
    )


@router.get("/customers/{customer_id}/discounts", response_model=list[DiscountOut])
def list_store_discounts(
    customer_id: str,
    principal: StoreOwnerPrincipal = Depends(require_capability("view_customers")),
    db: Session = Depends(get_db),
):
    return available_discounts(db, customer_id, principal.store_owner.id)


@router.post("/customers/{customer_id}/points", response_model=CustomerOut)
def adjust_store_points(
    customer_id: str,
    payload: PointAdjustmentCreate,
    principal: StoreOwnerPrincipal = Depends(require_capability("adjust_points")),
    db: Session = Depends(get_db),
):
    return adjust_points(
        db,
        customer_id,
        payload.points,
        reason=payload.reason,
        store_owner_id=principal.store_owner.id,
    )


@router.get("/customers/{customer_id}/points", response_model=list[PointAdjustmentOut])
def list_store_point_adjustments(
    customer_id: str,
    principal: StoreOwnerPrincipal = Depends(require_capability("view_customers")),
    db: Session = Depends(get_db),
):
    return adjustment_history(db, customer_id, principal.store_owner.id)


@router.get("/dashboard", response_model=DashboardOut)
def read_store_dashboard(
    principal: StoreOwnerPrincipal = Depends(require_capability("view_store_dashboard")),
    db: Session = Depends(get_db),
):
    return dashboard_summary(db, principal.store_owner.id)
