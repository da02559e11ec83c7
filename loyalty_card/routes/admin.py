from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from loyalty_card.db import get_db
from loyalty_card.deps.auth import require_capability
from loyalty_card.schemas.dashboard import DashboardOut
from loyalty_card.schemas.store_owner import StoreOwnerActiveUpdate, StoreOwnerCreate, StoreOwnerOut
from loyalty_card.services.dashboard_service import customer_counts_by_store_owner, dashboard_summary
from loyalty_card.services.store_owner_service import (
    create_store_owner,
    delete_store_owner,
    list_store_owners,
    set_store_owner_active,
)


router = APIRouter(prefix="/admin", tags=["admin"])


def _owner_out(owner, customer_count: int) -> StoreOwnerOut:
    out = StoreOwnerOut.model_validate(owner)
    out.customer_count = customer_count
    return out


@router.get("/store-owners", response_model=list[StoreOwnerOut])
def list_owners(
    q: str | None = None,
    _admin=Depends(require_capability("manage_store_owners")),
    db: Session = Depends(get_db),
):
    return [_owner_out(owner, count) for owner, count in list_store_owners(db, search=q)]


@router.post("/store-owners", response_model=StoreOwnerOut, status_code=201)
def create_owner(
    payload: StoreOwnerCreate,
    _admin=Depends(require_capability("manage_store_owners")),
    db: Session = Depends(get_db),
):
    owner = create_store_owner(db, **payload.model_dump())
    return _owner_out(owner, 0)


@router.patch("/store-owners/{store_owner_id}/active", response_model=StoreOwnerOut)
def toggle_owner_active(
    store_owner_id: str,
    payload: StoreOwnerActiveUpdate,
    _admin=Depends(require_capability("manage_store_owners")),
    db: Session = Depends(get_db),
):
    owner = set_store_owner_active(db, store_owner_id, payload.is_active)
    return _owner_out(owner, customer_counts_by_store_owner(db).get(owner.id, 0))


@router.delete("/store-owners/{store_owner_id}")
def remove_owner(
    store_owner_id: str,
    _admin=Depends(require_capability("manage_store_owners")),
    db: Session = Depends(get_db),
):
    delete_store_owner(db, store_owner_id)
    return {"deleted": True}


@router.get("/dashboard", response_model=DashboardOut)
def read_dashboard(
    _admin=Depends(require_capability("view_global_dashboard")),
    db: Session = Depends(get_db),
):
    return dashboard_summary(db)
