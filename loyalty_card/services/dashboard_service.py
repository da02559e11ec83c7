from sqlalchemy import func
from sqlalchemy.orm import Session

from loyalty_card.errors import StoreOwnerNotFound
from loyalty_card.models.customer import Customer
from loyalty_card.models.store_owner import StoreOwner
from loyalty_card.services.identity_service import as_uuid
from loyalty_card.services.ledger_service import to_money


def customer_counts_by_store_owner(db: Session) -> dict:
    rows = (
        db.query(Customer.store_owner_id, func.count(Customer.id))
        .filter(Customer.store_owner_id.isnot(None))
        .group_by(Customer.store_owner_id)
        .all()
    )
    return {owner_id: int(count) for owner_id, count in rows}


def dashboard_summary(db: Session, store_owner_id=None) -> dict:
    """
    Totals over committed customer rows. Scoped to one store when
    ``store_owner_id`` is given; recomputed on every call.
    """
    q = db.query(
        func.count(Customer.id),
        func.coalesce(func.sum(Customer.points_balance), 0),
        func.coalesce(func.sum(Customer.total_spent), 0),
    )
    stores = db.query(func.count(StoreOwner.id)).filter(StoreOwner.is_active.is_(True))
    if store_owner_id is not None:
        store_owner_id = as_uuid(store_owner_id, StoreOwnerNotFound)
        q = q.filter(Customer.store_owner_id == store_owner_id)
        # only the owner's own store counts
        stores = stores.filter(StoreOwner.id == store_owner_id)

    total_customers, total_points, total_spent = q.one()
    active_stores = stores.scalar()

    return {
        "totalCustomers": int(total_customers or 0),
        "activeStores": int(active_stores or 0),
        "totalPoints": int(total_points or 0),
        "totalSpent": to_money(total_spent or 0),
    }
