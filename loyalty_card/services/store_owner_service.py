import logging

from sqlalchemy import or_, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from loyalty_card.errors import DuplicateStoreOwnerEmail, StoreOwnerNotFound, ValidationError
from loyalty_card.models.customer import Customer
from loyalty_card.models.store_owner import StoreOwner
from loyalty_card.services.concurrency import run_with_retry
from loyalty_card.services.credential_service import hash_password
from loyalty_card.services.dashboard_service import customer_counts_by_store_owner
from loyalty_card.services.identity_service import as_uuid
from loyalty_card.services.session_service import Role, revoke_sessions_for


logger = logging.getLogger(__name__)


def get_store_owner(db: Session, store_owner_id) -> StoreOwner:
    owner = db.get(StoreOwner, as_uuid(store_owner_id, StoreOwnerNotFound))
    if not owner:
        raise StoreOwnerNotFound()
    return owner


def create_store_owner(
    db: Session,
    *,
    email: str,
    password: str,
    store_name: str,
    name: str | None = None,
    phone: str | None = None,
) -> StoreOwner:
    email = (email or "").strip().lower()
    store_name = (store_name or "").strip()
    if not email or not store_name:
        raise ValidationError("email and store_name are required")

    password_hash = hash_password(password)

    if db.query(StoreOwner.id).filter(StoreOwner.email == email).first():
        raise DuplicateStoreOwnerEmail(f"A store owner with email {email} already exists")

    def _create():
        owner = StoreOwner(
            email=email,
            password=password_hash,
            store_name=store_name,
            name=name,
            phone=phone,
            is_active=True,
        )
        db.add(owner)
        db.commit()
        db.refresh(owner)
        return owner

    try:
        owner = run_with_retry(db, _create, operation="create store owner")
    except IntegrityError:
        raise DuplicateStoreOwnerEmail(f"A store owner with email {email} already exists")

    logger.info("store owner created", extra={"store_owner_id": str(owner.id), "store_name": store_name})
    return owner


def list_store_owners(db: Session, search: str | None = None):
    """Store owners, newest first, each paired with its customer count."""
    q = db.query(StoreOwner)
    if search:
        pattern = f"%{search.strip()}%"
        q = q.filter(
            or_(
                StoreOwner.name.ilike(pattern),
                StoreOwner.email.ilike(pattern),
                StoreOwner.store_name.ilike(pattern),
            )
        )
    owners = q.order_by(StoreOwner.created_at.desc()).all()

    counts = customer_counts_by_store_owner(db)
    return [(owner, counts.get(owner.id, 0)) for owner in owners]


def set_store_owner_active(db: Session, store_owner_id, is_active: bool) -> StoreOwner:
    owner = get_store_owner(db, store_owner_id)

    def _apply():
        owner.is_active = bool(is_active)
        if not is_active:
            revoke_sessions_for(db, Role.STORE_OWNER, owner.id)
        db.commit()
        db.refresh(owner)
        return owner

    owner = run_with_retry(db, _apply, operation="set store owner active")
    logger.info("store owner activation changed", extra={"store_owner_id": str(owner.id), "is_active": owner.is_active})
    return owner


def delete_store_owner(db: Session, store_owner_id) -> None:
    """Delete a store owner. Their customers stay, detached from any store."""
    owner = get_store_owner(db, store_owner_id)
    owner_id = owner.id

    def _delete():
        db.execute(
            update(Customer)
            .where(Customer.store_owner_id == owner_id)
            .values(store_owner_id=None)
            .execution_options(synchronize_session=False)
        )
        revoke_sessions_for(db, Role.STORE_OWNER, owner_id)
        db.delete(owner)
        db.commit()

    run_with_retry(db, _delete, operation="delete store owner")
    logger.info("store owner deleted", extra={"store_owner_id": str(owner_id)})
