import logging
import uuid
from dataclasses import dataclass

from sqlalchemy import or_
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from loyalty_card.errors import CustomerNotFound, DuplicateBarcode, StoreOwnerNotFound, ValidationError
from loyalty_card.models.customer import Customer
from loyalty_card.models.store_owner import StoreOwner
from loyalty_card.services.barcode_service import default_customer_name, generate_barcode, is_valid_barcode
from loyalty_card.services.concurrency import run_with_retry


logger = logging.getLogger(__name__)

REGISTRATION_BONUS_POINTS = 10
MAX_BARCODE_ATTEMPTS = 5

PROFILE_FIELDS = ("name", "email", "phone", "address", "birthdate")


@dataclass
class ScanResult:
    """Outcome of a barcode scan: an existing customer, or a cue to register."""

    barcode: str
    customer: Customer | None

    @property
    def found(self) -> bool:
        return self.customer is not None


def as_uuid(value, error_cls=CustomerNotFound):
    if isinstance(value, uuid.UUID):
        return value
    try:
        return uuid.UUID(str(value))
    except (TypeError, ValueError):
        raise error_cls()


# ============================================================
# RESOLVE
# ============================================================
def find_by_barcode(db: Session, barcode: str, store_owner_id=None):
    q = db.query(Customer).filter(Customer.barcode == barcode)
    if store_owner_id is not None:
        q = q.filter(Customer.store_owner_id == as_uuid(store_owner_id, StoreOwnerNotFound))
    return q.first()


def resolve_by_barcode(db: Session, barcode: str, store_owner_id=None) -> Customer:
    """
    Map a barcode to its customer.

    With ``store_owner_id`` only that store's customers are visible; a barcode
    belonging to another store (or to no store) resolves as not found.
    """
    customer = find_by_barcode(db, barcode, store_owner_id)
    if not customer:
        raise CustomerNotFound(f"No customer with barcode {barcode}")
    return customer


def scan(db: Session, barcode: str, store_owner_id=None) -> ScanResult:
    return ScanResult(barcode=barcode, customer=find_by_barcode(db, barcode, store_owner_id))


def get_customer(db: Session, customer_id, store_owner_id=None) -> Customer:
    q = db.query(Customer).filter(Customer.id == as_uuid(customer_id))
    if store_owner_id is not None:
        q = q.filter(Customer.store_owner_id == as_uuid(store_owner_id, StoreOwnerNotFound))
    customer = q.first()
    if not customer:
        raise CustomerNotFound()
    return customer


def list_customers(db: Session, store_owner_id=None, search: str | None = None, limit: int = 100, offset: int = 0):
    q = db.query(Customer)
    if store_owner_id is not None:
        q = q.filter(Customer.store_owner_id == as_uuid(store_owner_id, StoreOwnerNotFound))
    if search:
        pattern = f"%{search.strip()}%"
        q = q.filter(
            or_(
                Customer.name.ilike(pattern),
                Customer.email.ilike(pattern),
                Customer.phone.ilike(pattern),
                Customer.barcode.ilike(pattern),
            )
        )

    limit = max(1, min(limit, 500))
    offset = max(0, offset)

    return q.order_by(Customer.created_at.desc()).offset(offset).limit(limit).all()


# ============================================================
# REGISTER
# ============================================================
def _barcode_exists(db: Session, barcode: str) -> bool:
    return db.query(Customer.id).filter(Customer.barcode == barcode).first() is not None


def register_customer(
    db: Session,
    *,
    barcode: str | None = None,
    store_owner_id=None,
    name: str | None = None,
    email: str | None = None,
    phone: str | None = None,
    address: str | None = None,
    birthdate=None,
    rng=None,
) -> Customer:
    """
    Create a customer with the registration bonus.

    An explicit barcode that already exists fails with DuplicateBarcode. When
    no barcode is given one is generated, and regenerated if the insert hits
    the unique constraint, up to MAX_BARCODE_ATTEMPTS times.
    """
    if barcode is not None and not is_valid_barcode(barcode):
        raise ValidationError("barcode must be LC followed by 7 digits")

    if name is not None and not name.strip():
        raise ValidationError("name must not be blank")

    if store_owner_id is not None:
        store_owner_id = as_uuid(store_owner_id, StoreOwnerNotFound)
        if not db.query(StoreOwner.id).filter(StoreOwner.id == store_owner_id).first():
            raise StoreOwnerNotFound()

    if barcode is not None and _barcode_exists(db, barcode):
        raise DuplicateBarcode(f"Barcode {barcode} is already registered")

    attempts = 1 if barcode is not None else MAX_BARCODE_ATTEMPTS

    for _ in range(attempts):
        candidate = barcode or generate_barcode(rng)

        def _insert():
            customer = Customer(
                barcode=candidate,
                name=name.strip() if name else default_customer_name(candidate),
                email=email,
                phone=phone,
                address=address,
                birthdate=birthdate,
                points_balance=REGISTRATION_BONUS_POINTS,
                total_spent=0,
                store_owner_id=store_owner_id,
            )
            db.add(customer)
            db.commit()
            db.refresh(customer)
            return customer

        try:
            customer = run_with_retry(db, _insert, operation="register customer")
        except IntegrityError:
            # unique constraint is the authority; a pre-check can race
            if not _barcode_exists(db, candidate):
                raise
            logger.info("barcode collision on registration", extra={"barcode": candidate})
            continue

        logger.info(
            "customer registered",
            extra={"customer_id": str(customer.id), "barcode": customer.barcode, "store_owner_id": str(store_owner_id)},
        )
        return customer

    raise DuplicateBarcode(
        f"Barcode {barcode} is already registered" if barcode else "Could not allocate a unique barcode"
    )


# ============================================================
# PROFILE
# ============================================================
def update_customer_profile(db: Session, customer_id, store_owner_id=None, **fields) -> Customer:
    unknown = set(fields) - set(PROFILE_FIELDS)
    if unknown:
        raise ValidationError(f"Cannot update fields: {', '.join(sorted(unknown))}")

    if "name" in fields and not (fields["name"] or "").strip():
        raise ValidationError("name must not be blank")

    def _apply():
        customer = get_customer(db, customer_id, store_owner_id)
        for key, value in fields.items():
            setattr(customer, key, value.strip() if key == "name" else value)
        db.commit()
        db.refresh(customer)
        return customer

    return run_with_retry(db, _apply, operation="update customer profile")
