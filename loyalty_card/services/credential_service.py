"""
Credential checks for the three principal tables.

Admin and store owner passwords are stored as bcrypt hashes and verified
with ``bcrypt.checkpw`` (constant time). Customers log in with their barcode
alone, optionally scoped to the store they belong to.
"""

import logging

import bcrypt
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from loyalty_card import config
from loyalty_card.errors import DuplicateAdminUsername, InvalidCredentials, ValidationError
from loyalty_card.models.admin import Admin
from loyalty_card.models.customer import Customer
from loyalty_card.models.store_owner import StoreOwner
from loyalty_card.services.concurrency import run_with_retry
from loyalty_card.services.identity_service import find_by_barcode


logger = logging.getLogger(__name__)

_dummy_hash: bytes | None = None


def hash_password(password: str) -> str:
    if not password or not password.strip():
        raise ValidationError("Password must not be empty")
    salt = bcrypt.gensalt(rounds=config.BCRYPT_ROUNDS)
    return bcrypt.hashpw(password.encode("utf-8"), salt).decode("utf-8")


def verify_password(password: str | None, password_hash: str | None) -> bool:
    if not password or not password_hash:
        return False
    try:
        return bcrypt.checkpw(password.encode("utf-8"), password_hash.encode("utf-8"))
    except ValueError:
        # malformed stored hash
        return False


def _burn_password_check(password: str | None) -> None:
    # keep unknown-identifier logins as slow as wrong-password ones
    global _dummy_hash
    if _dummy_hash is None:
        _dummy_hash = bcrypt.hashpw(b"loyalty-card", bcrypt.gensalt(rounds=config.BCRYPT_ROUNDS))
    bcrypt.checkpw((password or "").encode("utf-8"), _dummy_hash)


# ============================================================
# AUTHENTICATE
# ============================================================
def authenticate_customer(db: Session, barcode: str, store_owner_id=None) -> Customer:
    customer = find_by_barcode(db, (barcode or "").strip(), store_owner_id)
    if not customer:
        raise InvalidCredentials("Invalid barcode")
    return customer


def authenticate_store_owner(db: Session, email: str, password: str) -> StoreOwner:
    owner = (
        db.query(StoreOwner)
        .filter(StoreOwner.email == (email or "").strip().lower())
        .first()
    )
    if not owner:
        _burn_password_check(password)
        raise InvalidCredentials("Invalid email or password")
    if not verify_password(password, owner.password) or not owner.is_active:
        raise InvalidCredentials("Invalid email or password")
    return owner


def authenticate_admin(db: Session, username: str, password: str) -> Admin:
    admin = db.query(Admin).filter(Admin.username == (username or "").strip()).first()
    if not admin:
        _burn_password_check(password)
        raise InvalidCredentials("Invalid username or password")
    if not verify_password(password, admin.password):
        raise InvalidCredentials("Invalid username or password")
    return admin


# ============================================================
# ADMINS
# ============================================================
def create_admin(db: Session, username: str, password: str) -> Admin:
    username = (username or "").strip()
    if not username:
        raise ValidationError("username is required")

    password_hash = hash_password(password)

    if db.query(Admin.id).filter(Admin.username == username).first():
        raise DuplicateAdminUsername(f"Admin {username} already exists")

    def _create():
        admin = Admin(username=username, password=password_hash)
        db.add(admin)
        db.commit()
        db.refresh(admin)
        return admin

    try:
        admin = run_with_retry(db, _create, operation="create admin")
    except IntegrityError:
        raise DuplicateAdminUsername(f"Admin {username} already exists")

    logger.info("admin created", extra={"admin_id": str(admin.id), "username": username})
    return admin


def ensure_admin(db: Session, username: str, password: str) -> Admin:
    existing = db.query(Admin).filter(Admin.username == username.strip()).first()
    if existing:
        return existing
    return create_admin(db, username, password)
