"""
Authenticated principal and session lifecycle.

A session is bound to exactly one principal: a customer, a store owner or an
admin. The principal is a tagged variant, so "admin and store owner at once"
is not representable. Sessions are stored durably (hashed bearer token, role,
principal id) and survive process restarts; logging out revokes the session.
Switching role requires logging out first.
"""

from __future__ import annotations

import enum
import hashlib
import logging
import secrets
from dataclasses import dataclass
from datetime import timedelta
from typing import ClassVar, Union

from sqlalchemy import update
from sqlalchemy.orm import Session

from loyalty_card import config
from loyalty_card.errors import RoleConflict, ValidationError
from loyalty_card.models.admin import Admin
from loyalty_card.models.auth_session import AuthSession
from loyalty_card.models.customer import Customer
from loyalty_card.models.store_owner import StoreOwner
from loyalty_card.services import credential_service
from loyalty_card.services.concurrency import run_with_retry
from loyalty_card.time_utils import utcnow


logger = logging.getLogger(__name__)


class Role(str, enum.Enum):
    CUSTOMER = "customer"
    STORE_OWNER = "store_owner"
    ADMIN = "admin"


# ============================================================
# PRINCIPALS
# ============================================================
@dataclass(frozen=True)
class Anonymous:
    role: ClassVar[Role | None] = None
    is_authenticated: ClassVar[bool] = False

    @property
    def principal_id(self):
        return None


@dataclass(frozen=True)
class CustomerPrincipal:
    customer: Customer

    role: ClassVar[Role] = Role.CUSTOMER
    is_authenticated: ClassVar[bool] = True

    @property
    def principal_id(self):
        return self.customer.id


@dataclass(frozen=True)
class StoreOwnerPrincipal:
    store_owner: StoreOwner

    role: ClassVar[Role] = Role.STORE_OWNER
    is_authenticated: ClassVar[bool] = True

    @property
    def principal_id(self):
        return self.store_owner.id


@dataclass(frozen=True)
class AdminPrincipal:
    admin: Admin

    role: ClassVar[Role] = Role.ADMIN
    is_authenticated: ClassVar[bool] = True

    @property
    def principal_id(self):
        return self.admin.id


Principal = Union[Anonymous, CustomerPrincipal, StoreOwnerPrincipal, AdminPrincipal]

ANONYMOUS = Anonymous()


# ============================================================
# CAPABILITIES
# ============================================================
CAPABILITIES: dict[Role, frozenset[str]] = {
    Role.CUSTOMER: frozenset({
        "view_own_profile",
        "view_own_purchases",
        "view_own_discounts",
    }),
    Role.STORE_OWNER: frozenset({
        "register_customer",
        "scan_barcode",
        "view_customers",
        "update_customer",
        "record_purchase",
        "issue_discount",
        "adjust_points",
        "view_store_dashboard",
    }),
    Role.ADMIN: frozenset({
        "manage_store_owners",
        "view_global_dashboard",
    }),
}


def can(principal: Principal, capability: str) -> bool:
    if principal.role is None:
        return False
    return capability in CAPABILITIES.get(principal.role, frozenset())


def parse_role(value) -> Role:
    try:
        return Role(value)
    except ValueError:
        raise ValidationError(f"Unknown role: {value!r}")


# ============================================================
# TOKENS
# ============================================================
def generate_token() -> str:
    return secrets.token_hex(32)


def hash_token(token: str) -> str:
    return hashlib.sha256(token.encode("utf-8")).hexdigest()


def authenticate(db: Session, kind, identifier: str, secret: str | None = None, store_owner_id=None) -> Principal:
    """Check credentials for one role; raises InvalidCredentials on any mismatch."""
    role = parse_role(kind)
    if role is Role.CUSTOMER:
        return CustomerPrincipal(credential_service.authenticate_customer(db, identifier, store_owner_id))
    if role is Role.STORE_OWNER:
        return StoreOwnerPrincipal(credential_service.authenticate_store_owner(db, identifier, secret))
    return AdminPrincipal(credential_service.authenticate_admin(db, identifier, secret))


def revoke_sessions_for(db: Session, role: Role, principal_id) -> None:
    """Mark every live session of a principal revoked. Caller commits."""
    db.execute(
        update(AuthSession)
        .where(
            AuthSession.role == role.value,
            AuthSession.principal_id == principal_id,
            AuthSession.revoked_at.is_(None),
        )
        .values(revoked_at=utcnow())
        .execution_options(synchronize_session=False)
    )


class SessionManager:
    """
    Session lifecycle for one request: create on login, read on every
    handler that needs the active principal, clear on logout.
    """

    def __init__(self, db: Session, ttl: timedelta | None = None):
        self.db = db
        self.ttl = ttl or timedelta(hours=config.SESSION_TTL_HOURS)

    def _live_session(self, token: str | None) -> AuthSession | None:
        if not token:
            return None
        session = (
            self.db.query(AuthSession)
            .filter(AuthSession.token_hash == hash_token(token))
            .filter(AuthSession.revoked_at.is_(None))
            .first()
        )
        if not session or session.expires_at < utcnow():
            return None
        return session

    def _load_principal(self, session: AuthSession) -> Principal:
        role = Role(session.role)
        if role is Role.CUSTOMER:
            customer = self.db.get(Customer, session.principal_id)
            return CustomerPrincipal(customer) if customer else ANONYMOUS
        if role is Role.STORE_OWNER:
            owner = self.db.get(StoreOwner, session.principal_id)
            return StoreOwnerPrincipal(owner) if owner and owner.is_active else ANONYMOUS
        admin = self.db.get(Admin, session.principal_id)
        return AdminPrincipal(admin) if admin else ANONYMOUS

    def current(self, token: str | None) -> Principal:
        session = self._live_session(token)
        if not session:
            return ANONYMOUS
        principal = self._load_principal(session)
        if not principal.is_authenticated:
            # principal deleted or deactivated since login
            session.revoked_at = utcnow()
            self.db.commit()
        return principal

    def login(
        self,
        kind,
        identifier: str,
        secret: str | None = None,
        *,
        current_token: str | None = None,
        store_owner_id=None,
    ) -> tuple[Principal, str]:
        role = parse_role(kind)

        existing = self._live_session(current_token)
        if existing and existing.role != role.value:
            raise RoleConflict(f"Logged in as {existing.role}; log out before signing in as {role.value}")

        principal = authenticate(self.db, role, identifier, secret, store_owner_id)

        token = generate_token()

        def _create():
            if existing:
                existing.revoked_at = utcnow()
            now = utcnow()
            self.db.add(
                AuthSession(
                    token_hash=hash_token(token),
                    role=role.value,
                    principal_id=principal.principal_id,
                    created_at=now,
                    expires_at=now + self.ttl,
                )
            )
            self.db.commit()

        run_with_retry(self.db, _create, operation="create session")

        logger.info("login", extra={"role": role.value, "principal_id": str(principal.principal_id)})
        return principal, token

    def logout(self, token: str | None) -> None:
        if not token:
            return

        def _revoke():
            self.db.execute(
                update(AuthSession)
                .where(AuthSession.token_hash == hash_token(token), AuthSession.revoked_at.is_(None))
                .values(revoked_at=utcnow())
                .execution_options(synchronize_session=False)
            )
            self.db.commit()

        run_with_retry(self.db, _revoke, operation="logout")
        logger.info("logout")
