from datetime import timedelta

import pytest

from loyalty_card.errors import InvalidCredentials, RoleConflict, ValidationError
from loyalty_card.models.auth_session import AuthSession
from loyalty_card.services.credential_service import hash_password, verify_password
from loyalty_card.services.session_service import (
    ANONYMOUS,
    AdminPrincipal,
    CustomerPrincipal,
    Role,
    SessionManager,
    StoreOwnerPrincipal,
    authenticate,
    can,
    hash_token,
)
from loyalty_card.services.store_owner_service import set_store_owner_active
from tests.conftest import ADMIN_PASSWORD, OWNER_PASSWORD


def test_passwords_are_hashed_and_verified():
    hashed = hash_password("correct horse")

    assert hashed != "correct horse"
    assert verify_password("correct horse", hashed)
    assert not verify_password("wrong horse", hashed)
    assert not verify_password("correct horse", "not-a-bcrypt-hash")
    assert hash_password("correct horse") != hashed


def test_empty_password_is_rejected():
    with pytest.raises(ValidationError):
        hash_password("  ")


def test_store_owner_password_is_not_stored_in_plaintext(store_owner):
    assert store_owner.password != OWNER_PASSWORD
    assert verify_password(OWNER_PASSWORD, store_owner.password)


def test_authenticate_each_role(db, store_owner, admin, customer):
    assert isinstance(authenticate(db, "customer", customer.barcode), CustomerPrincipal)
    assert isinstance(authenticate(db, "store_owner", "owner@scentshop.test", OWNER_PASSWORD), StoreOwnerPrincipal)
    assert isinstance(authenticate(db, "admin", "root", ADMIN_PASSWORD), AdminPrincipal)


def test_store_owner_email_is_case_insensitive(db, store_owner):
    principal = authenticate(db, Role.STORE_OWNER, "Owner@ScentShop.test", OWNER_PASSWORD)
    assert principal.store_owner.id == store_owner.id


@pytest.mark.parametrize(
    "kind, identifier, secret",
    [
        ("store_owner", "owner@scentshop.test", "wrong"),
        ("store_owner", "nobody@scentshop.test", OWNER_PASSWORD),
        ("admin", "root", "wrong"),
        ("admin", "nobody", ADMIN_PASSWORD),
        ("customer", "LC9999999", None),
    ],
)
def test_bad_credentials(db, store_owner, admin, customer, kind, identifier, secret):
    with pytest.raises(InvalidCredentials):
        authenticate(db, kind, identifier, secret)


def test_inactive_store_owner_cannot_log_in(db, store_owner):
    set_store_owner_active(db, store_owner.id, False)

    with pytest.raises(InvalidCredentials):
        authenticate(db, Role.STORE_OWNER, "owner@scentshop.test", OWNER_PASSWORD)


def test_customer_login_respects_store_scope(db, store_owner, other_store_owner, store_customer):
    assert authenticate(db, Role.CUSTOMER, store_customer.barcode, store_owner_id=store_owner.id)

    with pytest.raises(InvalidCredentials):
        authenticate(db, Role.CUSTOMER, store_customer.barcode, store_owner_id=other_store_owner.id)


def test_unknown_role_is_rejected(db):
    with pytest.raises(ValidationError):
        authenticate(db, "staff", "someone", "secret")


def test_login_current_logout(db, store_owner):
    sessions = SessionManager(db)

    principal, token = sessions.login(Role.STORE_OWNER, "owner@scentshop.test", OWNER_PASSWORD)

    assert principal.store_owner.id == store_owner.id
    stored = db.query(AuthSession).one()
    assert stored.token_hash == hash_token(token)
    assert stored.role == "store_owner"

    current = sessions.current(token)
    assert isinstance(current, StoreOwnerPrincipal)
    assert current.store_owner.id == store_owner.id

    sessions.logout(token)
    assert sessions.current(token) is ANONYMOUS
    # second logout is a no-op
    sessions.logout(token)
    sessions.logout(None)


def test_missing_or_unknown_token_is_anonymous(db):
    sessions = SessionManager(db)
    assert sessions.current(None) is ANONYMOUS
    assert sessions.current("deadbeef") is ANONYMOUS
    assert not ANONYMOUS.is_authenticated
    assert ANONYMOUS.role is None


def test_session_survives_a_new_process(session_factory, store_owner):
    first = session_factory()
    try:
        _, token = SessionManager(first).login(Role.STORE_OWNER, "owner@scentshop.test", OWNER_PASSWORD)
    finally:
        first.close()

    second = session_factory()
    try:
        principal = SessionManager(second).current(token)
        assert isinstance(principal, StoreOwnerPrincipal)
    finally:
        second.close()


def test_switching_role_requires_logout(db, store_owner, admin):
    sessions = SessionManager(db)
    _, admin_token = sessions.login(Role.ADMIN, "root", ADMIN_PASSWORD)

    with pytest.raises(RoleConflict):
        sessions.login(
            Role.STORE_OWNER,
            "owner@scentshop.test",
            OWNER_PASSWORD,
            current_token=admin_token,
        )

    # the admin session is untouched by the refused switch
    assert isinstance(sessions.current(admin_token), AdminPrincipal)

    sessions.logout(admin_token)
    principal, _ = sessions.login(
        Role.STORE_OWNER,
        "owner@scentshop.test",
        OWNER_PASSWORD,
        current_token=admin_token,
    )
    assert isinstance(principal, StoreOwnerPrincipal)


def test_same_role_login_replaces_the_session(db, store_owner):
    sessions = SessionManager(db)
    _, old_token = sessions.login(Role.STORE_OWNER, "owner@scentshop.test", OWNER_PASSWORD)

    _, new_token = sessions.login(
        Role.STORE_OWNER,
        "owner@scentshop.test",
        OWNER_PASSWORD,
        current_token=old_token,
    )

    assert sessions.current(old_token) is ANONYMOUS
    assert isinstance(sessions.current(new_token), StoreOwnerPrincipal)


def test_expired_session_is_anonymous(db, admin):
    sessions = SessionManager(db, ttl=timedelta(seconds=-1))
    _, token = sessions.login(Role.ADMIN, "root", ADMIN_PASSWORD)

    assert sessions.current(token) is ANONYMOUS


def test_deactivating_a_store_owner_ends_their_sessions(db, store_owner):
    sessions = SessionManager(db)
    _, token = sessions.login(Role.STORE_OWNER, "owner@scentshop.test", OWNER_PASSWORD)

    set_store_owner_active(db, store_owner.id, False)

    assert sessions.current(token) is ANONYMOUS
    assert db.query(AuthSession).filter(AuthSession.revoked_at.is_(None)).count() == 0


def test_capabilities_are_role_specific(db, store_owner, admin, customer):
    customer_principal = CustomerPrincipal(customer)
    owner_principal = StoreOwnerPrincipal(store_owner)
    admin_principal = AdminPrincipal(admin)

    assert can(customer_principal, "view_own_profile")
    assert not can(customer_principal, "record_purchase")

    assert can(owner_principal, "record_purchase")
    assert can(owner_principal, "register_customer")
    assert not can(owner_principal, "manage_store_owners")

    assert can(admin_principal, "manage_store_owners")
    assert not can(admin_principal, "record_purchase")

    assert not can(ANONYMOUS, "view_own_profile")
