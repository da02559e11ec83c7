from fastapi import APIRouter, Depends

from loyalty_card.deps.auth import get_bearer_token, get_principal, get_session_manager
from loyalty_card.schemas.auth import AdminLogin, CustomerLogin, LoginOut, PrincipalOut, StoreOwnerLogin
from loyalty_card.services.session_service import (
    AdminPrincipal,
    CustomerPrincipal,
    Principal,
    Role,
    SessionManager,
    StoreOwnerPrincipal,
)


router = APIRouter(prefix="/auth", tags=["auth"])


def _login_out(principal: Principal, token: str) -> LoginOut:
    return LoginOut(token=token, role=principal.role.value, principal_id=principal.principal_id)


@router.post("/customer/login", response_model=LoginOut)
def login_customer(
    payload: CustomerLogin,
    token: str | None = Depends(get_bearer_token),
    sessions: SessionManager = Depends(get_session_manager),
):
    principal, new_token = sessions.login(
        Role.CUSTOMER,
        payload.barcode,
        current_token=token,
        store_owner_id=payload.store_owner_id,
    )
    return _login_out(principal, new_token)


@router.post("/store-owner/login", response_model=LoginOut)
def login_store_owner(
    payload: StoreOwnerLogin,
    token: str | None = Depends(get_bearer_token),
    sessions: SessionManager = Depends(get_session_manager),
):
    principal, new_token = sessions.login(Role.STORE_OWNER, payload.email, payload.password, current_token=token)
    return _login_out(principal, new_token)


@router.post("/admin/login", response_model=LoginOut)
def login_admin(
    payload: AdminLogin,
    token: str | None = Depends(get_bearer_token),
    sessions: SessionManager = Depends(get_session_manager),
):
    principal, new_token = sessions.login(Role.ADMIN, payload.username, payload.password, current_token=token)
    return _login_out(principal, new_token)


@router.post("/logout")
def logout(
    token: str | None = Depends(get_bearer_token),
    sessions: SessionManager = Depends(get_session_manager),
):
    sessions.logout(token)
    return {"loggedOut": True}


@router.get("/me", response_model=PrincipalOut)
def who_am_i(principal: Principal = Depends(get_principal)):
    if isinstance(principal, CustomerPrincipal):
        display_name = principal.customer.name
    elif isinstance(principal, StoreOwnerPrincipal):
        display_name = principal.store_owner.store_name
    elif isinstance(principal, AdminPrincipal):
        display_name = principal.admin.username
    else:
        return PrincipalOut(authenticated=False)

    return PrincipalOut(
        authenticated=True,
        role=principal.role.value,
        principal_id=principal.principal_id,
        display_name=display_name,
    )
