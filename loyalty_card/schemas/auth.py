from typing import Optional

from uuid import UUID

from pydantic import BaseModel


class CustomerLogin(BaseModel):
    barcode: str
    store_owner_id: Optional[UUID] = None


class StoreOwnerLogin(BaseModel):
    email: str
    password: str


class AdminLogin(BaseModel):
    username: str
    password: str


class LoginOut(BaseModel):
    token: str
    role: str
    principal_id: UUID


class PrincipalOut(BaseModel):
    authenticated: bool
    role: Optional[str] = None
    principal_id: Optional[UUID] = None
    display_name: Optional[str] = None
