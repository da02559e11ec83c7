from datetime import datetime
from typing import Optional

from uuid import UUID

from pydantic import BaseModel


class StoreOwnerCreate(BaseModel):
    email: str
    password: str
    store_name: str
    name: Optional[str] = None
    phone: Optional[str] = None


class StoreOwnerActiveUpdate(BaseModel):
    is_active: bool


class StoreOwnerOut(BaseModel):
    id: UUID
    email: str
    name: Optional[str] = None
    phone: Optional[str] = None
    store_name: str
    is_active: bool
    created_at: Optional[datetime] = None
    customer_count: int = 0

    class Config:
        from_attributes = True
