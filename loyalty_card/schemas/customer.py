from datetime import date, datetime
from decimal import Decimal
from typing import Optional

from uuid import UUID

from pydantic import BaseModel


class CustomerRegister(BaseModel):
    # omitted -> generated
    barcode: Optional[str] = None

    name: Optional[str] = None
    email: Optional[str] = None
    phone: Optional[str] = None
    address: Optional[str] = None
    birthdate: Optional[date] = None


class CustomerUpdate(BaseModel):
    name: Optional[str] = None
    email: Optional[str] = None
    phone: Optional[str] = None
    address: Optional[str] = None
    birthdate: Optional[date] = None


class CustomerOut(BaseModel):
    id: UUID
    barcode: str
    name: str

    email: Optional[str] = None
    phone: Optional[str] = None
    address: Optional[str] = None
    birthdate: Optional[date] = None

    points_balance: int
    total_spent: Decimal

    store_owner_id: Optional[UUID] = None
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class ScanOut(BaseModel):
    barcode: str
    found: bool
    customer: Optional[CustomerOut] = None
