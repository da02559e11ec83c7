from datetime import datetime
from decimal import Decimal
from typing import Optional

from uuid import UUID

from pydantic import BaseModel, Field


class PurchaseCreate(BaseModel):
    amount: Decimal = Field(ge=0)
    discount_id: Optional[UUID] = None


class PurchaseOut(BaseModel):
    id: UUID
    customer_id: UUID

    amount: Decimal
    points_earned: int
    discount_applied: Optional[Decimal] = None

    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True
