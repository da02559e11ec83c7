from datetime import date, datetime, time
from decimal import Decimal
from typing import Optional

from uuid import UUID

from pydantic import BaseModel, Field, field_validator


class DiscountCreate(BaseModel):
    amount: Decimal = Field(gt=0)
    # defaults to 30 days from issue; a bare date runs to the end of that day (UTC)
    expiry_date: Optional[datetime] = None

    @field_validator("expiry_date", mode="before")
    @classmethod
    def bare_date_is_end_of_day(cls, value):
        if isinstance(value, str) and len(value) == 10:
            try:
                value = date.fromisoformat(value)
            except ValueError:
                return value
        if isinstance(value, date) and not isinstance(value, datetime):
            return datetime.combine(value, time.max)
        return value


class DiscountOut(BaseModel):
    id: UUID
    customer_id: UUID

    amount: Decimal
    expiry_date: datetime
    is_used: bool
    used_at: Optional[datetime] = None

    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True
