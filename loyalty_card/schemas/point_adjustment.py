from datetime import datetime
from typing import Optional

from uuid import UUID

from pydantic import BaseModel


class PointAdjustmentCreate(BaseModel):
    points: int
    reason: Optional[str] = None


class PointAdjustmentOut(BaseModel):
    id: UUID
    customer_id: UUID
    points: int
    reason: Optional[str] = None
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True
