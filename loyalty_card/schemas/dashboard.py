from decimal import Decimal

from pydantic import BaseModel


class DashboardOut(BaseModel):
    totalCustomers: int
    activeStores: int
    totalPoints: int
    totalSpent: Decimal
