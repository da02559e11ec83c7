import uuid
from sqlalchemy import Column, String, TIMESTAMP, Date, Integer, Numeric, ForeignKey, CheckConstraint
from sqlalchemy.dialects.postgresql import UUID
from loyalty_card.db import Base
from loyalty_card.time_utils import utcnow


class Customer(Base):
    __tablename__ = "customers"

    __table_args__ = (
        CheckConstraint("points_balance >= 0", name="ck_customers_points_balance_non_negative"),
        CheckConstraint("total_spent >= 0", name="ck_customers_total_spent_non_negative"),
    )

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)

    # LC + 7 digits, globally unique across stores
    barcode = Column(String(9), nullable=False, unique=True, index=True)

    name = Column(String(100), nullable=False)
    email = Column(String(255))
    phone = Column(String(50))
    address = Column(String(255))
    birthdate = Column(Date)

    points_balance = Column(Integer, nullable=False, default=0)
    total_spent = Column(Numeric(12, 2), nullable=False, default=0)

    # NULL = unaffiliated customer
    store_owner_id = Column(
        UUID(as_uuid=True),
        ForeignKey("store_owners.id", ondelete="SET NULL"),
        nullable=True,
        index=True,
    )

    created_at = Column(TIMESTAMP, default=utcnow)
