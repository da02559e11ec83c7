import uuid
from sqlalchemy import Column, Boolean, Numeric, TIMESTAMP, ForeignKey
from sqlalchemy.dialects.postgresql import UUID
from loyalty_card.db import Base
from loyalty_card.time_utils import utcnow


class Discount(Base):
    __tablename__ = "discounts"

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)

    customer_id = Column(
        UUID(as_uuid=True),
        ForeignKey("customers.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )

    amount = Column(Numeric(12, 2), nullable=False)
    expiry_date = Column(TIMESTAMP, nullable=False)

    # flipped once, by compare-and-swap, when a purchase consumes it
    is_used = Column(Boolean, nullable=False, default=False)
    used_at = Column(TIMESTAMP, nullable=True)

    created_at = Column(TIMESTAMP, default=utcnow)
