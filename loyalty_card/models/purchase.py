import uuid
from sqlalchemy import Column, Integer, Numeric, TIMESTAMP, ForeignKey
from sqlalchemy.dialects.postgresql import UUID
from loyalty_card.db import Base
from loyalty_card.time_utils import utcnow


class Purchase(Base):
    """Append-only ledger entry. Rows are never updated once written."""

    __tablename__ = "purchases"

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)

    customer_id = Column(
        UUID(as_uuid=True),
        ForeignKey("customers.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )

    # net amount, after discount
    amount = Column(Numeric(12, 2), nullable=False)
    points_earned = Column(Integer, nullable=False)
    discount_applied = Column(Numeric(12, 2), nullable=True)

    created_at = Column(TIMESTAMP, default=utcnow)
