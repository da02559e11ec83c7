import uuid
from sqlalchemy import Column, Integer, String, TIMESTAMP, ForeignKey
from sqlalchemy.dialects.postgresql import UUID
from loyalty_card.db import Base
from loyalty_card.time_utils import utcnow


class PointAdjustment(Base):
    __tablename__ = "point_adjustments"

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)

    customer_id = Column(
        UUID(as_uuid=True),
        ForeignKey("customers.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )

    points = Column(Integer, nullable=False)  # signed delta
    reason = Column(String(255))

    created_at = Column(TIMESTAMP, default=utcnow)
