import uuid
from sqlalchemy import Column, String, Boolean, TIMESTAMP
from sqlalchemy.dialects.postgresql import UUID
from loyalty_card.db import Base
from loyalty_card.time_utils import utcnow


class StoreOwner(Base):
    __tablename__ = "store_owners"

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)

    # login key
    email = Column(String(255), nullable=False, unique=True, index=True)
    # bcrypt hash
    password = Column(String(255), nullable=False)

    name = Column(String(100))
    phone = Column(String(50))
    store_name = Column(String(100), nullable=False)

    is_active = Column(Boolean, nullable=False, default=True)

    created_at = Column(TIMESTAMP, default=utcnow)
