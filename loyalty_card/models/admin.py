import uuid
from sqlalchemy import Column, String, TIMESTAMP
from sqlalchemy.dialects.postgresql import UUID
from loyalty_card.db import Base
from loyalty_card.time_utils import utcnow


class Admin(Base):
    __tablename__ = "admins"

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)

    username = Column(String(100), nullable=False, unique=True, index=True)
    # bcrypt hash
    password = Column(String(255), nullable=False)

    created_at = Column(TIMESTAMP, default=utcnow)
