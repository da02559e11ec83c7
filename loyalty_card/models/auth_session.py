import uuid
from sqlalchemy import Column, String, TIMESTAMP
from sqlalchemy.dialects.postgresql import UUID
from loyalty_card.db import Base
from loyalty_card.time_utils import utcnow


class AuthSession(Base):
    __tablename__ = "auth_sessions"

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)

    # sha256 of the bearer token; the token itself is never stored
    token_hash = Column(String(64), nullable=False, unique=True, index=True)

    role = Column(String(20), nullable=False)  # customer / store_owner / admin
    principal_id = Column(UUID(as_uuid=True), nullable=False)

    created_at = Column(TIMESTAMP, default=utcnow)
    expires_at = Column(TIMESTAMP, nullable=False)
    revoked_at = Column(TIMESTAMP, nullable=True)
