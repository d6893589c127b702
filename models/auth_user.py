from sqlalchemy import Column, DateTime, String, func

from database import Base


class AuthUserRow(Base):
    __tablename__ = "auth_users"

    id = Column(String(64), primary_key=True, index=True)
    email = Column(String(320), unique=True, nullable=False, index=True)
    password_hash = Column(String(128), nullable=False)
    full_name = Column(String(256), nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    last_sign_in_at = Column(DateTime(timezone=True), nullable=True)
