from sqlalchemy import Column, DateTime, String, func

from database import Base


class Profile(Base):
    __tablename__ = "profiles"

    id = Column(String(64), primary_key=True, index=True)
    email = Column(String(320), nullable=False)
    full_name = Column(String(256), nullable=True)
    role = Column(String(32), nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False)
