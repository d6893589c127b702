from sqlalchemy import Column, DateTime, Numeric, String, func

from database import Base


class Payment(Base):
    __tablename__ = "payments"

    id = Column(String(64), primary_key=True, index=True)
    payment_id = Column(String(16), unique=True, nullable=False, index=True)
    # Business key of the application; ownership is checked before insert, not by a constraint
    application_id = Column(String(16), nullable=False, index=True)
    amount = Column(Numeric(12, 2, asdecimal=False), nullable=False)
    customer_id = Column(String(64), nullable=True, index=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False, index=True)
