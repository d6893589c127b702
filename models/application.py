from sqlalchemy import Column, DateTime, Numeric, String, Text, func

from database import Base


class LoanApplication(Base):
    __tablename__ = "loan_applications"

    id = Column(String(64), primary_key=True, index=True)
    application_id = Column(String(16), unique=True, nullable=False, index=True)
    customer_id = Column(String(64), nullable=True, index=True)
    customer_name = Column(String(256), nullable=False, index=True)
    loan_amount = Column(Numeric(12, 2, asdecimal=False), nullable=False)
    status = Column(String(32), nullable=False, default="Pending", index=True)
    loan_type = Column(String(64), nullable=True)
    # Only the reason matching the current status is meaningful
    rejection_reason = Column(Text, nullable=True)
    evidence_required = Column(Text, nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False, index=True)
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=True)
