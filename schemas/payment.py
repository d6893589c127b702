from datetime import datetime
from typing import Optional

from pydantic import BaseModel, Field
from pydantic.alias_generators import to_camel


class PaymentRecord(BaseModel):
    id: str
    payment_id: str
    application_id: str
    amount: float
    customer_id: Optional[str] = None
    created_at: datetime

    model_config = {"populate_by_name": True, "alias_generator": to_camel, "from_attributes": True}


class PaymentCreate(BaseModel):
    application_id: str = Field(..., alias="applicationId")
    amount: float

    model_config = {"populate_by_name": True}
