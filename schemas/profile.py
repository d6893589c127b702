from datetime import datetime
from typing import Optional

from pydantic import BaseModel
from pydantic.alias_generators import to_camel

ADMIN_ROLE = "admin"


class ProfileRecord(BaseModel):
    id: str
    email: str
    full_name: Optional[str] = None
    role: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    model_config = {"populate_by_name": True, "alias_generator": to_camel, "from_attributes": True}

    @property
    def is_admin(self) -> bool:
        return self.role == ADMIN_ROLE
