from pydantic import BaseModel, ConfigDict
from datetime import datetime
from typing import Optional

class UserResponse(BaseModel):
    id: str
    display_name: Optional[str]
    email: Optional[str]
    photo: Optional[str]
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)

class CollaboratorResponse(UserResponse):
    owner: bool
