from pydantic import BaseModel, ConfigDict
from typing import Optional
from datetime import datetime

class Token(BaseModel):
    access_token: str
    token_type: str

class UserResponse(BaseModel):
    id: int
    email: str
    full_name: Optional[str]
    is_active: bool
    role_id: int
    role_name: Optional[str] = None
    store_id: Optional[int]
    store_name: Optional[str] = None
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)
