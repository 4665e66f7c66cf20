# cityreport/schemas/user.py
from pydantic import BaseModel
from typing import Optional

class AdminUserOut(BaseModel):
    id: int
    full_name: str
    email: str
    role: str
    is_active: bool
    department: Optional[str] = None
