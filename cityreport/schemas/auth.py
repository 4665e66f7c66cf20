# File: cityreport/schemas/auth.py

from pydantic import BaseModel, EmailStr, Field

class LoginIn(BaseModel):
    email: EmailStr
    password: str = Field(min_length=1, max_length=512)

class TokenOut(BaseModel):
    access_token: str
    token_type: str
    expires_in: int
