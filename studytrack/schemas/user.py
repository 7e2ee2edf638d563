from pydantic import BaseModel, Field
from typing import Optional
from datetime import datetime


class Credentials(BaseModel):
    """Email and password for sign up and sign in."""
    email: str = Field(min_length=3)
    password: str = Field(min_length=1)


class User(BaseModel):
    id: str
    email: str
    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True


class TokenClaims(BaseModel):
    user_id: str
    email: Optional[str] = None
    expires_at: datetime


class AuthResponse(BaseModel):
    access_token: str
    token_type: str = "bearer"
    user: User
