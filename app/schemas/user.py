"""Pydantic schemas for User."""
from typing import Annotated
from uuid import UUID

from pydantic import BaseModel, EmailStr, Field, StringConstraints

Username = Annotated[
    str,
    StringConstraints(strip_whitespace=True, min_length=3, max_length=30, pattern=r"^[a-zA-Z0-9_]+$"),
]


class UserCreate(BaseModel):
    username: Username
    email: EmailStr
    password: str = Field(..., min_length=6, max_length=72)


class LoginRequest(BaseModel):
    email: EmailStr
    password: str = Field(..., min_length=1)


class UserIdentity(BaseModel):
    """The authenticated user as seen by handlers. Never carries the password hash."""

    id: UUID
    username: str
    email: str

    model_config = {"from_attributes": True}


class AuthResponse(UserIdentity):
    token: str
