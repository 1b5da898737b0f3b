"""Login and registration schemas"""
from typing import Optional

from pydantic import Field

from smartwater.schemas.base import FormSchema


class LoginSchema(FormSchema):
    username: str = Field(min_length=1)
    password: str = Field(min_length=1)


class RegisterSchema(FormSchema):
    username: str = Field(min_length=3, max_length=100)
    password: str = Field(min_length=8)
    name: str = Field(min_length=1, max_length=255)
    email: str = Field(pattern=r'^[^@\s]+@[^@\s]+\.[^@\s]+$')
    organization_name: Optional[str] = None
