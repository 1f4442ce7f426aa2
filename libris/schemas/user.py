import re
from pydantic import BaseModel, Field, field_validator
from pydantic_core import PydanticCustomError
from typing import Optional

PASSWORD_RULES = (
    (re.compile(r'[a-z]'), 'one lowercase letter'),
    (re.compile(r'[A-Z]'), 'one uppercase letter'),
    (re.compile(r'[0-9]'), 'one number'),
    (re.compile(r'[!@#$%^&*]'), 'one special character (!@#$%^&*)'),
)


class RegisterRequest(BaseModel):
    username: str = Field(..., min_length=3, max_length=30, pattern=r'^[A-Za-z0-9_]+$')
    password: str = Field(..., min_length=8, max_length=128)
    firstname: str = Field(..., min_length=1, max_length=50, pattern=r'^[A-Za-z\s]+$')
    surname: str = Field(..., min_length=1, max_length=50, pattern=r'^[A-Za-z\s]+$')
    middle_initial: Optional[str] = Field(None, alias="middleInitial", pattern=r'^[A-Za-z]$')
    display_name: str = Field(..., alias="displayName", min_length=1, max_length=100)

    class Config:
        populate_by_name = True

    @field_validator('username', 'firstname', 'surname', 'display_name', mode='before')
    @classmethod
    def strip(cls, value):
        return value.strip() if isinstance(value, str) else value

    @field_validator('middle_initial', mode='before')
    @classmethod
    def blank_initial(cls, value):
        if isinstance(value, str):
            return value.strip() or None
        return value

    @field_validator('password')
    @classmethod
    def password_strength(cls, value):
        missing = [label for pattern, label in PASSWORD_RULES if not pattern.search(value)]
        if missing:
            raise PydanticCustomError(
                'password_strength',
                'Password must contain at least {missing}',
                {'missing': ', '.join(missing)},
            )
        return value


class LoginRequest(BaseModel):
    username: Optional[str] = None
    password: Optional[str] = None


class UserProfile(BaseModel):
    id: int
    username: str
    display_name: str
    firstname: str
    surname: str
    middle_initial: Optional[str] = None
    is_admin: bool

    class Config:
        from_attributes = True
