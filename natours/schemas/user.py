import re
from typing import Literal, Optional

from pydantic import BaseModel, Field, field_validator, model_validator

Role = Literal["user", "guide", "lead-guide", "admin"]

_EMAIL_RE = re.compile(r"^[^@\s]+@[^@\s]+\.[^@\s]+$")


def _normalize_email(value: str) -> str:
    email = str(value or "").strip().lower()
    if not _EMAIL_RE.fullmatch(email):
        raise ValueError("Please provide a valid email")
    return email


class UserDocument(BaseModel):
    """Fields an update may touch; validated as a whole after the merge."""

    name: str = Field(min_length=1, max_length=200)
    email: str
    photo: str = "default.jpg"
    role: Role = "user"

    @field_validator("name")
    @classmethod
    def strip_name(cls, value: str) -> str:
        text = value.strip()
        if not text:
            raise ValueError("Please tell us your name!")
        return text

    @field_validator("email")
    @classmethod
    def validate_email(cls, value: str) -> str:
        return _normalize_email(value)


class SignupIn(UserDocument):
    password: str = Field(min_length=8)
    password_confirm: str

    @model_validator(mode="after")
    def passwords_match(self):
        if self.password != self.password_confirm:
            raise ValueError("Passwords are not the same!")
        return self


class LoginIn(BaseModel):
    email: Optional[str] = None
    password: Optional[str] = None


class ForgotPasswordIn(BaseModel):
    email: str


class ResetPasswordIn(BaseModel):
    password: str = Field(min_length=8)
    password_confirm: str

    @model_validator(mode="after")
    def passwords_match(self):
        if self.password != self.password_confirm:
            raise ValueError("Passwords are not the same!")
        return self


class UpdatePasswordIn(ResetPasswordIn):
    password_current: str
