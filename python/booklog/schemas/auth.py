"""Auth service Pydantic schemas.

Validation here runs before any call reaches the auth service, so a
malformed email or mismatched password confirmation never leaves the API.
"""

import re

from pydantic import BaseModel, Field, field_validator, model_validator

__all__ = [
    "MIN_PASSWORD_LENGTH",
    "PasswordResetRequest",
    "SessionOut",
    "SignInRequest",
    "SignUpOut",
    "SignUpRequest",
    "UpdatePasswordRequest",
]

MIN_PASSWORD_LENGTH = 6

# Shape check only; the auth service does the real validation
_EMAIL_RE = re.compile(r"^[^@\s]+@[^@\s]+\.[^@\s]+$")

PASSWORD_TOO_SHORT = f"Password must be at least {MIN_PASSWORD_LENGTH} characters long."


def _check_email(v: str) -> str:
    v = v.strip()
    if not _EMAIL_RE.match(v):
        raise ValueError("Invalid email address.")
    return v


# =============================================================================
# Request Schemas
# =============================================================================


class SignInRequest(BaseModel):
    email: str
    password: str = Field(..., min_length=1)

    @field_validator("email")
    @classmethod
    def email_shape(cls, v: str) -> str:
        return _check_email(v)


class SignUpRequest(BaseModel):
    email: str
    password: str

    @field_validator("email")
    @classmethod
    def email_shape(cls, v: str) -> str:
        return _check_email(v)

    @field_validator("password")
    @classmethod
    def password_length(cls, v: str) -> str:
        if len(v) < MIN_PASSWORD_LENGTH:
            raise ValueError(PASSWORD_TOO_SHORT)
        return v


class PasswordResetRequest(BaseModel):
    email: str

    @field_validator("email")
    @classmethod
    def email_shape(cls, v: str) -> str:
        return _check_email(v)


class UpdatePasswordRequest(BaseModel):
    """New password for the session established by a reset link.

    The confirmation is checked before the length.
    """

    password: str
    confirm_password: str

    @model_validator(mode="after")
    def passwords_match(self) -> "UpdatePasswordRequest":
        if self.password != self.confirm_password:
            raise ValueError("Passwords do not match.")
        if len(self.password) < MIN_PASSWORD_LENGTH:
            raise ValueError(PASSWORD_TOO_SHORT)
        return self


# =============================================================================
# Output Schemas
# =============================================================================


class SessionOut(BaseModel):
    access_token: str
    refresh_token: str | None = None
    expires_in: int | None = None
    token_type: str = "bearer"
    user_id: str
    email: str | None = None


class SignUpOut(BaseModel):
    """Sign-up outcome. `session` is present only when no email confirmation is needed."""

    confirmation_required: bool
    message: str
    session: SessionOut | None = None
