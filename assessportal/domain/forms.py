"""Pydantic schemas for the portal's input forms."""

from __future__ import annotations

from assessportal.core.guards import Role
from email_validator import validate_email
from pydantic import BaseModel, Field, ValidationError, field_validator, model_validator

MIN_PASSWORD_LENGTH = 6


class FormValidationError(Exception):
    """Raised when form input is rejected before any backend call."""


def check_email(value: str) -> str:
    """Syntax-only check; reserved domains such as ``.local`` are accepted."""
    result = validate_email(value, check_deliverability=False, globally_deliverable=False)
    return result.normalized


class LoginForm(BaseModel):
    """Credentials submitted on the entry view."""

    email: str = Field(..., description="Account email address")
    password: str = Field(..., min_length=1, description="Account password")

    @field_validator("email")
    @classmethod
    def normalize_email(cls, value: str) -> str:
        return check_email(value)


class PasswordResetForm(BaseModel):
    """New password chosen on first login."""

    new_password: str
    confirm_password: str

    @model_validator(mode="after")
    def check_passwords(self) -> PasswordResetForm:
        if self.new_password != self.confirm_password:
            raise ValueError("Passwords do not match")
        if len(self.new_password) < MIN_PASSWORD_LENGTH:
            raise ValueError(f"Password must be at least {MIN_PASSWORD_LENGTH} characters")
        return self


class NewUserForm(BaseModel):
    """Account created by an administrator."""

    name: str = Field(..., min_length=1, max_length=128, description="Display name")
    email: str = Field(..., description="Login email")
    role: Role = Field(default=Role.EXAMINER, description="Portal role")

    @field_validator("email")
    @classmethod
    def normalize_email(cls, value: str) -> str:
        return check_email(value)


def first_error_message(exc: ValidationError) -> str:
    """Single inline message for the first failing field."""
    errors = exc.errors()
    if not errors:
        return "Invalid input"

    error = errors[0]
    if error.get("type") == "value_error" and "error" in error.get("ctx", {}):
        return str(error["ctx"]["error"])

    location = ".".join(str(part) for part in error.get("loc", ()))
    message = error.get("msg", "Invalid value")
    return f"{location}: {message}" if location else message


def parse_form(model: type[BaseModel], **values: object) -> BaseModel:
    try:
        return model(**values)
    except ValidationError as exc:
        raise FormValidationError(first_error_message(exc)) from exc
