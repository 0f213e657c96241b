"""
User entity and the normalization rules every account store applies.
"""

from __future__ import annotations

from datetime import datetime
from typing import Optional

from email_validator import EmailNotValidError, validate_email
from pydantic import BaseModel

from auth.errors import InvalidFieldsError

DEFAULT_NAME = "No Name"


class User(BaseModel):
    id: Optional[str] = None
    email: str
    name: str = DEFAULT_NAME
    password_hash: str = ""
    created_at: Optional[datetime] = None

    def public_view(self) -> dict:
        """Fields safe to hand back to a caller."""
        return {"name": self.name, "email": self.email}


def normalize_email(email: str) -> str:
    return email.strip().lower()


def normalize_name(name: Optional[str]) -> str:
    name = (name or "").strip()
    return name or DEFAULT_NAME


def normalized(user: User) -> User:
    """
    Return a copy of *user* with trimmed/lowercased fields.

    Raises ``InvalidFieldsError`` when the email is not a syntactically
    valid address.
    """
    email = normalize_email(user.email)
    try:
        validate_email(email, check_deliverability=False)
    except EmailNotValidError as exc:
        raise InvalidFieldsError("Invalid Email Address") from exc
    return user.model_copy(update={"email": email, "name": normalize_name(user.name)})
