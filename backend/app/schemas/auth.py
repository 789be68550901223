"""
Pydantic schemas for admin authentication endpoints.
"""
from typing import Optional

from pydantic import Field

from app.schemas.test_content import CamelModel


class AdminLogin(CamelModel):
    """Body of POST /auth/login.

    Both fields are optional at the schema level so a missing field yields
    the "Email and password are required" message rather than a generic
    validation error.
    """

    email: Optional[str] = Field(None, description="Admin email address")
    password: Optional[str] = Field(None, description="Admin password")


class AdminResponse(CamelModel):
    """Public view of an admin account."""

    id: int
    email: str


class AdminSessionResponse(CamelModel):
    """Response of login and /auth/me."""

    success: bool = True
    user: AdminResponse


class LogoutResponse(CamelModel):
    """Response of logout."""

    success: bool = True
