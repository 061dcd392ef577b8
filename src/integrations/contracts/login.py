"""
Login contracts.

Request/response schemas of the identity backend and the login state kept
by the client.
"""

from __future__ import annotations

from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field


class LoginModel(BaseModel):
    model_config = ConfigDict(extra="ignore")


# ---------------------------------------------------------------------------
# Session state
# ---------------------------------------------------------------------------

class AuthToken(LoginModel):
    jwt: str = ""
    verified: bool = False


class LoginData(LoginModel):
    auth_token: AuthToken = Field(default_factory=AuthToken)
    username: str = ""
    remember_me: bool = False


class UserAttribute(LoginModel):
    key: str
    permission: str = "public"
    value: str = ""


# ---------------------------------------------------------------------------
# Responses
# ---------------------------------------------------------------------------

class LoginUrlResponse(LoginModel):
    login_url: str


class SocialUrlResponse(LoginModel):
    url: str


class AccountLinkingCode(LoginModel):
    code: str


class PlatformTokenResponse(LoginModel):
    token: str


class UserAttributesResponse(LoginModel):
    attributes: List[UserAttribute] = Field(default_factory=list)


# ---------------------------------------------------------------------------
# Requests
# ---------------------------------------------------------------------------

class RegistrationRequest(LoginModel):
    username: str
    password: str
    email: str


class AuthenticationRequest(LoginModel):
    username: str
    password: str
    remember_me: bool = False


class PasswordResetRequest(LoginModel):
    username: str


class TokenValidationRequest(LoginModel):
    token: str


class GetAttributesRequest(LoginModel):
    keys: List[str] = Field(default_factory=list)
    publisher_project_id: Optional[str] = None
    user_id: Optional[str] = None


class UpdateAttributesRequest(LoginModel):
    attributes: List[UserAttribute] = Field(default_factory=list)
    publisher_project_id: Optional[str] = None
    removing_keys: List[str] = Field(default_factory=list)
