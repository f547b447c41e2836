"""Pydantic models for the Google sign-in endpoints."""

from pydantic import BaseModel, ConfigDict, Field


class GoogleTokenRequest(BaseModel):
    """Body accepted by the register and login endpoints."""

    model_config = ConfigDict(str_strip_whitespace=True)

    id_token: str = Field(..., alias="idToken", min_length=1)


class UserSummary(BaseModel):
    user_id: str = Field(..., serialization_alias="userId")
    email: str
    created_at: str = Field(..., serialization_alias="createdAt")


class UserResponse(BaseModel):
    """Model returned to clients on successful register or login."""

    message: str
    user: UserSummary
