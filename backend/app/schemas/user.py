"""User Schemas: API key payloads."""

from pydantic import BaseModel, ConfigDict, Field


class ApiKeyResponse(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    api_key: str | None = Field(None, serialization_alias="apiKey")
    message: str | None = None


class UserProfileUpdate(BaseModel):
    """Optional profile fields sent when the key is first created."""
    email: str | None = Field(None, max_length=255)
    name: str | None = Field(None, max_length=255)
