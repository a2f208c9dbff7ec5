"""
Provider platform and login-mapping schemas
"""
from pydantic import BaseModel, ConfigDict, Field
from typing import Optional
from datetime import datetime

from learnsync.enums import ProviderPlatformType, ProviderPlatformState


class ProviderPlatformCreate(BaseModel):
    name: str = Field(..., min_length=1)
    type: ProviderPlatformType
    description: Optional[str] = None
    base_url: str = Field(..., min_length=1)
    account_id: Optional[str] = None
    access_key: str = Field(..., min_length=1, description="API key; for kolibri 'username:password'")
    icon_url: Optional[str] = None
    state: ProviderPlatformState = ProviderPlatformState.ENABLED

    model_config = ConfigDict(json_schema_extra={
        "example": {
            "name": "County Canvas",
            "type": "canvas_cloud",
            "base_url": "https://canvas.example.edu",
            "account_id": "1",
            "access_key": "canvas-api-token",
            "state": "enabled"
        }
    })


class ProviderPlatformPatch(BaseModel):
    """Only fields present in the request body are applied."""
    name: Optional[str] = None
    type: Optional[ProviderPlatformType] = None
    description: Optional[str] = None
    base_url: Optional[str] = None
    account_id: Optional[str] = None
    access_key: Optional[str] = None
    icon_url: Optional[str] = None
    state: Optional[ProviderPlatformState] = None


class ProviderPlatformOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    name: str
    type: str
    description: Optional[str] = None
    base_url: str
    account_id: Optional[str] = None
    icon_url: Optional[str] = None
    state: str
    created_at: Optional[datetime] = None


class MappingCreate(BaseModel):
    provider_platform_id: str
    external_user_id: str = Field(..., min_length=1)
    external_username: Optional[str] = None
    external_login_id: Optional[str] = None


class MappingPatch(BaseModel):
    external_user_id: Optional[str] = None
    external_username: Optional[str] = None
    external_login_id: Optional[str] = None


class MappingOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    user_id: str
    provider_platform_id: str
    external_user_id: str
    external_username: Optional[str] = None
    external_login_id: Optional[str] = None
