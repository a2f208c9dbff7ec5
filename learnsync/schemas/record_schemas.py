"""
Partial-update (patch) and output schemas for catalog and progress records.

Every patch field is optional; callers apply model_dump(exclude_unset=True)
so an explicit null or zero is distinguishable from an absent field.
"""
from pydantic import BaseModel, ConfigDict, Field
from typing import Optional
from datetime import datetime

from learnsync.enums import MilestoneType, OutcomeType, ProgramType, UserRole


class ProgramPatch(BaseModel):
    name: Optional[str] = None
    alt_name: Optional[str] = None
    description: Optional[str] = None
    thumbnail_url: Optional[str] = None
    external_url: Optional[str] = None
    type: Optional[ProgramType] = None
    outcome_types: Optional[str] = None
    total_progress_milestones: Optional[int] = Field(default=None, ge=0)


class ProgramOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    provider_platform_id: str
    name: str
    alt_name: Optional[str] = None
    description: Optional[str] = None
    external_id: str
    thumbnail_url: Optional[str] = None
    external_url: Optional[str] = None
    type: Optional[str] = None
    outcome_types: Optional[str] = None
    total_progress_milestones: int


class MilestonePatch(BaseModel):
    type: Optional[MilestoneType] = None
    is_completed: Optional[bool] = None


class MilestoneOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    external_id: str
    type: str
    is_completed: bool
    user_id: str
    program_id: str
    created_at: Optional[datetime] = None


class OutcomeCreate(BaseModel):
    program_id: str
    type: OutcomeType
    value: Optional[str] = None


class OutcomePatch(BaseModel):
    type: Optional[OutcomeType] = None
    value: Optional[str] = None


class OutcomeOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    user_id: str
    program_id: str
    type: str
    value: Optional[str] = None
    created_at: Optional[datetime] = None


class UserPatch(BaseModel):
    email: Optional[str] = None
    name_first: Optional[str] = None
    name_last: Optional[str] = None
    role: Optional[UserRole] = None
    is_active: Optional[bool] = None


class UserOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    username: str
    email: str
    name_first: Optional[str] = None
    name_last: Optional[str] = None
    role: str
    is_active: bool
