"""
Provider-shaped import records.

These mirror the normalized JSON the provider gateway returns; they are
validated one element at a time and never persisted as-is.
"""
from pydantic import BaseModel, BeforeValidator, Field, field_validator
from typing import Annotated, List


def _as_text(value):
    # Providers send numeric ids for some platforms and null for missing strings
    if value is None:
        return ""
    if isinstance(value, int) and not isinstance(value, bool):
        return str(value)
    return value


ExternalText = Annotated[str, BeforeValidator(_as_text)]


class ImportUser(BaseModel):
    username: ExternalText = ""
    email: ExternalText = ""
    name_first: ExternalText = ""
    name_last: ExternalText = ""
    external_user_id: ExternalText = Field(..., min_length=1)
    external_username: ExternalText = ""

    def is_empty(self) -> bool:
        """A record with no username, email or surname carries nothing to reconcile."""
        return not (self.username.strip() or self.email.strip() or self.name_last.strip())


class ImportProgram(BaseModel):
    name: str = Field(..., min_length=1)
    description: ExternalText = ""
    external_id: ExternalText = Field(..., min_length=1)
    thumbnail_url: ExternalText = ""
    external_url: ExternalText = ""
    type: ExternalText = ""
    outcome_types: List[str] = Field(default_factory=list)
    total_progress_milestones: int = Field(default=0, ge=0)

    @field_validator("outcome_types", mode="before")
    @classmethod
    def _null_outcomes(cls, value):
        return value or []

    def joined_outcome_types(self) -> str:
        return ",".join(t.strip() for t in self.outcome_types if t and t.strip())


class ImportMilestone(BaseModel):
    external_id: ExternalText = Field(..., min_length=1)
    type: str = Field(..., min_length=1)
    is_completed: bool = False


class ImportActivity(BaseModel):
    external_user_id: ExternalText = Field(..., min_length=1)
    type: str = Field(..., min_length=1)
    total_time: int = Field(..., ge=0, description="Cumulative seconds reported by the provider")
    external_id: ExternalText = ""
