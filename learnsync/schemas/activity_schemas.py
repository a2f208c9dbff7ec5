"""
Activity API Schemas
"""
from pydantic import BaseModel, ConfigDict, Field
from typing import Optional, List
from datetime import date, datetime

from learnsync.enums import ActivityType


class ActivityOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    user_id: str
    program_id: str
    type: str
    total_time: int
    time_delta: int
    external_id: Optional[str] = None
    created_at: datetime


class ActivityPage(BaseModel):
    count: int
    activities: List[ActivityOut]


class ActivityCreate(BaseModel):
    """Manual activity report; total_time is the cumulative value, not a delta."""
    program_id: str
    type: ActivityType = ActivityType.COURSE_INTERACTION
    total_time: int = Field(..., ge=0)
    external_id: Optional[str] = None

    model_config = ConfigDict(json_schema_extra={
        "example": {
            "program_id": "ckx1y2z3a0000abcd1234efgh",
            "type": "course_interaction",
            "total_time": 3600,
            "external_id": None
        }
    })


class DailyActivity(BaseModel):
    """One day of activity with its quartile among all active days in range"""
    date: date
    total_time: int
    quartile: int
    activities: List[ActivityOut]


class DailyActivityResponse(BaseModel):
    activities: List[DailyActivity]
