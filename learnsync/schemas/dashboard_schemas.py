"""
Dashboard API Schemas
"""
from pydantic import BaseModel
from typing import Optional, List
from datetime import date


class RecentProgram(BaseModel):
    """Program with activity and no outcome yet"""
    program_id: str
    program_name: str
    alt_name: Optional[str] = None
    thumbnail_url: Optional[str] = None
    external_url: Optional[str] = None
    provider_platform_name: Optional[str] = None
    course_progress: float  # percentage


class CurrentEnrollment(BaseModel):
    """Program the user is currently working in, with time over the last 7 days"""
    program_id: str
    name: str
    alt_name: Optional[str] = None
    provider_platform_name: Optional[str] = None
    external_url: Optional[str] = None
    total_time: int


class RecentActivity(BaseModel):
    """Total time for one calendar day"""
    date: date
    delta: int


class UserDashboard(BaseModel):
    recent_programs: List[RecentProgram]
    enrollments: List[CurrentEnrollment]
    week_activity: List[RecentActivity]


class UserProgram(BaseModel):
    """Program the user has time in, completed or not"""
    program_id: str
    program_name: str
    alt_name: Optional[str] = None
    provider_platform_name: Optional[str] = None
    external_url: Optional[str] = None
    total_time: int
    course_progress: float
    is_completed: bool


class UserPrograms(BaseModel):
    programs: List[UserProgram]
    num_completed: int
    total_time: int
