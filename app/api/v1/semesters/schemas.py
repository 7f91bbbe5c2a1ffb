from datetime import date, datetime
from typing import Optional

from pydantic import BaseModel, Field


class SemesterCreate(BaseModel):
    """Create semester. The new semester becomes current; required fields are checked by the service."""

    year: Optional[int] = Field(None, description="e.g. 2025")
    period: Optional[int] = Field(None, description="1, 2 or 3 (intersemester)")
    start_date: Optional[date] = None
    end_date: Optional[date] = Field(None, description="Must be after start_date")
    start_special_week: Optional[date] = None


class SemesterResponse(BaseModel):
    id: int
    name: str  # "<year>-<period>"
    year: int
    period: int
    start_date: date
    end_date: date
    start_special_week: Optional[date] = None
    is_current: bool
    created_at: datetime

    class Config:
        from_attributes = True
