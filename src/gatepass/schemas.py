"""
Pydantic schemas for visitor registration input and API responses.
"""

import datetime
from typing import Optional

from pydantic import BaseModel, EmailStr, Field, field_validator

from .models import MAX_ROW_ID, IdType


def _blank_to_none(value):
    if isinstance(value, str) and not value.strip():
        return None
    return value


class VisitorDetails(BaseModel):
    """Identity fields captured by reception."""
    full_name: str = Field(..., min_length=1, examples=["Alice Smith"])
    phone: str = Field(..., min_length=1, examples=["+91 98765 43210"])
    email: Optional[EmailStr] = None
    company: Optional[str] = None
    id_type: IdType
    id_number: str = Field(..., min_length=1)

    @field_validator("full_name", "phone", "id_number", mode="before")
    @classmethod
    def strip_required(cls, value):
        if isinstance(value, str):
            return value.strip()
        return value

    @field_validator("email", "company", mode="before")
    @classmethod
    def optional_blank(cls, value):
        return _blank_to_none(value)


# PUBLIC_INTERFACE
class VisitRegistration(BaseModel):
    """Input record for RegisterVisit."""
    visitor: VisitorDetails
    employee_id: int = Field(..., ge=1, le=MAX_ROW_ID)
    purpose: str = Field(..., min_length=1)

    @field_validator("purpose", mode="before")
    @classmethod
    def strip_purpose(cls, value):
        if isinstance(value, str):
            return value.strip()
        return value


class RejectionRequest(BaseModel):
    reason: str = ""


class VisitCreated(BaseModel):
    id: int


class EmployeeOut(BaseModel):
    id: int
    name: str
    email: str


class PendingVisitOut(BaseModel):
    id: int
    created_at: datetime.datetime
    purpose: str
    visitor_name: str
    visitor_phone: str
    visitor_email: Optional[str] = None
    visitor_company: Optional[str] = None
    id_type: str
    id_type_label: str
    id_number: str
    employee_name: str
    employee_email: str


class ActiveVisitOut(BaseModel):
    id: int
    check_in_time: datetime.datetime
    purpose: str
    visitor_name: str
    visitor_phone: str
    visitor_company: Optional[str] = None
    employee_name: str
    duration: str


class DashboardStatsOut(BaseModel):
    total_visitors: int
    active_visits: int
    pending_approvals: int
    today_visits: int
    checked_out: int
    rejected: int


class RecentVisitOut(BaseModel):
    id: int
    created_at: datetime.datetime
    status: str
    visitor_name: str
    visitor_company: Optional[str] = None
    employee_name: str
    check_in_time: Optional[datetime.datetime] = None
    check_out_time: Optional[datetime.datetime] = None
