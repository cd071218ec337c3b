"""
SQLAlchemy ORM models for the Gatepass visitor approval system.
Entities: Visitor, Employee, VisitLog.
"""

import enum
from datetime import datetime, timezone

from sqlalchemy import (
    Column,
    String,
    Integer,
    DateTime,
    ForeignKey,
    Boolean,
    Text,
    Index,
    CheckConstraint,
)
from sqlalchemy.orm import relationship, declarative_base

Base = declarative_base()

# Largest value an INTEGER primary key can hold on PostgreSQL
MAX_ROW_ID = 2**31 - 1


def utcnow():
    return datetime.now(timezone.utc)


def as_utc(value):
    """Attaches UTC to naive datetimes read back from drivers that drop the offset."""
    if value is None or value.tzinfo is not None:
        return value
    return value.replace(tzinfo=timezone.utc)


# PUBLIC_INTERFACE
class VisitStatus(str, enum.Enum):
    """Lifecycle states of a visit."""
    PENDING_APPROVAL = "pending_approval"
    CHECKED_IN = "checked_in"
    CHECKED_OUT = "checked_out"
    REJECTED = "rejected"


# PUBLIC_INTERFACE
class IdType(str, enum.Enum):
    """Identification documents accepted at the front desk."""
    NATIONAL_ID_CARD = "national-id-card"
    PAN_STYLE_ID = "pan-style-id"
    TAX_ID_CARD = "tax-id-card"   # alternate spelling of pan-style-id
    DRIVER_LICENSE = "driver-license"
    PASSPORT = "passport"
    VOTER_ID = "voter-id"

    @property
    def label(self):
        return ID_TYPE_LABELS[self]


ID_TYPE_LABELS = {
    IdType.NATIONAL_ID_CARD: "National ID card (Aadhar)",
    IdType.PAN_STYLE_ID: "Tax ID card (PAN)",
    IdType.TAX_ID_CARD: "Tax ID card (PAN)",
    IdType.DRIVER_LICENSE: "Driving License",
    IdType.PASSPORT: "Passport",
    IdType.VOTER_ID: "Voter ID",
}


# PUBLIC_INTERFACE
class Visitor(Base):
    """
    Visitor model.
    Identity record captured at registration; one row per registration.
    """
    __tablename__ = "visitors"

    id = Column(Integer, primary_key=True, index=True)
    full_name = Column(String, nullable=False)
    phone = Column(String, nullable=False)
    email = Column(String, nullable=True, index=True)
    company = Column(String, nullable=True)
    id_type = Column(String(32), nullable=False)
    id_number = Column(String, nullable=False)    # e.g., ID card/passport number
    created_at = Column(DateTime(timezone=True), nullable=False, default=utcnow)

    visit_logs = relationship("VisitLog", back_populates="visitor")


# PUBLIC_INTERFACE
class Employee(Base):
    """
    Employee model.
    Staff who can be visited. Maintained by the staff directory, read here.
    """
    __tablename__ = "employees"

    id = Column(Integer, primary_key=True, index=True)
    full_name = Column(String, nullable=False)
    email = Column(String, nullable=False, unique=True, index=True)
    department = Column(String, nullable=True)
    is_active = Column(Boolean, nullable=False, default=True)

    visit_logs = relationship("VisitLog", back_populates="employee")


# PUBLIC_INTERFACE
class VisitLog(Base):
    """
    VisitLog model.
    One visit request and its progress through approval, check-in and check-out.
    """
    __tablename__ = "visit_logs"
    __table_args__ = (
        Index("ix_visit_logs_status_created_at", "status", "created_at"),
        CheckConstraint(
            "status IN ('pending_approval', 'checked_in', 'checked_out', 'rejected')",
            name="ck_visit_logs_status",
        ),
    )

    id = Column(Integer, primary_key=True, index=True)
    visitor_id = Column(Integer, ForeignKey("visitors.id"), nullable=False)
    employee_id = Column(Integer, ForeignKey("employees.id"), nullable=False)
    purpose = Column(Text, nullable=False)
    status = Column(String(32), nullable=False, default=VisitStatus.PENDING_APPROVAL.value)
    created_at = Column(DateTime(timezone=True), nullable=False, default=utcnow)
    cso_approved_by = Column(String, nullable=True)   # opaque actor id from auth
    cso_approved_at = Column(DateTime(timezone=True), nullable=True)
    rejection_reason = Column(Text, nullable=True)
    check_in_time = Column(DateTime(timezone=True), nullable=True)
    check_out_time = Column(DateTime(timezone=True), nullable=True)

    visitor = relationship("Visitor", back_populates="visit_logs")
    employee = relationship("Employee", back_populates="visit_logs")
