"""
Read-side views over the visit store: approval queue, active visits,
dashboard counts, recent activity and visit durations.

Nothing here writes. Every call re-reads committed rows, so lists always
reflect the latest approvals and check-outs.
"""

from datetime import datetime, timezone
from typing import List, NamedTuple, Optional
from zoneinfo import ZoneInfo

from sqlalchemy import func, or_
from sqlalchemy.orm import Session

from . import config
from .database import storage_guard
from .errors import ValidationError
from .models import Employee, IdType, Visitor, VisitLog, VisitStatus, as_utc, utcnow
from .schemas import (
    ActiveVisitOut,
    DashboardStatsOut,
    PendingVisitOut,
    RecentVisitOut,
)

MAX_RECENT_ACTIVITY = config.MAX_RECENT_ACTIVITY


# PUBLIC_INTERFACE
class VisitDuration(NamedTuple):
    """Elapsed visit time, floored to whole minutes."""
    hours: int
    minutes: int

    def __str__(self):
        return f"{self.hours}h {self.minutes}m"


# PUBLIC_INTERFACE
def visit_duration(visit, now: Optional[datetime] = None) -> Optional[VisitDuration]:
    """
    Time on site for a checked-in or checked-out visit; None otherwise.
    A checked-in visit is measured up to ``now``.
    """
    check_in = as_utc(visit.check_in_time)
    if check_in is None:
        return None
    if visit.status == VisitStatus.CHECKED_OUT.value:
        end = as_utc(visit.check_out_time)
    elif visit.status == VisitStatus.CHECKED_IN.value:
        end = as_utc(now) if now is not None else utcnow()
    else:
        return None

    total_minutes = max(int((end - check_in).total_seconds() // 60), 0)
    hours, minutes = divmod(total_minutes, 60)
    return VisitDuration(hours, minutes)


def _joined(db: Session):
    return (db.query(VisitLog, Visitor, Employee)
            .join(Visitor, VisitLog.visitor_id == Visitor.id)
            .join(Employee, VisitLog.employee_id == Employee.id))


def _id_type_label(code: str):
    try:
        return IdType(code).label
    except ValueError:
        return code


# PUBLIC_INTERFACE
def pending_approvals(db: Session) -> List[PendingVisitOut]:
    """
    Visits waiting for a CSO decision, oldest request first.
    """
    with storage_guard(db):
        rows = (_joined(db)
                .filter(VisitLog.status == VisitStatus.PENDING_APPROVAL.value)
                .order_by(VisitLog.created_at.asc(), VisitLog.id.asc())
                .all())
    return [
        PendingVisitOut(
            id=visit.id,
            created_at=as_utc(visit.created_at),
            purpose=visit.purpose,
            visitor_name=visitor.full_name,
            visitor_phone=visitor.phone,
            visitor_email=visitor.email,
            visitor_company=visitor.company,
            id_type=visitor.id_type,
            id_type_label=_id_type_label(visitor.id_type),
            id_number=visitor.id_number,
            employee_name=employee.full_name,
            employee_email=employee.email,
        ) for visit, visitor, employee in rows
    ]


# PUBLIC_INTERFACE
def active_visits(db: Session, search: Optional[str] = None,
                  now: Optional[datetime] = None) -> List[ActiveVisitOut]:
    """
    Visitors currently on site, most recent check-in first.
    ``search`` matches visitor name, visitor phone or host name, ignoring case.
    """
    now = now or utcnow()
    query = _joined(db).filter(VisitLog.status == VisitStatus.CHECKED_IN.value)
    term = (search or "").strip().lower()
    if term:
        query = query.filter(or_(
            func.lower(Visitor.full_name).contains(term, autoescape=True),
            func.lower(Visitor.phone).contains(term, autoescape=True),
            func.lower(Employee.full_name).contains(term, autoescape=True),
        ))
    with storage_guard(db):
        rows = query.order_by(VisitLog.check_in_time.desc(), VisitLog.id.desc()).all()
    return [
        ActiveVisitOut(
            id=visit.id,
            check_in_time=as_utc(visit.check_in_time),
            purpose=visit.purpose,
            visitor_name=visitor.full_name,
            visitor_phone=visitor.phone,
            visitor_company=visitor.company,
            employee_name=employee.full_name,
            duration=str(visit_duration(visit, now)),
        ) for visit, visitor, employee in rows
    ]


def start_of_day(now: datetime, tz_name: Optional[str] = None) -> datetime:
    """Local midnight of ``now`` in the facility time zone, as UTC."""
    local = as_utc(now).astimezone(ZoneInfo(tz_name or config.FACILITY_TIMEZONE))
    midnight = local.replace(hour=0, minute=0, second=0, microsecond=0)
    return midnight.astimezone(timezone.utc)


# PUBLIC_INTERFACE
def dashboard_stats(db: Session, now: Optional[datetime] = None,
                    tz_name: Optional[str] = None) -> DashboardStatsOut:
    """
    Admin dashboard counters. ``today_visits`` counts visits created since
    local midnight in the facility time zone.
    """
    midnight = start_of_day(now or utcnow(), tz_name)
    with storage_guard(db):
        total_visitors = db.query(func.count(Visitor.id)).scalar()
        by_status = dict(
            db.query(VisitLog.status, func.count(VisitLog.id))
            .group_by(VisitLog.status)
            .all()
        )
        today_visits = (db.query(func.count(VisitLog.id))
                        .filter(VisitLog.created_at >= midnight)
                        .scalar())
    return DashboardStatsOut(
        total_visitors=total_visitors or 0,
        active_visits=by_status.get(VisitStatus.CHECKED_IN.value, 0),
        pending_approvals=by_status.get(VisitStatus.PENDING_APPROVAL.value, 0),
        today_visits=today_visits or 0,
        checked_out=by_status.get(VisitStatus.CHECKED_OUT.value, 0),
        rejected=by_status.get(VisitStatus.REJECTED.value, 0),
    )


# PUBLIC_INTERFACE
def recent_activity(db: Session, limit: Optional[int] = None) -> List[RecentVisitOut]:
    """
    The latest visits by creation time, newest first.
    """
    if limit is None:
        limit = config.RECENT_ACTIVITY_LIMIT
    if not 1 <= limit <= MAX_RECENT_ACTIVITY:
        raise ValidationError(
            f"limit must be between 1 and {MAX_RECENT_ACTIVITY}",
            [f"limit: {limit} is out of range"],
        )
    with storage_guard(db):
        rows = (_joined(db)
                .order_by(VisitLog.created_at.desc(), VisitLog.id.desc())
                .limit(limit)
                .all())
    return [
        RecentVisitOut(
            id=visit.id,
            created_at=as_utc(visit.created_at),
            status=visit.status,
            visitor_name=visitor.full_name,
            visitor_company=visitor.company,
            employee_name=employee.full_name,
            check_in_time=as_utc(visit.check_in_time),
            check_out_time=as_utc(visit.check_out_time),
        ) for visit, visitor, employee in rows
    ]
