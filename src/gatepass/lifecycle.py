"""
Visit lifecycle engine.

A visit is registered in ``pending_approval``, then a CSO either approves it
(``checked_in``) or rejects it (``rejected``). Reception checks approved
visits out (``checked_out``). Every transition is written as a conditional
UPDATE on (visit id, expected status) so concurrent desks cannot both win.
"""

import logging
from datetime import timezone
from typing import Any, Callable, Dict, Union

from pydantic import ValidationError as PydanticValidationError
from sqlalchemy.orm import Session

from .database import storage_guard
from .directory import get_employee
from .errors import ConflictError, InvalidStateTransition, NotFound, ValidationError
from .models import MAX_ROW_ID, Visitor, VisitLog, VisitStatus, as_utc, utcnow
from .schemas import VisitRegistration

logger = logging.getLogger(__name__)

Clock = Callable[[], Any]


def _now(clock: Clock):
    return as_utc(clock()).astimezone(timezone.utc)


def _format_errors(exc: PydanticValidationError):
    messages = []
    for err in exc.errors():
        loc = ".".join(str(part) for part in err["loc"])
        messages.append(f"{loc}: {err['msg']}")
    return messages


# PUBLIC_INTERFACE
def parse_registration(data: Union[VisitRegistration, Dict[str, Any]]) -> VisitRegistration:
    """
    Validates raw registration input into a VisitRegistration.
    Raises ValidationError listing every problem found.
    """
    if isinstance(data, VisitRegistration):
        return data
    try:
        return VisitRegistration.model_validate(data)
    except PydanticValidationError as exc:
        errors = _format_errors(exc)
        raise ValidationError("Invalid visit registration", errors) from exc


# PUBLIC_INTERFACE
def register_visit(db: Session, data, clock: Clock = utcnow) -> int:
    """
    Creates the visitor record and a pending visit for the chosen host.
    Both rows are committed together or not at all. Returns the visit id.
    """
    registration = parse_registration(data)
    employee = get_employee(db, registration.employee_id)
    if not employee.is_active:
        raise ValidationError(
            "Host is not an active employee",
            [f"employee_id: employee {employee.id} is inactive"],
        )

    now = _now(clock)
    details = registration.visitor
    with storage_guard(db):
        try:
            visitor = Visitor(
                full_name=details.full_name,
                phone=details.phone,
                email=details.email,
                company=details.company,
                id_type=details.id_type.value,
                id_number=details.id_number,
                created_at=now,
            )
            db.add(visitor)
            db.flush()
            visit = VisitLog(
                visitor_id=visitor.id,
                employee_id=employee.id,
                purpose=registration.purpose,
                status=VisitStatus.PENDING_APPROVAL.value,
                created_at=now,
            )
            db.add(visit)
            db.flush()
            visit_id, visitor_id = visit.id, visitor.id
            db.commit()
        except Exception:
            db.rollback()
            raise
    logger.info("Registered visit %s for visitor %s (host %s)", visit_id, visitor_id, registration.employee_id)
    return visit_id


def _current_status(db: Session, visit_id: int):
    if not 1 <= visit_id <= MAX_ROW_ID:
        return None
    return db.query(VisitLog.status).filter(VisitLog.id == visit_id).scalar()


def _transition(db: Session, visit_id: int, expected: VisitStatus, target: VisitStatus,
                values: Dict[str, Any]):
    """
    Moves a visit from ``expected`` to ``target`` in one conditional UPDATE.
    NotFound for unknown ids, InvalidStateTransition when the stored state
    differs, ConflictError when the row changed after it was read.
    """
    with storage_guard(db):
        current = _current_status(db, visit_id)
        if current is None:
            db.rollback()
            raise NotFound(f"Visit {visit_id} not found")
        if current != expected.value:
            logger.warning("Refused %s -> %s for visit %s: visit is %s",
                           expected.value, target.value, visit_id, current)
            db.rollback()
            raise InvalidStateTransition(visit_id, current, expected.value)

        updates = dict(values, status=target.value)
        updated = (db.query(VisitLog)
                   .filter(VisitLog.id == visit_id, VisitLog.status == expected.value)
                   .update(updates, synchronize_session=False))
        if updated != 1:
            db.rollback()
            logger.warning("Lost race moving visit %s to %s", visit_id, target.value)
            raise ConflictError(
                f"Visit {visit_id} was changed by another user; reload and try again"
            )
        db.commit()
    logger.debug("Visit %s moved %s -> %s", visit_id, expected.value, target.value)


# PUBLIC_INTERFACE
def approve_visit(db: Session, visit_id: int, actor_id: str, clock: Clock = utcnow):
    """
    CSO approval: the visitor is admitted and checked in at the same instant.
    """
    now = _now(clock)
    _transition(db, visit_id, VisitStatus.PENDING_APPROVAL, VisitStatus.CHECKED_IN, {
        "check_in_time": now,
        "cso_approved_by": actor_id,
        "cso_approved_at": now,
    })
    logger.info("Visit %s approved by %s", visit_id, actor_id)


# PUBLIC_INTERFACE
def reject_visit(db: Session, visit_id: int, actor_id: str, reason: str,
                 clock: Clock = utcnow):
    """
    CSO rejection. The reason is shown to the host, so it cannot be blank.
    Rejection is final.
    """
    reason = (reason or "").strip()
    if not reason:
        raise ValidationError("A reason is required to reject a visit",
                              ["reason: must not be blank"])
    now = _now(clock)
    _transition(db, visit_id, VisitStatus.PENDING_APPROVAL, VisitStatus.REJECTED, {
        "cso_approved_by": actor_id,
        "cso_approved_at": now,
        "rejection_reason": reason,
    })
    logger.info("Visit %s rejected by %s", visit_id, actor_id)


# PUBLIC_INTERFACE
def check_out_visit(db: Session, visit_id: int, clock: Clock = utcnow):
    """
    Records the visitor leaving. Only approved (checked-in) visits qualify.
    """
    now = _now(clock)
    check_in_time = None
    if 1 <= visit_id <= MAX_ROW_ID:
        with storage_guard(db):
            check_in_time = as_utc(
                db.query(VisitLog.check_in_time).filter(VisitLog.id == visit_id).scalar()
            )
    # check_out_time >= check_in_time even if the desk clock lags the CSO's
    if check_in_time is not None and now < check_in_time:
        now = check_in_time
    _transition(db, visit_id, VisitStatus.CHECKED_IN, VisitStatus.CHECKED_OUT, {
        "check_out_time": now,
    })
    logger.info("Visit %s checked out", visit_id)
