"""
Role-gated access to the visit desk.

Roles come from the authentication service and are trusted as given.
Every operation is checked against the capability matrix before it reaches
the lifecycle engine or the query layer.
"""

import enum
import logging
from dataclasses import dataclass
from typing import Optional

from sqlalchemy.orm import Session

from . import directory, lifecycle, queries
from .errors import PermissionDenied, Unauthenticated
from .models import utcnow

logger = logging.getLogger(__name__)


# PUBLIC_INTERFACE
class Role(str, enum.Enum):
    RECEPTION = "reception"
    CSO = "cso"
    ADMIN = "admin"


# PUBLIC_INTERFACE
class Capability(str, enum.Enum):
    REGISTER_VISIT = "register_visit"
    LIST_EMPLOYEES = "list_employees"
    PENDING_APPROVALS = "pending_approvals"
    APPROVE_VISIT = "approve_visit"
    REJECT_VISIT = "reject_visit"
    ACTIVE_VISITS = "active_visits"
    CHECK_OUT_VISIT = "check_out_visit"
    DASHBOARD_STATS = "dashboard_stats"
    RECENT_ACTIVITY = "recent_activity"


CAPABILITIES = {
    Role.RECEPTION: frozenset({
        Capability.REGISTER_VISIT,
        Capability.LIST_EMPLOYEES,
        Capability.ACTIVE_VISITS,
        Capability.CHECK_OUT_VISIT,
    }),
    Role.CSO: frozenset({
        Capability.PENDING_APPROVALS,
        Capability.APPROVE_VISIT,
        Capability.REJECT_VISIT,
    }),
    Role.ADMIN: frozenset(Capability),
}


# PUBLIC_INTERFACE
@dataclass(frozen=True)
class Actor:
    """An authenticated caller as reported by the auth service."""
    actor_id: str
    role: Optional[Role]


# PUBLIC_INTERFACE
def resolve_actor(actor_id: Optional[str], role: Optional[str]) -> Optional[Actor]:
    """
    Builds an Actor from raw identity values. Unknown role names resolve to
    no role; a missing id resolves to no actor at all.
    """
    actor_id = (actor_id or "").strip()
    if not actor_id:
        return None
    try:
        resolved = Role((role or "").strip().lower())
    except ValueError:
        resolved = None
    return Actor(actor_id=actor_id, role=resolved)


# PUBLIC_INTERFACE
def authorize(actor: Optional[Actor], capability: Capability) -> Actor:
    """
    Raises Unauthenticated when there is no actor or role, PermissionDenied
    when the role lacks ``capability``. Returns the actor otherwise.
    """
    if actor is None or actor.role is None:
        raise Unauthenticated("Sign in to continue")
    if capability not in CAPABILITIES[actor.role]:
        logger.warning("Denied %s to %s (%s)", capability.value, actor.actor_id, actor.role.value)
        raise PermissionDenied(
            f"Role '{actor.role.value}' may not perform {capability.value}"
        )
    return actor


# PUBLIC_INTERFACE
class VisitDesk:
    """
    Role-checked entry point for one caller. Combines a session, the acting
    user and a clock; every method authorizes first, then delegates.
    """

    def __init__(self, db: Session, actor: Optional[Actor], clock=utcnow):
        self.db = db
        self.actor = actor
        self.clock = clock

    def _require(self, capability: Capability) -> Actor:
        return authorize(self.actor, capability)

    # Lifecycle

    def register_visit(self, registration) -> int:
        self._require(Capability.REGISTER_VISIT)
        return lifecycle.register_visit(self.db, registration, clock=self.clock)

    def approve_visit(self, visit_id: int):
        actor = self._require(Capability.APPROVE_VISIT)
        lifecycle.approve_visit(self.db, visit_id, actor.actor_id, clock=self.clock)

    def reject_visit(self, visit_id: int, reason: str):
        actor = self._require(Capability.REJECT_VISIT)
        lifecycle.reject_visit(self.db, visit_id, actor.actor_id, reason, clock=self.clock)

    def check_out_visit(self, visit_id: int):
        self._require(Capability.CHECK_OUT_VISIT)
        lifecycle.check_out_visit(self.db, visit_id, clock=self.clock)

    # Views

    def list_active_employees(self):
        self._require(Capability.LIST_EMPLOYEES)
        return directory.list_active_employees(self.db)

    def pending_approvals(self):
        self._require(Capability.PENDING_APPROVALS)
        return queries.pending_approvals(self.db)

    def active_visits(self, search: Optional[str] = None):
        self._require(Capability.ACTIVE_VISITS)
        return queries.active_visits(self.db, search=search, now=self.clock())

    def dashboard_stats(self):
        self._require(Capability.DASHBOARD_STATS)
        return queries.dashboard_stats(self.db, now=self.clock())

    def recent_activity(self, limit: Optional[int] = None):
        self._require(Capability.RECENT_ACTIVITY)
        return queries.recent_activity(self.db, limit=limit)
