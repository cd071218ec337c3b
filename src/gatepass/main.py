from typing import Any, Dict, List, Optional

from fastapi import FastAPI, Body, Depends, Header, Path, Query, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from sqlalchemy.orm import Session
from starlette.status import HTTP_201_CREATED

from . import config
from .access import VisitDesk, resolve_actor
from .database import get_db
from .errors import (
    ConflictError,
    GatepassError,
    InvalidStateTransition,
    NotFound,
    PermissionDenied,
    Unauthenticated,
    UnavailableError,
    ValidationError,
)
from .models import MAX_ROW_ID, utcnow
from .queries import MAX_RECENT_ACTIVITY
from .schemas import (
    ActiveVisitOut,
    DashboardStatsOut,
    EmployeeOut,
    PendingVisitOut,
    RecentVisitOut,
    RejectionRequest,
    VisitCreated,
)

config.configure_logging()

app = FastAPI(
    title="Gatepass Visitor Approval Backend",
    description="API for front-desk visitor registration, CSO approval, check-in and check-out.",
    version="1.0.0",
    openapi_tags=[
        {"name": "reception", "description": "Visitor registration and check-out"},
        {"name": "cso", "description": "Approval queue and decisions"},
        {"name": "admin", "description": "Dashboard and activity"},
    ],
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=[config.FRONTEND_URL],  # Restrict to frontend origin for security
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# -------------------- Error mapping --------------------

ERROR_STATUS = {
    ValidationError: 400,
    Unauthenticated: 401,
    PermissionDenied: 403,
    NotFound: 404,
    InvalidStateTransition: 409,
    ConflictError: 409,
    UnavailableError: 503,
}


def _error_response(status_code: int, kind: str, detail: str, errors=None):
    body = {"error": kind, "detail": detail}
    if errors:
        body["errors"] = errors
    return JSONResponse(content=body, status_code=status_code)


@app.exception_handler(GatepassError)
async def gatepass_error_handler(request: Request, exc: GatepassError):
    status_code = next(
        (code for cls, code in ERROR_STATUS.items() if isinstance(exc, cls)), 500
    )
    return _error_response(status_code, exc.kind, exc.message, getattr(exc, "errors", None))


@app.exception_handler(RequestValidationError)
async def request_validation_handler(request: Request, exc: RequestValidationError):
    errors = [
        "{}: {}".format(".".join(str(part) for part in err["loc"]), err["msg"])
        for err in exc.errors()
    ]
    return _error_response(400, ValidationError.kind, "Invalid request", errors)

# -------------------- Dependencies --------------------


def get_clock():
    return utcnow


# PUBLIC_INTERFACE
def get_visit_desk(
    db: Session = Depends(get_db),
    clock=Depends(get_clock),
    x_actor_id: Optional[str] = Header(None),
    x_actor_role: Optional[str] = Header(None),
) -> VisitDesk:
    """
    Builds a VisitDesk for the caller identified by the X-Actor-Id and
    X-Actor-Role headers set by the authentication gateway.
    """
    return VisitDesk(db, resolve_actor(x_actor_id, x_actor_role), clock=clock)

# -------------------- Health Check --------------------


# PUBLIC_INTERFACE
@app.get("/", tags=["admin"])
def health_check():
    """
    Health check endpoint.
    ---
    Returns {"message": "Healthy"} if API is up.
    """
    return {"message": "Healthy"}

# -------------------- Reception --------------------


# PUBLIC_INTERFACE
@app.get("/api/employees", response_model=List[EmployeeOut], tags=["reception"])
def list_employees(desk: VisitDesk = Depends(get_visit_desk)):
    """
    Active employees a visitor can be registered to see.
    """
    return desk.list_active_employees()


# PUBLIC_INTERFACE
@app.post("/api/visits", response_model=VisitCreated, status_code=HTTP_201_CREATED,
          tags=["reception"])
def register_visit(payload: Dict[str, Any] = Body(...), desk: VisitDesk = Depends(get_visit_desk)):
    """
    Registers a visitor and files a visit request for CSO approval.
    Expects {"visitor": {...}, "employee_id": ..., "purpose": ...}.
    """
    return VisitCreated(id=desk.register_visit(payload))


# PUBLIC_INTERFACE
@app.get("/api/visits/active", response_model=List[ActiveVisitOut], tags=["reception"])
def get_active_visits(search: Optional[str] = None, desk: VisitDesk = Depends(get_visit_desk)):
    """
    Visitors currently checked in, optionally filtered by visitor name,
    phone or host name.
    """
    return desk.active_visits(search)


# PUBLIC_INTERFACE
@app.post("/api/visits/{visit_id}/checkout", tags=["reception"])
def check_out_visit(visit_id: int = Path(..., ge=1, le=MAX_ROW_ID),
                    desk: VisitDesk = Depends(get_visit_desk)):
    """
    Checks a visitor out.
    """
    desk.check_out_visit(visit_id)
    return {"id": visit_id, "status": "checked_out"}

# -------------------- CSO --------------------


# PUBLIC_INTERFACE
@app.get("/api/visits/pending", response_model=List[PendingVisitOut], tags=["cso"])
def get_pending_approvals(desk: VisitDesk = Depends(get_visit_desk)):
    """
    Visit requests awaiting a decision, oldest first.
    """
    return desk.pending_approvals()


# PUBLIC_INTERFACE
@app.post("/api/visits/{visit_id}/approve", tags=["cso"])
def approve_visit(visit_id: int = Path(..., ge=1, le=MAX_ROW_ID),
                  desk: VisitDesk = Depends(get_visit_desk)):
    """
    Approves a pending visit and checks the visitor in.
    """
    desk.approve_visit(visit_id)
    return {"id": visit_id, "status": "checked_in"}


# PUBLIC_INTERFACE
@app.post("/api/visits/{visit_id}/reject", tags=["cso"])
def reject_visit(visit_id: int = Path(..., ge=1, le=MAX_ROW_ID),
                 payload: Optional[RejectionRequest] = None,
                 desk: VisitDesk = Depends(get_visit_desk)):
    """
    Rejects a pending visit. A reason is required.
    """
    desk.reject_visit(visit_id, payload.reason if payload else "")
    return {"id": visit_id, "status": "rejected"}

# -------------------- Admin Dashboard Endpoints --------------------


# PUBLIC_INTERFACE
@app.get("/api/admin/dashboard", response_model=DashboardStatsOut, tags=["admin"])
def get_dashboard(desk: VisitDesk = Depends(get_visit_desk)):
    """
    Visitor and visit counters for the admin dashboard.
    """
    return desk.dashboard_stats()


# PUBLIC_INTERFACE
@app.get("/api/admin/recent-activity", response_model=List[RecentVisitOut], tags=["admin"])
def get_recent_activity(
    limit: int = Query(config.RECENT_ACTIVITY_LIMIT, ge=1, le=MAX_RECENT_ACTIVITY),
    desk: VisitDesk = Depends(get_visit_desk),
):
    """
    Most recent visits, newest first.
    """
    return desk.recent_activity(limit)
