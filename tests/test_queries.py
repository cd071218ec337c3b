from datetime import datetime, timedelta, timezone
from types import SimpleNamespace

import pytest

from gatepass import config, lifecycle, queries
from gatepass.directory import get_employee, list_active_employees
from gatepass.errors import NotFound, ValidationError
from gatepass.queries import VisitDuration, visit_duration

T0 = datetime(2026, 10, 19, 10, 0, tzinfo=timezone.utc)


def test_pending_approvals_oldest_first(db, make_visit, clock):
    clock.set(T0 + timedelta(minutes=2))
    third = make_visit(full_name="Carol")
    clock.set(T0)
    first = make_visit(full_name="Alice")
    clock.set(T0 + timedelta(minutes=1))
    second = make_visit(full_name="Bob")

    pending = queries.pending_approvals(db)

    assert [p.id for p in pending] == [first, second, third]


def test_pending_approvals_only_lists_undecided(db, make_visit, clock):
    waiting = make_visit()
    approved = make_visit()
    rejected = make_visit()
    lifecycle.approve_visit(db, approved, "cso-1", clock=clock)
    lifecycle.reject_visit(db, rejected, "cso-1", "Duplicate request", clock=clock)

    assert [p.id for p in queries.pending_approvals(db)] == [waiting]


def test_pending_approvals_carry_visitor_and_host(db, make_visit):
    make_visit(id_type="national-id-card", id_number="1234 5678 9012")

    [entry] = queries.pending_approvals(db)

    assert entry.visitor_name == "Alice Smith"
    assert entry.visitor_phone == "9876543210"
    assert entry.visitor_email == "alice@example.com"
    assert entry.visitor_company == "Acme Corp"
    assert entry.id_type == "national-id-card"
    assert entry.id_type_label == "National ID card (Aadhar)"
    assert entry.id_number == "1234 5678 9012"
    assert entry.employee_name == "Priya Sharma"
    assert entry.employee_email == "priya@company.com"
    assert entry.purpose == "Quarterly review"


@pytest.fixture
def on_site(db, make_visit, clock):
    """Three checked-in visits at 10:00, 10:10 and 10:20 plus one pending."""
    ids = {}
    for offset, (name, phone, host) in enumerate([
        ("Alice Smith", "9876543210", "priya"),
        ("Bob Jones", "9123456780", "arjun"),
        ("Chandra Rao", "9000011111", "priya"),
    ]):
        clock.set(T0 + timedelta(minutes=10 * offset))
        visit_id = make_visit(employee=host, full_name=name, phone=phone)
        lifecycle.approve_visit(db, visit_id, "cso-1", clock=clock)
        ids[name] = visit_id
    make_visit(full_name="Dana Waiting")
    return ids


def test_active_visits_latest_check_in_first(db, on_site):
    active = queries.active_visits(db, now=T0 + timedelta(hours=1))

    assert [a.id for a in active] == [
        on_site["Chandra Rao"], on_site["Bob Jones"], on_site["Alice Smith"],
    ]


def test_active_visits_report_duration(db, on_site):
    active = queries.active_visits(db, now=T0 + timedelta(minutes=59))

    durations = {a.visitor_name: a.duration for a in active}
    assert durations == {
        "Alice Smith": "0h 59m",
        "Bob Jones": "0h 49m",
        "Chandra Rao": "0h 39m",
    }


@pytest.mark.parametrize("term, expected", [
    ("alice", ["Alice Smith"]),
    ("JONES", ["Bob Jones"]),
    ("91234", ["Bob Jones"]),
    ("priya", ["Chandra Rao", "Alice Smith"]),
    ("mehta", ["Bob Jones"]),
    ("nobody", []),
    ("%", []),
])
def test_active_visits_search(db, on_site, term, expected):
    active = queries.active_visits(db, search=term, now=T0)

    assert [a.visitor_name for a in active] == expected


def test_active_visits_blank_search_lists_all(db, on_site):
    assert len(queries.active_visits(db, search="   ", now=T0)) == 3


def test_checked_out_visits_leave_active_list(db, on_site, clock):
    lifecycle.check_out_visit(db, on_site["Bob Jones"], clock=clock)

    names = [a.visitor_name for a in queries.active_visits(db, now=T0)]
    assert "Bob Jones" not in names


def test_duration_of_checked_out_visit():
    visit = SimpleNamespace(
        status="checked_out",
        check_in_time=T0,
        check_out_time=T0 + timedelta(hours=2, minutes=35),
    )

    duration = visit_duration(visit, now=T0 + timedelta(days=1))

    assert duration == VisitDuration(2, 35)
    assert str(duration) == "2h 35m"


def test_duration_of_active_visit_uses_now():
    visit = SimpleNamespace(status="checked_in", check_in_time=T0, check_out_time=None)

    assert str(visit_duration(visit, now=T0 + timedelta(minutes=59))) == "0h 59m"


def test_duration_is_floored():
    visit = SimpleNamespace(status="checked_in", check_in_time=T0, check_out_time=None)

    now = T0 + timedelta(hours=1, minutes=29, seconds=59)
    assert str(visit_duration(visit, now=now)) == "1h 29m"


def test_duration_accepts_naive_utc_from_storage():
    visit = SimpleNamespace(
        status="checked_out",
        check_in_time=T0.replace(tzinfo=None),
        check_out_time=(T0 + timedelta(minutes=90)).replace(tzinfo=None),
    )

    assert str(visit_duration(visit)) == "1h 30m"


@pytest.mark.parametrize("status", ["pending_approval", "rejected"])
def test_no_duration_before_check_in(status):
    visit = SimpleNamespace(status=status, check_in_time=None, check_out_time=None)

    assert visit_duration(visit, now=T0) is None


def test_dashboard_stats(db, make_visit, clock):
    clock.set(T0 - timedelta(days=1))
    yesterday = make_visit()
    lifecycle.approve_visit(db, yesterday, "cso-1", clock=clock)
    lifecycle.check_out_visit(db, yesterday, clock=clock)

    clock.set(T0)
    make_visit()
    active = make_visit()
    lifecycle.approve_visit(db, active, "cso-1", clock=clock)
    rejected = make_visit()
    lifecycle.reject_visit(db, rejected, "cso-1", "Not expected today", clock=clock)

    stats = queries.dashboard_stats(db, now=T0 + timedelta(hours=3), tz_name="UTC")

    assert stats.total_visitors == 4
    assert stats.active_visits == 1
    assert stats.pending_approvals == 1
    assert stats.today_visits == 3
    assert stats.checked_out == 1
    assert stats.rejected == 1
    decided_or_waiting = (stats.active_visits + stats.checked_out
                          + stats.rejected + stats.pending_approvals)
    assert decided_or_waiting <= stats.total_visitors


def test_dashboard_stats_empty(db):
    stats = queries.dashboard_stats(db, now=T0)

    assert stats.model_dump() == {
        "total_visitors": 0,
        "active_visits": 0,
        "pending_approvals": 0,
        "today_visits": 0,
        "checked_out": 0,
        "rejected": 0,
    }


def test_today_follows_facility_time_zone(db, make_visit, clock):
    # 18:00 UTC is 23:30 in Kolkata; 19:00 UTC is already tomorrow there
    clock.set(datetime(2026, 10, 19, 18, 0, tzinfo=timezone.utc))
    make_visit()
    clock.set(datetime(2026, 10, 19, 19, 0, tzinfo=timezone.utc))
    make_visit()

    now = datetime(2026, 10, 19, 20, 0, tzinfo=timezone.utc)
    assert queries.dashboard_stats(db, now=now, tz_name="Asia/Kolkata").today_visits == 1
    assert queries.dashboard_stats(db, now=now, tz_name="UTC").today_visits == 2


def test_start_of_day():
    now = datetime(2026, 10, 19, 20, 0, tzinfo=timezone.utc)

    assert queries.start_of_day(now, "Asia/Kolkata") == datetime(
        2026, 10, 19, 18, 30, tzinfo=timezone.utc)
    assert queries.start_of_day(now, "UTC") == datetime(2026, 10, 19, tzinfo=timezone.utc)


def test_recent_activity_newest_first(db, make_visit, clock):
    ids = []
    for minutes in range(5):
        clock.set(T0 + timedelta(minutes=minutes))
        ids.append(make_visit(employee="arjun"))
    lifecycle.approve_visit(db, ids[-1], "cso-1", clock=clock)

    recent = queries.recent_activity(db, limit=3)

    assert [r.id for r in recent] == list(reversed(ids))[:3]
    assert recent[0].status == "checked_in"
    assert recent[0].check_in_time is not None
    assert recent[0].employee_name == "Arjun Mehta"
    assert recent[0].visitor_company == "Acme Corp"


@pytest.mark.parametrize("limit", [0, -1, 101])
def test_recent_activity_limit_bounds(db, limit):
    with pytest.raises(ValidationError):
        queries.recent_activity(db, limit=limit)


@pytest.mark.parametrize("raw, expected", [
    ("25", 25),
    ("500", 100),
    ("0", 1),
    ("-3", 1),
    ("ten", 10),
])
def test_configured_activity_limit_stays_in_range(raw, expected):
    assert config.bounded_activity_limit(raw) == expected


def test_default_recent_activity_uses_configured_limit(db, make_visit, clock, monkeypatch):
    for minutes in range(3):
        clock.set(T0 + timedelta(minutes=minutes))
        make_visit()
    monkeypatch.setattr(config, "RECENT_ACTIVITY_LIMIT", config.bounded_activity_limit("250"))

    assert len(queries.recent_activity(db)) == 3


def test_list_active_employees(db, employees):
    listed = list_active_employees(db)

    assert [(e.name, e.email) for e in listed] == [
        ("Arjun Mehta", "arjun@company.com"),
        ("Priya Sharma", "priya@company.com"),
    ]


@pytest.mark.parametrize("employee_id", [0, 2**70])
def test_out_of_range_employee_id_is_not_found(db, employees, employee_id):
    with pytest.raises(NotFound):
        get_employee(db, employee_id)
