"""
Read access to the employee directory.
"""

from typing import List

from sqlalchemy.orm import Session

from .database import storage_guard
from .errors import NotFound
from .models import MAX_ROW_ID, Employee
from .schemas import EmployeeOut


# PUBLIC_INTERFACE
def list_active_employees(db: Session) -> List[EmployeeOut]:
    """
    Employees that may be chosen as the host of a visit, ordered by name.
    """
    with storage_guard(db):
        rows = (db.query(Employee)
                .filter(Employee.is_active.is_(True))
                .order_by(Employee.full_name)
                .all())
    return [EmployeeOut(id=e.id, name=e.full_name, email=e.email) for e in rows]


def get_employee(db: Session, employee_id: int) -> Employee:
    employee = None
    if 1 <= employee_id <= MAX_ROW_ID:
        with storage_guard(db):
            employee = db.get(Employee, employee_id)
    if employee is None:
        raise NotFound(f"Employee {employee_id} not found")
    return employee