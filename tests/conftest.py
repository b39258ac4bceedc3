"""
Factory Payroll System - Test Configuration

Every test gets its own SQLite database file and a clock pinned to
15 June 2025, so "current month" is June 2025 throughout the suite.
"""

import os
import tempfile

# Settings are read at import time
_bootstrap_dir = tempfile.mkdtemp(prefix="payroll-tests-")
os.environ.setdefault("DATABASE_URL", f"sqlite:///{os.path.join(_bootstrap_dir, 'bootstrap.db')}")
os.environ.setdefault("ENABLE_REDIS_CACHE", "false")
os.environ.setdefault("DEBUG", "false")
os.environ.setdefault("LOG_FILE", "")
os.environ.setdefault("PAYROLL_BATCH_WORKERS", "1")

from datetime import date
from decimal import Decimal
from types import SimpleNamespace
from typing import List

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker

from app.main import app
from app.attendance.models import AttendanceRecord, AttendanceStatus
from app.auth.models import User, UserRole
from app.core.clock import FixedClock, get_clock
from app.core.database import Base, get_db, get_session_factory
from app.core.dependencies import get_current_user
from app.employees.models import Employee

TODAY = date(2025, 6, 15)


@pytest.fixture
def clock():
    return FixedClock(TODAY)


@pytest.fixture
def engine(tmp_path):
    engine = create_engine(
        f"sqlite:///{tmp_path / 'payroll.db'}",
        connect_args={"check_same_thread": False}
    )
    Base.metadata.create_all(bind=engine)
    yield engine
    engine.dispose()


@pytest.fixture
def session_factory(engine):
    return sessionmaker(autocommit=False, autoflush=False, bind=engine)


@pytest.fixture
def db(session_factory):
    session = session_factory()
    try:
        yield session
    finally:
        session.close()


def _make_user(db, email: str, role: str) -> User:
    user = User(email=email, name=email.split("@")[0], password_hash="not-a-real-hash", role=role, is_active=True)
    db.add(user)
    db.commit()
    db.refresh(user)
    # Routes receive the user outside this session
    db.expunge(user)
    return user


@pytest.fixture
def admin_user(db):
    return _make_user(db, "admin@factory.test", UserRole.ADMIN)


@pytest.fixture
def manager_user(db):
    return _make_user(db, "manager@factory.test", UserRole.MANAGER)


@pytest.fixture
def worker_user(db):
    # Matches the employee created by the ``worker`` fixture by email
    return _make_user(db, "ravi@factory.test", UserRole.USER)


@pytest.fixture
def client_for(session_factory, clock):
    """Build a TestClient authenticated as the given user."""

    def override_get_db():
        session = session_factory()
        try:
            yield session
        finally:
            session.close()

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_session_factory] = lambda: session_factory
    app.dependency_overrides[get_clock] = lambda: clock

    def _client(user: User) -> TestClient:
        app.dependency_overrides[get_current_user] = lambda: user
        return TestClient(app)

    yield _client
    app.dependency_overrides.clear()


def create_employee(db, email: str = "ravi@factory.test", **overrides) -> Employee:
    values = {
        "name": "Ravi Kumar",
        "email": email,
        "employee_code": f"EMP-{email.split('@')[0].upper()}",
        "department": "Assembly",
        "position": "Operator",
        "joining_date": date(2024, 1, 10),
        "base_salary": Decimal("15300.00"),
    }
    values.update(overrides)
    employee = Employee(**values)
    db.add(employee)
    db.commit()
    db.refresh(employee)
    return employee


def add_attendance(db, employee: Employee, day: str, status: AttendanceStatus = AttendanceStatus.PRESENT,
                   overtime_hours: float = 0.0, overtime_rate: float = None, tag: bool = True) -> AttendanceRecord:
    record = AttendanceRecord(
        employee_id=employee.id,
        date=day,
        status=status,
        overtime_hours=overtime_hours,
        overtime_rate=overtime_rate,
        payroll_month=int(day[5:7]) if tag else None,
        payroll_year=int(day[:4]) if tag else None,
    )
    db.add(record)
    db.commit()
    return record


def add_month_of_attendance(db, employee: Employee, year: int, month: int, statuses: List[AttendanceStatus]):
    """One record per day starting on the 1st, in the order given."""
    for offset, status in enumerate(statuses):
        add_attendance(db, employee, f"{year:04d}-{month:02d}-{offset + 1:02d}", status)


@pytest.fixture
def worker(db):
    return create_employee(db)


class FakeAttendanceReader:
    """In-memory attendance reader for reconciliation unit tests."""

    def __init__(self, records=None):
        self.records = list(records or [])

    def find_for_payroll_period(self, employee_id, month, year):
        return [r for r in self.records if r.payroll_month == month and r.payroll_year == year]

    def find_in_date_range(self, employee_id, start_date, end_date):
        return sorted((r for r in self.records if start_date <= r.date <= end_date), key=lambda r: r.date)


def record(day: str, status: str = "Present", overtime_hours: float = 0.0, overtime_rate: float = None,
           tagged: bool = True, record_id=None):
    return SimpleNamespace(
        id=record_id or f"rec-{day}-{status}",
        date=day,
        status=status,
        overtime_hours=overtime_hours,
        overtime_rate=overtime_rate,
        payroll_month=int(day[5:7]) if tagged else None,
        payroll_year=int(day[:4]) if tagged else None,
    )


def employee_stub(joining_date=date(2024, 1, 10)):
    return SimpleNamespace(id="emp-1", joining_date=joining_date)
