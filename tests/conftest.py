from datetime import datetime, timedelta, timezone

import pytest
from werkzeug.security import generate_password_hash

from clinica.backend.app import create_app
from clinica.backend import db
from clinica.backend.models.app import Appointment, Doctor, Patient, RoleType, User


@pytest.fixture
def app():
    # create app with in-memory DB
    app = create_app({
        "TESTING": True,
        "SECRET_KEY": "test-secret",
        "SQLALCHEMY_DATABASE_URI": "sqlite:///:memory:",
        "JWT_SECRET_KEY": "test-jwt-secret",
        "CLINIC_TIMEZONE": "UTC",
        "DASHBOARD_RECENT_LIMIT": 10,
    })
    with app.app_context():
        db.create_all()
        yield app
        db.session.remove()
        db.drop_all()


@pytest.fixture
def client(app):
    return app.test_client()


def _user(username, role):
    user = User(
        username=username,
        email=f"{username}@example.com",
        password_hash=generate_password_hash("pass123"),
        role=role,
    )
    db.session.add(user)
    db.session.flush()
    return user


def _midnight(days_from_today):
    today = datetime.now(timezone.utc).replace(tzinfo=None, hour=0, minute=0, second=0, microsecond=0)
    return today + timedelta(days=days_from_today)


@pytest.fixture
def seed(app):
    """Admin, two doctors, two patients and a handful of appointments."""
    _user("admin", RoleType.ADMIN)
    house = Doctor(user_id=_user("house", RoleType.DOCTOR).id, name="Gregory House", specialty="Diagnóstico")
    wilson = Doctor(name="James Wilson", specialty="Oncología")
    ana = Patient(user_id=_user("ana", RoleType.PATIENT).id, name="Ana Pérez", email="ana@example.com")
    luis = Patient(name="Luis Gómez")
    db.session.add_all([house, wilson, ana, luis])
    db.session.flush()

    db.session.add_all([
        Appointment(doctor_id=house.id, patient_id=ana.id, date=_midnight(-3), start_time="10:00", reason="control"),
        Appointment(doctor_id=house.id, patient_id=ana.id, date=_midnight(5), start_time="09:30", reason="seguimiento"),
        Appointment(doctor_id=house.id, patient_id=luis.id, date=_midnight(2), start_time="25:99", reason="consulta"),
        Appointment(doctor_id=wilson.id, patient_id=ana.id, date=_midnight(7), start_time="11:00", reason="estudios"),
        Appointment(doctor_id=wilson.id, patient_id=luis.id, date=None, start_time=None, reason="sin fecha"),
    ])
    db.session.commit()
    return {"house": house, "wilson": wilson, "ana": ana, "luis": luis}


def login(client, username, password="pass123"):
    return client.post("/login", data={"username": username, "password": password})


def display(days_from_today):
    return _midnight(days_from_today).strftime("%d-%m-%Y")
