"""Backend SQLAlchemy models and the read collaborators used by the views."""

from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Optional
import enum
import logging

from flask_login import UserMixin
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import validates

# import the package-level db instance
from .. import db
from ..exceptions import DataUnavailable

logger = logging.getLogger(__name__)


# -----------------------------
# ENUM TYPES
# -----------------------------
class RoleType(enum.Enum):
    ADMIN = "Admin"
    DOCTOR = "Doctor"
    PATIENT = "Patient"


class DoctorStatus(enum.Enum):
    ACTIVE = "active"
    BLACKLISTED = "blacklisted"


class PatientStatus(enum.Enum):
    ACTIVE = "active"
    BLACKLISTED = "blacklisted"


class AppointmentStatus(enum.Enum):
    BOOKED = "Booked"
    COMPLETED = "Completed"
    CANCELLED = "Cancelled"


# -----------------------------
# VIEWER CONTEXT
# -----------------------------
@dataclass(frozen=True)
class ViewerContext:
    """Who is looking at a page. Only the id matching `role` is meaningful."""

    role: RoleType
    doctor_id: Optional[Any] = None
    patient_id: Optional[Any] = None


# -----------------------------
# BASE MIXIN FOR COMMON FIELDS
# -----------------------------
def utcnow():
    # DateTime columns are naive and hold UTC
    return datetime.now(timezone.utc).replace(tzinfo=None)


class TimestampMixin(object):
    created_at = db.Column(db.DateTime, default=utcnow, nullable=False)
    updated_at = db.Column(
        db.DateTime,
        default=utcnow,
        onupdate=utcnow,
        nullable=False,
    )


# -----------------------------
# USER MODEL
# -----------------------------
class User(UserMixin, TimestampMixin, db.Model):
    __tablename__ = "users"

    id = db.Column(db.Integer, primary_key=True)
    username = db.Column(db.String(80), unique=True, nullable=False, index=True)
    password_hash = db.Column(db.String(255), nullable=False)

    role = db.Column(db.Enum(RoleType), nullable=False)

    email = db.Column(db.String(120), unique=True, nullable=False, index=True)
    first_name = db.Column(db.String(80), nullable=True)
    last_name = db.Column(db.String(80), nullable=True)

    is_active = db.Column(db.Boolean, default=True, nullable=False)

    # 1-1 relationships with Doctor / Patient profile
    doctor_profile = db.relationship(
        "Doctor",
        back_populates="user",
        uselist=False,
    )
    patient_profile = db.relationship(
        "Patient",
        back_populates="user",
        uselist=False,
    )

    def __repr__(self):
        return f"<User {self.username} ({self.role.value})>"

    @validates("role")
    def validate_role(self, key, value):
        # Accept either an Enum member or a string value.
        if isinstance(value, RoleType):
            return value
        try:
            return RoleType(value)
        except ValueError:
            raise ValueError("Invalid role type")

    @property
    def viewer(self) -> ViewerContext:
        doctor = self.doctor_profile
        patient = self.patient_profile
        return ViewerContext(
            role=self.role,
            doctor_id=doctor.id if doctor else None,
            patient_id=patient.id if patient else None,
        )


# -----------------------------
# DOCTOR MODEL
# -----------------------------
class Doctor(TimestampMixin, db.Model):
    __tablename__ = "doctors"

    id = db.Column(db.Integer, primary_key=True)

    user_id = db.Column(
        db.Integer,
        db.ForeignKey("users.id", ondelete="SET NULL"),
        nullable=True,
        unique=True,
        index=True,
    )

    name = db.Column(db.String(120), nullable=False)
    specialty = db.Column(db.String(100), nullable=True)
    license_number = db.Column(db.String(40), nullable=True)
    contact = db.Column(db.String(20), nullable=True)
    status = db.Column(db.Enum(DoctorStatus), default=DoctorStatus.ACTIVE, nullable=False)

    user = db.relationship("User", back_populates="doctor_profile")

    appointments = db.relationship(
        "Appointment",
        back_populates="doctor",
        cascade="all, delete-orphan",
        lazy="dynamic",
    )

    def __repr__(self):
        return f"<Doctor {self.name}>"

    @validates("status")
    def validate_status(self, key, value):
        if isinstance(value, DoctorStatus):
            return value
        try:
            return DoctorStatus(value)
        except ValueError:
            raise ValueError("Invalid doctor status")


# -----------------------------
# PATIENT MODEL
# -----------------------------
class Patient(TimestampMixin, db.Model):
    __tablename__ = "patients"

    id = db.Column(db.Integer, primary_key=True)

    # patients registered at the front desk have no login
    user_id = db.Column(
        db.Integer,
        db.ForeignKey("users.id", ondelete="SET NULL"),
        nullable=True,
        unique=True,
        index=True,
    )

    name = db.Column(db.String(120), nullable=False)
    age = db.Column(db.Integer, nullable=True)
    gender = db.Column(db.String(20), nullable=True)

    address = db.Column(db.Text, nullable=True)
    contact = db.Column(db.String(20), nullable=True)
    email = db.Column(db.String(120), nullable=True)

    status = db.Column(db.Enum(PatientStatus), default=PatientStatus.ACTIVE, nullable=False)

    user = db.relationship("User", back_populates="patient_profile")

    appointments = db.relationship(
        "Appointment",
        back_populates="patient",
        cascade="all, delete-orphan",
        lazy="dynamic",
    )

    def __repr__(self):
        return f"<Patient {self.name}>"

    @validates("status")
    def validate_status(self, key, value):
        if isinstance(value, PatientStatus):
            return value
        try:
            return PatientStatus(value)
        except ValueError:
            raise ValueError("Invalid patient status")


# -----------------------------
# APPOINTMENT MODEL
# -----------------------------
class Appointment(TimestampMixin, db.Model):
    __tablename__ = "appointments"

    id = db.Column(db.Integer, primary_key=True)

    doctor_id = db.Column(
        db.Integer,
        db.ForeignKey("doctors.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    patient_id = db.Column(
        db.Integer,
        db.ForeignKey("patients.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )

    # Calendar day stored as midnight UTC; the time of day lives in start_time.
    date = db.Column(db.DateTime, nullable=True, index=True)
    # Free-form "HH:MM" strings as typed at the front desk
    start_time = db.Column(db.String(8), nullable=True)
    end_time = db.Column(db.String(8), nullable=True)

    reason = db.Column(db.Text, nullable=True)

    status = db.Column(
        db.Enum(AppointmentStatus),
        default=AppointmentStatus.BOOKED,
        nullable=False,
    )

    doctor = db.relationship("Doctor", back_populates="appointments")
    patient = db.relationship("Patient", back_populates="appointments")

    def __repr__(self):
        return (
            f"<Appointment {self.id} Doctor={self.doctor_id} "
            f"Patient={self.patient_id} {self.date} {self.start_time}>"
        )

    @validates("status")
    def validate_status(self, key, value):
        if isinstance(value, AppointmentStatus):
            return value
        try:
            return AppointmentStatus(value)
        except ValueError:
            raise ValueError("Invalid appointment status")


# -----------------------------
# SERIALIZERS
# -----------------------------
def serialize_appointment(a):
    return {
        "id": a.id,
        "doctor_id": a.doctor_id,
        "patient_id": a.patient_id,
        "date": a.date,
        "start_time": a.start_time,
        "end_time": a.end_time,
        "reason": a.reason,
        "status": a.status.value if a.status else None,
        "patient_name": a.patient.name if a.patient else None,
        "doctor_name": a.doctor.name if a.doctor else None,
        "specialty": a.doctor.specialty if a.doctor else None,
    }


def serialize_patient(p):
    return {
        "id": p.id,
        "name": p.name,
        "age": p.age,
        "gender": p.gender,
        "contact": p.contact,
        "email": p.email,
        "status": p.status.value if p.status else None,
    }


def serialize_doctor(d):
    return {
        "id": d.id,
        "name": d.name,
        "specialty": d.specialty,
        "license_number": d.license_number,
        "contact": d.contact,
        "status": d.status.value if d.status else None,
    }


# -----------------------------
# READ COLLABORATORS
# -----------------------------
def fetch_all_appointments():
    """Every appointment joined with patient/doctor display fields, in insertion order.

    Database failures surface as `DataUnavailable`.
    """
    try:
        appts = Appointment.query.order_by(Appointment.id).all()
        return [serialize_appointment(a) for a in appts]
    except SQLAlchemyError as e:
        logger.error("Failed to read appointments: %s", e)
        raise DataUnavailable("appointments could not be read") from e


def fetch_all_patients():
    try:
        return [serialize_patient(p) for p in Patient.query.order_by(Patient.id).all()]
    except SQLAlchemyError as e:
        logger.error("Failed to read patients: %s", e)
        raise DataUnavailable("patients could not be read") from e


def fetch_all_doctors():
    try:
        return [serialize_doctor(d) for d in Doctor.query.order_by(Doctor.id).all()]
    except SQLAlchemyError as e:
        logger.error("Failed to read doctors: %s", e)
        raise DataUnavailable("doctors could not be read") from e


def fetch_all_users():
    try:
        users = User.query.order_by(User.id).all()
    except SQLAlchemyError as e:
        logger.error("Failed to read users: %s", e)
        raise DataUnavailable("users could not be read") from e
    return [
        {
            "id": u.id,
            "username": u.username,
            "email": u.email,
            "role": u.role.value,
            "is_active": u.is_active,
        }
        for u in users
    ]
