import logging
from functools import wraps

from flask import Blueprint, request, jsonify
from flask_jwt_extended import (
    create_access_token,
    get_jwt,
    get_jwt_identity,
    verify_jwt_in_request,
    jwt_required,
)
from flask_jwt_extended.exceptions import JWTExtendedException
from flask_login import current_user
from jwt.exceptions import PyJWTError
from werkzeug.security import generate_password_hash, check_password_hash

from .. import db
from ..models.app import User, Patient, RoleType

logger = logging.getLogger(__name__)

auth_bp = Blueprint("auth", __name__)

# Where each role lands after signing in
ROLE_HOME = {
    RoleType.ADMIN: "/",
    RoleType.DOCTOR: "/dashboard/medico",
    RoleType.PATIENT: "/dashboard/paciente",
}


# -------------------------
# RBAC decorators (JSON API)
# -------------------------

def role_required(role_name):
    def decorator(fn):
        @wraps(fn)
        def wrapper(*args, **kwargs):
            # Ensure a valid JWT exists
            try:
                verify_jwt_in_request()
            except (JWTExtendedException, PyJWTError):
                return jsonify({"success": False, "msg": "Missing or invalid token"}), 401

            claims = get_jwt()
            role = claims.get("role")
            if not role or role.lower() != role_name.lower():
                return jsonify({"success": False, "msg": "Forbidden - insufficient privileges"}), 403
            return fn(*args, **kwargs)

        return wrapper

    return decorator


admin_required = role_required("admin")

# Any authenticated API caller
api_login_required = jwt_required()


# -------------------------
# Viewer resolution
# -------------------------

def current_viewer():
    """ViewerContext of the session user, or None when nobody is logged in."""
    if not current_user.is_authenticated:
        return None
    return current_user.viewer


def jwt_viewer():
    """ViewerContext of the bearer token's user. Call inside a JWT-protected view."""
    user_id = get_jwt_identity()
    if not user_id:
        return None
    user = db.session.get(User, int(user_id))
    if not user or not user.is_active:
        return None
    return user.viewer


def find_user(identifier):
    """Look a user up by username or email."""
    identifier = (identifier or "").strip()
    if not identifier:
        return None
    return User.query.filter(
        (User.username == identifier) | (User.email == identifier.lower())
    ).first()


def authenticate(identifier, password):
    user = find_user(identifier)
    if not user or not password:
        return None
    if not user.is_active or not check_password_hash(user.password_hash, password):
        return None
    return user


def register_patient(username, email, password, first_name=None, last_name=None, contact=None):
    """Create a Patient user with its profile.

    Returns the new user, or raises ValueError with a user-facing message.
    """
    username = (username or "").strip()
    email = (email or "").strip().lower()
    if not username or not email or not password:
        raise ValueError("username, email and password are required")

    # Unique username/email enforcement
    if User.query.filter((User.username == username) | (User.email == email)).first():
        raise ValueError("username or email already in use")

    user = User(
        username=username,
        email=email,
        password_hash=generate_password_hash(password),
        role=RoleType.PATIENT,
        first_name=first_name,
        last_name=last_name,
    )
    db.session.add(user)
    db.session.flush()  # get user.id

    full_name = " ".join(p for p in (first_name, last_name) if p) or username
    patient = Patient(user_id=user.id, name=full_name, contact=contact, email=email)
    db.session.add(patient)
    db.session.commit()

    logger.info("Registered patient account %s", username)
    return user


# -------------------------
# Auth endpoints
# -------------------------
@auth_bp.route("/register", methods=["POST"])
def register():
    """Patient self-registration endpoint.

    Expected JSON body: {username, email, password, first_name, last_name, contact}
    """
    data = request.get_json() or {}
    try:
        register_patient(
            data.get("username"),
            data.get("email"),
            data.get("password"),
            first_name=data.get("first_name"),
            last_name=data.get("last_name"),
            contact=data.get("contact"),
        )
    except ValueError as e:
        return jsonify({"success": False, "msg": str(e)}), 400

    return jsonify({"success": True, "msg": "Patient registered successfully"}), 201


@auth_bp.route("/login", methods=["POST"])
def login():
    """Login endpoint. Accepts username or email and password.

    Expected JSON: { username | email, password }
    Returns: { success, role, access_token, redirect }
    """
    data = request.get_json() or {}
    identifier = (data.get("username") or data.get("email") or "").strip()
    password = data.get("password")

    if not identifier or not password:
        return jsonify({"success": False, "msg": "identifier and password required"}), 400

    user = authenticate(identifier, password)
    if not user:
        logger.info("Rejected API login for %s", identifier)
        return jsonify({"success": False, "msg": "Invalid credentials"}), 401

    # issue JWT with role claim
    additional_claims = {"role": user.role.value}
    access_token = create_access_token(identity=str(user.id), additional_claims=additional_claims)

    return (
        jsonify(
            {
                "success": True,
                "role": user.role.value.lower(),
                "access_token": access_token,
                "redirect": ROLE_HOME.get(user.role, "/"),
            }
        ),
        200,
    )
