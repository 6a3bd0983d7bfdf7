import logging
from datetime import datetime, timezone

from flask import Blueprint, abort, current_app, jsonify, redirect, render_template, request, url_for
from flask_login import current_user, login_required, login_user, logout_user

from ..exceptions import DataUnavailable, ViewerNotAuthorized
from ..models.app import (
    RoleType,
    fetch_all_appointments,
    fetch_all_doctors,
    fetch_all_patients,
    fetch_all_users,
)
from ..utils.projector import latest, project_overview, project_upcoming
from .auth import ROLE_HOME, authenticate, current_viewer, register_patient

logger = logging.getLogger(__name__)

views_bp = Blueprint("views", __name__)

DATA_ERROR = "Error al obtener datos de la base de datos"


def _home_for(viewer):
    return ROLE_HOME.get(viewer.role, url_for("views.login"))


# -------------------------
# Admin dashboard
# -------------------------
@views_bp.route("/", methods=["GET"])
@login_required
def index():
    viewer = current_viewer()
    if viewer.role != RoleType.ADMIN:
        logger.warning("User %s (%s) denied admin dashboard", current_user.id, viewer.role.value)
        abort(403)

    title = f"Dashboard - {current_app.config['CLINIC_NAME']}"
    limit = current_app.config["DASHBOARD_RECENT_LIMIT"]
    try:
        turnos = fetch_all_appointments()
        pacientes = fetch_all_patients()
        medicos = fetch_all_doctors()
    except DataUnavailable:
        logger.exception("Error loading admin dashboard data")
        return render_template(
            "index.html",
            title=title,
            turnos=[],
            pacientes=[],
            medicos=[],
            metrics={"turnos": 0, "pacientes": 0, "medicos": 0},
            error=DATA_ERROR,
        )

    return render_template(
        "index.html",
        title=title,
        turnos=project_overview(turnos, limit),
        pacientes=latest(pacientes, limit),
        medicos=medicos,
        metrics={
            "turnos": len(turnos),
            "pacientes": len(pacientes),
            "medicos": len(medicos),
        },
    )


# -------------------------
# Management pages
# -------------------------
@views_bp.route("/pacientes", methods=["GET"])
@login_required
def patients_page():
    return render_template("pacientes.html", title="Gestión de Pacientes")


@views_bp.route("/medicos", methods=["GET"])
@login_required
def doctors_page():
    return render_template("medicos.html", title="Gestión de Médicos")


@views_bp.route("/turnos", methods=["GET"])
@login_required
def appointments_page():
    return render_template("turnos.html", title="Gestión de Turnos")


@views_bp.route("/usuarios", methods=["GET"])
@login_required
def users_page():
    viewer = current_viewer()
    if viewer.role != RoleType.ADMIN:
        return redirect("/")

    try:
        users = fetch_all_users()
    except DataUnavailable:
        logger.exception("Error loading users")
        return render_template("usuarios.html", title="Gestión de Usuarios", users=[], error=DATA_ERROR)
    return render_template("usuarios.html", title="Gestión de Usuarios", users=users)


# -------------------------
# Role dashboards
# -------------------------
def _render_upcoming(template, title, viewer, denied_url, sign_out=False):
    """Render a role dashboard listing the viewer's upcoming appointments."""
    try:
        turnos = project_upcoming(
            fetch_all_appointments(),
            viewer,
            tz=current_app.config["CLINIC_TZINFO"],
        )
    except ViewerNotAuthorized as e:
        logger.warning("Refused %s for user %s: %s", template, current_user.id, e.msg)
        if sign_out:
            # the login page would send this user straight back here
            logout_user()
        return redirect(denied_url)
    except DataUnavailable:
        logger.exception("Error loading %s", template)
        return render_template(
            template,
            title=title,
            turnos=[],
            metrics={"turnos": 0},
            error="Error al obtener datos",
        )

    return render_template(template, title=title, turnos=turnos, metrics={"turnos": len(turnos)})


@views_bp.route("/dashboard/medico", methods=["GET"])
@login_required
def doctor_dashboard():
    viewer = current_viewer()
    if viewer.role != RoleType.DOCTOR:
        return redirect(url_for("views.login"))
    return _render_upcoming(
        "dashboard_medico.html",
        "Dashboard Médico",
        viewer,
        url_for("views.login"),
        sign_out=True,
    )


@views_bp.route("/dashboard/paciente", methods=["GET"])
@login_required
def patient_dashboard():
    viewer = current_viewer()
    if viewer.role != RoleType.PATIENT:
        return redirect("/")
    return _render_upcoming("dashboard_paciente.html", "Mi Dashboard", viewer, "/")


# -------------------------
# Session login / registration
# -------------------------
@views_bp.route("/login", methods=["GET", "POST"])
def login():
    viewer = current_viewer()
    if viewer:
        # already signed in, send to the role's home
        return redirect(_home_for(viewer))

    if request.method == "GET":
        return render_template("login.html", title="Iniciar Sesión")

    identifier = request.form.get("username") or request.form.get("email")
    user = authenticate(identifier, request.form.get("password"))
    if not user:
        logger.info("Rejected login for %s", identifier)
        return (
            render_template("login.html", title="Iniciar Sesión", error="Usuario o contraseña incorrectos"),
            401,
        )

    login_user(user)
    logger.info("User %s logged in as %s", user.username, user.role.value)
    return redirect(_home_for(user.viewer))


@views_bp.route("/logout", methods=["GET"])
@login_required
def logout():
    logout_user()
    return redirect(url_for("views.login"))


@views_bp.route("/registro/paciente", methods=["GET", "POST"])
def patient_registration():
    if request.method == "GET":
        return render_template(
            "registro_paciente.html",
            title="Registro de Paciente",
            google_email=request.args.get("googleEmail", ""),
            google_first_name=request.args.get("googleFirstName", ""),
            google_last_name=request.args.get("googleLastName", ""),
        )

    form = request.form
    try:
        register_patient(
            form.get("username"),
            form.get("email"),
            form.get("password"),
            first_name=form.get("first_name"),
            last_name=form.get("last_name"),
            contact=form.get("contact"),
        )
    except ValueError as e:
        return (
            render_template(
                "registro_paciente.html",
                title="Registro de Paciente",
                google_email=form.get("email", ""),
                google_first_name=form.get("first_name", ""),
                google_last_name=form.get("last_name", ""),
                error=str(e),
            ),
            400,
        )
    return redirect(url_for("views.login"))


# -------------------------
# API status
# -------------------------
@views_bp.route("/api/status", methods=["GET"])
def api_status():
    return jsonify(
        {
            "status": "success",
            "message": "API funcionando correctamente",
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "database": current_app.config["SQLALCHEMY_DATABASE_URI"].split(":", 1)[0],
            "endpoints": {
                "pacientes": "/api/pacientes",
                "medicos": "/api/medicos",
                "turnos": "/api/turnos",
                "auth": "/api/auth",
                "status": "/api/status",
            },
        }
    )
