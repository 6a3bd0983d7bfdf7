import logging

from flask import Blueprint, current_app, jsonify, request

from ..exceptions import DataUnavailable, ViewerNotAuthorized
from ..models.app import fetch_all_appointments
from ..utils.projector import project_overview, project_upcoming
from .auth import admin_required, api_login_required, jwt_viewer

logger = logging.getLogger(__name__)

appointment_bp = Blueprint("appointment", __name__)


def _jsonable(appt):
    # DateTime columns are rendered as ISO strings
    out = dict(appt)
    if out.get("date") is not None and hasattr(out["date"], "isoformat"):
        out["date"] = out["date"].isoformat()
    return out


# -------------------------
# Admin overview of the most recently stored appointments
# -------------------------
@appointment_bp.route("/", methods=["GET"], strict_slashes=False)
@admin_required
def list_appointments():
    limit = request.args.get("limit", type=int)
    if limit is None:
        limit = current_app.config["DASHBOARD_RECENT_LIMIT"]

    try:
        appts = fetch_all_appointments()
    except DataUnavailable as e:
        logger.exception("Error listing appointments")
        return jsonify({"success": False, "msg": str(e), "appointments": []}), 503

    result = [_jsonable(a) for a in project_overview(appts, limit)]
    return jsonify({"success": True, "total": len(appts), "appointments": result})


# -------------------------
# Upcoming appointments for the caller
# -------------------------
@appointment_bp.route("/proximos", methods=["GET"])
@api_login_required
def upcoming_appointments():
    viewer = jwt_viewer()
    if viewer is None:
        return jsonify({"success": False, "msg": "User not found"}), 401

    try:
        upcoming = project_upcoming(
            fetch_all_appointments(),
            viewer,
            tz=current_app.config["CLINIC_TZINFO"],
        )
    except ViewerNotAuthorized as e:
        return jsonify({"success": False, "msg": e.msg}), 403
    except DataUnavailable as e:
        logger.exception("Error loading upcoming appointments")
        return jsonify({"success": False, "msg": str(e), "appointments": []}), 503

    return jsonify({"success": True, "appointments": [_jsonable(a) for a in upcoming]})
