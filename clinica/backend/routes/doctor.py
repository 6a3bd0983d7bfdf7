import logging

from flask import Blueprint, jsonify

from ..exceptions import DataUnavailable
from ..models.app import fetch_all_doctors
from .auth import api_login_required

logger = logging.getLogger(__name__)

doctor_bp = Blueprint("doctor", __name__)


@doctor_bp.route("/", methods=["GET"], strict_slashes=False)
@api_login_required
def list_doctors():
    # any authenticated user may browse the doctor list
    try:
        doctors = fetch_all_doctors()
    except DataUnavailable as e:
        logger.exception("Error listing doctors")
        return jsonify({"success": False, "msg": str(e), "doctors": []}), 503
    return jsonify({"success": True, "doctors": doctors})
