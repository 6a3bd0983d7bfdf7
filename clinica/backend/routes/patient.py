import logging

from flask import Blueprint, jsonify

from ..exceptions import DataUnavailable
from ..models.app import fetch_all_patients
from .auth import admin_required

logger = logging.getLogger(__name__)

patient_bp = Blueprint("patient", __name__)


@patient_bp.route("/", methods=["GET"], strict_slashes=False)
@admin_required
def list_patients():
    try:
        patients = fetch_all_patients()
    except DataUnavailable as e:
        logger.exception("Error listing patients")
        return jsonify({"success": False, "msg": str(e), "patients": []}), 503
    return jsonify({"success": True, "patients": patients})
