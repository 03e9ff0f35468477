"""Health check blueprint."""

from flask import Blueprint, Response, jsonify

health_bp = Blueprint("health", __name__)


@health_bp.route("/healthz")
def health_check() -> Response:
    """Liveness probe for the projection API.

    Returns:
        JSON response naming the service and its status
    """
    return jsonify({"status": "ok", "service": "finhorizon"})
