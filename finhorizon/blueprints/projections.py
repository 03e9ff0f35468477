"""
Projection blueprint.

This module provides API endpoints that run the projection engine over a
posted portfolio: horizon summary and series, portfolio report and liability
schedules.
"""

import json
from typing import Any, Callable, Dict

from flask import Blueprint, current_app, jsonify, request
from pydantic import ValidationError

from finhorizon.config import get_global_settings
from finhorizon.services.projection_service import ProjectionService

projections_bp = Blueprint("projections", __name__, url_prefix="/api")


def _get_service() -> ProjectionService:
    settings = get_global_settings()
    return ProjectionService(default_series_years=settings.default_series_years)


def _run_report(name: str, report: Callable[[Dict[str, Any]], Dict[str, Any]]) -> Any:
    """Run a report over the request body and wrap the result as JSON.

    Args:
        name: Report name used in log messages
        report: Service method taking the request payload

    Returns:
        JSON response: 200 with the report, 400 on invalid records, 500 otherwise
    """
    try:
        data = request.get_json(silent=True)
        if data is None:
            data = {}

        return jsonify(report(data)), 200

    except ValidationError as e:
        return (
            jsonify({"error": "Invalid request", "details": json.loads(e.json())}),
            400,
        )

    except Exception as e:
        current_app.logger.error(f"Error building {name}: {str(e)}")
        return jsonify({"error": "Internal server error"}), 500


@projections_bp.route("/horizon/summary", methods=["POST"])
def horizon_summary() -> Any:
    """Summarize passive income against obligations and find the crossover year."""
    return _run_report("horizon summary", _get_service().horizon_summary)


@projections_bp.route("/horizon/series", methods=["POST"])
def horizon_series() -> Any:
    """Build the yearly horizon series."""
    return _run_report("horizon series", _get_service().horizon_series)


@projections_bp.route("/portfolio/summary", methods=["POST"])
def portfolio_summary() -> Any:
    """Build the portfolio summary, projections and allocation."""
    return _run_report("portfolio report", _get_service().portfolio_report)


@projections_bp.route("/liabilities/schedule", methods=["POST"])
def liability_schedules() -> Any:
    """Build amortization schedules and projections for each liability."""
    return _run_report("liability schedules", _get_service().liability_schedules)
