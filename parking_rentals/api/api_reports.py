"""
API JSON per la reportistica.

GET /api/reports/summary
    Totali per la dashboard (debito, incassi, rimborsi, scadenze).
"""

from __future__ import annotations

from dataclasses import asdict

from flask import Blueprint, jsonify

from parking_rentals.services import reporting_service

api_reports_bp = Blueprint("api_reports", __name__)


@api_reports_bp.route("/summary", methods=["GET"])
def api_dashboard_summary():
    summary = reporting_service.get_dashboard_summary()
    return jsonify(
        {
            "success": True,
            "message": "",
            "payload": asdict(summary),
        }
    )
