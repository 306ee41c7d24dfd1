"""
Financial calendar blueprint.

Endpoints:
  Financial years:  GET/POST        /api/v1/financial-years
                    GET/PUT/DELETE  /api/v1/financial-years/<id>
                    GET             /api/v1/financial-years/<id>/quarters
  Quarters:         POST            /api/v1/quarters
                    GET/PUT/DELETE  /api/v1/quarters/<id>
"""

import logging

from flask import Blueprint, jsonify

from stakemap.blueprints import json_body
from stakemap.services import financial_year_service
from stakemap.services.audit_service import record_request_audit
from stakemap.utils.errors import register_error_handlers

logger = logging.getLogger(__name__)

financial_year_bp = Blueprint("financial_year", __name__, url_prefix="/api/v1")
register_error_handlers(financial_year_bp)


# ── Financial years ──────────────────────────────────────────────────────────

@financial_year_bp.route("/financial-years", methods=["GET"])
def list_financial_years():
    return jsonify(financial_year_service.list_financial_years()), 200


@financial_year_bp.route("/financial-years", methods=["POST"])
def create_financial_year():
    """Create a financial year.

    Body: { "name": str, "startDate"?, "endDate"?, "planStartDate"?, "planEndDate"?,
            "reportStartDate"?, "reportEndDate"? }  (ISO dates)
    """
    year = financial_year_service.create_financial_year(json_body())
    record_request_audit(
        "CREATE_FINANCIAL_YEAR", "Financial year created",
        details=f"FinancialYear ID: {year['id']}", entity_type="financial_year", entity_id=year["id"],
    )
    return jsonify(year), 201


@financial_year_bp.route("/financial-years/<int:year_id>", methods=["GET"])
def get_financial_year(year_id: int):
    return jsonify(financial_year_service.get_financial_year(year_id)), 200


@financial_year_bp.route("/financial-years/<int:year_id>", methods=["PUT"])
def update_financial_year(year_id: int):
    year = financial_year_service.update_financial_year(year_id, json_body())
    record_request_audit(
        "UPDATE_FINANCIAL_YEAR", "Financial year updated",
        details=f"FinancialYear ID: {year_id}", entity_type="financial_year", entity_id=year_id,
    )
    return jsonify(year), 200


@financial_year_bp.route("/financial-years/<int:year_id>", methods=["DELETE"])
def delete_financial_year(year_id: int):
    financial_year_service.delete_financial_year(year_id)
    record_request_audit(
        "DELETE_FINANCIAL_YEAR", "Financial year deleted",
        details=f"FinancialYear ID: {year_id}", entity_type="financial_year", entity_id=year_id,
    )
    return jsonify({"message": "Financial year deleted successfully"}), 200


@financial_year_bp.route("/financial-years/<int:year_id>/quarters", methods=["GET"])
def list_quarters_for_year(year_id: int):
    financial_year_service.get_financial_year(year_id)
    return jsonify(financial_year_service.list_quarters_for_year(year_id)), 200


# ── Quarters ─────────────────────────────────────────────────────────────────

@financial_year_bp.route("/quarters", methods=["POST"])
def create_quarter():
    """Create a quarter.

    Body: { "name": str, "yearId": int, "startDate"?, "endDate"?, "reportDueDate"? }
    """
    quarter = financial_year_service.create_quarter(json_body())
    record_request_audit(
        "CREATE_QUARTER", "Quarter created",
        details=f"Quarter ID: {quarter['id']}; yearId: {quarter['yearId']}",
        entity_type="quarter", entity_id=quarter["id"],
    )
    return jsonify(quarter), 201


@financial_year_bp.route("/quarters/<int:quarter_id>", methods=["GET"])
def get_quarter(quarter_id: int):
    return jsonify(financial_year_service.get_quarter(quarter_id)), 200


@financial_year_bp.route("/quarters/<int:quarter_id>", methods=["PUT"])
def update_quarter(quarter_id: int):
    quarter = financial_year_service.update_quarter(quarter_id, json_body())
    record_request_audit(
        "UPDATE_QUARTER", "Quarter updated",
        details=f"Quarter ID: {quarter_id}", entity_type="quarter", entity_id=quarter_id,
    )
    return jsonify(quarter), 200


@financial_year_bp.route("/quarters/<int:quarter_id>", methods=["DELETE"])
def delete_quarter(quarter_id: int):
    financial_year_service.delete_quarter(quarter_id)
    record_request_audit(
        "DELETE_QUARTER", "Quarter deleted",
        details=f"Quarter ID: {quarter_id}", entity_type="quarter", entity_id=quarter_id,
    )
    return jsonify({"message": "Quarter deleted successfully"}), 200
