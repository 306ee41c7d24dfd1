"""
Administrative divisions blueprint.

Endpoints:
    GET/POST /api/v1/adm/countries
    GET/POST /api/v1/adm/provinces   (?countryId= filter)
    GET/POST /api/v1/adm/districts   (?provinceId= filter)
"""

import logging

from flask import Blueprint, jsonify

from stakemap.blueprints import json_body, query_int
from stakemap.services import geography_service
from stakemap.services.audit_service import record_request_audit
from stakemap.utils.errors import register_error_handlers

logger = logging.getLogger(__name__)

geography_bp = Blueprint("geography", __name__, url_prefix="/api/v1/adm")
register_error_handlers(geography_bp)


# ── Countries ────────────────────────────────────────────────────────────────

@geography_bp.route("/countries", methods=["GET"])
def list_countries():
    return jsonify(geography_service.list_countries()), 200


@geography_bp.route("/countries", methods=["POST"])
def create_country():
    country = geography_service.create_country(json_body())
    record_request_audit(
        "CREATE_COUNTRY", "Country created",
        details=f"Country ID: {country['id']}", entity_type="country", entity_id=country["id"],
    )
    return jsonify(country), 201


# ── Provinces ────────────────────────────────────────────────────────────────

@geography_bp.route("/provinces", methods=["GET"])
def list_provinces():
    return jsonify(geography_service.list_provinces(query_int("countryId"))), 200


@geography_bp.route("/provinces", methods=["POST"])
def create_province():
    province = geography_service.create_province(json_body())
    record_request_audit(
        "CREATE_PROVINCE", "Province created",
        details=f"Province ID: {province['id']}", entity_type="province", entity_id=province["id"],
    )
    return jsonify(province), 201


# ── Districts ────────────────────────────────────────────────────────────────

@geography_bp.route("/districts", methods=["GET"])
def list_districts():
    return jsonify(geography_service.list_districts(query_int("provinceId"))), 200


@geography_bp.route("/districts", methods=["POST"])
def create_district():
    district = geography_service.create_district(json_body())
    record_request_audit(
        "CREATE_DISTRICT", "District created",
        details=f"District ID: {district['id']}", entity_type="district", entity_id=district["id"],
    )
    return jsonify(district), 201
