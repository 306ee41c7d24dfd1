"""
Option Set Blueprint.

Named choice lists (gender, age range, ...) that dashboard forms render as
drop-downs. All business logic is delegated to option_set_service.

Endpoints:
  Option sets:   GET/POST /api/v1/option-sets
                 GET      /api/v1/option-sets/<id>/options
  Options:       POST     /api/v1/option-sets/options
"""

import logging

from flask import Blueprint, jsonify

from stakemap.blueprints import json_body
from stakemap.services import option_set_service
from stakemap.services.audit_service import record_request_audit
from stakemap.utils.errors import register_error_handlers

logger = logging.getLogger(__name__)

option_set_bp = Blueprint("option_set", __name__, url_prefix="/api/v1/option-sets")
register_error_handlers(option_set_bp)


@option_set_bp.route("", methods=["GET"])
def list_option_sets():
    """All option sets with their options, ordered by name."""
    return jsonify(option_set_service.list_option_sets()), 200


@option_set_bp.route("", methods=["POST"])
def create_option_set():
    """Body: { "name": str, "description"?: str }"""
    option_set = option_set_service.create_option_set(json_body())
    record_request_audit(
        "CREATE_OPTION_SET",
        "Option set created",
        details=f"OptionSet ID: {option_set['id']}",
        entity_type="option_set",
        entity_id=option_set["id"],
    )
    return jsonify({"message": "Option set created", "optionSet": option_set}), 201


@option_set_bp.route("/options", methods=["POST"])
def create_option():
    """Body: { "optionSetId": int, "name": str }"""
    option = option_set_service.create_option(json_body())
    record_request_audit(
        "CREATE_OPTION",
        "Option created",
        details=f"Option ID: {option['id']}; optionSetId: {option['optionSetId']}",
        entity_type="option",
        entity_id=option["id"],
    )
    return jsonify({"message": "Option created", "option": option}), 201


@option_set_bp.route("/<int:option_set_id>/options", methods=["GET"])
def list_options(option_set_id: int):
    return jsonify(option_set_service.list_options_for_set(option_set_id)), 200
