"""
Stakeholder Mapping Blueprint.

Routes for stakeholder categories and stakeholders with their district and
sub-cluster coverage. All business logic is delegated to stakeholder_service
(3-layer architecture).

Endpoints:
  Categories:    GET/POST /api/v1/stakeholders/categories
                 GET      /api/v1/stakeholders/categories/<id>
  Stakeholder:   GET/POST /api/v1/stakeholders
                 GET      /api/v1/stakeholders/<id>
"""

import logging

from flask import Blueprint, jsonify

from stakemap.blueprints import json_body
from stakemap.services import stakeholder_service
from stakemap.services.audit_service import record_request_audit
from stakemap.utils.errors import register_error_handlers

logger = logging.getLogger(__name__)

stakeholder_bp = Blueprint("stakeholder", __name__, url_prefix="/api/v1/stakeholders")
register_error_handlers(stakeholder_bp)


# ═════════════════════════════════════════════════════════════════════════════
# Stakeholder categories (3 routes)
# ═════════════════════════════════════════════════════════════════════════════


@stakeholder_bp.route("/categories", methods=["GET"])
def list_stakeholder_categories():
    return jsonify(stakeholder_service.list_stakeholder_categories()), 200


@stakeholder_bp.route("/categories", methods=["POST"])
def create_stakeholder_category():
    category = stakeholder_service.create_stakeholder_category(json_body())
    record_request_audit(
        "CREATE_STAKEHOLDER_CATEGORY",
        "Stakeholder category created",
        details=f"StakeholderCategory ID: {category['id']}",
        entity_type="stakeholder_category",
        entity_id=category["id"],
    )
    return jsonify(category), 201


@stakeholder_bp.route("/categories/<int:category_id>", methods=["GET"])
def get_stakeholder_category(category_id: int):
    return jsonify(stakeholder_service.get_stakeholder_category(category_id)), 200


# ═════════════════════════════════════════════════════════════════════════════
# Stakeholder CRUD (3 routes)
# ═════════════════════════════════════════════════════════════════════════════


@stakeholder_bp.route("", methods=["GET"])
def list_stakeholders():
    """List stakeholders with category, districts and sub-clusters.

    Returns: { "items": [...], "total": int }
    """
    items = stakeholder_service.list_stakeholders()
    return jsonify({"items": items, "total": len(items)}), 200


@stakeholder_bp.route("", methods=["POST"])
def create_stakeholder():
    """Create a stakeholder.

    Body: { "organizationName": str, "stakeholderCategoryId": int,
            "implementationLevel": "country"|"province"|"district",
            "districtIds": [int, ...], "subClusters"?: [int, ...] }
    Returns: stakeholder dict (201)
    """
    stakeholder = stakeholder_service.create_stakeholder(json_body())
    record_request_audit(
        "CREATE_STAKEHOLDER",
        "A new stakeholder was created",
        details=(
            f"Stakeholder ID: {stakeholder['id']}; "
            f"districts: {len(stakeholder['stakeholderDistricts'])}; "
            f"subClusters: {len(stakeholder['stakeholderSubClusters'])}"
        ),
        entity_type="stakeholder",
        entity_id=stakeholder["id"],
    )
    return jsonify({"message": "Stakeholder created successfully", "stakeholder": stakeholder}), 201


@stakeholder_bp.route("/<int:stakeholder_id>", methods=["GET"])
def get_stakeholder(stakeholder_id: int):
    return jsonify(stakeholder_service.get_stakeholder(stakeholder_id)), 200
