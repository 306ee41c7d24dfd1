"""
KPI catalogue blueprint.

Endpoints:
  Sub-clusters:     GET/POST /api/v1/kpi/sub-clusters
  KPI categories:   GET/POST /api/v1/kpi/categories     (?subClusterId=)
  KPIs:             GET/POST /api/v1/kpi                (?subClusterId=&kpiCategoryId=)
                    GET      /api/v1/kpi/<id>
"""

import logging

from flask import Blueprint, jsonify

from stakemap.blueprints import json_body, query_int
from stakemap.services import kpi_service
from stakemap.services.audit_service import record_request_audit
from stakemap.utils.errors import register_error_handlers

logger = logging.getLogger(__name__)

kpi_bp = Blueprint("kpi", __name__, url_prefix="/api/v1/kpi")
register_error_handlers(kpi_bp)


# ═════════════════════════════════════════════════════════════════════════════
# Sub-clusters
# ═════════════════════════════════════════════════════════════════════════════


@kpi_bp.route("/sub-clusters", methods=["GET"])
def list_sub_clusters():
    return jsonify(kpi_service.list_sub_clusters()), 200


@kpi_bp.route("/sub-clusters", methods=["POST"])
def create_sub_cluster():
    """Create a sub-cluster.

    Body: { "name": str, "description"?: str }
    """
    sub_cluster = kpi_service.create_sub_cluster(json_body())
    record_request_audit(
        "CREATE_SUB_CLUSTER",
        "Sub-cluster created",
        details=f"SubCluster ID: {sub_cluster['id']}",
        entity_type="sub_cluster",
        entity_id=sub_cluster["id"],
    )
    return jsonify(sub_cluster), 201


# ═════════════════════════════════════════════════════════════════════════════
# KPI categories
# ═════════════════════════════════════════════════════════════════════════════


@kpi_bp.route("/categories", methods=["GET"])
def list_kpi_categories():
    return jsonify(kpi_service.list_kpi_categories(query_int("subClusterId"))), 200


@kpi_bp.route("/categories", methods=["POST"])
def create_kpi_category():
    category = kpi_service.create_kpi_category(json_body())
    record_request_audit(
        "CREATE_KPI_CATEGORY",
        "KPI category created",
        details=f"KpiCategory ID: {category['id']}",
        entity_type="kpi_category",
        entity_id=category["id"],
    )
    return jsonify(category), 201


# ═════════════════════════════════════════════════════════════════════════════
# KPIs
# ═════════════════════════════════════════════════════════════════════════════


@kpi_bp.route("", methods=["GET"])
def list_kpis():
    """List KPIs with sub-cluster, category and stakeholder category.

    Query params: subClusterId?, kpiCategoryId?
    Returns: { "items": [...], "total": int }
    """
    items = kpi_service.list_kpis(
        sub_cluster_id=query_int("subClusterId"),
        kpi_category_id=query_int("kpiCategoryId"),
    )
    return jsonify({"items": items, "total": len(items)}), 200


@kpi_bp.route("", methods=["POST"])
def create_kpi():
    """Create a KPI.

    Body: { "name": str, "subClusterId": int, "description"?, "unit"?,
            "kpiCategoryId"?, "stakeholderCategoryId"?, "targetValue"?, "currentValue"? }
    """
    kpi = kpi_service.create_kpi(json_body())
    record_request_audit(
        "CREATE_KPI",
        "KPI created",
        details=f"KPI ID: {kpi['id']}; subClusterId: {kpi['subClusterId']}",
        entity_type="kpi",
        entity_id=kpi["id"],
    )
    return jsonify(kpi), 201


@kpi_bp.route("/<int:kpi_id>", methods=["GET"])
def get_kpi(kpi_id: int):
    return jsonify(kpi_service.get_kpi(kpi_id)), 200
