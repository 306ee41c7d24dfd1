"""
Quarterly Reporting Blueprint.

Endpoints:
  Reports:          POST /api/v1/reports
                    GET  /api/v1/reports/<id>
                    GET  /api/v1/reports/action-plan/<action_plan_id>
  Comments:         GET/POST /api/v1/reports/<id>/comments
  By sub-cluster:   GET  /api/v1/plan-reports/subcluster/<id>/plans
                    GET  /api/v1/plan-reports/subcluster/<id>/reports
"""

import logging

from flask import Blueprint, g, jsonify

from stakemap.blueprints import json_body
from stakemap.services import comment_service, report_service
from stakemap.services.audit_service import record_request_audit
from stakemap.utils.errors import register_error_handlers

logger = logging.getLogger(__name__)

report_bp = Blueprint("report", __name__, url_prefix="/api/v1")
register_error_handlers(report_bp)


@report_bp.route("/reports", methods=["POST"])
def create_report():
    """Submit a quarterly report for one KPI plan.

    Body: { "actionPlanId": int, "kpiPlanId": int, "quarterId": int,
            "actualValue": number, "progressSummary"?, "reportDocument"? }
    Returns: { "message": str, "report": {...} } (201)
    """
    report = report_service.create_report(json_body())
    record_request_audit(
        "CREATE_REPORT",
        "Quarterly report submitted",
        details=(
            f"Report ID: {report['id']}; actionPlanId: {report['actionPlanId']}; "
            f"quarterId: {report['quarterId']}"
        ),
        entity_type="report",
        entity_id=report["id"],
    )
    return jsonify({"message": "Report submitted successfully", "report": report}), 201


@report_bp.route("/reports/<int:report_id>", methods=["GET"])
def get_report(report_id: int):
    return jsonify(report_service.get_report(report_id)), 200


@report_bp.route("/reports/action-plan/<int:action_plan_id>", methods=["GET"])
def list_reports_for_plan(action_plan_id: int):
    items = report_service.list_reports_for_plan(action_plan_id)
    return jsonify({"items": items, "total": len(items)}), 200


# ── Report comments ──────────────────────────────────────────────────────────

@report_bp.route("/reports/<int:report_id>/comments", methods=["POST"])
def add_comment(report_id: int):
    """Comment on a report as the calling user.

    Body: { "commentText": str }
    Returns: { "message": str, "comment": {...} } (201)
    """
    comment = comment_service.add_comment(
        report_id,
        json_body(),
        author_id=g.jwt_user_id,
        author_name=g.jwt_username,
    )
    record_request_audit(
        "ADD_COMMENT",
        "Comment added to report",
        details=f"Report ID: {report_id}; Comment ID: {comment['id']}",
        entity_type="comment",
        entity_id=comment["id"],
    )
    return jsonify({"message": "Comment added successfully", "comment": comment}), 201


@report_bp.route("/reports/<int:report_id>/comments", methods=["GET"])
def list_comments(report_id: int):
    items = comment_service.list_comments_for_report(report_id)
    return jsonify({"items": items, "total": len(items)}), 200


# ── Plan reports by sub-cluster ──────────────────────────────────────────────

@report_bp.route("/plan-reports/subcluster/<int:sub_cluster_id>/plans", methods=["GET"])
def plans_by_subcluster(sub_cluster_id: int):
    """Action plans of a sub-cluster, each with its reports."""
    items = report_service.plans_by_subcluster(sub_cluster_id)
    return jsonify({"items": items, "total": len(items)}), 200


@report_bp.route("/plan-reports/subcluster/<int:sub_cluster_id>/reports", methods=["GET"])
def reports_by_subcluster(sub_cluster_id: int):
    """Reports of a sub-cluster's plans, each with its action plan."""
    items = report_service.reports_by_subcluster(sub_cluster_id)
    return jsonify({"items": items, "total": len(items)}), 200
