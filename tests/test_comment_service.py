"""
Tests for report comments (service + HTTP).

Covers:
  - add_comment: author from the caller's token, blank text rejected
  - list_comments_for_report: newest first, unknown report → NotFoundError
  - deleting an action plan removes the comments on its reports
"""

import pytest
from sqlalchemy import func, select

from stakemap.core.exceptions import NotFoundError, ValidationError
from stakemap.models.audit import AuditLog
from stakemap.models.comment import Comment
from stakemap.services import comment_service, report_service
from stakemap.services.action_plan_service import ActionPlanService


@pytest.fixture()
def report(session, refs, plan_payload):
    plan = ActionPlanService(session).create(plan_payload())
    return report_service.create_report({
        "actionPlanId": plan["id"],
        "kpiPlanId": plan["kpiPlans"][0]["id"],
        "quarterId": refs.quarter_id,
        "actualValue": 40,
    })


def _count(session, model) -> int:
    return session.execute(select(func.count(model.id))).scalar_one()


class TestCommentService:
    def test_add_comment_records_author(self, report):
        comment = comment_service.add_comment(
            report["id"], {"commentText": "  Please attach the clinic list  "},
            author_id=9, author_name="zawadi",
        )

        assert comment["reportId"] == report["id"]
        assert comment["commentText"] == "Please attach the clinic list"
        assert comment["authorId"] == "9"
        assert comment["authorName"] == "zawadi"

    def test_blank_text_is_rejected(self, session, report):
        with pytest.raises(ValidationError):
            comment_service.add_comment(report["id"], {"commentText": "   "})

        assert _count(session, Comment) == 0

    def test_unknown_report_raises_not_found(self, refs):
        with pytest.raises(NotFoundError):
            comment_service.add_comment(999, {"commentText": "Hello"})
        with pytest.raises(NotFoundError):
            comment_service.list_comments_for_report(999)

    def test_list_is_newest_first(self, report):
        comment_service.add_comment(report["id"], {"commentText": "first"})
        comment_service.add_comment(report["id"], {"commentText": "second"})

        items = comment_service.list_comments_for_report(report["id"])

        assert [c["commentText"] for c in items] == ["second", "first"]

    def test_plan_delete_removes_comments(self, session, report):
        comment_service.add_comment(report["id"], {"commentText": "Looks good"})

        ActionPlanService(session).delete(report["actionPlanId"])

        assert _count(session, Comment) == 0


class TestCommentApi:
    def test_post_uses_token_identity_and_is_audited(self, client, session, report, auth_headers):
        res = client.post(
            f"/api/v1/reports/{report['id']}/comments",
            json={"commentText": "Numbers look low for Q1"},
            headers=auth_headers(user_id="9", username="zawadi"),
        )

        assert res.status_code == 201
        comment = res.get_json()["comment"]
        assert comment["authorId"] == "9"
        assert comment["authorName"] == "zawadi"

        audit = session.execute(select(AuditLog).where(AuditLog.action == "ADD_COMMENT")).scalar_one()
        assert audit.actor == "zawadi"
        assert audit.entity_id == str(comment["id"])

    def test_anonymous_comment_has_no_author(self, client, report):
        res = client.post(f"/api/v1/reports/{report['id']}/comments", json={"commentText": "ok"})

        assert res.status_code == 201
        assert res.get_json()["comment"]["authorId"] is None

    def test_list_comments(self, client, report):
        client.post(f"/api/v1/reports/{report['id']}/comments", json={"commentText": "ok"})

        body = client.get(f"/api/v1/reports/{report['id']}/comments").get_json()

        assert body["total"] == 1
        assert body["items"][0]["commentText"] == "ok"

    def test_missing_text_returns_400(self, client, session, report):
        res = client.post(f"/api/v1/reports/{report['id']}/comments", json={})

        assert res.status_code == 400
        assert res.get_json()["code"] == "ERR_VALIDATION_REQUIRED"
        assert _count(session, AuditLog) == 0

    def test_unknown_report_returns_404(self, client, refs):
        assert client.post("/api/v1/reports/999/comments", json={"commentText": "x"}).status_code == 404
        assert client.get("/api/v1/reports/999/comments").status_code == 404
