"""
HTTP tests for /api/v1/action-plans.

Covers status codes and bodies for create/search/get/update/delete and the
duplicate check, the audit row each mutation leaves behind, and the request
guards (Content-Type, JSON error shape).
"""

import pytest
from sqlalchemy import func, select

from stakemap.models.action_plan import ActionPlan, KpiPlan
from stakemap.models.audit import AuditLog

BASE = "/api/v1/action-plans"


def _count(session, model) -> int:
    return session.execute(select(func.count(model.id))).scalar_one()


def _create(client, body, **kwargs):
    res = client.post(BASE, json=body, **kwargs)
    assert res.status_code == 201, res.get_json()
    return res.get_json()["plan"]


class TestCreateEndpoint:
    def test_create_returns_201_with_plan(self, client, refs, plan_payload):
        res = client.post(BASE, json=plan_payload())

        assert res.status_code == 201
        body = res.get_json()
        assert body["message"] == "Action plan created successfully"
        assert body["plan"]["districtId"] == refs.district_id
        assert body["plan"]["kpiPlans"][0]["plannedValue"] == 100
        assert body["plan"]["stakeholderSubcluster"]["name"] == "Health"

    def test_duplicate_returns_409_with_kpi_id(self, client, session, plan_payload):
        _create(client, plan_payload())

        res = client.post(BASE, json=plan_payload())

        assert res.status_code == 409
        body = res.get_json()
        assert body["code"] == "ERR_CONFLICT_DUPLICATE"
        assert body["details"] == {"kpiId": 10}
        assert "Duplicate planning detected for KPI 10" in body["error"]
        assert _count(session, ActionPlan) == 1

    def test_missing_reference_returns_400(self, client, session, plan_payload):
        res = client.post(BASE, json=plan_payload(stakeholderSubclusterId=9999))

        assert res.status_code == 400
        body = res.get_json()
        assert body["details"]["resource"] == "SubCluster"
        assert _count(session, ActionPlan) == 0
        assert _count(session, KpiPlan) == 0

    def test_invalid_level_returns_400(self, client, plan_payload):
        res = client.post(BASE, json=plan_payload(planLevel="ward"))

        assert res.status_code == 400
        assert res.get_json()["code"] == "ERR_VALIDATION_INVALID"

    def test_empty_body_returns_400(self, client, refs):
        res = client.post(BASE, json={})

        assert res.status_code == 400
        assert res.get_json()["code"] == "ERR_VALIDATION_REQUIRED"

    def test_oversized_id_returns_400(self, client, session, plan_payload):
        res = client.post(BASE, json=plan_payload(yearId=2**70))

        assert res.status_code == 400
        assert res.get_json()["details"] == {"yearId": 2**70}
        assert _count(session, ActionPlan) == 0

    def test_non_finite_planned_value_returns_400(self, client, session, plan_payload):
        res = client.post(BASE, json=plan_payload(kpiPlans=[{"kpiId": 10, "plannedValue": "inf"}]))

        assert res.status_code == 400
        assert _count(session, KpiPlan) == 0

    def test_non_json_body_returns_415(self, client, refs):
        res = client.post(BASE, data="yearId=1", content_type="text/plain")

        assert res.status_code == 415

    def test_create_writes_audit_row_with_jwt_actor(self, client, session, plan_payload, auth_headers):
        plan = _create(client, plan_payload(), headers=auth_headers(user_id="7", username="alice"))

        log = session.execute(
            select(AuditLog).where(AuditLog.action == "CREATE_ACTION_PLAN")
        ).scalar_one()
        assert log.user_id == 7
        assert log.actor == "alice"
        assert log.entity_type == "action_plan"
        assert log.entity_id == str(plan["id"])
        assert f"ActionPlan ID: {plan['id']}" in log.details

    def test_anonymous_create_is_audited_as_anonymous(self, client, session, plan_payload):
        _create(client, plan_payload())

        log = session.execute(select(AuditLog)).scalar_one()
        assert log.user_id is None
        assert log.actor == "anonymous"

    def test_invalid_token_is_ignored(self, client, session, plan_payload):
        _create(client, plan_payload(), headers={"Authorization": "Bearer not-a-token"})

        assert session.execute(select(AuditLog)).scalar_one().actor == "anonymous"

    def test_failed_create_writes_no_audit_row(self, client, session, plan_payload):
        client.post(BASE, json=plan_payload(yearId=9999))

        assert _count(session, AuditLog) == 0


class TestReadEndpoints:
    def test_search_returns_items_and_total(self, client, refs, plan_payload):
        _create(client, plan_payload())
        _create(client, plan_payload(districtId=refs.other_district_id))

        res = client.get(f"{BASE}?districtId={refs.other_district_id}")

        assert res.status_code == 200
        body = res.get_json()
        assert body["total"] == 1
        assert body["items"][0]["districtId"] == refs.other_district_id

    @pytest.mark.parametrize("query", ["yearId=abc", f"yearId={2**70}", f"districtId={2**31}"])
    def test_search_with_bad_filter_returns_400(self, client, refs, query):
        res = client.get(f"{BASE}?{query}")

        assert res.status_code == 400
        assert res.get_json()["code"] == "ERR_VALIDATION_INVALID"

    def test_search_kpi_filter_narrows_children(self, client, plan_payload):
        _create(client, plan_payload(kpiPlans=[
            {"kpiId": 10, "plannedValue": 1},
            {"kpiId": 11, "plannedValue": 2},
        ]))

        body = client.get(f"{BASE}?kpiId=10").get_json()

        assert [kp["kpiId"] for kp in body["items"][0]["kpiPlans"]] == [10]

    def test_get_returns_plan(self, client, plan_payload):
        plan = _create(client, plan_payload())

        res = client.get(f"{BASE}/{plan['id']}")

        assert res.status_code == 200
        assert res.get_json()["kpiPlans"][0]["kpi"]["id"] == 10

    def test_get_unknown_returns_404(self, client, refs):
        res = client.get(f"{BASE}/999")

        assert res.status_code == 404
        assert res.get_json()["code"] == "ERR_NOT_FOUND"

    def test_duplicate_check_reports_taken_scope(self, client, refs, plan_payload):
        _create(client, plan_payload())
        query = f"yearId={refs.year_id}&kpiId=10&planLevel=district"

        taken = client.get(f"{BASE}/duplicate-check?{query}&districtId={refs.district_id}")
        free = client.get(f"{BASE}/duplicate-check?{query}&districtId={refs.other_district_id}")

        assert taken.get_json() == {"duplicate": True}
        assert free.get_json() == {"duplicate": False}

    def test_duplicate_check_requires_scope(self, client, refs):
        res = client.get(f"{BASE}/duplicate-check?yearId={refs.year_id}&kpiId=10")

        assert res.status_code == 400


class TestUpdateEndpoint:
    def test_update_returns_updated_plan(self, client, session, plan_payload):
        plan = _create(client, plan_payload())

        res = client.put(f"{BASE}/{plan['id']}", json={"comment": "revised"})

        assert res.status_code == 200
        body = res.get_json()
        assert body["message"] == "Action plan updated successfully"
        assert body["updated"]["comment"] == "revised"
        actions = session.execute(select(AuditLog.action).order_by(AuditLog.id)).scalars().all()
        assert actions == ["CREATE_ACTION_PLAN", "UPDATE_ACTION_PLAN"]

    def test_update_into_taken_scope_returns_409(self, client, refs, plan_payload):
        _create(client, plan_payload())
        other = _create(client, plan_payload(districtId=refs.other_district_id))

        res = client.put(f"{BASE}/{other['id']}", json={"districtId": refs.district_id})

        assert res.status_code == 409
        assert res.get_json()["details"] == {"kpiId": 10}

    def test_update_unknown_returns_404(self, client, refs):
        res = client.put(f"{BASE}/999", json={"comment": "x"})

        assert res.status_code == 404


class TestDeleteEndpoint:
    def test_delete_removes_plan(self, client, session, plan_payload):
        plan = _create(client, plan_payload())

        res = client.delete(f"{BASE}/{plan['id']}")

        assert res.status_code == 200
        assert res.get_json() == {"message": "Action plan deleted successfully"}
        assert _count(session, ActionPlan) == 0
        assert _count(session, KpiPlan) == 0
        log = session.execute(
            select(AuditLog).where(AuditLog.action == "DELETE_ACTION_PLAN")
        ).scalar_one()
        assert "KPI plans removed: 1" in log.details

    def test_delete_unknown_returns_404(self, client, refs):
        res = client.delete(f"{BASE}/999")

        assert res.status_code == 404
