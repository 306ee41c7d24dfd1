"""
Tests for option sets and their options (service + HTTP).
"""

import pytest
from sqlalchemy import func, select

from stakemap.core.exceptions import NotFoundError, ValidationError
from stakemap.models.audit import AuditLog
from stakemap.models.option_set import Option
from stakemap.services import option_set_service

BASE = "/api/v1/option-sets"


class TestOptionSetService:
    def test_sets_and_options_are_ordered_by_name(self):
        gender = option_set_service.create_option_set({"name": "Gender", "description": "Sex disaggregation"})
        option_set_service.create_option_set({"name": "Age range"})
        option_set_service.create_option({"optionSetId": gender["id"], "name": "Male"})
        option_set_service.create_option({"optionSetId": gender["id"], "name": "Female"})

        sets = option_set_service.list_option_sets()

        assert [s["name"] for s in sets] == ["Age range", "Gender"]
        assert sets[0]["options"] == []
        assert [o["name"] for o in sets[1]["options"]] == ["Female", "Male"]
        assert [o["name"] for o in option_set_service.list_options_for_set(gender["id"])] == ["Female", "Male"]

    def test_option_for_unknown_set_writes_nothing(self, session):
        with pytest.raises(NotFoundError):
            option_set_service.create_option({"optionSetId": 999, "name": "Male"})

        assert session.execute(select(func.count(Option.id))).scalar_one() == 0

    @pytest.mark.parametrize("body", [{}, {"name": "  "}, {"name": None}])
    def test_set_name_is_required(self, body):
        with pytest.raises(ValidationError):
            option_set_service.create_option_set(body)

    def test_options_of_unknown_set_raise_not_found(self):
        with pytest.raises(NotFoundError):
            option_set_service.list_options_for_set(999)


class TestOptionSetApi:
    def test_create_set_and_option(self, client, session):
        res = client.post(BASE, json={"name": "Gender"})
        assert res.status_code == 201
        option_set = res.get_json()["optionSet"]

        res = client.post(f"{BASE}/options", json={"optionSetId": option_set["id"], "name": "Female"})
        assert res.status_code == 201
        assert res.get_json()["option"]["optionSetId"] == option_set["id"]

        listed = client.get(BASE).get_json()
        assert listed[0]["options"][0]["name"] == "Female"
        assert client.get(f"{BASE}/{option_set['id']}/options").get_json()[0]["name"] == "Female"

        actions = session.execute(select(AuditLog.action).order_by(AuditLog.id)).scalars().all()
        assert actions == ["CREATE_OPTION_SET", "CREATE_OPTION"]

    def test_option_without_set_id_returns_400(self, client):
        res = client.post(f"{BASE}/options", json={"name": "Female"})

        assert res.status_code == 400
        assert res.get_json()["code"] == "ERR_VALIDATION_REQUIRED"

    def test_unknown_set_returns_404(self, client):
        assert client.post(f"{BASE}/options", json={"optionSetId": 999, "name": "x"}).status_code == 404
        assert client.get(f"{BASE}/999/options").status_code == 404
