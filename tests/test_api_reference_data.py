"""
HTTP tests for reference data: geography (/adm), KPI catalogue (/kpi),
financial years and quarters.
"""

import pytest


# ── Geography ─────────────────────────────────────────────────────────────────


class TestGeographyApi:
    def test_create_chain_and_filter(self, client):
        country = client.post("/api/v1/adm/countries", json={"name": "Uganda"}).get_json()
        province = client.post(
            "/api/v1/adm/provinces", json={"name": "Central", "countryId": country["id"]}
        )
        assert province.status_code == 201
        province = province.get_json()
        district = client.post(
            "/api/v1/adm/districts", json={"name": "Kampala", "provinceId": province["id"]}
        )
        assert district.status_code == 201

        provinces = client.get(f"/api/v1/adm/provinces?countryId={country['id']}").get_json()
        districts = client.get(f"/api/v1/adm/districts?provinceId={province['id']}").get_json()

        assert [p["name"] for p in provinces] == ["Central"]
        assert [d["name"] for d in districts] == ["Kampala"]

    def test_countries_are_listed_by_name(self, client):
        client.post("/api/v1/adm/countries", json={"name": "Zambia"})
        client.post("/api/v1/adm/countries", json={"name": "Angola"})

        names = [c["name"] for c in client.get("/api/v1/adm/countries").get_json()]

        assert names == ["Angola", "Zambia"]

    def test_province_with_unknown_country_returns_404(self, client):
        res = client.post("/api/v1/adm/provinces", json={"name": "Nowhere", "countryId": 999})

        assert res.status_code == 404

    def test_blank_name_returns_400(self, client):
        res = client.post("/api/v1/adm/countries", json={"name": "  "})

        assert res.status_code == 400


# ── KPI catalogue ─────────────────────────────────────────────────────────────


class TestKpiApi:
    def _sub_cluster(self, client, name="Nutrition"):
        res = client.post("/api/v1/kpi/sub-clusters", json={"name": name})
        assert res.status_code == 201
        return res.get_json()

    def test_create_kpi_with_category(self, client):
        sub_cluster = self._sub_cluster(client)
        category = client.post(
            "/api/v1/kpi/categories", json={"name": "Outcome", "subClusterId": sub_cluster["id"]}
        ).get_json()

        res = client.post("/api/v1/kpi", json={
            "name": "Stunting rate",
            "subClusterId": sub_cluster["id"],
            "kpiCategoryId": category["id"],
            "unit": "%",
            "targetValue": "12.5",
        })

        assert res.status_code == 201
        kpi = res.get_json()
        assert kpi["targetValue"] == 12.5
        fetched = client.get(f"/api/v1/kpi/{kpi['id']}").get_json()
        assert fetched["subCluster"] == {"id": sub_cluster["id"], "name": "Nutrition"}
        assert fetched["kpiCategory"]["name"] == "Outcome"

    def test_list_kpis_filtered_by_sub_cluster(self, client, refs):
        body = client.get(f"/api/v1/kpi?subClusterId={refs.sub_cluster_id}").get_json()

        assert body["total"] == 2
        assert {k["id"] for k in body["items"]} == {10, 11}

    def test_category_from_other_sub_cluster_is_rejected(self, client):
        first = self._sub_cluster(client, "A")
        second = self._sub_cluster(client, "B")
        category = client.post(
            "/api/v1/kpi/categories", json={"name": "Output", "subClusterId": second["id"]}
        ).get_json()

        res = client.post("/api/v1/kpi", json={
            "name": "Mismatch", "subClusterId": first["id"], "kpiCategoryId": category["id"],
        })

        assert res.status_code == 400

    def test_kpi_with_unknown_sub_cluster_returns_404(self, client):
        res = client.post("/api/v1/kpi", json={"name": "Orphan", "subClusterId": 999})

        assert res.status_code == 404

    def test_non_numeric_target_returns_400(self, client):
        sub_cluster = self._sub_cluster(client)

        res = client.post("/api/v1/kpi", json={
            "name": "Bad", "subClusterId": sub_cluster["id"], "targetValue": "high",
        })

        assert res.status_code == 400

    def test_get_unknown_kpi_returns_404(self, client):
        assert client.get("/api/v1/kpi/999").status_code == 404


# ── Financial calendar ────────────────────────────────────────────────────────


class TestFinancialYearApi:
    def test_year_crud(self, client):
        res = client.post("/api/v1/financial-years", json={
            "name": "2027/2028", "startDate": "2027-07-01", "endDate": "2028-06-30",
        })
        assert res.status_code == 201
        year = res.get_json()
        assert year["startDate"] == "2027-07-01"

        updated = client.put(
            f"/api/v1/financial-years/{year['id']}", json={"planStartDate": "01.06.2027"}
        )
        assert updated.status_code == 200
        assert updated.get_json()["planStartDate"] == "2027-06-01"

        assert client.delete(f"/api/v1/financial-years/{year['id']}").status_code == 200
        assert client.get(f"/api/v1/financial-years/{year['id']}").status_code == 404

    def test_end_before_start_returns_400(self, client):
        res = client.post("/api/v1/financial-years", json={
            "name": "Backwards", "startDate": "2027-07-01", "endDate": "2026-06-30",
        })

        assert res.status_code == 400

    def test_rejected_update_leaves_year_unchanged(self, client, refs):
        before = client.get(f"/api/v1/financial-years/{refs.other_year_id}").get_json()

        res = client.put(
            f"/api/v1/financial-years/{refs.other_year_id}",
            json={"name": "Renamed", "endDate": "2025-01-01"},
        )

        assert res.status_code == 400
        assert client.get(f"/api/v1/financial-years/{refs.other_year_id}").get_json() == before

    def test_bad_date_returns_400(self, client):
        res = client.post("/api/v1/financial-years", json={"name": "Bad", "startDate": "July"})

        assert res.status_code == 400

    def test_year_with_plans_cannot_be_deleted(self, client, refs, plan_payload):
        assert client.post("/api/v1/action-plans", json=plan_payload()).status_code == 201

        res = client.delete(f"/api/v1/financial-years/{refs.year_id}")

        assert res.status_code == 409
        assert client.get(f"/api/v1/financial-years/{refs.year_id}").status_code == 200

    def test_quarters_belong_to_year(self, client, refs):
        res = client.post("/api/v1/quarters", json={
            "name": "Q2", "yearId": refs.year_id,
            "startDate": "2025-10-01", "endDate": "2025-12-31", "reportDueDate": "2026-01-15",
        })
        assert res.status_code == 201

        quarters = client.get(f"/api/v1/financial-years/{refs.year_id}/quarters").get_json()

        assert [q["name"] for q in quarters] == ["Q1", "Q2"]

    def test_quarter_for_unknown_year_returns_404(self, client):
        res = client.post("/api/v1/quarters", json={"name": "Q1", "yearId": 999})

        assert res.status_code == 404

    def test_quarter_update_and_delete(self, client, refs):
        res = client.put(f"/api/v1/quarters/{refs.quarter_id}", json={"name": "Quarter 1"})
        assert res.get_json()["name"] == "Quarter 1"

        assert client.delete(f"/api/v1/quarters/{refs.quarter_id}").status_code == 200
        assert client.get(f"/api/v1/quarters/{refs.quarter_id}").status_code == 404

    @pytest.mark.parametrize("path", ["/api/v1/financial-years/999", "/api/v1/quarters/999"])
    def test_unknown_ids_return_404(self, client, path):
        assert client.get(path).status_code == 404
