"""
Shared pytest fixtures for the Stakeholder Mapping & Reporting API test suite.

Provides:
    - app: Flask application (session-scoped)
    - _setup_db: Database table creation/teardown (session-scoped)
    - session: Per-test DB cleanup w/ rollback + recreate (autouse)
    - client: Flask test client (function-scoped)
    - refs: Pre-created reference data (geography, year, sub-cluster, KPIs 10/11)
    - plan_payload: factory for a valid action plan request body
    - auth_headers: factory for Bearer headers signed with the test secret
"""

from datetime import date

import jwt as pyjwt
import pytest

from stakemap import create_app
from stakemap.models import db as _db
from stakemap.models.financial_year import FinancialYear, Quarter
from stakemap.models.geography import Country, District, Province
from stakemap.models.kpi import Kpi, SubCluster
from stakemap.models.stakeholder import Stakeholder, StakeholderCategory


# ── App & DB fixtures ────────────────────────────────────────────────────


@pytest.fixture(scope="session")
def app():
    """Create the Flask application once per test session."""
    application = create_app("testing")
    return application


@pytest.fixture(scope="session")
def _setup_db(app):
    """Create all tables at session start, drop at end."""
    with app.app_context():
        _db.create_all()
    yield
    with app.app_context():
        _db.drop_all()


@pytest.fixture(autouse=True)
def session(app, _setup_db):
    """Per-test: open app context, rollback after test, recreate tables."""
    with app.app_context():
        yield _db.session
        _db.session.rollback()
        _db.drop_all()
        _db.create_all()


@pytest.fixture()
def client(app):
    """Flask test client."""
    return app.test_client()


# ── Reference data ───────────────────────────────────────────────────────


class Refs:
    """Ids of the reference rows created by the ``refs`` fixture."""

    def __init__(self, **ids):
        self.__dict__.update(ids)


@pytest.fixture()
def refs(session):
    """Country → province → two districts, one year with a quarter,
    two sub-clusters, KPIs 10 and 11 (sub-cluster A) and 12 (sub-cluster B),
    and one stakeholder."""
    country = Country(name="Kenya")
    session.add(country)
    session.flush()
    province = Province(name="Nairobi", country_id=country.id)
    session.add(province)
    session.flush()
    district = District(name="Westlands", province_id=province.id)
    other_district = District(name="Kibra", province_id=province.id)
    session.add_all([district, other_district])

    year = FinancialYear(
        name="2025/2026",
        start_date=date(2025, 7, 1),
        end_date=date(2026, 6, 30),
    )
    other_year = FinancialYear(name="2026/2027", start_date=date(2026, 7, 1), end_date=date(2027, 6, 30))
    session.add_all([year, other_year])
    session.flush()
    quarter = Quarter(name="Q1", year_id=year.id, start_date=date(2025, 7, 1), end_date=date(2025, 9, 30))
    other_quarter = Quarter(name="Q1", year_id=other_year.id)
    session.add_all([quarter, other_quarter])

    sub_cluster = SubCluster(name="Health")
    other_sub_cluster = SubCluster(name="Education")
    session.add_all([sub_cluster, other_sub_cluster])
    session.flush()

    session.add_all([
        Kpi(id=10, name="Clinics supported", unit="count", sub_cluster_id=sub_cluster.id),
        Kpi(id=11, name="Vaccination coverage", unit="%", sub_cluster_id=sub_cluster.id),
        Kpi(id=12, name="Enrolment rate", unit="%", sub_cluster_id=other_sub_cluster.id),
    ])

    category = StakeholderCategory(name="NGO")
    session.add(category)
    session.flush()
    stakeholder = Stakeholder(
        organization_name="Health Partners",
        stakeholder_category_id=category.id,
        implementation_level="district",
    )
    session.add(stakeholder)
    session.commit()

    return Refs(
        country_id=country.id,
        province_id=province.id,
        district_id=district.id,
        other_district_id=other_district.id,
        year_id=year.id,
        other_year_id=other_year.id,
        quarter_id=quarter.id,
        other_quarter_id=other_quarter.id,
        sub_cluster_id=sub_cluster.id,
        other_sub_cluster_id=other_sub_cluster.id,
        stakeholder_category_id=category.id,
        stakeholder_id=stakeholder.id,
    )


@pytest.fixture()
def plan_payload(refs):
    """Build a valid district-level action plan body; keyword overrides win."""

    def _build(**overrides):
        payload = {
            "yearId": refs.year_id,
            "stakeholderSubclusterId": refs.sub_cluster_id,
            "planLevel": "district",
            "districtId": refs.district_id,
            "kpiPlans": [{"kpiId": 10, "plannedValue": 100}],
        }
        payload.update(overrides)
        return payload

    return _build


@pytest.fixture()
def auth_headers(app):
    """Return Authorization headers for a token carrying *user_id* / *username*."""

    def _headers(user_id="7", username="planner"):
        token = pyjwt.encode(
            {"sub": str(user_id), "username": username, "roles": ["planner"]},
            app.config["JWT_SECRET_KEY"],
            algorithm="HS256",
        )
        return {"Authorization": f"Bearer {token}"}

    return _headers
