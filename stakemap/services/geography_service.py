"""
Administrative divisions service.

Functions:
    - create_country / list_countries
    - create_province / list_provinces (optionally by country)
    - create_district / list_districts (optionally by province)
"""

import logging

from sqlalchemy import select

from stakemap.core.exceptions import NotFoundError
from stakemap.models import db
from stakemap.models.geography import Country, District, Province
from stakemap.utils.helpers import commit_or_raise, require_int, require_text

logger = logging.getLogger(__name__)


def create_country(data: dict) -> dict:
    country = Country(name=require_text(data.get("name"), "name", 150))
    db.session.add(country)
    commit_or_raise(db.session)
    logger.info("Country created", extra={"country_id": country.id})
    return country.to_dict()


def create_province(data: dict) -> dict:
    name = require_text(data.get("name"), "name", 150)
    country_id = require_int(data.get("countryId"), "countryId")
    if db.session.get(Country, country_id) is None:
        raise NotFoundError(resource="Country", resource_id=country_id)
    province = Province(name=name, country_id=country_id)
    db.session.add(province)
    commit_or_raise(db.session)
    logger.info("Province created", extra={"province_id": province.id, "country_id": country_id})
    return province.to_dict()


def create_district(data: dict) -> dict:
    name = require_text(data.get("name"), "name", 150)
    province_id = require_int(data.get("provinceId"), "provinceId")
    if db.session.get(Province, province_id) is None:
        raise NotFoundError(resource="Province", resource_id=province_id)
    district = District(name=name, province_id=province_id)
    db.session.add(district)
    commit_or_raise(db.session)
    logger.info("District created", extra={"district_id": district.id, "province_id": province_id})
    return district.to_dict()


def list_countries() -> list[dict]:
    items = db.session.execute(select(Country).order_by(Country.name)).scalars().all()
    return [c.to_dict() for c in items]


def list_provinces(country_id: int | None = None) -> list[dict]:
    stmt = select(Province)
    if country_id:
        stmt = stmt.where(Province.country_id == country_id)
    items = db.session.execute(stmt.order_by(Province.name)).scalars().all()
    return [p.to_dict() for p in items]


def list_districts(province_id: int | None = None) -> list[dict]:
    stmt = select(District)
    if province_id:
        stmt = stmt.where(District.province_id == province_id)
    items = db.session.execute(stmt.order_by(District.name)).scalars().all()
    return [d.to_dict() for d in items]
