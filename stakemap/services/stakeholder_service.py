"""
Stakeholder Management Service.

Business logic for stakeholder categories and implementing organisations,
including their district and sub-cluster coverage.

Functions:
    - create_stakeholder_category:  Create a category (name required)
    - list_stakeholder_categories:  All categories ordered by name
    - get_stakeholder_category:     Single category
    - create_stakeholder:           Create stakeholder + district/sub-cluster links atomically
    - list_stakeholders:            All stakeholders with relations
    - get_stakeholder:              Single stakeholder with relations
"""

import logging

from sqlalchemy import select
from sqlalchemy.orm import joinedload, selectinload

from stakemap.core.exceptions import NotFoundError, ValidationError
from stakemap.models import db
from stakemap.models.geography import District
from stakemap.models.kpi import SubCluster
from stakemap.models.stakeholder import (
    IMPLEMENTATION_LEVELS,
    Stakeholder,
    StakeholderCategory,
    StakeholderDistrict,
    StakeholderSubCluster,
)
from stakemap.utils.helpers import commit_or_raise, require_int, require_text

logger = logging.getLogger(__name__)


# ── Stakeholder categories ────────────────────────────────────────────────────


def create_stakeholder_category(data: dict) -> dict:
    category = StakeholderCategory(
        name=require_text(data.get("name"), "name", 200),
        description=data.get("description"),
    )
    db.session.add(category)
    commit_or_raise(db.session)
    logger.info("StakeholderCategory created", extra={"stakeholder_category_id": category.id})
    return category.to_dict()


def list_stakeholder_categories() -> list[dict]:
    items = db.session.execute(
        select(StakeholderCategory).order_by(StakeholderCategory.name)
    ).scalars().all()
    return [c.to_dict() for c in items]


def get_stakeholder_category(category_id: int) -> dict:
    category = db.session.get(StakeholderCategory, category_id)
    if category is None:
        raise NotFoundError(resource="StakeholderCategory", resource_id=category_id)
    return category.to_dict()


# ── Stakeholders ──────────────────────────────────────────────────────────────


def create_stakeholder(data: dict) -> dict:
    """Create a stakeholder together with its district and sub-cluster links.

    Business rule: a stakeholder operates in at least one district; the
    sub-cluster list is optional. All referenced rows must exist, otherwise
    nothing is written.

    Args:
        data: {organizationName, stakeholderCategoryId, implementationLevel,
               districtIds: [int, ...], subClusters?: [int, ...]}

    Returns:
        Serialized Stakeholder dict with category, districts (with province)
        and sub-clusters.

    Raises:
        ValidationError: missing name/category/level or empty districtIds.
        NotFoundError: category, a district or a sub-cluster does not exist.
    """
    name = require_text(data.get("organizationName"), "organizationName", 300)
    category_id = require_int(data.get("stakeholderCategoryId"), "stakeholderCategoryId")
    level = data.get("implementationLevel")
    if level not in IMPLEMENTATION_LEVELS:
        raise ValidationError(
            f"implementationLevel must be one of: {', '.join(sorted(IMPLEMENTATION_LEVELS))}",
            details={"implementationLevel": level},
        )

    district_ids = _id_list(data.get("districtIds"), "districtIds")
    if not district_ids:
        raise ValidationError("At least one district must be selected", details={"districtIds": "empty"})
    sub_cluster_ids = _id_list(data.get("subClusters"), "subClusters")

    if db.session.get(StakeholderCategory, category_id) is None:
        raise NotFoundError(resource="StakeholderCategory", resource_id=category_id)
    _require_all(District, district_ids)
    if sub_cluster_ids:
        _require_all(SubCluster, sub_cluster_ids)

    stakeholder = Stakeholder(
        organization_name=name,
        stakeholder_category_id=category_id,
        implementation_level=level,
    )
    stakeholder.districts = [StakeholderDistrict(district_id=d) for d in district_ids]
    stakeholder.sub_clusters = [StakeholderSubCluster(sub_cluster_id=s) for s in sub_cluster_ids]
    db.session.add(stakeholder)
    commit_or_raise(db.session)

    logger.info(
        "Stakeholder created",
        extra={
            "stakeholder_id": stakeholder.id,
            "district_count": len(district_ids),
            "sub_cluster_count": len(sub_cluster_ids),
        },
    )
    return get_stakeholder(stakeholder.id)


def list_stakeholders() -> list[dict]:
    items = db.session.execute(
        select(Stakeholder).options(*_detail_options()).order_by(Stakeholder.organization_name)
    ).scalars().all()
    return [s.to_dict(include_details=True) for s in items]


def get_stakeholder(stakeholder_id: int) -> dict:
    """Get a single stakeholder by ID.

    Raises:
        NotFoundError: If not found.
    """
    s = db.session.execute(
        select(Stakeholder).where(Stakeholder.id == stakeholder_id).options(*_detail_options())
    ).scalar_one_or_none()
    if s is None:
        raise NotFoundError(resource="Stakeholder", resource_id=stakeholder_id)
    return s.to_dict(include_details=True)


# ── Internal helpers ──────────────────────────────────────────────────────────


def _detail_options():
    return (
        joinedload(Stakeholder.stakeholder_category),
        selectinload(Stakeholder.districts)
        .joinedload(StakeholderDistrict.district)
        .joinedload(District.province),
        selectinload(Stakeholder.sub_clusters).joinedload(StakeholderSubCluster.sub_cluster),
    )


def _id_list(raw, field: str) -> list[int]:
    """Validate an optional list of ids; duplicates are collapsed, order kept."""
    if raw is None:
        return []
    if not isinstance(raw, list):
        raise ValidationError(f"{field} must be a list of ids", details={field: raw})
    ids: list[int] = []
    for value in raw:
        parsed = require_int(value, field)
        if parsed not in ids:
            ids.append(parsed)
    return ids


def _require_all(model, ids: list[int]) -> None:
    found = set(db.session.execute(select(model.id).where(model.id.in_(ids))).scalars())
    missing = [i for i in ids if i not in found]
    if missing:
        raise NotFoundError(resource=model.__name__, resource_id=missing)
