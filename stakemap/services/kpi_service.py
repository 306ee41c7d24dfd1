"""
KPI catalogue service.

Business logic for sub-clusters, KPI categories and KPIs.

Functions:
    - create_sub_cluster:     Create a sub-cluster (name required)
    - list_sub_clusters:      All sub-clusters ordered by name
    - create_kpi_category:    Create a category inside an existing sub-cluster
    - list_kpi_categories:    Optional sub-cluster filter
    - create_kpi:             Create a KPI inside an existing sub-cluster
    - list_kpis:              Optional sub-cluster / category filters, with relations
    - get_kpi:                Single KPI with relations
"""

import logging

from sqlalchemy import select
from sqlalchemy.orm import joinedload

from stakemap.core.exceptions import NotFoundError, ValidationError
from stakemap.models import db
from stakemap.models.kpi import Kpi, KpiCategory, SubCluster
from stakemap.models.stakeholder import StakeholderCategory
from stakemap.utils.helpers import commit_or_raise, optional_int, require_int, require_text

logger = logging.getLogger(__name__)


# ── Sub-clusters ──────────────────────────────────────────────────────────────


def create_sub_cluster(data: dict) -> dict:
    sub_cluster = SubCluster(
        name=require_text(data.get("name"), "name", 200),
        description=data.get("description"),
    )
    db.session.add(sub_cluster)
    commit_or_raise(db.session)
    logger.info("SubCluster created", extra={"sub_cluster_id": sub_cluster.id})
    return sub_cluster.to_dict()


def list_sub_clusters() -> list[dict]:
    items = db.session.execute(select(SubCluster).order_by(SubCluster.name)).scalars().all()
    return [s.to_dict() for s in items]


# ── KPI categories ────────────────────────────────────────────────────────────


def create_kpi_category(data: dict) -> dict:
    """Create a KPI category.

    Raises:
        ValidationError: name or subClusterId missing.
        NotFoundError: sub-cluster does not exist.
    """
    name = require_text(data.get("name"), "name", 200)
    sub_cluster_id = require_int(data.get("subClusterId"), "subClusterId")
    _require_sub_cluster(sub_cluster_id)

    category = KpiCategory(name=name, sub_cluster_id=sub_cluster_id)
    db.session.add(category)
    commit_or_raise(db.session)
    logger.info("KpiCategory created", extra={"kpi_category_id": category.id})
    return category.to_dict()


def list_kpi_categories(sub_cluster_id: int | None = None) -> list[dict]:
    stmt = select(KpiCategory)
    if sub_cluster_id:
        stmt = stmt.where(KpiCategory.sub_cluster_id == sub_cluster_id)
    items = db.session.execute(stmt.order_by(KpiCategory.name)).scalars().all()
    return [c.to_dict() for c in items]


# ── KPIs ──────────────────────────────────────────────────────────────────────


def create_kpi(data: dict) -> dict:
    """Create a KPI.

    Business rule: a KPI always belongs to a sub-cluster; its optional
    category must belong to the same sub-cluster.

    Args:
        data: {name, subClusterId, description?, unit?, kpiCategoryId?,
               stakeholderCategoryId?, targetValue?, currentValue?}

    Returns:
        Serialized Kpi dict.

    Raises:
        ValidationError: missing name/subClusterId, non-numeric values,
                         or category from another sub-cluster.
        NotFoundError: referenced sub-cluster/category does not exist.
    """
    name = require_text(data.get("name"), "name", 300)
    sub_cluster_id = require_int(data.get("subClusterId"), "subClusterId")
    _require_sub_cluster(sub_cluster_id)

    category_id = optional_int(data.get("kpiCategoryId"), "kpiCategoryId")
    if category_id is not None:
        category = db.session.get(KpiCategory, category_id)
        if category is None:
            raise NotFoundError(resource="KpiCategory", resource_id=category_id)
        if category.sub_cluster_id != sub_cluster_id:
            raise ValidationError(
                "kpiCategoryId belongs to a different sub-cluster",
                details={"kpiCategoryId": category_id},
            )

    stakeholder_category_id = optional_int(data.get("stakeholderCategoryId"), "stakeholderCategoryId")
    if stakeholder_category_id is not None and db.session.get(
        StakeholderCategory, stakeholder_category_id
    ) is None:
        raise NotFoundError(resource="StakeholderCategory", resource_id=stakeholder_category_id)

    kpi = Kpi(
        name=name,
        description=data.get("description"),
        unit=(data.get("unit") or "")[:50] or None,
        sub_cluster_id=sub_cluster_id,
        kpi_category_id=category_id,
        stakeholder_category_id=stakeholder_category_id,
        target_value=_optional_number(data.get("targetValue"), "targetValue"),
        current_value=_optional_number(data.get("currentValue"), "currentValue"),
    )
    db.session.add(kpi)
    commit_or_raise(db.session)
    logger.info("Kpi created", extra={"kpi_id": kpi.id, "sub_cluster_id": sub_cluster_id})
    return kpi.to_dict()


def list_kpis(sub_cluster_id: int | None = None, kpi_category_id: int | None = None) -> list[dict]:
    stmt = select(Kpi).options(
        joinedload(Kpi.sub_cluster),
        joinedload(Kpi.kpi_category),
        joinedload(Kpi.stakeholder_category),
    )
    if sub_cluster_id is not None:
        stmt = stmt.where(Kpi.sub_cluster_id == sub_cluster_id)
    if kpi_category_id is not None:
        stmt = stmt.where(Kpi.kpi_category_id == kpi_category_id)
    items = db.session.execute(stmt.order_by(Kpi.name)).scalars().all()
    return [k.to_dict(include_details=True) for k in items]


def get_kpi(kpi_id: int) -> dict:
    kpi = db.session.get(Kpi, kpi_id)
    if kpi is None:
        raise NotFoundError(resource="Kpi", resource_id=kpi_id)
    return kpi.to_dict(include_details=True)


# ── Internal helpers ──────────────────────────────────────────────────────────


def _require_sub_cluster(sub_cluster_id: int) -> SubCluster:
    sub_cluster = db.session.get(SubCluster, sub_cluster_id)
    if sub_cluster is None:
        raise NotFoundError(resource="SubCluster", resource_id=sub_cluster_id)
    return sub_cluster


def _optional_number(value, field: str):
    if value is None or value == "":
        return None
    if isinstance(value, bool):
        raise ValidationError(f"{field} must be a number", details={field: value})
    try:
        return float(value)
    except (TypeError, ValueError):
        raise ValidationError(f"{field} must be a number", details={field: value}) from None
