"""
Option Set Service.

Functions:
    - create_option_set:        Create a named option set
    - create_option:            Add an option to an existing set
    - list_option_sets:         All sets with their options, ordered by name
    - list_options_for_set:     Options of one set, ordered by name
"""

import logging

from sqlalchemy import select
from sqlalchemy.orm import selectinload

from stakemap.core.exceptions import NotFoundError
from stakemap.models import db
from stakemap.models.option_set import Option, OptionSet
from stakemap.utils.helpers import commit_or_raise, require_int, require_text

logger = logging.getLogger(__name__)


def _get_option_set(option_set_id: int) -> OptionSet:
    option_set = db.session.get(OptionSet, option_set_id)
    if option_set is None:
        raise NotFoundError(resource="OptionSet", resource_id=option_set_id)
    return option_set


def create_option_set(data: dict) -> dict:
    option_set = OptionSet(
        name=require_text(data.get("name"), "name", 200),
        description=data.get("description"),
    )
    db.session.add(option_set)
    commit_or_raise(db.session)
    logger.info("OptionSet created", extra={"option_set_id": option_set.id})
    return option_set.to_dict()


def create_option(data: dict) -> dict:
    """Add an option to a set.

    Raises:
        ValidationError: missing optionSetId or name.
        NotFoundError: unknown option set.
    """
    option_set_id = require_int(data.get("optionSetId"), "optionSetId")
    name = require_text(data.get("name"), "name", 200)
    option_set = _get_option_set(option_set_id)

    option = Option(option_set_id=option_set.id, name=name)
    db.session.add(option)
    commit_or_raise(db.session)
    logger.info("Option created", extra={"option_set_id": option_set.id, "option_id": option.id})
    return option.to_dict()


def list_option_sets() -> list[dict]:
    items = db.session.execute(
        select(OptionSet).options(selectinload(OptionSet.options)).order_by(OptionSet.name)
    ).scalars().all()
    return [s.to_dict(include_options=True) for s in items]


def list_options_for_set(option_set_id: int) -> list[dict]:
    _get_option_set(option_set_id)
    items = db.session.execute(
        select(Option).where(Option.option_set_id == option_set_id).order_by(Option.name)
    ).scalars().all()
    return [o.to_dict() for o in items]
