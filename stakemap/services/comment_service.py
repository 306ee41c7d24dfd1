"""
Report Comment Service.

Functions:
    - add_comment:                Attach a comment to a report
    - list_comments_for_report:   Comments of one report, newest first
"""

import logging

from sqlalchemy import select

from stakemap.core.exceptions import NotFoundError
from stakemap.models import db
from stakemap.models.comment import Comment
from stakemap.models.report import Report
from stakemap.utils.helpers import commit_or_raise, require_text

logger = logging.getLogger(__name__)


def _get_report(report_id: int) -> Report:
    report = db.session.get(Report, report_id)
    if report is None:
        raise NotFoundError(resource="Report", resource_id=report_id)
    return report


def add_comment(report_id: int, data: dict, *, author_id=None, author_name=None) -> dict:
    """Add a comment to a report.

    Args:
        report_id: Report being commented on.
        data: {commentText}
        author_id: JWT subject of the caller, if any.
        author_name: JWT username of the caller, if any.

    Raises:
        NotFoundError: unknown report.
        ValidationError: blank commentText.
    """
    report = _get_report(report_id)
    comment = Comment(
        report_id=report.id,
        author_id=str(author_id)[:64] if author_id is not None else None,
        author_name=author_name,
        comment_text=require_text(data.get("commentText"), "commentText", 5000),
    )
    db.session.add(comment)
    commit_or_raise(db.session)
    logger.info("Comment added", extra={"comment_id": comment.id, "report_id": report.id})
    return comment.to_dict()


def list_comments_for_report(report_id: int) -> list[dict]:
    _get_report(report_id)
    items = db.session.execute(
        select(Comment)
        .where(Comment.report_id == report_id)
        .order_by(Comment.created_at.desc(), Comment.id.desc())
    ).scalars().all()
    return [c.to_dict() for c in items]
