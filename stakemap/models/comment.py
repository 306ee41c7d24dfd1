"""
Stakeholder Mapping & Reporting API
Report comment model.

A Comment is a reviewer's note on one quarterly Report. The author is the
subject of the caller's JWT, stored verbatim.
"""

from datetime import datetime, timezone

from stakemap.models import db


class Comment(db.Model):
    __tablename__ = "report_comments"

    id = db.Column(db.Integer, primary_key=True)
    report_id = db.Column(
        db.Integer,
        db.ForeignKey("reports.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    author_id = db.Column(db.String(64), nullable=True, comment="JWT subject of the author")
    author_name = db.Column(db.String(150), nullable=True)
    comment_text = db.Column(db.Text, nullable=False)
    created_at = db.Column(
        db.DateTime(timezone=True), nullable=False,
        default=lambda: datetime.now(timezone.utc),
    )

    report = db.relationship(
        "Report",
        backref=db.backref("comments", cascade="all, delete-orphan", order_by="Comment.id"),
    )

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "reportId": self.report_id,
            "authorId": self.author_id,
            "authorName": self.author_name,
            "commentText": self.comment_text,
            "createdAt": self.created_at.isoformat() if self.created_at else None,
        }

    def __repr__(self) -> str:
        return f"<Comment id={self.id} report={self.report_id}>"
