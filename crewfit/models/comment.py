import uuid
from datetime import datetime, timezone

from sqlalchemy import DateTime, ForeignKey, Index, String
from sqlalchemy.orm import Mapped, mapped_column, relationship

from crewfit.models.base import Base


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class Comment(Base):
    __tablename__ = "comments"

    owner_id: Mapped[uuid.UUID] = mapped_column(
        ForeignKey("users.id", ondelete="CASCADE"), nullable=False
    )
    activity_id: Mapped[str] = mapped_column(String(64), nullable=False)
    commenter_id: Mapped[uuid.UUID] = mapped_column(
        ForeignKey("users.id", ondelete="CASCADE"), nullable=False
    )
    text: Mapped[str] = mapped_column(String(500), nullable=False)
    # Assigned here rather than by the database so ordering keeps sub-second precision
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=_utcnow)

    replies: Mapped[list["CommentReply"]] = relationship(
        back_populates="comment", cascade="all, delete-orphan", passive_deletes=True
    )

    __table_args__ = (
        Index("ix_comments_activity", "owner_id", "activity_id"),
    )


class CommentReply(Base):
    __tablename__ = "comment_replies"

    comment_id: Mapped[uuid.UUID] = mapped_column(
        ForeignKey("comments.id", ondelete="CASCADE"), nullable=False, index=True
    )
    replier_id: Mapped[uuid.UUID] = mapped_column(
        ForeignKey("users.id", ondelete="CASCADE"), nullable=False
    )
    text: Mapped[str] = mapped_column(String(500), nullable=False)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=_utcnow)

    comment: Mapped["Comment"] = relationship(back_populates="replies")
