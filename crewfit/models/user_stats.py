import uuid
from datetime import datetime

from sqlalchemy import JSON, DateTime, ForeignKey, Integer, func
from sqlalchemy.orm import Mapped, mapped_column, relationship

from crewfit.models.base import Base


class UserStats(Base):
    """Per-user stats document maintained by the health sync pipeline."""

    __tablename__ = "user_stats"

    user_id: Mapped[uuid.UUID] = mapped_column(
        ForeignKey("users.id", ondelete="CASCADE"), unique=True, nullable=False
    )
    master_streak: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    strength_streak: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    cardio_streak: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    recovery_streak: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    weeks_won: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    total_workouts: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    # {"week": int, "month": int, "year": int, "all": int}
    calories: Mapped[dict | None] = mapped_column(JSON, default=dict)
    steps: Mapped[dict | None] = mapped_column(JSON, default=dict)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), onupdate=func.now()
    )

    user: Mapped["User"] = relationship(back_populates="stats")  # noqa: F821
