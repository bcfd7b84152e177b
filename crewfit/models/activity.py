import uuid
from datetime import date, datetime

from sqlalchemy import Boolean, Date, DateTime, Float, ForeignKey, Index, Integer, String, func
from sqlalchemy.orm import Mapped, mapped_column, relationship

from crewfit.models.base import Base


class Activity(Base):
    __tablename__ = "activities"

    user_id: Mapped[uuid.UUID] = mapped_column(ForeignKey("users.id", ondelete="CASCADE"), index=True)
    activity_type: Mapped[str] = mapped_column(String(100), nullable=False)
    date: Mapped[date] = mapped_column(Date, nullable=False)
    time: Mapped[str | None] = mapped_column(String(5))  # "HH:MM", local to the owner
    duration_minutes: Mapped[int | None] = mapped_column(Integer)
    calories: Mapped[int | None] = mapped_column(Integer)
    distance_miles: Mapped[float | None] = mapped_column(Float)
    photo_url: Mapped[str | None] = mapped_column(String(1024))
    is_photo_private: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    custom_emoji: Mapped[str | None] = mapped_column(String(16))
    sport_emoji: Mapped[str | None] = mapped_column(String(16))
    count_toward: Mapped[str | None] = mapped_column(String(20))  # lifting, cardio, recovery
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now()
    )

    user: Mapped["User"] = relationship(back_populates="activities")  # noqa: F821

    __table_args__ = (
        Index("ix_activities_user_date", "user_id", "date"),
    )
