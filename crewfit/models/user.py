from datetime import datetime

from sqlalchemy import DateTime, String, func
from sqlalchemy.orm import Mapped, mapped_column, relationship

from crewfit.models.base import Base


class User(Base):
    __tablename__ = "users"

    # Lowercase, 3-15 chars of [a-z0-9_]; uniqueness is owned by registration
    username: Mapped[str] = mapped_column(String(15), unique=True, nullable=False)
    display_name: Mapped[str | None] = mapped_column(String(255))
    photo_url: Mapped[str | None] = mapped_column(String(1024))
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now()
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), onupdate=func.now()
    )

    # Relationships
    stats: Mapped["UserStats"] = relationship(back_populates="user", cascade="all, delete-orphan", uselist=False)  # noqa: F821
    activities: Mapped[list["Activity"]] = relationship(back_populates="user", cascade="all, delete-orphan")  # noqa: F821
