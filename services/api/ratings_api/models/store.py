"""Store model.

Represents a rated store owned by a single store owner.
average_rating / total_ratings are a denormalized counter maintained by
services.ratings.recompute_store_rating after every rating write.
"""

from datetime import datetime

from sqlalchemy import Boolean, CheckConstraint, DateTime, Float, ForeignKey, Index, Integer, String, func, text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from ratings_api.models.user import User, utcnow
from ratings_api.stores.postgres import Base


class Store(Base):
    """Store with its aggregated rating."""

    __tablename__ = "stores"
    __table_args__ = (
        CheckConstraint("average_rating >= 0 AND average_rating <= 5", name="ck_stores_average_rating_range"),
        CheckConstraint("total_ratings >= 0", name="ck_stores_total_ratings_non_negative"),
        # At most one active store per owner
        Index(
            "uq_stores_active_owner",
            "owner_id",
            unique=True,
            postgresql_where=text("is_active"),
            sqlite_where=text("is_active = 1"),
        ),
    )

    id: Mapped[int] = mapped_column(primary_key=True)

    name: Mapped[str] = mapped_column(String(60), index=True)
    email: Mapped[str] = mapped_column(String(255), unique=True, index=True)  # Lower-cased
    address: Mapped[str] = mapped_column(String(400), index=True)

    # Owner (role storeOwner)
    owner_id: Mapped[int] = mapped_column(ForeignKey("users.id"), index=True)
    owner: Mapped[User] = relationship(lazy="raise")

    # Aggregated rating (0-5, one decimal)
    average_rating: Mapped[float] = mapped_column(Float, default=0.0, index=True)
    total_ratings: Mapped[int] = mapped_column(Integer, default=0)

    # Soft delete
    is_active: Mapped[bool] = mapped_column(Boolean, default=True, index=True)

    # Timestamps
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=utcnow,
        server_default=func.now(),
        index=True,
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=utcnow,
        server_default=func.now(),
        onupdate=utcnow,
    )

    def __repr__(self) -> str:
        return f"<Store {self.name} ({self.average_rating:.1f}/{self.total_ratings})>"
