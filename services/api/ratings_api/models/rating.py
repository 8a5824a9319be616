"""Rating model.

One rating (1-5 plus optional comment) per user per store.
"""

from datetime import datetime

from sqlalchemy import CheckConstraint, DateTime, ForeignKey, Integer, String, UniqueConstraint, func
from sqlalchemy.orm import Mapped, mapped_column, relationship

from ratings_api.models.store import Store
from ratings_api.models.user import User, utcnow
from ratings_api.stores.postgres import Base

MIN_RATING = 1
MAX_RATING = 5
MAX_COMMENT_LENGTH = 500


class Rating(Base):
    """A user's rating of a store."""

    __tablename__ = "ratings"
    __table_args__ = (
        UniqueConstraint("user_id", "store_id", name="uq_ratings_user_store"),
        CheckConstraint(
            f"rating >= {MIN_RATING} AND rating <= {MAX_RATING}",
            name="ck_ratings_rating_range",
        ),
    )

    id: Mapped[int] = mapped_column(primary_key=True)

    # Relations
    user_id: Mapped[int] = mapped_column(ForeignKey("users.id"), index=True)
    store_id: Mapped[int] = mapped_column(ForeignKey("stores.id"), index=True)
    user: Mapped[User] = relationship(lazy="raise")
    store: Mapped[Store] = relationship(lazy="raise")

    rating: Mapped[int] = mapped_column(Integer)
    comment: Mapped[str] = mapped_column(String(MAX_COMMENT_LENGTH), default="")

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
        return f"<Rating user={self.user_id} store={self.store_id} {self.rating}>"
