"""SQLAlchemy ORM models.

Models represent database tables:
- users: Accounts (admin, normal user, store owner) with soft delete
- stores: Rated stores with a denormalized average-rating counter
- ratings: One rating per user per store
"""

from ratings_api.models.user import User, UserRole
from ratings_api.models.store import Store
from ratings_api.models.rating import Rating

__all__ = ["User", "UserRole", "Store", "Rating"]
